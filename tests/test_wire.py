import struct

import pytest

from tdswire.wire import (
    ProtocolError,
    WireReader,
    encode_b_varchar,
    encode_us_varchar,
)


def test_integers_read_in_order():
    data = (
        struct.pack("<B", 200)
        + struct.pack("<H", 513)
        + struct.pack(">H", 513)
        + struct.pack("<I", 70000)
        + struct.pack(">I", 70000)
        + struct.pack("<Q", 2**40 + 7)
    )
    reader = WireReader(data)
    assert reader.read_u8() == 200
    assert reader.read_u16_le() == 513
    assert reader.read_u16_be() == 513
    assert reader.read_u32_le() == 70000
    assert reader.read_u32_be() == 70000
    assert reader.read_u64_le() == 2**40 + 7
    assert reader.remaining() == 0


def test_remaining_shrinks():
    reader = WireReader(b"abcdef")
    assert reader.remaining() == 6
    assert reader.read_bytes(4) == b"abcd"
    assert reader.remaining() == 2
    assert reader.position == 4


def test_short_read_raises():
    reader = WireReader(b"\x01")
    with pytest.raises(ProtocolError):
        reader.read_u16_le()


def test_negative_count_rejected():
    with pytest.raises(ValueError):
        WireReader(b"").read_bytes(-1)


def test_b_varchar_wire_bytes():
    assert encode_b_varchar("ab") == b"\x02a\x00b\x00"


def test_us_varchar_wire_bytes():
    assert encode_us_varchar("ab") == b"\x02\x00a\x00b\x00"


@pytest.mark.parametrize("text", ["", "hello", "cześć", "\U0001f600x"])
def test_b_varchar_round_trip(text):
    reader = WireReader(encode_b_varchar(text))
    assert reader.read_b_varchar() == text
    assert reader.remaining() == 0


@pytest.mark.parametrize("text", ["", "collection", "x" * 300])
def test_us_varchar_round_trip(text):
    reader = WireReader(encode_us_varchar(text))
    assert reader.read_us_varchar() == text
    assert reader.remaining() == 0


def test_b_varchar_too_long():
    with pytest.raises(ValueError):
        encode_b_varchar("x" * 256)


def test_invalid_utf16_raises():
    # a lone low surrogate
    reader = WireReader(b"\x01\x00\xdc")
    with pytest.raises(ProtocolError):
        reader.read_b_varchar()


def test_truncated_string_raises():
    reader = WireReader(encode_b_varchar("abc")[:-1])
    with pytest.raises(ProtocolError):
        reader.read_b_varchar()