import struct

import pytest

from tdswire.messages import (
    FEA_EXT_FEDAUTH,
    FEA_EXT_TERMINATOR,
    FedAuthAck,
    TdsVersion,
    TokenFeatureExtAck,
    TokenInfo,
    TokenLoginAck,
    TokenOrder,
    TokenSspi,
)
from tdswire.wire import ProtocolError, WireReader, encode_b_varchar, encode_us_varchar


def test_feature_ext_ack_with_nonce():
    nonce = bytes(range(32))
    data = (
        bytes([FEA_EXT_FEDAUTH])
        + struct.pack("<I", 32)
        + nonce
        + bytes([FEA_EXT_TERMINATOR])
    )
    ack = TokenFeatureExtAck.decode(WireReader(data))
    assert ack.features == [FedAuthAck(nonce)]


def test_feature_ext_ack_without_nonce():
    data = bytes([FEA_EXT_FEDAUTH]) + struct.pack("<I", 0) + bytes([FEA_EXT_TERMINATOR])
    ack = TokenFeatureExtAck.decode(WireReader(data))
    assert ack.features == [FedAuthAck(None)]


def test_feature_ext_ack_empty():
    ack = TokenFeatureExtAck.decode(WireReader(bytes([FEA_EXT_TERMINATOR])))
    assert ack.features == []


def test_feature_ext_ack_invalid_length():
    data = bytes([FEA_EXT_FEDAUTH]) + struct.pack("<I", 5) + b"abcde\xff"
    with pytest.raises(ProtocolError):
        TokenFeatureExtAck.decode(WireReader(data))


def test_feature_ext_ack_unknown_feature():
    with pytest.raises(ProtocolError):
        TokenFeatureExtAck.decode(WireReader(b"\x09\xff"))


def test_info_decode():
    body = (
        struct.pack("<IBB", 5701, 2, 0)
        + encode_us_varchar("Changed database context to 'master'.")
        + encode_b_varchar("srv")
        + encode_b_varchar("proc")
        + struct.pack("<I", 7)
    )
    reader = WireReader(struct.pack("<H", len(body)) + body)
    info = TokenInfo.decode(reader)
    assert info == TokenInfo(
        5701, 2, 0, "Changed database context to 'master'.", "srv", "proc", 7
    )
    assert reader.remaining() == 0


def test_login_ack_decode():
    body = (
        b"\x01"
        + struct.pack(">I", int(TdsVersion.SQL_SERVER_N))
        + encode_b_varchar("Microsoft SQL Server")
        + struct.pack("<I", 0x0F000001)
    )
    reader = WireReader(struct.pack("<H", len(body)) + body)
    ack = TokenLoginAck.decode(reader)
    assert ack.interface == 1
    assert ack.tds_version is TdsVersion.SQL_SERVER_N
    assert ack.prog_name == "Microsoft SQL Server"
    assert ack.version == 0x0F000001


def test_login_ack_invalid_version():
    body = b"\x01" + struct.pack(">I", 0x12345678) + encode_b_varchar("x") + bytes(4)
    reader = WireReader(struct.pack("<H", len(body)) + body)
    with pytest.raises(ProtocolError, match="Invalid TDS version"):
        TokenLoginAck.decode(reader)


def test_order_decode():
    indexes = (1, 3, 2)
    data = struct.pack("<H", 2 * len(indexes)) + struct.pack("<3H", *indexes)
    order = TokenOrder.decode(WireReader(data))
    assert order.column_indexes == indexes


def test_order_empty():
    assert TokenOrder.decode(WireReader(b"\x00\x00")).column_indexes == ()


def test_sspi_round_trip():
    blob = b"NTLMSSP\x00\x01\x02"
    reader = WireReader(struct.pack("<H", len(blob)) + blob)
    token = TokenSspi.decode(reader)
    assert token.encode() == blob
    assert bytes(token) == blob
    assert reader.remaining() == 0


def test_sspi_truncated():
    with pytest.raises(ProtocolError):
        TokenSspi.decode(WireReader(b"\x05\x00ab"))