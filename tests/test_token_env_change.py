import struct

import pytest

from tdswire.collation import Collation
from tdswire.token_env_change import (
    BeginTransaction,
    CommitTransaction,
    DatabaseChange,
    DefectTransaction,
    EnvChangeTy,
    IgnoredEnvChange,
    MirrorChange,
    PacketSizeChange,
    RollbackTransaction,
    RoutingChange,
    SqlCollationChange,
    decode_env_change,
)
from tdswire.wire import ProtocolError, WireReader, encode_b_varchar, encode_us_varchar


def _token(ty, body=b""):
    payload = bytes([int(ty)]) + body
    return WireReader(struct.pack("<H", len(payload)) + payload)


def _collation_bytes(collation):
    if collation is None:
        return b"\x00"
    return b"\x05" + struct.pack("<IB", collation.info, collation.sort_id)


def test_database_change():
    body = encode_b_varchar("master") + encode_b_varchar("tempdb")
    change = decode_env_change(_token(EnvChangeTy.DATABASE, body))
    assert change == DatabaseChange("master", "tempdb")
    assert str(change) == "Database change from 'master' to 'tempdb'"


def test_packet_size_change():
    body = encode_b_varchar("8000") + encode_b_varchar("4096")
    change = decode_env_change(_token(EnvChangeTy.PACKET_SIZE, body))
    assert change == PacketSizeChange(8000, 4096)
    assert str(change) == "Packet size change from '8000' to '4096'"


def test_packet_size_not_a_number():
    body = encode_b_varchar("big") + encode_b_varchar("4096")
    with pytest.raises(ProtocolError):
        decode_env_change(_token(EnvChangeTy.PACKET_SIZE, body))


def test_sql_collation_change_both():
    new = Collation(13632521, 52)
    old = Collation(1033, 0)
    body = _collation_bytes(new) + _collation_bytes(old)
    change = decode_env_change(_token(EnvChangeTy.SQL_COLLATION, body))
    assert change == SqlCollationChange(new, old)
    assert str(change) == f"SQL collation change from {old} to {new}"


def test_sql_collation_change_only_new():
    new = Collation(13632521, 52)
    body = _collation_bytes(new) + _collation_bytes(None)
    change = decode_env_change(_token(EnvChangeTy.SQL_COLLATION, body))
    assert change.old is None
    assert change.new == new
    assert str(change) == f"SQL collation changed to {new}"


def test_sql_collation_change_none():
    body = _collation_bytes(None) + _collation_bytes(None)
    change = decode_env_change(_token(EnvChangeTy.SQL_COLLATION, body))
    assert str(change) == "SQL collation change"


@pytest.mark.parametrize(
    "ty", [EnvChangeTy.BEGIN_TRANSACTION, EnvChangeTy.ENLIST_DTC_TRANSACTION]
)
def test_begin_transaction(ty):
    desc = bytes(range(1, 9))
    change = decode_env_change(_token(ty, b"\x08" + desc + b"\x00"))
    assert change == BeginTransaction(desc)
    assert str(change) == "Begin transaction"


def test_begin_transaction_bad_length():
    with pytest.raises(ProtocolError):
        decode_env_change(_token(EnvChangeTy.BEGIN_TRANSACTION, b"\x04abcd"))


@pytest.mark.parametrize(
    "ty, expected, text",
    [
        (EnvChangeTy.COMMIT_TRANSACTION, CommitTransaction(), "Commit transaction"),
        (EnvChangeTy.ROLLBACK_TRANSACTION, RollbackTransaction(), "Rollback transaction"),
        (EnvChangeTy.DEFECT_TRANSACTION, DefectTransaction(), "Defect transaction"),
    ],
)
def test_transaction_end_changes(ty, expected, text):
    change = decode_env_change(_token(ty, b"\x00\x00"))
    assert change == expected
    assert str(change) == text


def test_routing():
    host = encode_us_varchar("db.example.com")
    value = b"\x00" + struct.pack("<H", 1433) + host
    body = struct.pack("<H", len(value)) + value + b"\x00\x00"
    change = decode_env_change(_token(EnvChangeTy.ROUTING, body))
    assert change == RoutingChange("db.example.com", 1433)
    assert str(change) == "Server requested routing to a new address: db.example.com:1433"


def test_mirror():
    change = decode_env_change(_token(EnvChangeTy.RTLS, encode_b_varchar("mirror1")))
    assert change == MirrorChange("mirror1")
    assert str(change) == "Fallback mirror server: `mirror1`"


def test_ignored():
    change = decode_env_change(_token(EnvChangeTy.LANGUAGE, b"\x00\x00"))
    assert change == IgnoredEnvChange(EnvChangeTy.LANGUAGE)
    assert str(change) == "Ignored env change: `Language`"


def test_rtls_display_name():
    change = IgnoredEnvChange(EnvChangeTy.RTLS)
    assert str(change) == "Ignored env change: `RTLS`"


def test_invalid_type():
    with pytest.raises(ProtocolError, match="invalid envchange type 63"):
        decode_env_change(_token(0x63))


def test_padding_is_consumed():
    payload = bytes([int(EnvChangeTy.COMMIT_TRANSACTION)]) + b"\x00\x00\x00"
    reader = WireReader(struct.pack("<H", len(payload)) + payload + b"\xfd")
    decode_env_change(reader)
    assert reader.read_u8() == 0xFD