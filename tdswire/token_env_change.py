"""The ENVCHANGE token reporting changes of the session environment."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union

from .collation import Collation
from .wire import ProtocolError, WireReader

__all__ = [
    "EnvChangeTy",
    "DatabaseChange",
    "PacketSizeChange",
    "SqlCollationChange",
    "BeginTransaction",
    "CommitTransaction",
    "RollbackTransaction",
    "DefectTransaction",
    "RoutingChange",
    "MirrorChange",
    "IgnoredEnvChange",
    "EnvChange",
    "decode_env_change",
]

_COLLATION = struct.Struct("<IB")


class EnvChangeTy(IntEnum):
    """The kind of environment change."""

    DATABASE = 1
    LANGUAGE = 2
    CHARACTER_SET = 3
    PACKET_SIZE = 4
    UNICODE_DATA_SORTING_LID = 5
    UNICODE_DATA_SORTING_CFL = 6
    SQL_COLLATION = 7
    BEGIN_TRANSACTION = 8
    COMMIT_TRANSACTION = 9
    ROLLBACK_TRANSACTION = 10
    ENLIST_DTC_TRANSACTION = 11
    DEFECT_TRANSACTION = 12
    RTLS = 13
    PROMOTE_TRANSACTION = 15
    TRANSACTION_MANAGER_ADDRESS = 16
    TRANSACTION_ENDED = 17
    RESET_CONNECTION = 18
    USER_NAME = 19
    ROUTING = 20

    def __str__(self) -> str:
        return _TY_NAMES[self]


_TY_NAMES = {
    EnvChangeTy.DATABASE: "Database",
    EnvChangeTy.LANGUAGE: "Language",
    EnvChangeTy.CHARACTER_SET: "CharacterSet",
    EnvChangeTy.PACKET_SIZE: "PacketSize",
    EnvChangeTy.UNICODE_DATA_SORTING_LID: "UnicodeDataSortingLID",
    EnvChangeTy.UNICODE_DATA_SORTING_CFL: "UnicodeDataSortingCFL",
    EnvChangeTy.SQL_COLLATION: "SqlCollation",
    EnvChangeTy.BEGIN_TRANSACTION: "BeginTransaction",
    EnvChangeTy.COMMIT_TRANSACTION: "CommitTransaction",
    EnvChangeTy.ROLLBACK_TRANSACTION: "RollbackTransaction",
    EnvChangeTy.ENLIST_DTC_TRANSACTION: "EnlistDTCTransaction",
    EnvChangeTy.DEFECT_TRANSACTION: "DefectTransaction",
    EnvChangeTy.RTLS: "RTLS",
    EnvChangeTy.PROMOTE_TRANSACTION: "PromoteTransaction",
    EnvChangeTy.TRANSACTION_MANAGER_ADDRESS: "TransactionManagerAddress",
    EnvChangeTy.TRANSACTION_ENDED: "TransactionEnded",
    EnvChangeTy.RESET_CONNECTION: "ResetConnection",
    EnvChangeTy.USER_NAME: "UserName",
    EnvChangeTy.ROUTING: "Routing",
}


@dataclass(frozen=True)
class DatabaseChange:
    """The current database changed; values in the order they are sent."""

    new: str
    old: str

    def __str__(self) -> str:
        return f"Database change from '{self.new}' to '{self.old}'"


@dataclass(frozen=True)
class PacketSizeChange:
    """The negotiated packet size changed; values in the order they are sent."""

    new: int
    old: int

    def __str__(self) -> str:
        return f"Packet size change from '{self.new}' to '{self.old}'"


@dataclass(frozen=True)
class SqlCollationChange:
    """The session collation changed."""

    new: Optional[Collation]
    old: Optional[Collation]

    def __str__(self) -> str:
        if self.old is not None and self.new is not None:
            return f"SQL collation change from {self.old} to {self.new}"
        if self.new is not None:
            return f"SQL collation changed to {self.new}"
        return "SQL collation change"


@dataclass(frozen=True)
class BeginTransaction:
    """A transaction began; carries its eight-byte descriptor."""

    descriptor: bytes

    def __str__(self) -> str:
        return "Begin transaction"


@dataclass(frozen=True)
class CommitTransaction:
    """A transaction was committed."""

    def __str__(self) -> str:
        return "Commit transaction"


@dataclass(frozen=True)
class RollbackTransaction:
    """A transaction was rolled back."""

    def __str__(self) -> str:
        return "Rollback transaction"


@dataclass(frozen=True)
class DefectTransaction:
    """A transaction was defected."""

    def __str__(self) -> str:
        return "Defect transaction"


@dataclass(frozen=True)
class RoutingChange:
    """The server asks the client to reconnect to another address."""

    host: str
    port: int

    def __str__(self) -> str:
        return (
            f"Server requested routing to a new address: {self.host}:{self.port}"
        )


@dataclass(frozen=True)
class MirrorChange:
    """The name of the fallback mirror server."""

    mirror: str

    def __str__(self) -> str:
        return f"Fallback mirror server: `{self.mirror}`"


@dataclass(frozen=True)
class IgnoredEnvChange:
    """An environment change that is not interpreted."""

    ty: EnvChangeTy

    def __str__(self) -> str:
        return f"Ignored env change: `{self.ty}`"


EnvChange = Union[
    DatabaseChange,
    PacketSizeChange,
    SqlCollationChange,
    BeginTransaction,
    CommitTransaction,
    RollbackTransaction,
    DefectTransaction,
    RoutingChange,
    MirrorChange,
    IgnoredEnvChange,
]


def _read_collation(reader: WireReader) -> Optional[Collation]:
    raw = reader.read_bytes(reader.read_u8())
    if len(raw) != _COLLATION.size:
        return None
    info, sort_id = _COLLATION.unpack(raw)
    return Collation(info, sort_id)


def _parse_packet_size(text: str) -> int:
    try:
        size = int(text)
    except ValueError:
        raise ProtocolError(f"invalid packet size: {text!r}") from None
    if not 0 <= size <= 0xFFFFFFFF:
        raise ProtocolError(f"invalid packet size: {text!r}")
    return size


def decode_env_change(reader: WireReader) -> EnvChange:
    """Read the token body (the token byte already consumed)."""
    length = reader.read_u16_le()
    # Read the whole token up front: it may end in padding to discard.
    body = WireReader(reader.read_bytes(length))

    raw_ty = body.read_u8()
    try:
        ty = EnvChangeTy(raw_ty)
    except ValueError:
        raise ProtocolError(f"invalid envchange type {raw_ty:x}") from None

    if ty == EnvChangeTy.DATABASE:
        new = body.read_b_varchar()
        old = body.read_b_varchar()
        return DatabaseChange(new, old)
    if ty == EnvChangeTy.PACKET_SIZE:
        new = body.read_b_varchar()
        old = body.read_b_varchar()
        return PacketSizeChange(_parse_packet_size(new), _parse_packet_size(old))
    if ty == EnvChangeTy.SQL_COLLATION:
        new_collation = _read_collation(body)
        old_collation = _read_collation(body)
        return SqlCollationChange(new_collation, old_collation)
    if ty in (EnvChangeTy.BEGIN_TRANSACTION, EnvChangeTy.ENLIST_DTC_TRANSACTION):
        desc_len = body.read_u8()
        if desc_len != 8:
            raise ProtocolError(
                f"transaction descriptor must be 8 bytes, got {desc_len}"
            )
        return BeginTransaction(body.read_bytes(8))
    if ty == EnvChangeTy.COMMIT_TRANSACTION:
        return CommitTransaction()
    if ty == EnvChangeTy.ROLLBACK_TRANSACTION:
        return RollbackTransaction()
    if ty == EnvChangeTy.DEFECT_TRANSACTION:
        return DefectTransaction()
    if ty == EnvChangeTy.ROUTING:
        body.read_u16_le()  # routing data value length
        body.read_u8()  # routing protocol, always TCP
        port = body.read_u16_le()
        host = body.read_us_varchar()
        return RoutingChange(host, port)
    if ty == EnvChangeTy.RTLS:
        return MirrorChange(body.read_b_varchar())
    return IgnoredEnvChange(ty)