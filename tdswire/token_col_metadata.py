"""The COLMETADATA token describing the columns of a result set."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntFlag

from .token_type import TokenType
from .type_info import (
    FixedLen,
    FixedLenType,
    TypeInfo,
    VarLenContext,
    VarLenSizedPrecision,
    VarLenType,
    XmlType,
    decode_type_info,
)
from .wire import ProtocolError, WireReader, encode_b_varchar

__all__ = [
    "ColumnFlag",
    "BaseMetaDataColumn",
    "MetaDataColumn",
    "TokenColMetaData",
]

_U16_LE = struct.Struct("<H")
_U32_LE = struct.Struct("<I")


class ColumnFlag(IntFlag):
    """Settings a column can hold."""

    NULLABLE = 1 << 0
    CASE_SENSITIVE = 1 << 1
    UPDATEABLE = 1 << 3
    UPDATEABLE_UNKNOWN = 1 << 4
    IDENTITY = 1 << 5
    COMPUTED = 1 << 7
    FIXED_LEN_CLR_TYPE = 1 << 10
    SPARSE_COLUMN_SET = 1 << 11
    ENCRYPTED = 1 << 12
    HIDDEN = 1 << 13
    KEY = 1 << 14
    NULLABLE_UNKNOWN = 1 << 15


_ALL_FLAG_BITS = 0
for _flag in ColumnFlag:
    _ALL_FLAG_BITS |= int(_flag)
del _flag

_TABLE_NAME_TYPES = frozenset({VarLenType.TEXT, VarLenType.NTEXT, VarLenType.IMAGE})

_FIXED_NAMES = {
    FixedLenType.INT1: "tinyint",
    FixedLenType.BIT: "bit",
    FixedLenType.INT2: "smallint",
    FixedLenType.INT4: "int",
    FixedLenType.DATETIME4: "smalldatetime",
    FixedLenType.FLOAT4: "real",
    FixedLenType.MONEY: "money",
    FixedLenType.DATETIME: "datetime",
    FixedLenType.FLOAT8: "float",
    FixedLenType.MONEY4: "smallmoney",
    FixedLenType.INT8: "bigint",
}

_VAR_PLAIN_NAMES = {
    VarLenType.BITN: "bit",
    VarLenType.GUID: "uniqueidentifier",
    VarLenType.DATEN: "date",
    VarLenType.TIMEN: "time",
    VarLenType.DATETIMEN: "datetime",
    VarLenType.DATETIME_OFFSETN: "datetimeoffset",
    VarLenType.TEXT: "text",
    VarLenType.IMAGE: "image",
    VarLenType.NTEXT: "ntext",
}

_INTN_NAMES = {1: "tinyint", 2: "smallint", 4: "int", 8: "bigint"}
_FLOATN_NAMES = {4: "real", 8: "float"}


def _limited(name: str, length: int, limit: int) -> str:
    return f"{name}({length})" if length <= limit else f"{name}(max)"


def _var_len_name(ctx: VarLenContext) -> str:
    ty, length = ctx.ty, ctx.length
    if ty in _VAR_PLAIN_NAMES:
        return _VAR_PLAIN_NAMES[ty]
    if ty == VarLenType.DATETIME2:
        return f"datetime2({length})"
    if ty == VarLenType.BIG_VAR_BIN:
        return _limited("varbinary", length, 8000)
    if ty == VarLenType.BIG_VAR_CHAR:
        return _limited("varchar", length, 8000)
    if ty == VarLenType.NVARCHAR:
        return _limited("nvarchar", length, 4000)
    if ty == VarLenType.BIG_BINARY:
        return f"binary({length})"
    if ty == VarLenType.BIG_CHAR:
        return f"char({length})"
    if ty == VarLenType.NCHAR:
        return f"nchar({length})"
    if ty == VarLenType.INTN and length in _INTN_NAMES:
        return _INTN_NAMES[length]
    if ty == VarLenType.FLOATN and length in _FLOATN_NAMES:
        return _FLOATN_NAMES[length]
    raise ValueError(f"no type name for {ty.name} of length {length}")


def _type_name(ty: TypeInfo) -> str:
    if isinstance(ty, FixedLen):
        try:
            return _FIXED_NAMES[ty.ty]
        except KeyError:
            raise ValueError(f"no type name for {ty.ty.name}") from None
    if isinstance(ty, VarLenContext):
        return _var_len_name(ty)
    if isinstance(ty, VarLenSizedPrecision):
        if ty.ty == VarLenType.DECIMALN:
            return f"decimal({ty.precision},{ty.scale})"
        if ty.ty == VarLenType.NUMERICN:
            return f"numeric({ty.precision},{ty.scale})"
        raise ValueError(f"no type name for {ty.ty.name} with precision")
    if isinstance(ty, XmlType):
        return "xml"
    raise TypeError(f"unknown type info: {ty!r}")


@dataclass(frozen=True)
class BaseMetaDataColumn:
    """Flags and type of a column."""

    flags: ColumnFlag
    ty: TypeInfo

    def encode(self) -> bytes:
        """Encode the flags and the type description."""
        return _U16_LE.pack(int(self.flags)) + self.ty.encode()

    @classmethod
    def decode(cls, reader: WireReader) -> BaseMetaDataColumn:
        """Read user type, flags, type info and any table name parts."""
        reader.read_u32_le()  # user type, unused
        raw_flags = reader.read_u16_le()
        if raw_flags & ~_ALL_FLAG_BITS:
            raise ProtocolError("column metadata: invalid flags")
        ty = decode_type_info(reader)
        if isinstance(ty, VarLenContext) and ty.ty in _TABLE_NAME_TYPES:
            for _ in range(reader.read_u8()):
                reader.read_us_varchar()
        return cls(ColumnFlag(raw_flags), ty)


@dataclass(frozen=True)
class MetaDataColumn:
    """A column description with its name."""

    base: BaseMetaDataColumn
    col_name: str = ""

    def encode(self) -> bytes:
        """Encode user type (zero), base metadata and the column name."""
        return _U32_LE.pack(0) + self.base.encode() + encode_b_varchar(self.col_name)

    def __str__(self) -> str:
        return f"{self.col_name} {_type_name(self.base.ty)}"


@dataclass
class TokenColMetaData:
    """The columns of the result set that follows."""

    columns: list[MetaDataColumn] = field(default_factory=list)

    def encode(self) -> bytes:
        """Encode the token byte, the column count and every column."""
        out = bytearray([int(TokenType.COL_METADATA)])
        out += _U16_LE.pack(len(self.columns))
        for column in self.columns:
            out += column.encode()
        return bytes(out)

    @classmethod
    def decode(cls, reader: WireReader) -> TokenColMetaData:
        """Read the token body (the token byte already consumed)."""
        count = reader.read_u16_le()
        columns = []
        if 0 < count < 0xFFFF:
            for _ in range(count):
                base = BaseMetaDataColumn.decode(reader)
                name = reader.read_b_varchar()
                columns.append(MetaDataColumn(base, name))
        return cls(columns)