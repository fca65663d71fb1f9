"""Column type descriptions and their wire encoding."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union

from .collation import Collation
from .wire import ProtocolError, WireReader, encode_b_varchar, encode_us_varchar

__all__ = [
    "TypeLength",
    "FixedLenType",
    "VarLenType",
    "XmlSchema",
    "FixedLen",
    "VarLenContext",
    "VarLenSizedPrecision",
    "XmlType",
    "TypeInfo",
    "XML_SIZE",
    "decode_type_info",
]

XML_SIZE = 0xFFFFFFFFFFFFFFFE

_U16_LE = struct.Struct("<H")
_U32_LE = struct.Struct("<I")
_COLLATION = struct.Struct("<IB")


@dataclass(frozen=True)
class TypeLength:
    """A column length in bytes or characters; ``None`` means unlimited (max)."""

    limit: Optional[int] = None

    def __post_init__(self) -> None:
        if self.limit is not None and not 0 <= self.limit <= 0xFFFF:
            raise ValueError(f"type length out of range: {self.limit}")

    @property
    def is_max(self) -> bool:
        """True when the column is stored outside the row without a limit."""
        return self.limit is None


class FixedLenType(IntEnum):
    """Types whose size is implied by the type byte."""

    NULL = 0x1F
    INT1 = 0x30
    BIT = 0x32
    INT2 = 0x34
    INT4 = 0x38
    DATETIME4 = 0x3A
    FLOAT4 = 0x3B
    MONEY = 0x3C
    DATETIME = 0x3D
    FLOAT8 = 0x3E
    MONEY4 = 0x7A
    INT8 = 0x7F


class VarLenType(IntEnum):
    """Types carrying an explicit length."""

    GUID = 0x24
    INTN = 0x26
    BITN = 0x68
    DECIMALN = 0x6A
    NUMERICN = 0x6C
    FLOATN = 0x6D
    MONEY = 0x6E
    DATETIMEN = 0x6F
    DATEN = 0x28
    TIMEN = 0x29
    DATETIME2 = 0x2A
    DATETIME_OFFSETN = 0x2B
    BIG_VAR_BIN = 0xA5
    BIG_VAR_CHAR = 0xA7
    BIG_BINARY = 0xAD
    BIG_CHAR = 0xAF
    NVARCHAR = 0xE7
    NCHAR = 0xEF
    XML = 0xF1
    UDT = 0xF0
    TEXT = 0x23
    IMAGE = 0x22
    NTEXT = 0x63
    SS_VARIANT = 0x62


_BYTE_LEN_TYPES = frozenset(
    {
        VarLenType.DATEN,
        VarLenType.TIMEN,
        VarLenType.DATETIME_OFFSETN,
        VarLenType.DATETIME2,
        VarLenType.BITN,
        VarLenType.INTN,
        VarLenType.FLOATN,
        VarLenType.DECIMALN,
        VarLenType.NUMERICN,
        VarLenType.GUID,
        VarLenType.MONEY,
        VarLenType.DATETIMEN,
    }
)

_SHORT_LEN_TYPES = frozenset(
    {
        VarLenType.NCHAR,
        VarLenType.BIG_CHAR,
        VarLenType.NVARCHAR,
        VarLenType.BIG_VAR_CHAR,
        VarLenType.BIG_BINARY,
        VarLenType.BIG_VAR_BIN,
    }
)

_LONG_LEN_TYPES = frozenset({VarLenType.IMAGE, VarLenType.TEXT, VarLenType.NTEXT})

_COLLATED_TYPES = frozenset(
    {
        VarLenType.NTEXT,
        VarLenType.TEXT,
        VarLenType.BIG_CHAR,
        VarLenType.NCHAR,
        VarLenType.NVARCHAR,
        VarLenType.BIG_VAR_CHAR,
    }
)


@dataclass(frozen=True)
class XmlSchema:
    """The schema collection an XML column is bound to."""

    db_name: str
    owner: str
    collection: str


@dataclass(frozen=True)
class FixedLen:
    """A fixed-length column type."""

    ty: FixedLenType

    def encode(self) -> bytes:
        return bytes([int(self.ty)])


@dataclass(frozen=True)
class VarLenContext:
    """A variable-length column type with its length and optional collation."""

    ty: VarLenType
    length: int
    collation: Optional[Collation] = None

    def encode(self) -> bytes:
        out = bytearray([int(self.ty)])
        if self.ty in _BYTE_LEN_TYPES:
            out.append(self.length & 0xFF)
        elif self.ty in _SHORT_LEN_TYPES:
            out += _U16_LE.pack(self.length & 0xFFFF)
        elif self.ty in _LONG_LEN_TYPES:
            out += _U32_LE.pack(self.length & 0xFFFFFFFF)
        elif self.ty != VarLenType.XML:
            raise ValueError(f"encoding {self.ty.name} is not supported")
        if self.collation is not None:
            out += _COLLATION.pack(self.collation.info, self.collation.sort_id)
        return bytes(out)


@dataclass(frozen=True)
class VarLenSizedPrecision:
    """A decimal or numeric column type with size, precision and scale."""

    ty: VarLenType
    size: int
    precision: int
    scale: int

    def encode(self) -> bytes:
        return bytes([int(self.ty), self.size & 0xFF, self.precision, self.scale])


@dataclass(frozen=True)
class XmlType:
    """An XML column type, optionally bound to a schema collection."""

    schema: Optional[XmlSchema] = None
    size: int = XML_SIZE

    def encode(self) -> bytes:
        out = bytearray([int(VarLenType.XML)])
        if self.schema is None:
            out.append(0)
        else:
            out.append(1)
            out += encode_b_varchar(self.schema.db_name)
            out += encode_b_varchar(self.schema.owner)
            out += encode_us_varchar(self.schema.collection)
        return bytes(out)


TypeInfo = Union[FixedLen, VarLenContext, VarLenSizedPrecision, XmlType]


def _read_length(reader: WireReader, ty: VarLenType) -> int:
    if ty == VarLenType.DATEN:
        return 3
    if ty in _BYTE_LEN_TYPES:
        return reader.read_u8()
    if ty in _SHORT_LEN_TYPES:
        return reader.read_u16_le()
    if ty in _LONG_LEN_TYPES:
        return reader.read_u32_le()
    raise ProtocolError(f"column type {ty.name} is not supported")


def decode_type_info(reader: WireReader) -> TypeInfo:
    """Read a column type description."""
    raw = reader.read_u8()

    try:
        return FixedLen(FixedLenType(raw))
    except ValueError:
        pass

    try:
        ty = VarLenType(raw)
    except ValueError:
        raise ProtocolError(f"invalid or unsupported column type: {raw}") from None

    if ty == VarLenType.XML:
        schema = None
        if reader.read_u8() == 1:
            schema = XmlSchema(
                reader.read_b_varchar(),
                reader.read_b_varchar(),
                reader.read_us_varchar(),
            )
        return XmlType(schema, XML_SIZE)

    length = _read_length(reader, ty)

    collation = None
    if ty in _COLLATED_TYPES:
        info = reader.read_u32_le()
        sort_id = reader.read_u8()
        collation = Collation(info, sort_id)

    if ty in (VarLenType.DECIMALN, VarLenType.NUMERICN):
        precision = reader.read_u8()
        scale = reader.read_u8()
        return VarLenSizedPrecision(ty, length, precision, scale)

    return VarLenContext(ty, length, collation)