import pytest

from tdswire.collation import Collation
from tdswire.token_col_metadata import (
    BaseMetaDataColumn,
    ColumnFlag,
    MetaDataColumn,
    TokenColMetaData,
)
from tdswire.token_type import TokenType
from tdswire.type_info import (
    FixedLen,
    FixedLenType,
    VarLenContext,
    VarLenSizedPrecision,
    VarLenType,
    XmlType,
)
from tdswire.wire import ProtocolError, WireReader, encode_b_varchar, encode_us_varchar


def _column(name, ty, flags=ColumnFlag.NULLABLE):
    return MetaDataColumn(BaseMetaDataColumn(flags, ty), name)


def test_round_trip_token():
    meta = TokenColMetaData(
        [
            _column("id", FixedLen(FixedLenType.INT4)),
            _column(
                "name",
                VarLenContext(VarLenType.NVARCHAR, 80, Collation(13632521, 52)),
                ColumnFlag.NULLABLE | ColumnFlag.UPDATEABLE,
            ),
            _column("amount", VarLenSizedPrecision(VarLenType.DECIMALN, 9, 18, 2)),
            _column("doc", XmlType()),
        ]
    )
    reader = WireReader(meta.encode())
    assert reader.read_u8() == TokenType.COL_METADATA
    decoded = TokenColMetaData.decode(reader)
    assert decoded == meta
    assert reader.remaining() == 0


def test_empty_token_bytes():
    assert TokenColMetaData().encode() == bytes([0x81, 0x00, 0x00])


def test_no_metadata_marker_gives_no_columns():
    reader = WireReader(b"\xff\xff")
    assert TokenColMetaData.decode(reader).columns == []


def test_base_encode_layout():
    base = BaseMetaDataColumn(ColumnFlag.NULLABLE, FixedLen(FixedLenType.INT4))
    assert base.encode() == bytes([0x01, 0x00, 0x38])


def test_invalid_flags_rejected():
    data = b"\x00\x00\x00\x00" + bytes([0x04, 0x00, 0x38])
    with pytest.raises(ProtocolError):
        BaseMetaDataColumn.decode(WireReader(data))


def test_text_column_skips_table_name_parts():
    ty = VarLenContext(VarLenType.TEXT, 2147483647, Collation(13632521, 52))
    base = BaseMetaDataColumn(ColumnFlag.NULLABLE, ty)
    data = (
        b"\x00\x00\x00\x00"
        + base.encode()
        + b"\x02"
        + encode_us_varchar("dbo")
        + encode_us_varchar("tbl")
        + encode_b_varchar("body")
    )
    reader = WireReader(data)
    decoded = BaseMetaDataColumn.decode(reader)
    assert decoded == base
    assert reader.read_b_varchar() == "body"


@pytest.mark.parametrize(
    "ty, expected",
    [
        (FixedLen(FixedLenType.INT4), "int"),
        (FixedLen(FixedLenType.DATETIME4), "smalldatetime"),
        (VarLenContext(VarLenType.NVARCHAR, 40), "nvarchar(40)"),
        (VarLenContext(VarLenType.NVARCHAR, 8000), "nvarchar(max)"),
        (VarLenContext(VarLenType.BIG_VAR_BIN, 9000), "varbinary(max)"),
        (VarLenContext(VarLenType.INTN, 8), "bigint"),
        (VarLenContext(VarLenType.FLOATN, 4), "real"),
        (VarLenContext(VarLenType.GUID, 16), "uniqueidentifier"),
        (VarLenSizedPrecision(VarLenType.NUMERICN, 9, 10, 3), "numeric(10,3)"),
        (XmlType(), "xml"),
    ],
)
def test_display(ty, expected):
    assert str(_column("col", ty)) == f"col {expected}"


def test_display_unknown_intn_length_fails():
    with pytest.raises(ValueError):
        str(_column("col", VarLenContext(VarLenType.INTN, 3)))