# tdswire

Pure-Python encoders and decoders for pieces of the Tabular Data Stream (TDS)
protocol, the binary format that SQL Server clients and servers exchange. It
has no dependencies outside the standard library.

## Modules

- `tdswire.wire`: `WireReader`, a cursor over a byte buffer with
  `read_u8`, `read_u16_le`, `read_u16_be`, `read_u32_le`, `read_u32_be`,
  `read_u64_le`, `read_bytes`, `read_utf16`, `read_b_varchar` and
  `read_us_varchar`, plus `remaining()` and a `position` property.
  `encode_b_varchar` and `encode_us_varchar` write UTF-16LE strings with a
  one- or two-byte character count. Truncated or malformed input raises
  `ProtocolError`; `EncodingError` is raised for unsupported code pages.
- `tdswire.collation`: `Collation(info, sort_id)` with `lcid()` and
  `encoding()`, which returns a Python codec name (for example `"cp1252"`)
  or raises `EncodingError`. `str()` of a collation gives a display name such
  as `windows-1252`, or `None` when the code page is unknown.
  `lcid_to_encoding` and `sortid_to_encoding` expose the lookup tables and
  return `None` for unknown keys.
- `tdswire.context`: `Context`, per-connection state: `packet_size`
  (default 4096), `next_packet_id()` (wraps at 256), an eight-byte
  `transaction_descriptor`, `last_meta`, and `set_spn(host, port)` /
  `spn` for the service principal name `MSSQLSvc/host:port`.
- `tdswire.numeric`: `Numeric(value, scale)`, an exact DECIMAL/NUMERIC value
  (scale 0 to 37) with `int_part()`, `dec_part()`, `precision()`,
  `encoded_length()`, `encode()`, `Numeric.decode(reader, scale)` (returns
  `None` for SQL NULL), and conversion with `float()`, `int()` and `str()`.
  Values with different scales compare equal when they denote the same number.
- `tdswire.pre_login`: `PreloginMessage` with `encode()`,
  `PreloginMessage.decode(data)` and `negotiated_encryption(expected)`;
  `EncryptionLevel`, `ActivityId` and `DRIVER_VERSION`.
- `tdswire.type_info`: column type descriptions `FixedLen`, `VarLenContext`,
  `VarLenSizedPrecision` and `XmlType` (each with `encode()`), the enums
  `FixedLenType` and `VarLenType`, `XmlSchema`, `TypeLength`, and
  `decode_type_info(reader)`.
- `tdswire.token_type`: the `TokenType` enumeration of token bytes.
- `tdswire.token_done`: `TokenDone` and `DoneStatus`.
- `tdswire.token_col_metadata`: `TokenColMetaData`, `MetaDataColumn`,
  `BaseMetaDataColumn` and `ColumnFlag`. `str()` of a column gives its name
  and SQL type, e.g. `id int` or `name nvarchar(max)`.
- `tdswire.token_row`: `TokenRow`, a list-like row of values (`get`, `push`,
  `clear`, `len()`, iteration), and `RowBitmap`, the null bitmap of
  compressed rows.
- `tdswire.token_env_change`: `decode_env_change(reader)`, returning one of
  `DatabaseChange`, `PacketSizeChange`, `SqlCollationChange`,
  `BeginTransaction`, `CommitTransaction`, `RollbackTransaction`,
  `DefectTransaction`, `RoutingChange`, `MirrorChange` or
  `IgnoredEnvChange`; and `EnvChangeTy`.
- `tdswire.messages`: `TokenFeatureExtAck` (with `FedAuthAck`),
  `TokenInfo`, `TokenLoginAck` (with `TdsVersion`), `TokenOrder` and
  `TokenSspi`.

Token `decode` methods read the token body; the token type byte is expected
to have been consumed already.

## Examples

Round-trip a pre-login message:

```python
from tdswire.pre_login import PreloginMessage

message = PreloginMessage()
payload = message.encode()
assert PreloginMessage.decode(payload) == message
```

Work with exact decimals:

```python
from tdswire.numeric import Numeric
from tdswire.wire import WireReader

n = Numeric(57705, 2)
print(n)              # 577.05
print(n.precision())  # 5
assert Numeric.decode(WireReader(n.encode()), 2) == n
```

Decode a DONE token body:

```python
from tdswire.token_done import DoneStatus, TokenDone
from tdswire.wire import WireReader

encoded = TokenDone(DoneStatus.COUNT, 0, 3).encode()
done = TokenDone.decode(WireReader(encoded[1:]), 8)
print(done)             # Done with status COUNT (3 rows left)
print(done.is_final())  # False
```

## What it does not do

This package is a set of codecs, not a database client. It opens no network
connections, performs no login, TLS or authentication exchange, and does not
split messages into packets. It does not read a full token stream by itself,
and it does not decode column values: `TokenRow` holds whatever values it is
given, and only the null bitmap of compressed rows is parsed.

## Running the tests

```
pip install -e ".[test]"
pytest
```