"""Low-level reading and writing of TDS wire primitives."""

from __future__ import annotations

import struct

__all__ = [
    "ProtocolError",
    "EncodingError",
    "WireReader",
    "encode_b_varchar",
    "encode_us_varchar",
]


class ProtocolError(Exception):
    """The data received does not follow the protocol."""


class EncodingError(Exception):
    """A character set is not supported or text cannot be converted."""


_U16_LE = struct.Struct("<H")
_U16_BE = struct.Struct(">H")
_U32_LE = struct.Struct("<I")
_U32_BE = struct.Struct(">I")
_U64_LE = struct.Struct("<Q")


class WireReader:
    """Sequential reader over a byte buffer holding TDS data."""

    def __init__(self, data):
        self._data = bytes(data)
        self._pos = 0

    @property
    def position(self) -> int:
        """Offset of the next byte to be read."""
        return self._pos

    def remaining(self) -> int:
        """Number of bytes not read yet."""
        return len(self._data) - self._pos

    def read_bytes(self, count: int) -> bytes:
        """Read exactly ``count`` bytes."""
        if count < 0:
            raise ValueError("byte count must not be negative")
        end = self._pos + count
        if end > len(self._data):
            raise ProtocolError(
                f"unexpected end of data: wanted {count} bytes, "
                f"{self.remaining()} left"
            )
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def _unpack(self, fmt: struct.Struct) -> int:
        return fmt.unpack(self.read_bytes(fmt.size))[0]

    def read_u8(self) -> int:
        return self.read_bytes(1)[0]

    def read_u16_le(self) -> int:
        return self._unpack(_U16_LE)

    def read_u16_be(self) -> int:
        return self._unpack(_U16_BE)

    def read_u32_le(self) -> int:
        return self._unpack(_U32_LE)

    def read_u32_be(self) -> int:
        return self._unpack(_U32_BE)

    def read_u64_le(self) -> int:
        return self._unpack(_U64_LE)

    def read_utf16(self, chars: int) -> str:
        """Read ``chars`` UTF-16LE code units and decode them."""
        raw = self.read_bytes(chars * 2)
        try:
            return raw.decode("utf-16-le")
        except UnicodeDecodeError as exc:
            raise ProtocolError(f"invalid UTF-16 data: {exc}") from exc

    def read_b_varchar(self) -> str:
        """Read a string prefixed by a one-byte character count."""
        return self.read_utf16(self.read_u8())

    def read_us_varchar(self) -> str:
        """Read a string prefixed by a two-byte character count."""
        return self.read_utf16(self.read_u16_le())


def _utf16_units(text: str) -> tuple[int, bytes]:
    raw = text.encode("utf-16-le")
    return len(raw) // 2, raw


def encode_b_varchar(text: str) -> bytes:
    """Encode ``text`` with a one-byte character count prefix."""
    units, raw = _utf16_units(text)
    if units > 0xFF:
        raise ValueError(f"string too long for B_VARCHAR: {units} code units")
    return bytes([units]) + raw


def encode_us_varchar(text: str) -> bytes:
    """Encode ``text`` with a two-byte little-endian character count prefix."""
    units, raw = _utf16_units(text)
    if units > 0xFFFF:
        raise ValueError(f"string too long for US_VARCHAR: {units} code units")
    return _U16_LE.pack(units) + raw