"""The SQL decimal/numeric value as stored on the wire."""

from __future__ import annotations

import struct
from fractions import Fraction

from .wire import ProtocolError, WireReader

__all__ = ["Numeric"]

_MAX_SCALE = 37
_U32_LE = struct.Struct("<I")
_U64_LE = struct.Struct("<Q")
_U64_MASK = (1 << 64) - 1
_U32_MASK = (1 << 32) - 1
_U128_MASK = (1 << 128) - 1


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // abs(b)
    return -q if (a < 0) != (b < 0) else q


class Numeric:
    """A fixed-point decimal: an integer ``value`` with ``scale`` digits after the point."""

    __slots__ = ("_value", "_scale")

    def __init__(self, value: int, scale: int) -> None:
        if not 0 <= scale <= _MAX_SCALE:
            raise ValueError(f"scale must be between 0 and {_MAX_SCALE}, got {scale}")
        self._value = int(value)
        self._scale = int(scale)

    @property
    def value(self) -> int:
        """The unscaled integer value."""
        return self._value

    @property
    def scale(self) -> int:
        """The number of digits after the decimal point."""
        return self._scale

    def _pow_scale(self) -> int:
        return 10 ** self._scale

    def int_part(self) -> int:
        """The integer part, truncated toward zero."""
        return _trunc_div(self._value, self._pow_scale())

    def dec_part(self) -> int:
        """The fractional digits as an integer, carrying the value's sign."""
        return self._value - self.int_part() * self._pow_scale()

    def precision(self) -> int:
        """The number of digits of the value, including the scale."""
        int_part = self.int_part()
        digits = len(str(abs(int_part))) if int_part != 0 else 0
        return (digits or 1) + self._scale

    def encoded_length(self) -> int:
        """The length byte used on the wire for this value's precision."""
        precision = self.precision()
        if 1 <= precision <= 9:
            return 5
        if 10 <= precision <= 19:
            return 9
        if 20 <= precision <= 28:
            return 13
        return 17

    def encode(self) -> bytes:
        """Encode as length byte, sign byte and little-endian magnitude."""
        length = self.encoded_length()
        sign = 0 if self._value < 0 else 1
        magnitude = abs(self._value)
        if length == 5:
            body = _U32_LE.pack(magnitude & _U32_MASK)
        elif length == 9:
            body = _U64_LE.pack(magnitude & _U64_MASK)
        elif length == 13:
            body = _U64_LE.pack(magnitude & _U64_MASK) + _U32_LE.pack(
                (magnitude >> 64) & _U32_MASK
            )
        else:
            body = (magnitude & _U128_MASK).to_bytes(16, "little")
        return bytes([length, sign]) + body

    @classmethod
    def decode(cls, reader: WireReader, scale: int) -> Numeric | None:
        """Read a value; ``None`` stands for SQL NULL (length zero)."""
        length = reader.read_u8()
        if length == 0:
            return None
        sign_byte = reader.read_u8()
        if sign_byte == 0:
            sign = -1
        elif sign_byte == 1:
            sign = 1
        else:
            raise ProtocolError("decimal: invalid sign")
        if length == 5:
            magnitude = reader.read_u32_le()
        elif length == 9:
            magnitude = reader.read_u64_le()
        elif length == 13:
            magnitude = int.from_bytes(reader.read_bytes(12), "little")
        elif length == 17:
            magnitude = int.from_bytes(reader.read_bytes(16), "little")
        else:
            raise ProtocolError(
                f"decimal/numeric: invalid length of {length} received"
            )
        return cls(magnitude * sign, scale)

    def __float__(self) -> float:
        return self.dec_part() / self._pow_scale() + self.int_part()

    def __int__(self) -> int:
        return self.int_part()

    def __str__(self) -> str:
        dec = self.dec_part()
        dec_text = f"{dec:0{self._scale}d}" if self._scale else str(dec)
        return f"{self.int_part()}.{dec_text}"

    def __repr__(self) -> str:
        return f"Numeric(value={self._value}, scale={self._scale})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Numeric):
            return NotImplemented
        if self._scale > other._scale:
            return 10 ** (self._scale - other._scale) * other._value == self._value
        if self._scale < other._scale:
            return 10 ** (other._scale - self._scale) * self._value == other._value
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(Fraction(self._value, self._pow_scale()))