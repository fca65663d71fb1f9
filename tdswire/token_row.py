"""Rows of data and the null bitmap of compressed rows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Optional

from .wire import WireReader

__all__ = ["TokenRow", "RowBitmap"]


class TokenRow:
    """A row of column values."""

    def __init__(self, values: Iterable[Any] = ()) -> None:
        self._values = list(values)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TokenRow):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"TokenRow({self._values!r})"

    def get(self, index: int) -> Optional[Any]:
        """The value at ``index``, or ``None`` when out of bounds."""
        if 0 <= index < len(self._values):
            return self._values[index]
        return None

    def push(self, value: Any) -> None:
        """Append a value to the row."""
        self._values.append(value)

    def clear(self) -> None:
        """Remove all values."""
        self._values.clear()


@dataclass(frozen=True)
class RowBitmap:
    """Null bitmap at the start of a row with null bitmap compression."""

    data: bytes

    def is_null(self, index: int) -> bool:
        """True if the column at ``index`` is null."""
        return bool(self.data[index // 8] & (1 << (index % 8)))

    @classmethod
    def decode(cls, reader: WireReader, columns: int) -> RowBitmap:
        """Read one bit per column, rounded up to whole bytes."""
        return cls(reader.read_bytes((columns + 7) // 8))