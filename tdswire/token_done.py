"""The DONE token that ends a statement's results."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntFlag

from .token_type import TokenType
from .wire import ProtocolError, WireReader

__all__ = ["DoneStatus", "TokenDone"]

_BODY = struct.Struct("<HHQ")


class DoneStatus(IntFlag):
    """Status bits of a DONE token."""

    MORE = 1 << 0
    ERROR = 1 << 1
    INEXACT = 1 << 2
    COUNT = 1 << 4
    ATTENTION = 1 << 5
    RPC_IN_BATCH = 1 << 7
    SRV_ERROR = 1 << 8


_ALL_STATUS_BITS = 0
for _flag in DoneStatus:
    _ALL_STATUS_BITS |= int(_flag)
del _flag


def _status_text(status: DoneStatus) -> str:
    names = [flag.name for flag in DoneStatus if flag in status]
    return " | ".join(names) if names else "empty"


@dataclass
class TokenDone:
    """Completion status of a statement and the number of rows it touched."""

    status: DoneStatus = DoneStatus(0)
    cur_cmd: int = 0
    done_rows: int = 0

    @classmethod
    def decode(cls, reader: WireReader, row_count_bytes: int) -> TokenDone:
        """Read the token body; the row count is 4 or 8 bytes by TDS version."""
        raw = reader.read_u16_le()
        if raw & ~_ALL_STATUS_BITS:
            raise ProtocolError("done(variant): invalid status")
        cur_cmd = reader.read_u16_le()
        if row_count_bytes == 8:
            done_rows = reader.read_u64_le()
        elif row_count_bytes == 4:
            done_rows = reader.read_u32_le()
        else:
            raise ValueError(f"row count must be 4 or 8 bytes, got {row_count_bytes}")
        return cls(DoneStatus(raw), cur_cmd, done_rows)

    def is_final(self) -> bool:
        """True when no status bit is set."""
        return not self.status

    def encode(self) -> bytes:
        """Encode the token byte and body with an eight-byte row count."""
        return bytes([int(TokenType.DONE)]) + _BODY.pack(
            int(self.status), self.cur_cmd, self.done_rows
        )

    def __str__(self) -> str:
        status = _status_text(self.status)
        if self.done_rows == 0:
            return f"Done with status {status}"
        if self.done_rows == 1:
            return f"Done with status {status} (1 row left)"
        return f"Done with status {status} ({self.done_rows} rows left)"