"""Per-connection state needed to talk to the server."""

from __future__ import annotations

from typing import Any

__all__ = ["Context"]


class Context:
    """Connection state: packet numbering, sizes, transaction and metadata."""

    def __init__(self) -> None:
        self.packet_size: int = 4096
        self._packet_id = 0
        self._transaction_descriptor = bytes(8)
        self.last_meta: Any = None
        self._spn: str | None = None

    def next_packet_id(self) -> int:
        """Return the current packet id and advance it, wrapping at 256."""
        packet_id = self._packet_id
        self._packet_id = (self._packet_id + 1) & 0xFF
        return packet_id

    @property
    def transaction_descriptor(self) -> bytes:
        return self._transaction_descriptor

    @transaction_descriptor.setter
    def transaction_descriptor(self, desc: bytes) -> None:
        desc = bytes(desc)
        if len(desc) != 8:
            raise ValueError(
                f"transaction descriptor must be 8 bytes, got {len(desc)}"
            )
        self._transaction_descriptor = desc

    def set_spn(self, host: str, port: int) -> None:
        """Set the service principal name for the given server address."""
        self._spn = f"MSSQLSvc/{host}:{port}"

    @property
    def spn(self) -> str:
        """The service principal name, or an empty string if unset."""
        return self._spn or ""