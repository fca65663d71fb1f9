"""The pre-login message exchanged when a connection is set up."""

from __future__ import annotations

import struct
import uuid
from dataclasses import dataclass
from enum import IntEnum

from .wire import ProtocolError, WireReader

__all__ = ["EncryptionLevel", "ActivityId", "PreloginMessage", "DRIVER_VERSION"]

DRIVER_VERSION = 0x0001_0000
DRIVER_SUB_BUILD = 0

_PRELOGIN_VERSION = 0
_PRELOGIN_ENCRYPTION = 1
_PRELOGIN_INSTOPT = 2
_PRELOGIN_THREADID = 3
_PRELOGIN_MARS = 4
_PRELOGIN_TRACEID = 5
_PRELOGIN_FEDAUTHREQUIRED = 6
_PRELOGIN_NONCEOPT = 7
_PRELOGIN_TERMINATOR = 0xFF

_OPTION = struct.Struct(">BHH")


class EncryptionLevel(IntEnum):
    """Encryption setting announced in the pre-login exchange."""

    OFF = 0
    ON = 1
    NOT_SUPPORTED = 2
    REQUIRED = 3


@dataclass(frozen=True)
class ActivityId:
    """Client activity id used for tracing."""

    id: uuid.UUID
    sequence: int


@dataclass
class PreloginMessage:
    """The options of a pre-login packet."""

    version: int = DRIVER_VERSION
    sub_build: int = DRIVER_SUB_BUILD
    encryption: EncryptionLevel = EncryptionLevel.NOT_SUPPORTED
    instance_name: str | None = None
    thread_id: int = 0
    mars: bool = False
    activity_id: ActivityId | None = None
    fed_auth_required: bool = False
    nonce: bytes | None = None

    def negotiated_encryption(self, expected: EncryptionLevel) -> EncryptionLevel:
        """Agree on an encryption level given what the client asked for."""
        if expected == EncryptionLevel.NOT_SUPPORTED and (
            self.encryption == EncryptionLevel.NOT_SUPPORTED
        ):
            return EncryptionLevel.NOT_SUPPORTED
        if expected == EncryptionLevel.OFF and self.encryption == EncryptionLevel.OFF:
            return EncryptionLevel.OFF
        if expected == EncryptionLevel.ON and self.encryption in (
            EncryptionLevel.OFF,
            EncryptionLevel.NOT_SUPPORTED,
        ):
            raise ProtocolError(
                "Server does not allow the requested encryption level."
            )
        return EncryptionLevel.ON

    def encode(self) -> bytes:
        """Encode the option table followed by the option data."""
        options = [
            (_PRELOGIN_VERSION, struct.pack(">IH", self.version, self.sub_build)),
            (_PRELOGIN_ENCRYPTION, bytes([int(self.encryption)])),
            (_PRELOGIN_THREADID, struct.pack(">I", self.thread_id)),
            (_PRELOGIN_MARS, bytes([int(self.mars)])),
        ]
        if self.fed_auth_required:
            options.append((_PRELOGIN_FEDAUTHREQUIRED, b"\x01"))

        offset = len(options) * _OPTION.size + 1
        table = bytearray()
        for token, data in options:
            table += _OPTION.pack(token, offset, len(data))
            offset += len(data)
        table.append(_PRELOGIN_TERMINATOR)
        return bytes(table) + b"".join(data for _, data in options)

    @classmethod
    def decode(cls, data: bytes) -> PreloginMessage:
        """Parse a pre-login payload."""
        data = bytes(data)
        header = WireReader(data)
        message = cls()
        while True:
            token = header.read_u8()
            if token == _PRELOGIN_TERMINATOR:
                break
            offset = header.read_u16_be()
            length = header.read_u16_be()
            message._read_option(token, length, WireReader(data[offset:]))
        return message

    def _read_option(self, token: int, length: int, reader: WireReader) -> None:
        if token == _PRELOGIN_VERSION:
            self.version = reader.read_u32_be()
            self.sub_build = reader.read_u16_be()
        elif token == _PRELOGIN_ENCRYPTION:
            raw = reader.read_u8()
            try:
                self.encryption = EncryptionLevel(raw)
            except ValueError:
                raise ProtocolError(f"invalid encryption value: {raw}") from None
        elif token == _PRELOGIN_INSTOPT:
            name = bytearray()
            while (byte := reader.read_u8()) != 0:
                name.append(byte)
            if name:
                self.instance_name = name.decode("utf-8", errors="replace")
        elif token == _PRELOGIN_THREADID:
            if length == 0:
                self.thread_id = 0
            elif length == 4:
                self.thread_id = reader.read_u32_be()
            else:
                raise ProtocolError(f"invalid thread id length: {length}")
        elif token == _PRELOGIN_MARS:
            self.mars = reader.read_u8() != 0
        elif token == _PRELOGIN_TRACEID:
            guid = uuid.UUID(bytes_le=reader.read_bytes(16))
            self.activity_id = ActivityId(guid, reader.read_u32_le())
        elif token == _PRELOGIN_FEDAUTHREQUIRED:
            self.fed_auth_required = reader.read_u8() != 0
        elif token == _PRELOGIN_NONCEOPT:
            self.nonce = reader.read_bytes(32)
        else:
            raise ProtocolError(f"unsupported prelogin token: {token}")