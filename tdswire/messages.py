"""Smaller server tokens: feature acks, info, login ack, order and SSPI."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional

from .wire import ProtocolError, WireReader

__all__ = [
    "FEA_EXT_FEDAUTH",
    "FEA_EXT_TERMINATOR",
    "TdsVersion",
    "FedAuthAck",
    "TokenFeatureExtAck",
    "TokenInfo",
    "TokenLoginAck",
    "TokenOrder",
    "TokenSspi",
]

FEA_EXT_FEDAUTH = 0x02
FEA_EXT_TERMINATOR = 0xFF


class TdsVersion(IntEnum):
    """Protocol versions a server may acknowledge at login."""

    SQL_SERVER_V7 = 0x70000000
    SQL_SERVER_2000 = 0x71000000
    SQL_SERVER_2000_SP1 = 0x71000001
    SQL_SERVER_2005 = 0x72090002
    SQL_SERVER_2008 = 0x730A0003
    SQL_SERVER_2008_R2 = 0x730B0003
    SQL_SERVER_N = 0x74000004


@dataclass(frozen=True)
class FedAuthAck:
    """Acknowledgement of federated authentication with a security token."""

    nonce: Optional[bytes] = None


@dataclass
class TokenFeatureExtAck:
    """The features the server acknowledged at login."""

    features: list[FedAuthAck] = field(default_factory=list)

    @classmethod
    def decode(cls, reader: WireReader) -> TokenFeatureExtAck:
        """Read acknowledged features up to the terminator."""
        features = []
        while (feature_id := reader.read_u8()) != FEA_EXT_TERMINATOR:
            if feature_id != FEA_EXT_FEDAUTH:
                raise ProtocolError(f"unsupported feature {feature_id}")
            data_len = reader.read_u32_le()
            if data_len == 32:
                nonce: Optional[bytes] = reader.read_bytes(32)
            elif data_len == 0:
                nonce = None
            else:
                raise ProtocolError("invalid Feature_Ext_Ack token")
            features.append(FedAuthAck(nonce))
        return cls(features)


@dataclass(frozen=True)
class TokenInfo:
    """An informational or error message sent by the server."""

    number: int
    state: int
    class_: int
    message: str
    server: str
    procedure: str
    line: int

    @classmethod
    def decode(cls, reader: WireReader) -> TokenInfo:
        """Read the token body (the token byte already consumed)."""
        reader.read_u16_le()  # length
        number = reader.read_u32_le()
        state = reader.read_u8()
        class_ = reader.read_u8()
        message = reader.read_us_varchar()
        server = reader.read_b_varchar()
        procedure = reader.read_b_varchar()
        line = reader.read_u32_le()
        return cls(number, state, class_, message, server, procedure, line)


@dataclass(frozen=True)
class TokenLoginAck:
    """The server's response to a login request."""

    interface: int
    tds_version: TdsVersion
    prog_name: str
    version: int

    @classmethod
    def decode(cls, reader: WireReader) -> TokenLoginAck:
        """Read the token body (the token byte already consumed)."""
        reader.read_u16_le()  # length
        interface = reader.read_u8()
        raw_version = reader.read_u32_be()
        try:
            tds_version = TdsVersion(raw_version)
        except ValueError:
            raise ProtocolError("Login ACK: Invalid TDS version") from None
        prog_name = reader.read_b_varchar()
        version = reader.read_u32_le()
        return cls(interface, tds_version, prog_name, version)


@dataclass(frozen=True)
class TokenOrder:
    """The column indexes the result is ordered by."""

    column_indexes: tuple[int, ...]

    @classmethod
    def decode(cls, reader: WireReader) -> TokenOrder:
        """Read the token body (the token byte already consumed)."""
        count = reader.read_u16_le() // 2
        return cls(tuple(reader.read_u16_le() for _ in range(count)))


@dataclass(frozen=True)
class TokenSspi:
    """An SSPI authentication blob."""

    data: bytes

    @classmethod
    def decode(cls, reader: WireReader) -> TokenSspi:
        """Read a length-prefixed blob (the token byte already consumed)."""
        return cls(reader.read_bytes(reader.read_u16_le()))

    def encode(self) -> bytes:
        """The raw blob, as sent in a login packet."""
        return bytes(self.data)

    def __bytes__(self) -> bytes:
        return self.encode()