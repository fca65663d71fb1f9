"""Token types found at the start of each token in a token stream."""

from __future__ import annotations

from enum import IntEnum

__all__ = ["TokenType"]


class TokenType(IntEnum):
    """The first byte of each token in a token stream."""

    RETURN_STATUS = 0x79
    COL_METADATA = 0x81
    ERROR = 0xAA
    INFO = 0xAB
    ORDER = 0xA9
    COL_INFO = 0xA5
    RETURN_VALUE = 0xAC
    LOGIN_ACK = 0xAD
    ROW = 0xD1
    NBC_ROW = 0xD2
    SSPI = 0xED
    ENV_CHANGE = 0xE3
    DONE = 0xFD
    DONE_PROC = 0xFE
    DONE_IN_PROC = 0xFF
    FEATURE_EXT_ACK = 0xAE