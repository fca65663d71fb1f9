"""Legacy collations and the code pages used for non-Unicode text."""

from __future__ import annotations

from dataclasses import dataclass

from .wire import EncodingError

__all__ = ["Collation", "lcid_to_encoding", "sortid_to_encoding"]

_CP1250 = "cp1250"
_CP1251 = "cp1251"
_CP1252 = "cp1252"
_CP1253 = "cp1253"
_CP1254 = "cp1254"
_CP1255 = "cp1255"
_CP1256 = "cp1256"
_CP1257 = "cp1257"
_CP1258 = "cp1258"
_CP874 = "cp874"
_CP932 = "cp932"
_CP949 = "cp949"
_BIG5 = "big5"
_GB18030 = "gb18030"
_UTF16LE = "utf-16-le"

_DISPLAY_NAMES = {
    _CP1250: "windows-1250",
    _CP1251: "windows-1251",
    _CP1252: "windows-1252",
    _CP1253: "windows-1253",
    _CP1254: "windows-1254",
    _CP1255: "windows-1255",
    _CP1256: "windows-1256",
    _CP1257: "windows-1257",
    _CP1258: "windows-1258",
    _CP874: "windows-874",
    _CP932: "windows-31j",
    _CP949: "windows-949",
    _BIG5: "big5-2003",
    _GB18030: "gb18030",
    _UTF16LE: "utf-16le",
}

_LCID_GROUPS = {
    _CP1256: (
        0x0401, 0x0420, 0x0429, 0x0480, 0x048C, 0x0801, 0x0C01, 0x1001,
        0x1401, 0x1801, 0x1C01, 0x2001, 0x2401, 0x2801, 0x2C01, 0x3001,
        0x3401, 0x3801, 0x3C01, 0x4001,
    ),
    _CP1251: (
        0x0402, 0x0419, 0x0422, 0x0423, 0x0428, 0x042F, 0x043F, 0x0440,
        0x0444, 0x0450, 0x046D, 0x0485, 0x082C, 0x0843, 0x0850, 0x0C1A,
        0x1C1A, 0x201A,
    ),
    _CP1252: (
        0x0403, 0x0406, 0x0407, 0x0409, 0x040A, 0x040B, 0x040C, 0x040F,
        0x0410, 0x0413, 0x0414, 0x0416, 0x0417, 0x041D, 0x0421, 0x042B,
        0x042D, 0x042E, 0x0432, 0x0434, 0x0435, 0x0436, 0x0437, 0x0438,
        0x043B, 0x043E, 0x0441, 0x0452, 0x0456, 0x045D, 0x045E, 0x0462,
        0x0464, 0x0468, 0x046A, 0x046B, 0x046C, 0x046E, 0x046F, 0x0470,
        0x0478, 0x047A, 0x047C, 0x047E, 0x0482, 0x0483, 0x0484, 0x0486,
        0x0487, 0x0488, 0x0807, 0x0809, 0x080A, 0x080C, 0x0810, 0x0813,
        0x0814, 0x0816, 0x081D, 0x082E, 0x083B, 0x083C, 0x083E, 0x085D,
        0x085F, 0x086B, 0x0C07, 0x0C09, 0x0C0A, 0x0C0C, 0x0C3B, 0x0C6B,
        0x1007, 0x1009, 0x100A, 0x100C, 0x103B, 0x1407, 0x1409, 0x140A,
        0x140C, 0x143B, 0x1809, 0x180A, 0x180C, 0x183B, 0x1C09, 0x1C0A,
        0x1C3B, 0x2009, 0x200A, 0x203B, 0x2409, 0x240A, 0x243B, 0x2809,
        0x280A, 0x2C09, 0x2C0A, 0x3009, 0x300A, 0x3409, 0x340A, 0x380A,
        0x3C0A, 0x4009, 0x400A, 0x4409, 0x440A, 0x4809, 0x480A, 0x4C0A,
        0x500A, 0x540A,
    ),
    _CP1250: (
        0x0405, 0x040E, 0x0415, 0x0418, 0x041A, 0x041B, 0x041C, 0x0424,
        0x0442, 0x081A, 0x101A, 0x141A, 0x181A,
    ),
    _CP1253: (0x0408,),
    _CP1254: (0x041F, 0x042C, 0x0443),
    _CP1255: (0x040D,),
    _CP1257: (0x0425, 0x0426, 0x0427, 0x0827),
    _CP1258: (0x042A,),
    _CP874: (0x041E,),
    _CP932: (0x0411,),
    _CP949: (0x0412,),
    _BIG5: (0x0404, 0x0C04, 0x1404),
    _GB18030: (0x0804, 0x1004),
    _UTF16LE: (
        0x0439, 0x043A, 0x0445, 0x0446, 0x0447, 0x0448, 0x0449, 0x044A,
        0x044B, 0x044C, 0x044D, 0x044E, 0x044F, 0x0451, 0x0453, 0x0454,
        0x0457, 0x045A, 0x045B, 0x0461, 0x0463, 0x0465, 0x0481, 0x0845,
    ),
}

_SORT_ID_GROUPS = {
    _CP1252: (
        *range(50, 55), *range(71, 76), *range(183, 187), *range(210, 218),
    ),
    _CP1250: tuple(range(80, 99)),
    _CP1251: tuple(range(104, 109)),
    _CP1253: (112, 113, 114, 120, 121, 122, 124),
    _CP1254: (128, 129, 130),
    _CP1255: (136, 137, 138),
    _CP1256: (144, 145, 146),
    _CP1257: tuple(range(152, 161)),
    _CP932: (192, 193, 200),
    _CP949: (194, 195, 201),
    _BIG5: (196, 197, 202),
    _GB18030: (198, 199, 203),
    _CP874: (204, 205, 206),
}


def _invert(groups: dict[str, tuple[int, ...]]) -> dict[int, str]:
    return {key: codec for codec, keys in groups.items() for key in keys}


_LCID_TO_CODEC = _invert(_LCID_GROUPS)
_SORT_ID_TO_CODEC = _invert(_SORT_ID_GROUPS)


def lcid_to_encoding(locale: int) -> str | None:
    """Map the locale part of an LCID to a Python codec name, if known."""
    return _LCID_TO_CODEC.get(locale)


def sortid_to_encoding(sort_id: int) -> str | None:
    """Map a legacy sort id to a Python codec name, if known."""
    return _SORT_ID_TO_CODEC.get(sort_id)


@dataclass(frozen=True)
class Collation:
    """A collation as sent on the wire: LCID/flags/version word and sort id."""

    info: int
    sort_id: int

    def lcid(self) -> int:
        """The locale id part of the LCID."""
        return self.info & 0xFFFF

    def encoding(self) -> str:
        """The Python codec name for text stored under this collation."""
        if self.sort_id == 0:
            codec = lcid_to_encoding(self.lcid())
        else:
            codec = sortid_to_encoding(self.sort_id)
        if codec is None:
            raise EncodingError(
                f"encoding: unsupported encoding (LCID: {self.lcid():#x}, "
                f"sort ID: {self.sort_id})"
            )
        return codec

    def __str__(self) -> str:
        try:
            return _DISPLAY_NAMES[self.encoding()]
        except EncodingError:
            return "None"