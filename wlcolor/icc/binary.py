"""
Big-endian number encodings used by ICC profiles.
"""

from __future__ import annotations

import struct
from typing import Tuple


def s15fixed16(data: bytes, offset: int = 0) -> float:
    return struct.unpack_from(">i", data, offset)[0] / 65536.0


def s15fixed16_bytes(num: float) -> bytes:
    return struct.pack(">i", int(round(num * 65536)))


def u16fixed16(data: bytes, offset: int = 0) -> float:
    return struct.unpack_from(">I", data, offset)[0] / 65536.0


def u16fixed16_bytes(num: float) -> bytes:
    return struct.pack(">I", int(round(num * 65536)) & 0xFFFFFFFF)


def u8fixed8(data: bytes, offset: int = 0) -> float:
    return struct.unpack_from(">H", data, offset)[0] / 256.0


def u8fixed8_bytes(num: float) -> bytes:
    return struct.pack(">H", int(round(num * 256)))


def uint8(data: bytes, offset: int = 0) -> int:
    return data[offset]


def uint16(data: bytes, offset: int = 0) -> int:
    return struct.unpack_from(">H", data, offset)[0]


def uint16_bytes(num: int) -> bytes:
    return struct.pack(">H", int(round(num)))


def uint32(data: bytes, offset: int = 0) -> int:
    return struct.unpack_from(">I", data, offset)[0]


def uint32_bytes(num: int) -> bytes:
    return struct.pack(">I", int(round(num)))


def signature(data: bytes, offset: int = 0) -> str:
    """Four-character signature, e.g. ``'mntr'``."""

    raw = struct.unpack_from(">4s", data, offset)[0]
    return raw.decode("latin-1")


def signature_bytes(sig: str) -> bytes:
    raw = sig.encode("latin-1")
    if len(raw) != 4:
        raise ValueError(f"ICC signature must have 4 characters: {sig!r}")
    return raw


def xyz_number(data: bytes, offset: int = 0) -> Tuple[float, float, float]:
    return (
        s15fixed16(data, offset),
        s15fixed16(data, offset + 4),
        s15fixed16(data, offset + 8),
    )


def xyz_number_bytes(xyz) -> bytes:
    return b"".join(s15fixed16_bytes(v) for v in xyz)
