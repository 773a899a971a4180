"""
ICC profile writer.

Assembles profiles from encoded tags and builds matrix-shaper display
profiles, including the stock sRGB profile.
"""

from __future__ import annotations

import datetime
import struct
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from wlcolor.curves import ParametricCurve, TabulatedCurve, ToneCurve
from wlcolor.icc.binary import (
    s15fixed16_bytes,
    signature_bytes,
    u16fixed16_bytes,
    uint16_bytes,
    uint32_bytes,
    xyz_number_bytes,
)
from wlcolor.icc.profile import HEADER_SIZE, PARA_PARAM_COUNT, compute_profile_id
from wlcolor.properties import ColorGamut, ColorPrimaries, color_primaries_info_from
from wlcolor.utils.colorimetry import D50_XYZ, rgb_to_pcs_matrix

# IEC 61966-2.1 piece-wise curve as ICC 'para' function type 3
SRGB_TRC_PARAMS = (2.4, 1.0 / 1.055, 0.055 / 1.055, 1.0 / 12.92, 0.04045)

_FIXED_DATE = datetime.datetime(2024, 1, 1)


def _pad4(data: bytes) -> bytes:
    return data + b"\0" * (-len(data) % 4)


def text_tag(text: str, version: int) -> bytes:
    """``mluc`` for v4 profiles, ``desc`` for v2."""

    if version >= 4:
        raw = text.encode("utf-16-be")
        return b"".join(
            [
                b"mluc", b"\0" * 4,
                uint32_bytes(1), uint32_bytes(12),
                b"en", b"US",
                uint32_bytes(len(raw)), uint32_bytes(28),
                raw,
            ]
        )

    ascii_raw = text.encode("latin-1", errors="replace") + b"\0"
    return b"".join(
        [
            b"desc", b"\0" * 4,
            uint32_bytes(len(ascii_raw)), ascii_raw,
            uint32_bytes(0), uint32_bytes(0),  # unicode language, count
            uint16_bytes(0), bytes([0]), b"\0" * 67,  # scriptcode
        ]
    )


def copyright_tag(text: str, version: int) -> bytes:
    if version >= 4:
        return text_tag(text, version)
    return b"text" + b"\0" * 4 + text.encode("latin-1", errors="replace") + b"\0"


def xyz_tag(xyz: Sequence[float]) -> bytes:
    return b"XYZ " + b"\0" * 4 + xyz_number_bytes(xyz)


def curve_tag(curve: ToneCurve) -> bytes:
    """Encode a forward parametric curve as ``para``, anything else as ``curv``."""

    if isinstance(curve, ParametricCurve) and curve.type > 0:
        function_type = curve.type - 1
        params = curve.params[: PARA_PARAM_COUNT[function_type]]
        return (
            b"para" + b"\0" * 4
            + uint16_bytes(function_type) + b"\0\0"
            + b"".join(s15fixed16_bytes(p) for p in params)
        )

    if isinstance(curve, TabulatedCurve):
        values = curve.table
    else:
        values = curve.evaluate(np.linspace(0.0, 1.0, 1024))
    encoded = np.round(np.clip(values, 0.0, 1.0) * 65535.0).astype(">u2")
    return b"curv" + b"\0" * 4 + uint32_bytes(len(encoded)) + encoded.tobytes()


def vcgt_formula_tag(formula: Sequence[Tuple[float, float, float]]) -> bytes:
    """``vcgt`` formula variant from (gamma, min, max) per channel."""

    body = b"".join(u16fixed16_bytes(v) for channel in formula for v in channel)
    return b"vcgt" + b"\0" * 4 + uint32_bytes(1) + body


def vcgt_table_tag(tables: np.ndarray, entry_size: int = 2) -> bytes:
    """``vcgt`` table variant from an array of shape (channels, entries) in [0, 1]."""

    tables = np.atleast_2d(np.asarray(tables, dtype=float))
    channels, entries = tables.shape
    dtype = ">u1" if entry_size == 1 else ">u2"
    encoded = np.round(np.clip(tables, 0.0, 1.0) * (256 ** entry_size - 1)).astype(dtype)
    return (
        b"vcgt" + b"\0" * 4 + uint32_bytes(0)
        + uint16_bytes(channels) + uint16_bytes(entries) + uint16_bytes(entry_size)
        + encoded.tobytes()
    )


def lut16_tag(
    input_tables: np.ndarray,
    clut: np.ndarray,
    output_tables: np.ndarray,
    matrix: Optional[np.ndarray] = None,
) -> bytes:
    """
    Encode an ``mft2`` tag.

    Parameters
    ----------
    input_tables : np.ndarray
        Shape (in_channels, entries), values in [0, 1]
    clut : np.ndarray
        Shape (grid,) * in_channels + (out_channels,), values in [0, 1]
    output_tables : np.ndarray
        Shape (out_channels, entries), values in [0, 1]
    """

    input_tables = np.asarray(input_tables, dtype=float)
    output_tables = np.asarray(output_tables, dtype=float)
    clut = np.asarray(clut, dtype=float)
    in_ch = input_tables.shape[0]
    out_ch = output_tables.shape[0]
    grid = clut.shape[0]
    matrix = np.eye(3) if matrix is None else np.asarray(matrix, dtype=float)

    def encode(values: np.ndarray) -> bytes:
        return np.round(np.clip(values, 0.0, 1.0) * 65535.0).astype(">u2").tobytes()

    return b"".join(
        [
            b"mft2", b"\0" * 4,
            bytes([in_ch, out_ch, grid, 0]),
            b"".join(s15fixed16_bytes(v) for v in matrix.ravel()),
            uint16_bytes(input_tables.shape[1]),
            uint16_bytes(output_tables.shape[1]),
            encode(input_tables),
            encode(clut),
            encode(output_tables),
        ]
    )


def build_profile(
    tags: Dict[str, bytes],
    version: Tuple[int, int, int] = (4, 3, 0),
    device_class: str = "mntr",
    color_space: str = "RGB ",
    pcs: str = "XYZ ",
    rendering_intent: int = 0,
) -> bytes:
    """Assemble header, tag table and tag data, then stamp the profile ID."""

    table_size = 4 + 12 * len(tags)
    offset = HEADER_SIZE + table_size
    entries: List[bytes] = []
    payload: List[bytes] = []
    for sig, data in tags.items():
        padded = _pad4(data)
        entries.append(signature_bytes(sig) + uint32_bytes(offset) + uint32_bytes(len(data)))
        payload.append(padded)
        offset += len(padded)

    major, minor, bugfix = version
    date = _FIXED_DATE
    header = b"".join(
        [
            uint32_bytes(offset),
            b"\0" * 4,  # preferred CMM
            bytes([major, (minor << 4) | bugfix, 0, 0]),
            signature_bytes(device_class),
            signature_bytes(color_space),
            signature_bytes(pcs),
            struct.pack(">6H", date.year, date.month, date.day, date.hour, date.minute, date.second),
            b"acsp",
            b"\0" * 4,  # platform
            uint32_bytes(0),  # flags
            b"\0" * 4,  # manufacturer
            b"\0" * 4,  # model
            b"\0" * 8,  # attributes
            uint32_bytes(rendering_intent),
            xyz_number_bytes(D50_XYZ),
            b"\0" * 4,  # creator
            b"\0" * 16,  # profile ID
        ]
    )
    header += b"\0" * (HEADER_SIZE - len(header))

    data = bytearray(header + uint32_bytes(len(tags)) + b"".join(entries) + b"".join(payload))
    data[84:100] = compute_profile_id(bytes(data))
    return bytes(data)


def build_matrix_shaper_profile(
    gamut: ColorGamut,
    trc: Sequence[ToneCurve],
    description: str,
    version: Tuple[int, int, int] = (4, 3, 0),
    vcgt: Optional[bytes] = None,
    white_point: Optional[Sequence[float]] = None,
) -> bytes:
    """
    Build an RGB display profile with D50-adapted colorants.

    ``trc`` holds one curve for all channels or one per channel.
    """

    if len(trc) == 1:
        trc = list(trc) * 3
    if len(trc) != 3:
        raise ValueError(f"Need 1 or 3 TRC curves, got {len(trc)}")

    colorants = rgb_to_pcs_matrix(gamut)
    tags: Dict[str, bytes] = {
        "desc": text_tag(description, version[0]),
        "cprt": copyright_tag("No copyright, use freely", version[0]),
        "wtpt": xyz_tag(D50_XYZ if white_point is None else white_point),
        "rXYZ": xyz_tag(colorants[:, 0]),
        "gXYZ": xyz_tag(colorants[:, 1]),
        "bXYZ": xyz_tag(colorants[:, 2]),
        "rTRC": curve_tag(trc[0]),
        "gTRC": curve_tag(trc[1]),
        "bTRC": curve_tag(trc[2]),
    }
    if vcgt is not None:
        tags["vcgt"] = vcgt
    return build_profile(tags, version=version)


def srgb_trc() -> ParametricCurve:
    return ParametricCurve(4, SRGB_TRC_PARAMS)


def build_stock_srgb_profile() -> bytes:
    """sRGB display profile with the IEC 61966-2.1 curve and BT.709 primaries."""

    gamut = color_primaries_info_from(ColorPrimaries.SRGB).color_gamut
    return build_matrix_shaper_profile(gamut, [srgb_trc()], "sRGB built-in")
