"""
ICC profile parser.

Reads the header and tag table of ICC v2 and v4 profiles and decodes the
tag types a display profile needs: colorants, tone curves, calibration
curves and LUT-based transforms.
"""

from __future__ import annotations

import hashlib
import logging
import struct
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from wlcolor.core.errors import IccProfileError
from wlcolor.curves import ParametricCurve, TabulatedCurve, ToneCurve
from wlcolor.icc.binary import (
    s15fixed16,
    signature,
    u8fixed8,
    u16fixed16,
    uint8,
    uint16,
    uint32,
    xyz_number,
)

logger = logging.getLogger(__name__)

HEADER_SIZE = 128

DEVICE_CLASS_NAMES = {
    "scnr": "Input",
    "mntr": "Display",
    "prtr": "Output",
    "link": "Link",
    "abst": "Abstract",
    "spac": "ColorSpace",
    "nmcl": "NamedColor",
}

_COLOR_SPACE_CHANNELS = {
    "GRAY": 1,
    "CMYK": 4,
    "XYZ ": 3,
    "Lab ": 3,
    "Luv ": 3,
    "YCbr": 3,
    "Yxy ": 3,
    "RGB ": 3,
    "HSV ": 3,
    "HLS ": 3,
    "CMY ": 3,
}

# ICC 'para' function type -> parameter count
PARA_PARAM_COUNT = {0: 1, 1: 3, 2: 4, 3: 5, 4: 7}

TRC_TAGS = ("rTRC", "gTRC", "bTRC")
COLORANT_TAGS = ("rXYZ", "gXYZ", "bXYZ")


def color_space_channels(sig: str) -> int:
    """Channel count of an ICC color space signature."""

    if sig in _COLOR_SPACE_CHANNELS:
        return _COLOR_SPACE_CHANNELS[sig]

    # 'nCLR' and 'MCHn' multichannel spaces, n in hex
    digit = None
    if sig.endswith("CLR"):
        digit = sig[0]
    elif sig.startswith("MCH"):
        digit = sig[3]

    if digit is not None and digit in "123456789ABCDEF":
        return int(digit, 16)
    return 3


def compute_profile_id(data: bytes) -> bytes:
    """
    MD5 profile ID: the digest of the profile with the flags, rendering
    intent and profile ID header fields zeroed.
    """

    buf = bytearray(data)
    buf[44:48] = b"\0" * 4
    buf[64:68] = b"\0" * 4
    buf[84:100] = b"\0" * 16
    return hashlib.md5(bytes(buf)).digest()


@dataclass
class LutTag:
    """
    Decoded ``mft1``, ``mft2``, ``mAB `` or ``mBA `` tag.

    For the legacy LUT types the order of operations is matrix (XYZ input
    only), ``a_curves``, ``clut``, ``b_curves``. For the v4 types it is
    ``a_curves``, ``clut``, ``m_curves``, ``matrix``/``offset``,
    ``b_curves`` for A-to-B and the reverse for B-to-A.
    """

    kind: str
    in_channels: int
    out_channels: int
    a_curves: Optional[List[ToneCurve]] = None
    clut: Optional[np.ndarray] = None
    m_curves: Optional[List[ToneCurve]] = None
    matrix: Optional[np.ndarray] = None
    offset: Optional[np.ndarray] = None
    b_curves: Optional[List[ToneCurve]] = None
    clut_precision: int = 2


@dataclass
class IccProfile:
    """Parsed ICC profile. ``data`` keeps the original bytes."""

    data: bytes
    size: int = 0
    version: Tuple[int, int, int] = (0, 0, 0)
    device_class: str = ""
    color_space: str = ""
    pcs: str = ""
    flags: int = 0
    rendering_intent: int = 0
    illuminant: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    stored_id: bytes = b""
    tags: Dict[str, Tuple[int, int]] = field(default_factory=dict)

    @classmethod
    def from_bytes(cls, data: bytes) -> IccProfile:
        """Parse the header and tag table; raises IccProfileError."""

        data = bytes(data)
        if len(data) == 0:
            raise IccProfileError("No ICC data.")

        profile = cls(data)
        try:
            profile._parse_header()
            profile._parse_tag_table()
        except (struct.error, IndexError, UnicodeDecodeError) as exc:
            raise IccProfileError("ICC data not understood.") from exc
        return profile

    def _parse_header(self) -> None:
        d = self.data
        if len(d) < HEADER_SIZE:
            raise IccProfileError("ICC data not understood.")

        self.size = uint32(d, 0)
        if self.size > len(d) or signature(d, 36) != "acsp":
            raise IccProfileError("ICC data not understood.")

        self.version = (uint8(d, 8), uint8(d, 9) >> 4, uint8(d, 9) & 0x0F)
        self.device_class = signature(d, 12)
        self.color_space = signature(d, 16)
        self.pcs = signature(d, 20)
        self.flags = uint32(d, 44)
        self.rendering_intent = uint32(d, 64)
        self.illuminant = xyz_number(d, 68)
        self.stored_id = d[84:100]

    def _parse_tag_table(self) -> None:
        d = self.data
        count = uint32(d, HEADER_SIZE)
        pos = HEADER_SIZE + 4
        for _ in range(count):
            sig = signature(d, pos)
            offset = uint32(d, pos + 4)
            length = uint32(d, pos + 8)
            if offset + length > self.size:
                raise IccProfileError("ICC data not understood.")
            self.tags[sig] = (offset, length)
            pos += 12

    @property
    def major_version(self) -> int:
        return self.version[0]

    @property
    def version_number(self) -> float:
        major, minor, bugfix = self.version
        return major + minor / 10.0 + bugfix / 100.0

    @property
    def channels(self) -> int:
        return color_space_channels(self.color_space)

    @property
    def device_class_name(self) -> str:
        return DEVICE_CLASS_NAMES.get(self.device_class, "(unknown)")

    def profile_id(self) -> bytes:
        return compute_profile_id(self.data)

    def validate_display(self) -> None:
        """Accept only 3-channel v2/v4 display profiles."""

        if self.major_version not in (2, 4):
            raise IccProfileError(
                "ICC profile major version %d is unsupported, should be 2 or 4."
                % self.major_version
            )

        if self.channels != 3:
            raise IccProfileError(
                "ICC profile must contain 3 channels for the color space, not %u."
                % self.channels
            )

        if self.device_class != "mntr":
            class_sig = struct.unpack(">I", self.device_class.encode("latin-1"))[0]
            raise IccProfileError(
                "ICC profile is required to be of Display device class, "
                "but it is %s class (0x%08x)" % (self.device_class_name, class_sig)
            )

    def has_tag(self, sig: str) -> bool:
        return sig in self.tags

    def tag_type(self, sig: str) -> Optional[str]:
        if sig not in self.tags:
            return None
        return signature(self.data, self.tags[sig][0])

    def is_matrix_shaper(self) -> bool:
        return all(self.has_tag(t) for t in COLORANT_TAGS + TRC_TAGS)

    def _malformed(self, sig: str) -> IccProfileError:
        return IccProfileError(f"malformed '{sig}' tag")

    def read_xyz(self, sig: str) -> Optional[np.ndarray]:
        if sig not in self.tags:
            return None
        offset, _ = self.tags[sig]
        try:
            if signature(self.data, offset) != "XYZ ":
                raise self._malformed(sig)
            return np.array(xyz_number(self.data, offset + 8))
        except struct.error as exc:
            raise self._malformed(sig) from exc

    def media_white_point(self) -> np.ndarray:
        wtpt = self.read_xyz("wtpt")
        if wtpt is None:
            return np.array([0.9642, 1.0, 0.8249])
        return wtpt

    def colorant_matrix(self) -> Optional[np.ndarray]:
        """Columns are the red, green and blue colorants in PCS XYZ."""

        columns = [self.read_xyz(t) for t in COLORANT_TAGS]
        if any(c is None for c in columns):
            return None
        return np.column_stack(columns)

    def read_curve(self, sig: str) -> Optional[ToneCurve]:
        if sig not in self.tags:
            return None
        try:
            curve, _ = parse_curve(self.data, self.tags[sig][0])
        except (struct.error, ValueError) as exc:
            raise self._malformed(sig) from exc
        return curve

    def trc_curves(self) -> Optional[List[ToneCurve]]:
        curves = [self.read_curve(t) for t in TRC_TAGS]
        if any(c is None for c in curves):
            return None
        return curves

    def read_vcgt(self) -> Optional[List[ToneCurve]]:
        """Video card gamma curves, or ``None`` when absent."""

        if "vcgt" not in self.tags:
            return None
        offset, _ = self.tags["vcgt"]
        try:
            return parse_vcgt(self.data, offset)
        except (struct.error, ValueError) as exc:
            raise self._malformed("vcgt") from exc

    def read_lut(self, sig: str) -> Optional[LutTag]:
        if sig not in self.tags:
            return None
        offset, _ = self.tags[sig]
        kind = signature(self.data, offset)
        try:
            if kind == "mft2":
                return parse_lut16(self.data, offset)
            if kind == "mft1":
                return parse_lut8(self.data, offset)
            if kind in ("mAB ", "mBA "):
                return parse_lut_ab(self.data, offset)
        except (struct.error, ValueError) as exc:
            raise self._malformed(sig) from exc
        raise IccProfileError(f"unsupported '{sig}' tag type '{kind}'")

    def read_description(self) -> Optional[str]:
        """Profile description from a ``desc`` or ``mluc`` tag."""

        if "desc" not in self.tags:
            return None
        offset, _ = self.tags["desc"]
        kind = signature(self.data, offset)
        if kind == "desc":
            length = uint32(self.data, offset + 8)
            raw = self.data[offset + 12: offset + 12 + length]
            return raw.split(b"\0", 1)[0].decode("latin-1")
        if kind == "mluc":
            count = uint32(self.data, offset + 8)
            if count == 0:
                return ""
            length = uint32(self.data, offset + 20)
            start = offset + uint32(self.data, offset + 24)
            return self.data[start: start + length].decode("utf-16-be")
        return None


def parse_curve(data: bytes, offset: int) -> Tuple[ToneCurve, int]:
    """Decode a ``curv`` or ``para`` element; returns the curve and its size."""

    kind = signature(data, offset)
    if kind == "curv":
        count = uint32(data, offset + 8)
        size = 12 + 2 * count
        if count == 0:
            return ParametricCurve(1, [1.0]), size
        if count == 1:
            return ParametricCurve(1, [u8fixed8(data, offset + 12)]), size
        values = np.frombuffer(data, dtype=">u2", count=count, offset=offset + 12)
        return TabulatedCurve(values.astype(float) / 65535.0), size

    if kind == "para":
        function_type = uint16(data, offset + 8)
        if function_type not in PARA_PARAM_COUNT:
            raise ValueError(f"unknown parametric function type {function_type}")
        count = PARA_PARAM_COUNT[function_type]
        params = [s15fixed16(data, offset + 12 + 4 * i) for i in range(count)]
        return ParametricCurve(function_type + 1, params), 12 + 4 * count

    raise ValueError(f"'{kind}' is not a curve type")


def _parse_curves(data: bytes, offset: int, n: int) -> List[ToneCurve]:
    curves = []
    for _ in range(n):
        curve, size = parse_curve(data, offset)
        curves.append(curve)
        offset += (size + 3) & ~3
    return curves


def parse_vcgt(data: bytes, offset: int) -> List[ToneCurve]:
    """
    Decode a ``vcgt`` tag.

    Tables become tabulated curves normalized to [0, 1]; formulas become
    type 5 curves ``(max - min)^(1/g)`` scaled power laws offset by min.
    """

    gamma_type = uint32(data, offset + 8)
    if gamma_type == 0:
        channels = uint16(data, offset + 12)
        entries = uint16(data, offset + 14)
        entry_size = uint16(data, offset + 16)
        if entry_size not in (1, 2) or channels not in (1, 3) or entries < 2:
            raise ValueError("unsupported vcgt table layout")
        dtype = ">u1" if entry_size == 1 else ">u2"
        values = np.frombuffer(data, dtype=dtype, count=channels * entries, offset=offset + 18)
        values = values.astype(float).reshape(channels, entries) / (256 ** entry_size - 1)
        if channels == 1:
            values = np.repeat(values, 3, axis=0)
        return [TabulatedCurve(row) for row in values]

    if gamma_type == 1:
        curves = []
        for ch in range(3):
            base = offset + 12 + 12 * ch
            gamma = u16fixed16(data, base)
            lo = u16fixed16(data, base + 4)
            hi = u16fixed16(data, base + 8)
            if gamma == 0.0:
                raise ValueError("vcgt formula with zero gamma")
            curves.append(
                ParametricCurve(5, [gamma, (hi - lo) ** (1.0 / gamma), 0.0, 0.0, 0.0, lo, 0.0])
            )
        return curves

    raise ValueError(f"unknown vcgt gamma type {gamma_type}")


def _lut_header(data: bytes, offset: int) -> Tuple[int, int, int, np.ndarray]:
    in_ch = uint8(data, offset + 8)
    out_ch = uint8(data, offset + 9)
    grid = uint8(data, offset + 10)
    matrix = np.array([s15fixed16(data, offset + 12 + 4 * i) for i in range(9)]).reshape(3, 3)
    return in_ch, out_ch, grid, matrix


def _tables_to_curves(tables: np.ndarray) -> List[ToneCurve]:
    return [TabulatedCurve(row) for row in tables]


def parse_lut16(data: bytes, offset: int) -> LutTag:
    in_ch, out_ch, grid, matrix = _lut_header(data, offset)
    in_entries = uint16(data, offset + 48)
    out_entries = uint16(data, offset + 50)
    pos = offset + 52

    def take(count: int) -> np.ndarray:
        nonlocal pos
        values = np.frombuffer(data, dtype=">u2", count=count, offset=pos)
        pos += 2 * count
        return values.astype(float) / 65535.0

    in_tables = take(in_ch * in_entries).reshape(in_ch, in_entries)
    clut = take(grid ** in_ch * out_ch).reshape((grid,) * in_ch + (out_ch,))
    out_tables = take(out_ch * out_entries).reshape(out_ch, out_entries)

    return LutTag(
        kind="mft2",
        in_channels=in_ch,
        out_channels=out_ch,
        matrix=matrix,
        a_curves=_tables_to_curves(in_tables),
        clut=clut,
        b_curves=_tables_to_curves(out_tables),
    )


def parse_lut8(data: bytes, offset: int) -> LutTag:
    in_ch, out_ch, grid, matrix = _lut_header(data, offset)
    pos = offset + 48

    def take(count: int) -> np.ndarray:
        nonlocal pos
        values = np.frombuffer(data, dtype=np.uint8, count=count, offset=pos)
        pos += count
        return values.astype(float) / 255.0

    in_tables = take(in_ch * 256).reshape(in_ch, 256)
    clut = take(grid ** in_ch * out_ch).reshape((grid,) * in_ch + (out_ch,))
    out_tables = take(out_ch * 256).reshape(out_ch, 256)

    return LutTag(
        kind="mft1",
        in_channels=in_ch,
        out_channels=out_ch,
        matrix=matrix,
        a_curves=_tables_to_curves(in_tables),
        clut=clut,
        b_curves=_tables_to_curves(out_tables),
        clut_precision=1,
    )


def parse_lut_ab(data: bytes, offset: int) -> LutTag:
    """Decode ``mAB `` (A-to-B) and ``mBA `` (B-to-A) tags."""

    kind = signature(data, offset)
    in_ch = uint8(data, offset + 8)
    out_ch = uint8(data, offset + 9)
    off_b, off_matrix, off_m, off_clut, off_a = (
        uint32(data, offset + 12 + 4 * i) for i in range(5)
    )

    # A curves sit on the device side, B curves on the PCS side
    a_count = in_ch if kind == "mAB " else out_ch
    b_count = out_ch if kind == "mAB " else in_ch

    tag = LutTag(kind=kind, in_channels=in_ch, out_channels=out_ch)

    if off_b:
        tag.b_curves = _parse_curves(data, offset + off_b, b_count)
    if off_m:
        tag.m_curves = _parse_curves(data, offset + off_m, 3)
    if off_a:
        tag.a_curves = _parse_curves(data, offset + off_a, a_count)

    if off_matrix:
        values = [s15fixed16(data, offset + off_matrix + 4 * i) for i in range(12)]
        tag.matrix = np.array(values[:9]).reshape(3, 3)
        tag.offset = np.array(values[9:])

    if off_clut:
        base = offset + off_clut
        grid = [uint8(data, base + i) for i in range(in_ch)]
        precision = uint8(data, base + 16)
        count = int(np.prod(grid)) * out_ch
        if precision == 1:
            values = np.frombuffer(data, dtype=np.uint8, count=count, offset=base + 20)
            values = values.astype(float) / 255.0
        elif precision == 2:
            values = np.frombuffer(data, dtype=">u2", count=count, offset=base + 20)
            values = values.astype(float) / 65535.0
        else:
            raise ValueError(f"unknown CLUT precision {precision}")
        tag.clut = values.reshape(tuple(grid) + (out_ch,))
        tag.clut_precision = precision

    return tag
