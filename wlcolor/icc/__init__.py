"""ICC profile codec."""

from wlcolor.icc.profile import IccProfile, LutTag, compute_profile_id, parse_curve
from wlcolor.icc.writer import (
    build_matrix_shaper_profile,
    build_profile,
    build_stock_srgb_profile,
    curve_tag,
    lut16_tag,
    srgb_trc,
    vcgt_formula_tag,
    vcgt_table_tag,
    xyz_tag,
)

__all__ = [
    "IccProfile",
    "LutTag",
    "compute_profile_id",
    "parse_curve",
    "build_profile",
    "build_matrix_shaper_profile",
    "build_stock_srgb_profile",
    "curve_tag",
    "lut16_tag",
    "srgb_trc",
    "vcgt_formula_tag",
    "vcgt_table_tag",
    "xyz_tag",
]
