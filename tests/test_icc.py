"""
Tests for the ICC codec.
"""

from __future__ import annotations

import numpy as np
import pytest

from wlcolor.core.errors import IccProfileError
from wlcolor.curves import ParametricCurve, TabulatedCurve
from wlcolor.icc import (
    IccProfile,
    build_matrix_shaper_profile,
    build_profile,
    build_stock_srgb_profile,
    compute_profile_id,
    vcgt_formula_tag,
    vcgt_table_tag,
)
from wlcolor.icc.writer import text_tag
from wlcolor.properties import ColorPrimaries, color_primaries_info_from
from wlcolor.utils.colorimetry import rgb_to_pcs_matrix


def _srgb_gamut():
    return color_primaries_info_from(ColorPrimaries.SRGB).color_gamut


def test_stock_profile_header() -> None:
    icc = IccProfile.from_bytes(build_stock_srgb_profile())
    assert icc.version == (4, 3, 0)
    assert icc.version_number == pytest.approx(4.3)
    assert icc.device_class == "mntr"
    assert icc.color_space == "RGB "
    assert icc.pcs == "XYZ "
    assert icc.channels == 3
    assert icc.is_matrix_shaper()
    assert icc.read_description() == "sRGB built-in"
    icc.validate_display()


def test_stock_profile_id_is_stamped() -> None:
    icc = IccProfile.from_bytes(build_stock_srgb_profile())
    assert icc.stored_id == icc.profile_id()


def test_profile_id_ignores_intent_and_flags() -> None:
    data = bytearray(build_stock_srgb_profile())
    original = compute_profile_id(bytes(data))

    data[64:68] = (3).to_bytes(4, "big")
    data[44:48] = (1).to_bytes(4, "big")
    data[84:100] = b"\x55" * 16
    assert compute_profile_id(bytes(data)) == original

    data[200] ^= 0xFF
    assert compute_profile_id(bytes(data)) != original


def test_colorants_and_curves_round_trip() -> None:
    gamut = _srgb_gamut()
    trc = [ParametricCurve(1, [2.2]), ParametricCurve(1, [2.4]), ParametricCurve(1, [1.8])]
    icc = IccProfile.from_bytes(build_matrix_shaper_profile(gamut, trc, "mixed"))

    np.testing.assert_allclose(icc.colorant_matrix(), rgb_to_pcs_matrix(gamut), atol=1e-4)
    curves = icc.trc_curves()
    assert [c.type for c in curves] == [1, 1, 1]
    np.testing.assert_allclose([c.params[0] for c in curves], [2.2, 2.4, 1.8], atol=1e-4)


def test_tabulated_trc_is_stored_as_curv() -> None:
    table = np.linspace(0.0, 1.0, 256) ** 2.0
    icc = IccProfile.from_bytes(
        build_matrix_shaper_profile(_srgb_gamut(), [TabulatedCurve(table)], "table")
    )
    assert icc.tag_type("rTRC") == "curv"
    curve = icc.read_curve("gTRC")
    np.testing.assert_allclose(curve.evaluate(np.array([0.5])), [0.25], atol=1e-3)


def test_v2_profile() -> None:
    data = build_matrix_shaper_profile(
        _srgb_gamut(), [ParametricCurve(1, [2.2])], "legacy", version=(2, 1, 0)
    )
    icc = IccProfile.from_bytes(data)
    assert icc.major_version == 2
    assert icc.read_description() == "legacy"
    icc.validate_display()


def test_empty_and_garbage_data_rejected() -> None:
    with pytest.raises(IccProfileError, match="No ICC data."):
        IccProfile.from_bytes(b"")
    with pytest.raises(IccProfileError, match="ICC data not understood."):
        IccProfile.from_bytes(b"\x01" * 200)


def test_display_class_required() -> None:
    data = build_profile({"desc": text_tag("scanner", 4)}, device_class="scnr")
    icc = IccProfile.from_bytes(data)
    with pytest.raises(IccProfileError, match="Display device class, but it is Input class"):
        icc.validate_display()


def test_three_channels_required() -> None:
    data = build_profile({"desc": text_tag("printer", 4)}, color_space="CMYK")
    with pytest.raises(IccProfileError, match="3 channels"):
        IccProfile.from_bytes(data).validate_display()


def test_major_version_checked() -> None:
    data = build_profile({"desc": text_tag("future", 4)}, version=(5, 0, 0))
    with pytest.raises(IccProfileError, match="major version 5 is unsupported"):
        IccProfile.from_bytes(data).validate_display()


def test_vcgt_table() -> None:
    tables = np.stack([np.linspace(0.0, 1.0, 16) ** g for g in (1.0, 1.1, 1.2)])
    data = build_matrix_shaper_profile(
        _srgb_gamut(), [ParametricCurve(1, [2.2])], "calibrated", vcgt=vcgt_table_tag(tables)
    )
    curves = IccProfile.from_bytes(data).read_vcgt()
    assert len(curves) == 3
    np.testing.assert_allclose(curves[2].table, tables[2], atol=1.0 / 65535.0)


def test_vcgt_formula() -> None:
    formula = [(1.0, 0.0, 1.0), (2.0, 0.0, 1.0), (1.0, 0.1, 0.9)]
    data = build_matrix_shaper_profile(
        _srgb_gamut(), [ParametricCurve(1, [2.2])], "formula", vcgt=vcgt_formula_tag(formula)
    )
    curves = IccProfile.from_bytes(data).read_vcgt()
    x = np.array([0.0, 0.5, 1.0])
    np.testing.assert_allclose(curves[0].evaluate(x), x, atol=1e-4)
    np.testing.assert_allclose(curves[1].evaluate(x), x ** 2.0, atol=1e-4)
    np.testing.assert_allclose(curves[2].evaluate(x), [0.1, 0.5, 0.9], atol=1e-4)


def test_missing_vcgt_is_none() -> None:
    assert IccProfile.from_bytes(build_stock_srgb_profile()).read_vcgt() is None
