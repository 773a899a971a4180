from __future__ import annotations

import numpy as np
import pytest

from wlcolor import ColorManagerConfig, ColorManagerKind, Compositor
from wlcolor.curves import ParametricCurve
from wlcolor.icc import build_matrix_shaper_profile, build_profile, lut16_tag, xyz_tag
from wlcolor.icc.writer import text_tag
from wlcolor.properties import ColorPrimaries, color_primaries_info_from
from wlcolor.utils.colorimetry import D50_XYZ


@pytest.fixture
def compositor():
    comp = Compositor()
    yield comp
    comp.destroy()


@pytest.fixture
def noop_compositor():
    comp = Compositor(ColorManagerConfig(kind=ColorManagerKind.NOOP))
    yield comp
    comp.destroy()


@pytest.fixture
def bt2020_icc() -> bytes:
    gamut = color_primaries_info_from(ColorPrimaries.BT2020).color_gamut
    return build_matrix_shaper_profile(gamut, [ParametricCurve(1, [2.2])], "BT.2020 gamma 2.2")


@pytest.fixture
def adobe_icc() -> bytes:
    gamut = color_primaries_info_from(ColorPrimaries.ADOBE_RGB).color_gamut
    return build_matrix_shaper_profile(
        gamut, [ParametricCurve(1, [563.0 / 256.0])], "Adobe RGB", version=(2, 1, 0)
    )


@pytest.fixture
def lut_icc() -> bytes:
    """Display profile whose device to PCS transform is a 3D LUT."""

    grid = 5
    axis = np.linspace(0.0, 1.0, grid)
    r, g, b = np.meshgrid(axis, axis, axis, indexing="ij")
    rgb = np.stack([r, g, b], axis=-1) ** 2.0
    # u1Fixed15 encoded PCS XYZ, roughly D50-relative sRGB colorants
    colorants = np.array(
        [
            [0.4361, 0.3851, 0.1431],
            [0.2225, 0.7169, 0.0606],
            [0.0139, 0.0971, 0.7141],
        ]
    )
    clut = (rgb @ colorants.T) * (32768.0 / 65535.0)
    ramp = np.tile(np.linspace(0.0, 1.0, 2), (3, 1))

    tags = {
        "desc": text_tag("LUT display", 4),
        "wtpt": xyz_tag(D50_XYZ),
        "A2B0": lut16_tag(ramp, clut, ramp),
    }
    return build_profile(tags)
