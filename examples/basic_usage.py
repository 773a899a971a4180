"""
Basic usage examples for wlcolor.
"""

from __future__ import annotations

import logging

from wlcolor import (
    ColorCharacteristics,
    ColorManagerConfig,
    ColorManagerKind,
    Compositor,
    EotfMode,
)
from wlcolor.curves import ParametricCurve
from wlcolor.icc import build_matrix_shaper_profile
from wlcolor.outcome import ColorCharacteristicsGroup
from wlcolor.pipeline.translate import MappingMatrix
from wlcolor.properties import ColorPrimaries, color_primaries_info_from


def example_stock_output() -> None:
    """Enable an sRGB output and inspect its color outcome."""

    compositor = Compositor()
    output = compositor.create_output("HDMI-A-1", [compositor.create_head("HDMI-A-1")])
    output.enable()

    outcome = output.color_outcome
    print(f"sRGB to output: {outcome.from_srgb_to_output}")
    print(f"sRGB to blend:  {outcome.from_srgb_to_blend.describe()}")
    print(f"blend to output: {outcome.from_blend_to_output.describe()}")
    compositor.destroy()


def example_wide_gamut_output() -> None:
    """Drive a gamma 2.2 BT.2020 display from sRGB content."""

    compositor = Compositor()
    cm = compositor.color_manager

    gamut = color_primaries_info_from(ColorPrimaries.BT2020).color_gamut
    icc = build_matrix_shaper_profile(gamut, [ParametricCurve(1, [2.2])], "BT.2020 gamma 2.2")
    with cm.get_color_profile_from_icc(icc, "example display") as profile:
        output = compositor.create_output("DP-1", [compositor.create_head("DP-1")])
        output.set_color_profile(profile)

    output.set_eotf_mode(EotfMode.ST2084)
    output.set_color_characteristics(
        ColorCharacteristics(
            group_mask=ColorCharacteristicsGroup.MAXL | ColorCharacteristicsGroup.MINL,
            max_luminance=1000.0,
            min_luminance=0.005,
        )
    )
    output.enable()

    xform = output.color_outcome.from_srgb_to_output
    print(f"sRGB to output: {xform.describe()} ({xform.status.value})")
    if isinstance(xform.mapping, MappingMatrix):
        print(xform.mapping.as_array())
    print(f"HDR metadata: {output.color_outcome.hdr_meta}")
    compositor.destroy()


def example_noop_manager() -> None:
    """The no-op color manager treats everything as sRGB."""

    compositor = Compositor(ColorManagerConfig(kind=ColorManagerKind.NOOP))
    surface = compositor.create_surface()
    output = compositor.create_output("eDP-1")
    output.enable()

    surface_xform = surface.get_color_transform(output)
    print(f"identity pipeline: {surface_xform.identity_pipeline}")
    surface.destroy()
    compositor.destroy()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Running wlcolor basic examples...")
    example_stock_output()
    example_wide_gamut_output()
    example_noop_manager()
