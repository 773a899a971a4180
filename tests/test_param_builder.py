"""
Tests for the parametric color profile builder.
"""

from __future__ import annotations

import pytest

from wlcolor import ColorManagerConfig, ColorProfileParamBuilder, Compositor
from wlcolor.core.errors import InvariantError, ParamBuilderError, ParamBuilderErrorCode
from wlcolor.param_builder import ParamsGroup, is_point_inside_triangle
from wlcolor.profile import ParametricColorProfile
from wlcolor.properties import ColorFeature, ColorGamut, ColorPrimaries, TransferFunction

SRGB_GAMUT = ColorGamut(
    primary=((0.64, 0.33), (0.30, 0.60), (0.15, 0.06)),
    white_point=(0.3127, 0.3290),
)


@pytest.fixture
def param_compositor():
    config = ColorManagerConfig(
        extra_color_features=frozenset(
            {
                ColorFeature.PARAMETRIC,
                ColorFeature.SET_PRIMARIES,
                ColorFeature.SET_TF_POWER,
                ColorFeature.SET_MASTERING_DISPLAY_PRIMARIES,
            }
        )
    )
    comp = Compositor(config)
    comp.color_manager.supported_tf_named = frozenset(
        {TransferFunction.GAMMA22, TransferFunction.SRGB, TransferFunction.ST2084_PQ}
    )
    yield comp
    comp.destroy()


@pytest.fixture
def builder(param_compositor) -> ColorProfileParamBuilder:
    return ColorProfileParamBuilder(param_compositor)


def _error_code(builder: ColorProfileParamBuilder) -> ParamBuilderErrorCode:
    code, _ = builder.get_error()
    return code


def test_point_inside_triangle() -> None:
    assert is_point_inside_triangle(SRGB_GAMUT.white_point, SRGB_GAMUT.primary)
    assert not is_point_inside_triangle((0.9, 0.9), SRGB_GAMUT.primary)
    degenerate = ((0.1, 0.1), (0.2, 0.2), (0.3, 0.3))
    assert not is_point_inside_triangle((0.2, 0.2), degenerate)


def test_out_of_range_primaries_rejected(builder) -> None:
    gamut = ColorGamut(primary=((2.5, 0.33), (0.30, 0.60), (0.15, 0.06)), white_point=(0.31, 0.33))
    assert not builder.set_primaries(gamut)
    assert builder.group_mask == ParamsGroup(0)
    code, message = builder.get_error()
    assert code == ParamBuilderErrorCode.CIE_XY_OUT_OF_RANGE
    assert message == "invalid primaries"


def test_white_point_outside_gamut_rejected(builder) -> None:
    gamut = ColorGamut(primary=SRGB_GAMUT.primary, white_point=(0.7, 0.7))
    assert not builder.set_primaries(gamut)
    assert builder.get_error() == (
        ParamBuilderErrorCode.CIE_XY_OUT_OF_RANGE,
        "white point out of primaries volume",
    )


def test_set_primaries_needs_feature(compositor) -> None:
    builder = ColorProfileParamBuilder(compositor)
    assert not builder.set_primaries(SRGB_GAMUT)
    assert _error_code(builder) == ParamBuilderErrorCode.INVALID_PRIMARIES


def test_equal_luminances_rejected(builder) -> None:
    assert not builder.set_target_luminance(100.0, 100.0)
    assert _error_code(builder) == ParamBuilderErrorCode.INVALID_LUMINANCE
    assert not builder.group_mask & ParamsGroup.LUMINANCE


def test_group_already_set(builder) -> None:
    assert builder.set_primaries_named(ColorPrimaries.SRGB)
    assert not builder.set_primaries(SRGB_GAMUT)
    assert _error_code(builder) == ParamBuilderErrorCode.ALREADY_SET
    assert builder.group_mask == ParamsGroup.PRIMARIES


def test_unsupported_named_tf(builder) -> None:
    assert not builder.set_tf_named(TransferFunction.LOG_100)
    assert _error_code(builder) == ParamBuilderErrorCode.INVALID_TF


@pytest.mark.parametrize("exponent", [0.5, 10.5])
def test_power_exponent_range(builder, exponent: float) -> None:
    assert not builder.set_tf_power_exponent(exponent)
    assert _error_code(builder) == ParamBuilderErrorCode.INVALID_TF


def test_first_error_code_is_kept(builder) -> None:
    builder.set_target_luminance(5.0, 1.0)
    builder.set_max_fall(10.0)
    builder.set_max_fall(20.0)

    with pytest.raises(ParamBuilderError) as excinfo:
        builder.create_color_profile("client")
    assert excinfo.value.code == ParamBuilderErrorCode.INVALID_LUMINANCE
    assert "max fall was already set" in excinfo.value.messages


def test_incomplete_set(builder) -> None:
    with pytest.raises(ParamBuilderError) as excinfo:
        builder.create_color_profile("client")
    assert excinfo.value.code == ParamBuilderErrorCode.INCOMPLETE_SET
    assert excinfo.value.messages == ["primaries not set", "transfer function not set"]


def test_luminances_need_pq(builder) -> None:
    builder.set_primaries_named(ColorPrimaries.BT2020)
    builder.set_tf_named(TransferFunction.GAMMA22)
    builder.set_max_cll(400.0)

    with pytest.raises(ParamBuilderError) as excinfo:
        builder.create_color_profile("client")
    assert excinfo.value.code == ParamBuilderErrorCode.INCONSISTENT_SET


def test_light_levels_within_luminance(builder) -> None:
    builder.set_primaries_named(ColorPrimaries.BT2020)
    builder.set_tf_named(TransferFunction.ST2084_PQ)
    builder.set_target_luminance(0.01, 1000.0)
    builder.set_max_cll(2000.0)

    with pytest.raises(ParamBuilderError) as excinfo:
        builder.create_color_profile("client")
    assert excinfo.value.code == ParamBuilderErrorCode.INCONSISTENT_LUMINANCES


def test_create_pq_profile(param_compositor) -> None:
    cm = param_compositor.color_manager

    def build() -> ParametricColorProfile:
        builder = ColorProfileParamBuilder(param_compositor)
        assert builder.set_primaries_named(ColorPrimaries.BT2020)
        assert builder.set_tf_named(TransferFunction.ST2084_PQ)
        assert builder.set_target_luminance(0.005, 1000.0)
        assert builder.set_max_cll(1000.0)
        assert builder.set_max_fall(400.0)
        return builder.create_color_profile("client")

    profile = build()
    assert isinstance(profile, ParametricColorProfile)
    assert profile in cm.profiles
    assert profile.params.target_primaries == profile.params.primaries
    assert profile.params.max_cll == 1000.0
    assert profile.description.startswith("Parametric (client): ")

    again = build()
    assert again is profile
    assert profile.ref_count == 2
    again.unref()
    profile.unref()


def test_create_power_profile_with_custom_primaries(param_compositor) -> None:
    builder = ColorProfileParamBuilder(param_compositor)
    assert builder.set_primaries(SRGB_GAMUT)
    assert builder.set_tf_power_exponent(2.4)
    assert builder.set_target_primaries(SRGB_GAMUT)

    with builder.create_color_profile("power") as profile:
        assert profile.params.primaries_info is None
        assert profile.params.tf_params == (2.4,)
        assert profile.params.min_luminance == -1.0
        assert "custom primaries" in profile.description


def test_builder_is_consumed(builder) -> None:
    with pytest.raises(ParamBuilderError):
        builder.create_color_profile("client")
    with pytest.raises(InvariantError):
        builder.set_primaries_named(ColorPrimaries.SRGB)
    with pytest.raises(InvariantError):
        builder.create_color_profile("client")


def test_noop_rejects_parametric_profiles(noop_compositor) -> None:
    cm = noop_compositor.color_manager
    cm.supported_primaries_named = frozenset({ColorPrimaries.SRGB})
    cm.supported_tf_named = frozenset({TransferFunction.SRGB})
    builder = ColorProfileParamBuilder(noop_compositor)
    builder.set_primaries_named(ColorPrimaries.SRGB)
    builder.set_tf_named(TransferFunction.SRGB)

    with pytest.raises(ParamBuilderError) as excinfo:
        builder.create_color_profile("client")
    assert excinfo.value.code == ParamBuilderErrorCode.UNSUPPORTED
