"""
Tests for color transform realization and caching.
"""

from __future__ import annotations

import numpy as np
import pytest

from wlcolor import ColorProfileParamBuilder, TransformSearchParam
from wlcolor.core.config import TransformCategory, TransformStatus
from wlcolor.core.errors import ColorTransformError
from wlcolor.pipeline import (
    CurveIdentity,
    CurveParametric,
    MappingLut3D,
    MappingMatrix,
    ParametricKind,
)
from wlcolor.properties import (
    ColorPrimaries,
    RenderIntent,
    TransferFunction,
    render_intent_info_from,
)

PERCEPTUAL = render_intent_info_from(RenderIntent.PERCEPTUAL)
RELATIVE = render_intent_info_from(RenderIntent.RELATIVE)


def _input_to_blend(cm, profile, intent=PERCEPTUAL) -> TransformSearchParam:
    return TransformSearchParam(
        TransformCategory.INPUT_TO_BLEND, profile, cm.stock_profile, intent
    )


def test_same_key_shares_transform(compositor, bt2020_icc) -> None:
    cm = compositor.color_manager
    with cm.get_color_profile_from_icc(bt2020_icc, "in") as profile:
        first = cm.transforms.get_transform(_input_to_blend(cm, profile))
        second = cm.transforms.get_transform(_input_to_blend(cm, profile))
        assert second is first
        assert first.ref_count == 2
        assert len(cm.transforms) == 1

        other = cm.transforms.get_transform(_input_to_blend(cm, profile, RELATIVE))
        assert other is not first
        assert other.id != first.id

        for xform in (first, second, other):
            xform.unref()
    assert len(cm.transforms) == 0


def test_each_profile_is_part_of_the_key(compositor, bt2020_icc, adobe_icc) -> None:
    cm = compositor.color_manager
    a = cm.get_color_profile_from_icc(bt2020_icc, "a")
    b = cm.get_color_profile_from_icc(adobe_icc, "b")
    with a, b:
        category = TransformCategory.INPUT_TO_OUTPUT
        base = cm.transforms.get_transform(TransformSearchParam(category, a, b, PERCEPTUAL))
        other_input = cm.transforms.get_transform(
            TransformSearchParam(category, cm.stock_profile, b, PERCEPTUAL)
        )
        other_output = cm.transforms.get_transform(
            TransformSearchParam(category, a, cm.stock_profile, PERCEPTUAL)
        )

        assert len({base.id, other_input.id, other_output.id}) == 3
        assert len(cm.transforms) == 3
        for xform in (base, other_input, other_output):
            xform.unref()
    assert len(cm.transforms) == 0


def test_search_param_compares_by_identity(compositor, bt2020_icc) -> None:
    cm = compositor.color_manager
    with cm.get_color_profile_from_icc(bt2020_icc, "in") as profile:
        a = _input_to_blend(cm, profile)
        b = _input_to_blend(cm, profile)
        assert a == b
        assert hash(a) == hash(b)
        assert a != TransformSearchParam(
            TransformCategory.INPUT_TO_OUTPUT, profile, cm.stock_profile, PERCEPTUAL
        )


def test_matrix_shaper_pair_is_optimized(compositor, bt2020_icc) -> None:
    cm = compositor.color_manager
    with cm.get_color_profile_from_icc(bt2020_icc, "in") as profile:
        with cm.transforms.get_transform(_input_to_blend(cm, profile)) as xform:
            assert xform.status is TransformStatus.OPTIMIZED
            assert isinstance(xform.pre_curve, CurveParametric)
            assert xform.pre_curve.kind is ParametricKind.LINPOW
            assert isinstance(xform.mapping, MappingMatrix)
            assert isinstance(xform.post_curve, CurveIdentity)

            # white stays white between D50-adapted profiles
            white = xform.mapping.evaluate(xform.pre_curve.evaluate(np.ones(3)))
            np.testing.assert_allclose(white[0], [1.0, 1.0, 1.0], atol=2e-3)


def test_transform_holds_profile_references(compositor, bt2020_icc) -> None:
    cm = compositor.color_manager
    profile = cm.get_color_profile_from_icc(bt2020_icc, "in")
    stock_refs = cm.stock_profile.ref_count

    xform = cm.transforms.get_transform(_input_to_blend(cm, profile))
    assert profile.ref_count == 2
    assert cm.stock_profile.ref_count == stock_refs + 1

    xform.unref()
    assert profile.ref_count == 1
    assert cm.stock_profile.ref_count == stock_refs
    assert xform not in list(cm.transforms)
    profile.unref()


def test_lut_profile_falls_back_to_3d_lut(compositor, lut_icc) -> None:
    cm = compositor.color_manager
    with cm.get_color_profile_from_icc(lut_icc, "lut") as profile:
        with cm.transforms.get_transform(_input_to_blend(cm, profile)) as xform:
            assert xform.status is TransformStatus.LUT_3D
            assert isinstance(xform.pre_curve, CurveIdentity)
            assert isinstance(xform.post_curve, CurveIdentity)
            assert isinstance(xform.mapping, MappingLut3D)
            assert xform.mapping.optimal_len == 33

            table = xform.mapping.table(5)
            assert table.shape == (5, 5, 5, 3)
            assert np.all((table >= 0.0) & (table <= 1.0))
            np.testing.assert_allclose(table[0, 0, 0], [0.0, 0.0, 0.0], atol=1e-3)


def test_blend_to_output_is_inverse_eotf(compositor) -> None:
    cm = compositor.color_manager
    param = TransformSearchParam(TransformCategory.BLEND_TO_OUTPUT, None, cm.stock_profile)
    with cm.transforms.get_transform(param) as xform:
        assert xform.status is TransformStatus.OPTIMIZED
        assert xform.pre_curve.kind is ParametricKind.POWLIN


def test_parametric_profile_cannot_be_transformed(compositor) -> None:
    cm = compositor.color_manager
    cm.supported_tf_named = frozenset({TransferFunction.GAMMA22})
    builder = ColorProfileParamBuilder(compositor)
    assert builder.set_primaries_named(ColorPrimaries.SRGB)
    assert builder.set_tf_named(TransferFunction.GAMMA22)

    with builder.create_color_profile("params") as profile:
        with pytest.raises(ColorTransformError, match="not supported in color transformations"):
            cm.transforms.get_transform(_input_to_blend(cm, profile))
        assert len(cm.transforms) == 0


def test_surface_transform(compositor, bt2020_icc) -> None:
    cm = compositor.color_manager
    output = compositor.create_output("out")
    assert output.enable()
    surface = compositor.create_surface()

    identity = surface.get_color_transform(output)
    assert identity.identity_pipeline
    assert identity.transform is not None
    identity.release()

    with cm.get_color_profile_from_icc(bt2020_icc, "surface") as profile:
        surface.pending.color_profile = profile.ref()
        surface.commit()
        surface.pending.clear()

        xform = surface.get_color_transform(output)
        assert not xform.identity_pipeline
        assert xform.transform.search_key.input_profile is profile
        xform.release()
        assert xform.transform is None
