"""
Tests for pipeline optimization and translation.
"""

from __future__ import annotations

import numpy as np
import pytest

from wlcolor.curves import ParametricCurve, TabulatedCurve
from wlcolor.icc.writer import SRGB_TRC_PARAMS
from wlcolor.pipeline import (
    CLutStage,
    CurveIdentity,
    CurveLut3x1D,
    CurveParametric,
    CurveSetStage,
    MappingIdentity,
    MappingMatrix,
    MatrixStage,
    ParametricKind,
    Pipeline,
    lut3d_fill_in,
    matrix_is_identity,
    merge_curvesets,
    merge_matrices,
    optimize_pipeline,
    translate_pipeline,
)

RNG = np.random.default_rng(1234)


def _curveset(curve_type: int, params) -> CurveSetStage:
    return CurveSetStage([ParametricCurve(curve_type, params)] * 3)


def _count_curvesets(stages) -> int:
    return sum(isinstance(s, CurveSetStage) for s in stages)


@pytest.mark.parametrize(
    "forward",
    [
        _curveset(1, [2.2]),
        _curveset(4, SRGB_TRC_PARAMS),
        _curveset(3, [2.4, 0.95, 0.05, 0.1]),
    ],
)
def test_curveset_and_inverse_cancel(forward: CurveSetStage) -> None:
    inverse = CurveSetStage(curve.reverse() for curve in forward.curves)

    stages = [forward, inverse]
    assert merge_curvesets(stages)
    assert _count_curvesets(stages) == 0

    stages = [inverse, forward]
    assert merge_curvesets(stages)
    assert _count_curvesets(stages) == 0


def test_inverse_pair_cancels_inside_pipeline() -> None:
    forward = _curveset(4, SRGB_TRC_PARAMS)
    inverse = CurveSetStage(curve.reverse() for curve in forward.curves)
    matrix = MatrixStage(RNG.uniform(0.1, 1.0, (3, 3)))

    optimized = optimize_pipeline(Pipeline([matrix, forward, inverse]))
    assert len(optimized) == 1
    assert optimized.stages[0] is matrix


def test_matrix_merge_associativity() -> None:
    m1, m2, m3 = (RNG.uniform(-1.0, 1.0, (3, 3)) + 2.0 * np.eye(3) for _ in range(3))

    left = [MatrixStage(m1), MatrixStage(m2), MatrixStage(m3)]
    merge_matrices(left)

    tail = [MatrixStage(m2), MatrixStage(m3)]
    merge_matrices(tail)
    right = [MatrixStage(m1)] + tail
    merge_matrices(right)

    assert len(left) == 1 and len(right) == 1
    np.testing.assert_allclose(left[0].matrix, right[0].matrix, atol=1e-5)
    np.testing.assert_allclose(left[0].matrix, m3 @ m2 @ m1, atol=1e-12)


def test_matrix_and_inverse_vanish() -> None:
    m = RNG.uniform(0.1, 1.0, (3, 3)) + np.eye(3)
    stages = [MatrixStage(m), MatrixStage(np.linalg.inv(m))]
    assert merge_matrices(stages)
    assert stages == []


def test_matrices_with_offset_are_kept_apart() -> None:
    stages = [MatrixStage(np.eye(3) * 2.0, [0.1, 0.0, 0.0]), MatrixStage(np.eye(3) * 0.5)]
    merge_matrices(stages)
    assert len(stages) == 2


def test_matrix_is_identity_threshold() -> None:
    assert matrix_is_identity(np.eye(3))
    assert matrix_is_identity(np.eye(3) + 1e-5)
    assert not matrix_is_identity(np.eye(3) + 1e-3)
    assert not matrix_is_identity(np.eye(4))


def test_power_laws_join_parametrically() -> None:
    stages = [_curveset(1, [2.0]), _curveset(1, [1.5])]
    merge_curvesets(stages)
    assert len(stages) == 1
    curve = stages[0].curves[0]
    assert isinstance(curve, ParametricCurve)
    assert curve.type == 1
    assert curve.params[0] == pytest.approx(3.0)


def test_mixed_curvesets_join_numerically() -> None:
    stages = [_curveset(4, SRGB_TRC_PARAMS), _curveset(1, [0.8])]
    merge_curvesets(stages, num_points=512)
    assert len(stages) == 1
    assert isinstance(stages[0].curves[0], TabulatedCurve)
    assert stages[0].curves[0].table.size == 512


def test_optimization_preserves_result() -> None:
    pipeline = Pipeline(
        [
            _curveset(4, SRGB_TRC_PARAMS),
            MatrixStage(RNG.uniform(0.0, 0.3, (3, 3))),
            MatrixStage(RNG.uniform(0.0, 0.3, (3, 3))),
            _curveset(1, [2.0]),
            _curveset(-1, [2.0]),
            _curveset(-1, [2.2]),
        ]
    )
    optimized = optimize_pipeline(pipeline)
    assert len(optimized) == 3

    rgb = RNG.uniform(0.0, 1.0, (64, 3))
    np.testing.assert_allclose(optimized.evaluate(rgb), pipeline.evaluate(rgb), atol=1e-9)


@pytest.mark.parametrize("g", np.linspace(1.0, 10.0, 10))
def test_type_1_translates_to_linpow(g: float) -> None:
    result = translate_pipeline(Pipeline([_curveset(1, [g])]))
    assert result is not None

    pre, mapping, post = result
    assert isinstance(pre, CurveParametric)
    assert pre.kind is ParametricKind.LINPOW
    assert isinstance(mapping, MappingIdentity)
    assert isinstance(post, CurveIdentity)

    x = np.linspace(0.0, 1.0, 100)
    rgb = np.stack([x, x, x], axis=-1)
    np.testing.assert_allclose(pre.evaluate(rgb), rgb ** g, atol=1e-4)


def test_type_4_inverse_translates_to_powlin() -> None:
    forward = _curveset(4, SRGB_TRC_PARAMS)
    inverse = CurveSetStage(curve.reverse() for curve in forward.curves)
    pre, _, _ = translate_pipeline(Pipeline([inverse]))

    assert pre.kind is ParametricKind.POWLIN
    x = np.linspace(0.0, 1.0, 100)
    rgb = np.stack([x, x, x], axis=-1)
    np.testing.assert_allclose(pre.evaluate(rgb), inverse.evaluate(rgb), atol=1e-4)


@pytest.mark.parametrize(
    "curve_type, params, lowest, clamped",
    [
        (1, [2.2], -0.5, True),
        (-1, [2.2], -0.5, True),
        (1, [1.0], -0.5, False),
        (4, SRGB_TRC_PARAMS, -0.04, False),
        (-4, SRGB_TRC_PARAMS, -0.003, False),
    ],
)
def test_translated_curve_agrees_below_zero(curve_type, params, lowest, clamped) -> None:
    source = _curveset(curve_type, params)
    pre, _, _ = translate_pipeline(Pipeline([source]))
    assert pre.clamped_input is clamped

    x = np.linspace(lowest, 0.0, 20)
    rgb = np.stack([x, x, x], axis=-1)
    np.testing.assert_allclose(pre.evaluate(rgb), source.evaluate(rgb), atol=1e-6)


def test_curve_matrix_curve_translation() -> None:
    matrix = RNG.uniform(0.0, 0.5, (3, 3))
    pipeline = Pipeline(
        [
            _curveset(4, SRGB_TRC_PARAMS),
            MatrixStage(matrix),
            CurveSetStage([TabulatedCurve(np.linspace(0.0, 1.0, 16) ** 0.5)] * 3),
        ]
    )
    pre, mapping, post = translate_pipeline(pipeline, num_points=256)
    assert isinstance(pre, CurveParametric)
    assert isinstance(mapping, MappingMatrix)
    np.testing.assert_allclose(mapping.as_array(), matrix)
    assert isinstance(post, CurveLut3x1D)
    assert post.fill_in(256).shape == (3, 256)


def test_clut_does_not_translate() -> None:
    table = np.zeros((2, 2, 2, 3))
    assert translate_pipeline(Pipeline([CLutStage(table)])) is None


def test_matrix_with_offset_does_not_translate() -> None:
    assert translate_pipeline(Pipeline([MatrixStage(np.eye(3), [0.1, 0.1, 0.1])])) is None


def test_lut3d_fill_in_order() -> None:
    swap = MatrixStage(np.array([[0.0, 0.0, 1.0], [0.0, 1.0, 0.0], [1.0, 0.0, 0.0]]))
    values = lut3d_fill_in(Pipeline([swap]))(3)
    assert values.shape == (3 * 27,)

    # red varies fastest; entry (r=1, g=0, b=0) maps to (0, 0, 0.5)
    np.testing.assert_allclose(values[3:6], [0.0, 0.0, 0.5])
    # entry (r=0, g=0, b=2) maps to (1, 0, 0)
    index = 3 * (0 + 3 * (0 + 3 * 2))
    np.testing.assert_allclose(values[index:index + 3], [1.0, 0.0, 0.0])
