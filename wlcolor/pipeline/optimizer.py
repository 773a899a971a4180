"""
Stage-list optimizer.

Repeatedly merges adjacent matrices and adjacent curve sets, dropping the
ones that turn into identities, until a full pass changes nothing.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional

import numpy as np

from wlcolor.curves import ParametricCurve, join_curves
from wlcolor.pipeline.stages import CurveSetStage, MatrixStage, Pipeline, Stage

logger = logging.getLogger(__name__)

MATRIX_PRECISION_BITS = 12
NUM_1D_POINTS = 1024


def _is_zero_offset_matrix(stage: Optional[Stage]) -> bool:
    return isinstance(stage, MatrixStage) and stage.has_zero_offset()


def matrix_inf_norm(matrix: np.ndarray) -> float:
    """Maximum absolute row sum."""

    return float(np.max(np.sum(np.abs(matrix), axis=1)))


def matrix_is_identity(matrix: np.ndarray, bits_precision: int = MATRIX_PRECISION_BITS) -> bool:
    if matrix.shape != (3, 3):
        return False

    err = matrix_inf_norm(matrix - np.eye(3))
    if err == 0.0:
        return True
    return -math.log2(err) >= bits_precision


def _is_identity_matrix_stage(stage: Stage, bits_precision: int) -> bool:
    return _is_zero_offset_matrix(stage) and matrix_is_identity(stage.matrix, bits_precision)


def merge_matrices(stages: List[Stage], bits_precision: int = MATRIX_PRECISION_BITS) -> bool:
    """
    Collapse runs of zero-offset matrices into one and drop identities.

    A run ``M1, M2, M3`` becomes ``M3 @ M2 @ M1``. Returns whether
    ``stages`` was modified.
    """

    result: List[Stage] = []
    prev: Optional[Stage] = None
    modified = False

    for elem in stages + [None]:
        if (
            _is_zero_offset_matrix(prev)
            and _is_zero_offset_matrix(elem)
            and prev.cols == elem.rows
        ):
            prev = MatrixStage(elem.matrix @ prev.matrix)
            modified = True
            continue

        if prev is not None:
            if _is_identity_matrix_stage(prev, bits_precision):
                modified = True
            else:
                result.append(prev)
        prev = elem

    stages[:] = result
    return modified


def are_curvesets_inverse(prev: CurveSetStage, elem: CurveSetStage) -> bool:
    """True when every channel of ``elem`` is the analytic inverse of ``prev``."""

    if len(prev.curves) != len(elem.curves):
        return False

    for a, b in zip(prev.curves, elem.curves):
        if not (isinstance(a, ParametricCurve) and isinstance(b, ParametricCurve)):
            return False
        if a.type != -b.type or a.params != b.params:
            return False
    return True


def join_powerlaw_curvesets(prev: CurveSetStage, elem: CurveSetStage) -> Optional[CurveSetStage]:
    """
    Join two pure power-law curve sets into one, keeping them parametric.

    Every curve must be of type 1 or -1. Returns ``None`` otherwise.
    """

    if len(prev.curves) != len(elem.curves):
        return None

    joined = []
    for a, b in zip(prev.curves, elem.curves):
        exponents = []
        for curve in (a, b):
            if not isinstance(curve, ParametricCurve) or curve.type not in (1, -1):
                return None
            g = curve.params[0]
            if curve.type == -1:
                if g == 0.0:
                    return None
                g = 1.0 / g
            exponents.append(g)
        joined.append(ParametricCurve(1, [exponents[0] * exponents[1]]))

    return CurveSetStage(joined)


def join_curvesets(
    prev: CurveSetStage, elem: CurveSetStage, num_points: int = NUM_1D_POINTS
) -> CurveSetStage:
    """Compose ``elem`` after ``prev``, tabulating when no closed form exists."""

    joined = join_powerlaw_curvesets(prev, elem)
    if joined is not None:
        return joined

    return CurveSetStage(
        join_curves(a, b, num_points) for a, b in zip(prev.curves, elem.curves)
    )


def _is_identity_curve_stage(stage: Stage) -> bool:
    return isinstance(stage, CurveSetStage) and stage.is_identity()


def merge_curvesets(stages: List[Stage], num_points: int = NUM_1D_POINTS) -> bool:
    """
    Collapse runs of curve sets and drop identities.

    Adjacent inverse curve sets cancel out entirely. Returns whether
    ``stages`` was modified.
    """

    result: List[Stage] = []
    modified = False
    prev: Optional[Stage] = stages[0] if stages else None
    elem: Optional[Stage] = stages[1] if len(stages) > 1 else None
    i = 2

    while prev is not None:
        if isinstance(prev, CurveSetStage) and isinstance(elem, CurveSetStage):
            if are_curvesets_inverse(prev, elem):
                prev = stages[i] if i < len(stages) else None
                elem = stages[i + 1] if i + 1 < len(stages) else None
                i += 2
                modified = True
                continue

            prev = join_curvesets(prev, elem, num_points)
            modified = True
        else:
            if _is_identity_curve_stage(prev):
                modified = True
            else:
                result.append(prev)
            prev = elem

        elem = stages[i] if i < len(stages) else None
        i += 1

    stages[:] = result
    return modified


def optimize_pipeline(
    pipeline: Pipeline,
    num_points: int = NUM_1D_POINTS,
    bits_precision: int = MATRIX_PRECISION_BITS,
) -> Pipeline:
    """
    Return an optimized copy of ``pipeline``.

    Dropping identity curve sets also drops the clamping they would apply
    to their input.
    """

    stages = list(pipeline.stages)
    while True:
        modified = merge_matrices(stages, bits_precision)
        modified |= merge_curvesets(stages, num_points)
        if not modified:
            break

    return Pipeline(stages)
