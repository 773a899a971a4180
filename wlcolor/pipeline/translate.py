"""
Translation of optimized stage lists into renderer-facing curves and
mappings.

A renderer consumes a color transform as pre-curve, mapping, post-curve.
Curves are identity, three sampled 1D LUTs, or one of the closed forms
LINPOW and POWLIN. Mappings are identity, a 3x3 matrix or a sampled 3D
LUT.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple, Union

import numpy as np

from wlcolor.curves import DETERMINANT_TOLERANCE, ParametricCurve, ToneCurve
from wlcolor.pipeline.stages import CurveSetStage, MatrixStage, Pipeline

logger = logging.getLogger(__name__)

NUM_1D_POINTS = 1024
NUM_3D_POINTS = 33

CurveFillIn = Callable[[int], np.ndarray]
LutFillIn = Callable[[int], np.ndarray]


class ParametricKind(Enum):
    LINPOW = "linpow"  # y = (a*x + b)^g for x >= d, else c*x
    POWLIN = "powlin"  # y = a*x^g + b for x >= d, else c*x


@dataclass(frozen=True)
class CurveIdentity:
    def evaluate(self, x: np.ndarray) -> np.ndarray:
        return np.asarray(x, dtype=float)


@dataclass(frozen=True)
class CurveLut3x1D:
    """
    Three 1D LUTs filled on demand.

    ``fill_in(len)`` returns shape (3, len): the R, G and B tables, each
    sampling inputs 0..1 evenly.
    """

    optimal_len: int
    fill_in: CurveFillIn

    def evaluate(self, x: np.ndarray) -> np.ndarray:
        x = np.atleast_2d(np.asarray(x, dtype=float))
        tables = self.fill_in(self.optimal_len)
        grid = np.linspace(0.0, 1.0, self.optimal_len)
        out = np.empty_like(x)
        for ch in range(3):
            out[:, ch] = np.interp(np.clip(x[:, ch], 0.0, 1.0), grid, tables[ch])
        return out


@dataclass(frozen=True)
class CurveParametric:
    """
    Closed-form curve, one ``(g, a, b, c, d)`` row per channel.

    Negative inputs are mirrored as ``-f(-x)`` unless ``clamped_input``,
    in which case inputs are clamped to [0, 1].
    """

    kind: ParametricKind
    params: Tuple[Tuple[float, float, float, float, float], ...]
    clamped_input: bool = False

    def _eval_channel(self, x: np.ndarray, p: Tuple[float, ...]) -> np.ndarray:
        g, a, b, c, d = p
        if self.clamped_input:
            x = np.clip(x, 0.0, 1.0)
        sign = np.where(x < 0.0, -1.0, 1.0)
        ax = np.abs(x)
        with np.errstate(all="ignore"):
            if self.kind is ParametricKind.LINPOW:
                upper = np.power(np.maximum(a * ax + b, 0.0), g)
            else:
                upper = a * np.power(ax, g) + b
        return sign * np.where(ax >= d, upper, c * ax)

    def evaluate(self, x: np.ndarray) -> np.ndarray:
        x = np.atleast_2d(np.asarray(x, dtype=float))
        out = np.empty_like(x)
        for ch in range(3):
            out[:, ch] = self._eval_channel(x[:, ch], self.params[ch])
        return out


ColorCurve = Union[CurveIdentity, CurveLut3x1D, CurveParametric]


@dataclass(frozen=True)
class MappingIdentity:
    def evaluate(self, rgb: np.ndarray) -> np.ndarray:
        return np.asarray(rgb, dtype=float)


@dataclass(frozen=True)
class MappingMatrix:
    """3x3 matrix stored column-major: ``matrix[c * 3 + r]``."""

    matrix: Tuple[float, ...]

    def as_array(self) -> np.ndarray:
        """Row-major 3x3 array."""

        return np.array(self.matrix, dtype=float).reshape(3, 3).T

    def evaluate(self, rgb: np.ndarray) -> np.ndarray:
        return np.atleast_2d(np.asarray(rgb, dtype=float)) @ self.as_array().T


@dataclass(frozen=True)
class MappingLut3D:
    """
    Sampled RGB to RGB mapping.

    ``fill_in(len)`` returns ``3 * len**3`` floats, the entry for grid point
    (r, g, b) starting at index ``3 * (r + len * (g + len * b))``.
    """

    optimal_len: int
    fill_in: LutFillIn

    def table(self, length: Optional[int] = None) -> np.ndarray:
        """The LUT as an array indexed ``[b, g, r, channel]``."""

        n = length or self.optimal_len
        return self.fill_in(n).reshape(n, n, n, 3)


ColorMapping = Union[MappingIdentity, MappingMatrix, MappingLut3D]


def _clamps_negatives(curves: Tuple[ParametricCurve, ...]) -> bool:
    """Pure power laws send negative input to 0 unless the exponent is 1."""

    return all(abs(c.params[0] - 1.0) >= DETERMINANT_TOLERANCE for c in curves)


def _linpow_from_type_1(curves: Tuple[ParametricCurve, ...]) -> Optional[CurveParametric]:
    return CurveParametric(
        ParametricKind.LINPOW,
        tuple((c.params[0], 1.0, 0.0, 1.0, 0.0) for c in curves),
        clamped_input=_clamps_negatives(curves),
    )


def _linpow_from_type_1_inverse(curves: Tuple[ParametricCurve, ...]) -> Optional[CurveParametric]:
    rows = []
    for curve in curves:
        g = curve.params[0]
        if g == 0.0:
            logger.warning(
                "xform has a LittleCMS type -1 curve (inverse of pure power-law) "
                "with exponent 1 divided by 0, which is invalid"
            )
            return None
        rows.append((1.0 / g, 1.0, 0.0, 1.0, 0.0))
    return CurveParametric(
        ParametricKind.LINPOW, tuple(rows), clamped_input=_clamps_negatives(curves)
    )


def _linpow_from_type_4(curves: Tuple[ParametricCurve, ...]) -> Optional[CurveParametric]:
    rows = []
    for curve in curves:
        g, a, b, c, d = curve.params
        if a < 0.0:
            logger.warning("xform has a LittleCMS type 4 curve with a < 0, which is unexpected")
            return None
        if d < 0.0:
            logger.warning("xform has a LittleCMS type 4 curve with d < 0, which is unexpected")
            return None
        if a * d + b < 0.0:
            logger.warning(
                "xform has a LittleCMS type 4 curve with a * d + b < 0, which is invalid"
            )
            return None
        rows.append((g, a, b, c, d))
    return CurveParametric(ParametricKind.LINPOW, tuple(rows))


def _powlin_from_type_4_inverse(curves: Tuple[ParametricCurve, ...]) -> Optional[CurveParametric]:
    """
    Inverse of ``y = (a*x + b)^g | x >= d; y = c*x`` as POWLIN.

    The segment boundary becomes ``c * d``; inputs at or above it take the
    power segment even where ``(a*d + b)^g`` would disagree.
    """

    rows = []
    for curve in curves:
        g, a, b, c, d = curve.params
        for name, value in (("g", g), ("a", a), ("c", c)):
            if value == 0.0:
                logger.warning(
                    "xform has a LittleCMS type -4 curve but the param %s of the "
                    "original type 4 curve is zero, so the inverse is invalid",
                    name,
                )
                return None
        rows.append((1.0 / g, 1.0 / a, -b / a, 1.0 / c, c * d))
    return CurveParametric(ParametricKind.POWLIN, tuple(rows))


_PARAMETRIC_TRANSLATORS = {
    1: _linpow_from_type_1,
    -1: _linpow_from_type_1_inverse,
    4: _linpow_from_type_4,
    -4: _powlin_from_type_4_inverse,
}


def parametric_curve_from_curveset(stage: CurveSetStage) -> Optional[CurveParametric]:
    """Closed form of a curve set when all channels share a supported type."""

    curves = stage.curves
    if not all(isinstance(c, ParametricCurve) for c in curves):
        return None

    curve_type = curves[0].type
    if any(c.type != curve_type for c in curves):
        return None

    translator = _PARAMETRIC_TRANSLATORS.get(curve_type)
    if translator is None:
        return None
    return translator(curves)


def _curves_fill_in(curves: Tuple[ToneCurve, ...]) -> CurveFillIn:
    def fill_in(length: int) -> np.ndarray:
        x = np.linspace(0.0, 1.0, length)
        return np.stack([curve.evaluate(x) for curve in curves])

    return fill_in


def curve_from_curveset(
    stage: CurveSetStage, num_points: int = NUM_1D_POINTS
) -> Optional[ColorCurve]:
    """Closed form when possible, sampled LUTs otherwise."""

    if len(stage.curves) != 3:
        return None

    parametric = parametric_curve_from_curveset(stage)
    if parametric is not None:
        return parametric

    return CurveLut3x1D(num_points, _curves_fill_in(stage.curves))


def mapping_from_matrix(stage: MatrixStage) -> Optional[MappingMatrix]:
    if not stage.has_zero_offset():
        return None
    if stage.rows != 3 or stage.cols != 3:
        return None

    return MappingMatrix(
        tuple(float(stage.matrix[r, c]) for c in range(3) for r in range(3))
    )


def translate_pipeline(
    pipeline: Pipeline, num_points: int = NUM_1D_POINTS
) -> Optional[Tuple[ColorCurve, ColorMapping, ColorCurve]]:
    """
    Match ``[curve set]? [matrix]? [curve set]?`` and translate it.

    Returns ``None`` when anything else remains.
    """

    pre: ColorCurve = CurveIdentity()
    mapping: ColorMapping = MappingIdentity()
    post: ColorCurve = CurveIdentity()

    stages = list(pipeline.stages)
    pos = 0

    if pos < len(stages) and isinstance(stages[pos], CurveSetStage):
        pre = curve_from_curveset(stages[pos], num_points)
        if pre is None:
            return None
        pos += 1

    if pos < len(stages) and isinstance(stages[pos], MatrixStage):
        mapping = mapping_from_matrix(stages[pos])
        if mapping is None:
            return None
        pos += 1

    if pos < len(stages) and isinstance(stages[pos], CurveSetStage):
        post = curve_from_curveset(stages[pos], num_points)
        if post is None:
            return None
        pos += 1

    if pos != len(stages):
        return None
    return pre, mapping, post


def ensure_unorm(values: np.ndarray) -> np.ndarray:
    """Clamp to [0, 1], letting NaN through."""

    values = np.asarray(values, dtype=float)
    return np.where(values <= 0.0, 0.0, np.where(values > 1.0, 1.0, values))


def lut3d_fill_in(pipeline: Pipeline) -> LutFillIn:
    """Sample ``pipeline`` on an evenly spaced RGB grid, red varying fastest."""

    def fill_in(length: int) -> np.ndarray:
        axis = np.linspace(0.0, 1.0, length)
        b, g, r = np.meshgrid(axis, axis, axis, indexing="ij")
        rgb = np.stack([r.ravel(), g.ravel(), b.ravel()], axis=-1)
        return ensure_unorm(pipeline.evaluate(rgb)).ravel()

    return fill_in
