"""
Elementary pipeline stages and the stage list that chains them.

All stages map arrays of shape (N, 3) to arrays of shape (N, 3).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence

import numpy as np
from scipy.interpolate import RegularGridInterpolator

from wlcolor.curves import ParametricCurve, TabulatedCurve, ToneCurve
from wlcolor.utils.colorimetry import lab_to_xyz, xyz_to_lab


class Stage(ABC):
    """One step of a color pipeline."""

    name = "Unknown"

    @abstractmethod
    def evaluate(self, values: np.ndarray) -> np.ndarray:
        """Apply the stage to ``values`` of shape (N, 3)."""

    def describe(self) -> List[str]:
        """Detail lines printed under the stage name."""

        return []


class MatrixStage(Stage):
    """
    Affine stage ``y = M @ x + offset``.

    Parameters
    ----------
    matrix : array-like
        Row-major matrix, shape (rows, cols)
    offset : array-like, optional
        Per output channel offset, shape (rows,)
    """

    name = "Matrix"

    def __init__(self, matrix: np.ndarray, offset: Optional[Sequence[float]] = None) -> None:
        self.matrix = np.array(matrix, dtype=float)
        if self.matrix.ndim != 2:
            raise ValueError(f"Matrix stage needs a 2D matrix, got shape {self.matrix.shape}")
        self.offset = None if offset is None else np.array(offset, dtype=float)

    @property
    def rows(self) -> int:
        return self.matrix.shape[0]

    @property
    def cols(self) -> int:
        return self.matrix.shape[1]

    def has_zero_offset(self) -> bool:
        return self.offset is None or bool(np.all(self.offset == 0.0))

    def evaluate(self, values: np.ndarray) -> np.ndarray:
        out = values @ self.matrix.T
        if self.offset is not None:
            out = out + self.offset
        return out

    def describe(self) -> List[str]:
        lines = []
        for row in range(self.rows):
            text = "      " + " ".join(f"{v: .4f}" for v in self.matrix[row])
            if self.offset is not None:
                text += f"{self.offset[row]: .4f}"
            lines.append(text)
        return lines


class CurveSetStage(Stage):
    """Independent tone curve per channel."""

    name = "CurveSet"

    def __init__(self, curves: Iterable[ToneCurve]) -> None:
        self.curves = tuple(curves)

    def evaluate(self, values: np.ndarray) -> np.ndarray:
        out = np.empty_like(values, dtype=float)
        for ch, curve in enumerate(self.curves):
            out[:, ch] = curve.evaluate(values[:, ch])
        return out

    def is_identity(self) -> bool:
        return all(curve.is_linear() for curve in self.curves)

    def describe(self) -> List[str]:
        lines = []
        for ch, curve in enumerate(self.curves):
            if isinstance(curve, ParametricCurve):
                params = ", ".join(f"{p:.4f}" for p in curve.params)
                lines.append(f"      [{ch}] parametric type {curve.type}: {params}")
            elif isinstance(curve, TabulatedCurve):
                lines.append(f"      [{ch}] sampled, {curve.table.size} points")
            else:
                lines.append(f"      [{ch}] {curve!r}")
        return lines


class CLutStage(Stage):
    """
    Multi-linear color look-up table.

    Parameters
    ----------
    table : np.ndarray
        Grid of output values, shape (g0, g1, g2, out), the first input
        channel varying slowest.
    """

    name = "CLut"

    def __init__(self, table: np.ndarray) -> None:
        self.table = np.asarray(table, dtype=float)
        axes = [np.linspace(0.0, 1.0, n) for n in self.table.shape[:-1]]
        self._interp = RegularGridInterpolator(axes, self.table, method="linear")

    @property
    def out_channels(self) -> int:
        return self.table.shape[-1]

    def evaluate(self, values: np.ndarray) -> np.ndarray:
        return self._interp(np.clip(values, 0.0, 1.0))

    def describe(self) -> List[str]:
        grid = "x".join(str(n) for n in self.table.shape[:-1])
        return [f"      grid {grid} -> {self.out_channels}"]


class Lab2XYZStage(Stage):
    """CIE L*a*b* to XYZ relative to D50."""

    name = "Lab2XYZ"

    def evaluate(self, values: np.ndarray) -> np.ndarray:
        return lab_to_xyz(values)


class XYZ2LabStage(Stage):
    """XYZ relative to D50 to CIE L*a*b*."""

    name = "XYZ2Lab"

    def evaluate(self, values: np.ndarray) -> np.ndarray:
        return xyz_to_lab(values)


class Pipeline:
    """Ordered list of stages, applied first to last."""

    def __init__(self, stages: Optional[Iterable[Stage]] = None) -> None:
        self.stages: List[Stage] = list(stages or [])

    def __len__(self) -> int:
        return len(self.stages)

    def __iter__(self):
        return iter(self.stages)

    def append(self, stage: Stage) -> None:
        self.stages.append(stage)

    def extend(self, stages: Iterable[Stage]) -> None:
        self.stages.extend(stages)

    def copy(self) -> Pipeline:
        return Pipeline(self.stages)

    def evaluate(self, rgb: np.ndarray) -> np.ndarray:
        """Run ``rgb`` (shape (N, 3) or (3,)) through every stage."""

        values = np.asarray(rgb, dtype=float)
        single = values.ndim == 1
        values = np.atleast_2d(values)
        for stage in self.stages:
            values = stage.evaluate(values)
        return values[0] if single else values

    def describe(self) -> str:
        if not self.stages:
            return "    no elements\n"

        lines = []
        for stage in self.stages:
            lines.append(f"    {stage.name}")
            lines.extend(stage.describe())
        return "\n".join(lines) + "\n"
