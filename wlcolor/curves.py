"""
One-dimensional tone curves.

Parametric curves follow the ICC/LittleCMS numbering: type ``n`` in 1..5
is a forward function and ``-n`` its analytic inverse. Tabulated curves
sample the unit interval evenly and interpolate linearly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence, Tuple

import numpy as np

# Below this magnitude a parameter counts as zero.
DETERMINANT_TOLERANCE = 1e-4

# Sample count used by reversal and by the 16-bit shape checks
REVERSE_POINTS = 4096

PARAM_COUNT = {1: 1, 2: 3, 3: 4, 4: 5, 5: 7}


def _quantize16(values: np.ndarray) -> np.ndarray:
    v = np.nan_to_num(np.asarray(values, dtype=float), nan=0.0)
    return np.floor(np.clip(v, 0.0, 1.0) * 65535.0 + 0.5).astype(np.int64)


class ToneCurve(ABC):
    """A function from [0, 1] (and beyond, for parametric forms) to reals."""

    @abstractmethod
    def evaluate(self, x: np.ndarray) -> np.ndarray:
        """Evaluate the curve, vectorized over ``x``."""

    @abstractmethod
    def reverse(self) -> ToneCurve:
        """Return the inverse curve."""

    def table16(self, n: int = REVERSE_POINTS) -> np.ndarray:
        """The curve quantized to 16 bits over ``n`` evenly spaced inputs."""

        return _quantize16(self.evaluate(np.linspace(0.0, 1.0, n)))

    def is_linear(self) -> bool:
        """True when the curve stays within 15/65535 of the identity."""

        table = self.table16()
        ideal = _quantize16(np.linspace(0.0, 1.0, len(table)))
        return bool(np.all(np.abs(table - ideal) <= 0x0F))

    def is_monotonic(self) -> bool:
        """Monotonicity check with a tolerance of two 16-bit steps."""

        table = self.table16()
        if len(table) <= 1:
            return True

        if table[0] > table[-1]:
            steps = np.diff(table)
        else:
            steps = -np.diff(table)
        return bool(np.all(steps <= 2))


class ParametricCurve(ToneCurve):
    """
    Closed-form tone curve.

    Parameters
    ----------
    curve_type : int
        One of ±1..±5.
    params : sequence of float
        ``g, a, b, c, d, e, f`` truncated to the count the type uses.
    """

    def __init__(self, curve_type: int, params: Sequence[float]) -> None:
        if abs(curve_type) not in PARAM_COUNT:
            raise ValueError(f"Unknown parametric curve type: {curve_type}")

        count = PARAM_COUNT[abs(curve_type)]
        if len(params) < count:
            raise ValueError(
                f"Parametric curve type {curve_type} needs {count} parameters, got {len(params)}"
            )

        self.type = curve_type
        self.params: Tuple[float, ...] = tuple(float(p) for p in params[:count])

    def __repr__(self) -> str:
        return f"ParametricCurve({self.type}, {list(self.params)})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParametricCurve):
            return NotImplemented
        return self.type == other.type and self.params == other.params

    def __hash__(self) -> int:
        return hash((self.type, self.params))

    def reverse(self) -> ParametricCurve:
        return ParametricCurve(-self.type, self.params)

    def evaluate(self, x: np.ndarray) -> np.ndarray:
        r = np.asarray(x, dtype=float)
        with np.errstate(all="ignore"):
            return self._evaluate(r)

    def _evaluate(self, r: np.ndarray) -> np.ndarray:
        p = self.params + (0.0,) * (7 - len(self.params))
        g, a, b, c, d, e, f = p
        tol = DETERMINANT_TOLERANCE
        t = self.type

        if t == 1:
            neg = r if abs(g - 1.0) < tol else np.zeros_like(r)
            return np.where(r < 0, neg, np.power(np.maximum(r, 0.0), g))

        if t == -1:
            neg = r if abs(g - 1.0) < tol else np.zeros_like(r)
            if abs(g) < tol:
                pos = np.full_like(r, np.inf)
            else:
                pos = np.power(np.maximum(r, 0.0), 1.0 / g)
            return np.where(r < 0, neg, pos)

        if t == 2:
            if abs(a) < tol:
                return np.zeros_like(r)
            base = a * r + b
            val = np.where(base > 0, np.power(np.maximum(base, 0.0), g), 0.0)
            return np.where(r >= -b / a, val, 0.0)

        if t == -2:
            if abs(g) < tol or abs(a) < tol:
                return np.zeros_like(r)
            val = (np.power(np.maximum(r, 0.0), 1.0 / g) - b) / a
            val = np.where(r < 0, 0.0, val)
            return np.maximum(val, 0.0)

        if t == 3:
            if abs(a) < tol:
                return np.zeros_like(r)
            disc = max(-b / a, 0.0)
            base = a * r + b
            val = np.where(base > 0, np.power(np.maximum(base, 0.0), g) + c, 0.0)
            return np.where(r >= disc, val, c)

        if t == -3:
            if abs(a) < tol:
                return np.zeros_like(r)
            base = r - c
            val = np.where(base > 0, (np.power(np.maximum(base, 0.0), 1.0 / g) - b) / a, 0.0)
            return np.where(r >= c, val, -b / a)

        if t == 4:
            base = a * r + b
            val = np.where(base > 0, np.power(np.maximum(base, 0.0), g), 0.0)
            return np.where(r >= d, val, r * c)

        if t == -4:
            edge = a * d + b
            disc = 0.0 if edge < 0 else edge ** g
            if abs(g) < tol or abs(a) < tol:
                upper = np.zeros_like(r)
            else:
                upper = (np.power(np.maximum(r, 0.0), 1.0 / g) - b) / a
            lower = np.zeros_like(r) if abs(c) < tol else r / c
            return np.where(r >= disc, upper, lower)

        if t == 5:
            base = a * r + b
            val = np.where(base > 0, np.power(np.maximum(base, 0.0), g) + e, e)
            return np.where(r >= d, val, r * c + f)

        # t == -5
        disc = c * d + f
        base = r - e
        if abs(g) < tol or abs(a) < tol:
            upper = np.zeros_like(r)
        else:
            upper = np.where(
                base < 0, 0.0, (np.power(np.maximum(base, 0.0), 1.0 / g) - b) / a
            )
        lower = np.zeros_like(r) if abs(c) < tol else (r - f) / c
        return np.where(r >= disc, upper, lower)


class TabulatedCurve(ToneCurve):
    """Curve sampled at evenly spaced inputs over [0, 1]."""

    def __init__(self, values: Sequence[float]) -> None:
        table = np.asarray(values, dtype=float).ravel()
        if table.size < 2:
            raise ValueError("Tabulated curve needs at least 2 entries")
        self.table = table

    def __repr__(self) -> str:
        return f"TabulatedCurve({self.table.size} entries)"

    def evaluate(self, x: np.ndarray) -> np.ndarray:
        grid = np.linspace(0.0, 1.0, self.table.size)
        return np.interp(np.clip(np.asarray(x, dtype=float), 0.0, 1.0), grid, self.table)

    def table16(self, n: int = REVERSE_POINTS) -> np.ndarray:
        return _quantize16(self.table)

    def reverse(self, n: int = REVERSE_POINTS) -> TabulatedCurve:
        """
        Numerically invert the curve, sampling the result at ``n`` points.

        The table is forced monotonic first; descending curves produce
        descending inverses.
        """

        grid = np.linspace(0.0, 1.0, self.table.size)
        y = np.linspace(0.0, 1.0, n)

        if self.table[0] > self.table[-1]:
            table = np.minimum.accumulate(self.table)
            values = np.interp(y, table[::-1], grid[::-1])
        else:
            table = np.maximum.accumulate(self.table)
            values = np.interp(y, table, grid)
        return TabulatedCurve(values)


def join_curves(first: ToneCurve, second: ToneCurve, points: int) -> TabulatedCurve:
    """Tabulate ``second(first(t))`` at ``points`` evenly spaced inputs."""

    t = np.linspace(0.0, 1.0, points)
    return TabulatedCurve(second.evaluate(first.evaluate(t)))


def identity_curve() -> ParametricCurve:
    return ParametricCurve(1, [1.0])
