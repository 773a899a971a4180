"""
Tests for tone curves.
"""

from __future__ import annotations

import numpy as np
import pytest

from wlcolor.curves import ParametricCurve, TabulatedCurve, identity_curve, join_curves
from wlcolor.icc.writer import SRGB_TRC_PARAMS, srgb_trc


def test_power_law_and_inverse() -> None:
    x = np.linspace(0.0, 1.0, 50)
    curve = ParametricCurve(1, [2.2])
    np.testing.assert_allclose(curve.evaluate(x), x ** 2.2)
    np.testing.assert_allclose(curve.reverse().evaluate(curve.evaluate(x)), x, atol=1e-12)


def test_srgb_curve_round_trip() -> None:
    x = np.linspace(0.0, 1.0, 257)
    curve = srgb_trc()
    decoded = curve.evaluate(x)

    linear = x < SRGB_TRC_PARAMS[4]
    np.testing.assert_allclose(decoded[linear], x[linear] / 12.92)
    np.testing.assert_allclose(curve.reverse().evaluate(decoded), x, atol=1e-9)


def test_parametric_curve_needs_enough_parameters() -> None:
    with pytest.raises(ValueError):
        ParametricCurve(4, [2.4, 1.0])
    with pytest.raises(ValueError):
        ParametricCurve(6, [1.0])


def test_parametric_equality_and_reverse() -> None:
    curve = ParametricCurve(4, SRGB_TRC_PARAMS)
    assert curve == ParametricCurve(4, list(SRGB_TRC_PARAMS))
    assert curve.reverse().type == -4
    assert curve.reverse().reverse() == curve


def test_tabulated_curve_interpolates_and_clamps() -> None:
    curve = TabulatedCurve([0.0, 0.5, 1.0])
    np.testing.assert_allclose(curve.evaluate(np.array([0.25, -1.0, 2.0])), [0.25, 0.0, 1.0])


def test_tabulated_reverse() -> None:
    x = np.linspace(0.0, 1.0, 1024)
    curve = TabulatedCurve(x ** 2.0)
    inverse = curve.reverse()

    y = np.linspace(0.05, 1.0, 20)
    np.testing.assert_allclose(inverse.evaluate(y), np.sqrt(y), atol=2e-3)


def test_tabulated_curve_needs_two_entries() -> None:
    with pytest.raises(ValueError):
        TabulatedCurve([0.5])


def test_is_linear() -> None:
    assert identity_curve().is_linear()
    assert TabulatedCurve([0.0, 1.0]).is_linear()
    assert not ParametricCurve(1, [2.2]).is_linear()
    # 1.0001 stays within 15/65535 of the identity
    assert ParametricCurve(1, [1.0001]).is_linear()


def test_is_monotonic() -> None:
    assert srgb_trc().is_monotonic()
    assert TabulatedCurve([1.0, 0.5, 0.0]).is_monotonic()
    assert not TabulatedCurve([0.0, 0.8, 0.2, 1.0]).is_monotonic()


def test_join_curves() -> None:
    first = ParametricCurve(1, [2.0])
    second = ParametricCurve(1, [0.5])
    joined = join_curves(first, second, 256)
    assert isinstance(joined, TabulatedCurve)
    assert joined.is_linear()
