"""
CIE colorimetry helpers: chromaticity conversions, RGB primaries matrices
and Bradford chromatic adaptation.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from wlcolor.properties import ColorGamut

# ICC profile connection space illuminant, as stored in ICC headers
D50_XYZ = np.array([0.9642, 1.0, 0.8249])

# Bradford cone response
BRADFORD = np.array(
    [
        [0.8951, 0.2664, -0.1614],
        [-0.7502, 1.7135, 0.0367],
        [0.0389, -0.0685, 1.0296],
    ]
)
BRADFORD_INV = np.linalg.inv(BRADFORD)


def xy_to_xyz(xy: Tuple[float, float], Y: float = 1.0) -> np.ndarray:
    """Convert a chromaticity to XYZ with the given luminance."""

    x, y = xy
    if y == 0.0:
        return np.zeros(3)
    return np.array([x * Y / y, Y, (1.0 - x - y) * Y / y])


def xyz_to_xy(xyz: np.ndarray) -> Tuple[float, float]:
    total = float(np.sum(xyz))
    if total == 0.0:
        return (0.0, 0.0)
    return (float(xyz[0]) / total, float(xyz[1]) / total)


def bradford_adaptation(src_white: np.ndarray, dst_white: np.ndarray) -> np.ndarray:
    """
    Chromatic adaptation matrix mapping XYZ under ``src_white`` to XYZ
    under ``dst_white``.

    Parameters
    ----------
    src_white, dst_white : np.ndarray
        White points in XYZ, shape (3,)
    """

    src_lms = BRADFORD @ np.asarray(src_white, dtype=float)
    dst_lms = BRADFORD @ np.asarray(dst_white, dtype=float)
    scale = np.diag(dst_lms / src_lms)
    return BRADFORD_INV @ scale @ BRADFORD


def rgb_to_xyz_matrix(gamut: ColorGamut) -> np.ndarray:
    """
    RGB to XYZ matrix of ``gamut``, normalized so that RGB (1, 1, 1) maps to
    the white point with Y = 1.
    """

    primaries = np.column_stack([xy_to_xyz(xy) for xy in gamut.primary])
    white = xy_to_xyz(gamut.white_point)
    scale = np.linalg.solve(primaries, white)
    return primaries * scale[np.newaxis, :]


def rgb_to_pcs_matrix(gamut: ColorGamut) -> np.ndarray:
    """RGB to D50-adapted XYZ, i.e. the colorant matrix of an ICC profile."""

    adapt = bradford_adaptation(xy_to_xyz(gamut.white_point), D50_XYZ)
    return adapt @ rgb_to_xyz_matrix(gamut)


def _lab_f(t: np.ndarray) -> np.ndarray:
    delta = 6.0 / 29.0
    return np.where(t > delta ** 3, np.cbrt(t), t / (3.0 * delta ** 2) + 4.0 / 29.0)


def _lab_f_inv(t: np.ndarray) -> np.ndarray:
    delta = 6.0 / 29.0
    return np.where(t > delta, t ** 3, 3.0 * delta ** 2 * (t - 4.0 / 29.0))


def xyz_to_lab(xyz: np.ndarray, white: np.ndarray = D50_XYZ) -> np.ndarray:
    """Convert XYZ, shape (..., 3), to CIE L*a*b*."""

    f = _lab_f(np.asarray(xyz, dtype=float) / white)
    L = 116.0 * f[..., 1] - 16.0
    a = 500.0 * (f[..., 0] - f[..., 1])
    b = 200.0 * (f[..., 1] - f[..., 2])
    return np.stack([L, a, b], axis=-1)


def lab_to_xyz(lab: np.ndarray, white: np.ndarray = D50_XYZ) -> np.ndarray:
    """Convert CIE L*a*b*, shape (..., 3), to XYZ."""

    lab = np.asarray(lab, dtype=float)
    fy = (lab[..., 0] + 16.0) / 116.0
    fx = fy + lab[..., 1] / 500.0
    fz = fy - lab[..., 2] / 200.0
    return np.stack([_lab_f_inv(fx), _lab_f_inv(fy), _lab_f_inv(fz)], axis=-1) * white
