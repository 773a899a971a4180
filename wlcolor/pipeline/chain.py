"""
Stage lists realizing ICC profiles.

A profile contributes device-to-PCS stages when it is the source of a
link and PCS-to-device stages when it is the destination. The profile
connection space is XYZ relative to D50; Lab profiles get explicit
conversion stages. Rendering intents other than ICC-absolute share the
media-relative path.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from wlcolor.core.errors import ColorTransformError
from wlcolor.icc.profile import IccProfile, LutTag
from wlcolor.pipeline.stages import (
    CLutStage,
    CurveSetStage,
    Lab2XYZStage,
    MatrixStage,
    Pipeline,
    Stage,
    XYZ2LabStage,
)
from wlcolor.properties import RenderIntentInfo
from wlcolor.utils.colorimetry import D50_XYZ

logger = logging.getLogger(__name__)

ICC_ABSOLUTE = 3

# u1Fixed15 XYZ encoding of a normalized 16-bit value
_XYZ_SCALE = np.full(3, 65535.0 / 32768.0)
_XYZ_OFFSET = np.zeros(3)

# Lab encodings: v2 16-bit legacy and the v4 / 8-bit form
_LAB_LEGACY_SCALE = np.array([100.0 * 65535.0 / 65280.0, 65535.0 / 256.0, 65535.0 / 256.0])
_LAB_V4_SCALE = np.array([100.0, 255.0, 255.0])
_LAB_OFFSET = np.array([0.0, -128.0, -128.0])


def _pcs_encoding(icc: IccProfile, lut: LutTag):
    if icc.pcs == "Lab ":
        scale = _LAB_LEGACY_SCALE if lut.kind == "mft2" else _LAB_V4_SCALE
        return scale, _LAB_OFFSET
    return _XYZ_SCALE, _XYZ_OFFSET


def _pcs_decode_stages(icc: IccProfile, lut: LutTag) -> List[Stage]:
    scale, offset = _pcs_encoding(icc, lut)
    stages: List[Stage] = [MatrixStage(np.diag(scale), offset)]
    if icc.pcs == "Lab ":
        stages.append(Lab2XYZStage())
    return stages


def _pcs_encode_stages(icc: IccProfile, lut: LutTag) -> List[Stage]:
    scale, offset = _pcs_encoding(icc, lut)
    stages: List[Stage] = []
    if icc.pcs == "Lab ":
        stages.append(XYZ2LabStage())
    stages.append(MatrixStage(np.diag(1.0 / scale), -offset / scale))
    return stages


def _lut_forward_stages(icc: IccProfile, lut: LutTag) -> List[Stage]:
    """Device to PCS through an A-to-B style tag."""

    stages: List[Stage] = []
    if lut.kind in ("mft1", "mft2"):
        stages.append(CurveSetStage(lut.a_curves))
        stages.append(CLutStage(lut.clut))
        stages.append(CurveSetStage(lut.b_curves))
    else:
        if lut.a_curves is not None:
            stages.append(CurveSetStage(lut.a_curves))
        if lut.clut is not None:
            stages.append(CLutStage(lut.clut))
        if lut.m_curves is not None:
            stages.append(CurveSetStage(lut.m_curves))
        if lut.matrix is not None:
            stages.append(MatrixStage(lut.matrix, lut.offset))
        if lut.b_curves is not None:
            stages.append(CurveSetStage(lut.b_curves))
    return stages + _pcs_decode_stages(icc, lut)


def _lut_reverse_stages(icc: IccProfile, lut: LutTag) -> List[Stage]:
    """PCS to device through a B-to-A style tag."""

    stages = _pcs_encode_stages(icc, lut)
    if lut.kind in ("mft1", "mft2"):
        if icc.pcs == "XYZ " and not np.allclose(lut.matrix, np.eye(3)):
            stages.append(MatrixStage(lut.matrix))
        stages.append(CurveSetStage(lut.a_curves))
        stages.append(CLutStage(lut.clut))
        stages.append(CurveSetStage(lut.b_curves))
    else:
        if lut.b_curves is not None:
            stages.append(CurveSetStage(lut.b_curves))
        if lut.matrix is not None:
            stages.append(MatrixStage(lut.matrix, lut.offset))
        if lut.m_curves is not None:
            stages.append(CurveSetStage(lut.m_curves))
        if lut.clut is not None:
            stages.append(CLutStage(lut.clut))
        if lut.a_curves is not None:
            stages.append(CurveSetStage(lut.a_curves))
    return stages


def _find_lut(icc: IccProfile, prefix: str, icc_intent: int) -> Optional[LutTag]:
    # ICC-absolute shares the colorimetric tables
    index = 1 if icc_intent == ICC_ABSOLUTE else icc_intent
    lut = icc.read_lut(f"{prefix}{index}")
    if lut is None and index != 0:
        lut = icc.read_lut(f"{prefix}0")
    return lut


def device_to_pcs_stages(icc: IccProfile, icc_intent: int) -> List[Stage]:
    """
    Stages taking device RGB to media-relative PCS XYZ.

    LUT-based tags take precedence over the matrix-shaper tags.
    """

    lut = _find_lut(icc, "A2B", icc_intent)
    if lut is not None:
        return _lut_forward_stages(icc, lut)

    if icc.is_matrix_shaper():
        return [CurveSetStage(icc.trc_curves()), MatrixStage(icc.colorant_matrix())]

    raise ColorTransformError("ICC profile has no device to PCS transform")


def pcs_to_device_stages(icc: IccProfile, icc_intent: int) -> List[Stage]:
    """Stages taking media-relative PCS XYZ to device RGB."""

    lut = _find_lut(icc, "B2A", icc_intent)
    if lut is not None:
        return _lut_reverse_stages(icc, lut)

    if icc.is_matrix_shaper():
        colorants = icc.colorant_matrix()
        if abs(np.linalg.det(colorants)) < 1e-12:
            raise ColorTransformError("ICC profile colorant matrix is not invertible")
        reversed_trc = [curve.reverse() for curve in icc.trc_curves()]
        return [MatrixStage(np.linalg.inv(colorants)), CurveSetStage(reversed_trc)]

    raise ColorTransformError("ICC profile has no PCS to device transform")


def media_white_point(icc: IccProfile) -> np.ndarray:
    """Media white; v2 display profiles are taken as D50."""

    if icc.major_version < 4 and icc.device_class == "mntr":
        return D50_XYZ.copy()
    return icc.media_white_point()


def absolute_intent_stage(src: IccProfile, dst: Optional[IccProfile]) -> Optional[MatrixStage]:
    """Scale by the ratio of media white points; ``dst=None`` means D50."""

    wp_in = media_white_point(src)
    wp_out = D50_XYZ if dst is None else media_white_point(dst)
    scale = wp_in / wp_out
    if np.allclose(scale, 1.0):
        return None
    return MatrixStage(np.diag(scale))


def black_point(icc: IccProfile) -> np.ndarray:
    """Media-relative PCS XYZ of device black."""

    try:
        stages = device_to_pcs_stages(icc, 1)
    except ColorTransformError:
        return np.zeros(3)
    return Pipeline(stages).evaluate(np.zeros(3))


def black_point_compensation_stage(
    bp_in: np.ndarray, bp_out: np.ndarray
) -> Optional[MatrixStage]:
    """Scale and offset mapping ``bp_in`` to ``bp_out`` while keeping D50 fixed."""

    if np.array_equal(bp_in, bp_out):
        return None

    t = bp_in - D50_XYZ
    if np.any(t == 0.0):
        return None

    a = (bp_out - D50_XYZ) / t
    b = -D50_XYZ * (bp_out - bp_in) / t
    return MatrixStage(np.diag(a), b)


def link_stages(src: IccProfile, dst: IccProfile, intent: RenderIntentInfo) -> List[Stage]:
    """Stages converting device RGB of ``src`` to device RGB of ``dst``."""

    stages = device_to_pcs_stages(src, intent.icc_intent)

    if intent.icc_intent == ICC_ABSOLUTE:
        stage = absolute_intent_stage(src, dst)
        if stage is not None:
            stages.append(stage)
    elif intent.bpc:
        stage = black_point_compensation_stage(black_point(src), black_point(dst))
        if stage is not None:
            stages.append(stage)

    stages.extend(pcs_to_device_stages(dst, intent.icc_intent))
    return stages


def device_to_absolute_xyz(icc: IccProfile) -> Pipeline:
    """Device RGB to ICC-absolute XYZ, as used for EOTF estimation."""

    stages = device_to_pcs_stages(icc, ICC_ABSOLUTE)
    stage = absolute_intent_stage(icc, None)
    if stage is not None:
        stages.append(stage)
    return Pipeline(stages)
