"""
Output color outcome.

Everything an output needs from color management: the transforms from
sRGB content to blending space and to the output, from blending space to
the output, and the HDR static metadata sent to the display.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import IntFlag
from typing import List, Optional

from wlcolor.core.config import EotfMode, TransformCategory
from wlcolor.core.errors import ColorError, InvariantError
from wlcolor.properties import XY, RenderIntent, render_intent_info_from
from wlcolor.transform import ColorTransform, TransformSearchParam

logger = logging.getLogger(__name__)


class HdrMetadataGroup(IntFlag):
    PRIMARIES = 0x01
    WHITE = 0x02
    MAXDML = 0x04
    MINDML = 0x08
    MAXCLL = 0x10
    MAXFALL = 0x20
    ALL = 0x3F


class ColorCharacteristicsGroup(IntFlag):
    PRIMARIES = 0x01
    WHITE = 0x02
    MAXL = 0x04
    MINL = 0x08
    MAXFALL = 0x10
    ALL = 0x1F


@dataclass
class HdrMetadataType1:
    """
    SMPTE ST 2086 / CTA-861-G static metadata.

    Only the groups flagged in ``group_mask`` carry meaning.
    """

    group_mask: HdrMetadataGroup = HdrMetadataGroup(0)
    primary: List[XY] = field(default_factory=lambda: [(0.0, 0.0)] * 3)
    white: XY = (0.0, 0.0)
    max_dml: float = 0.0
    min_dml: float = 0.0
    max_cll: float = 0.0
    max_fall: float = 0.0


def _in_range(value: float, vmin: float, vmax: float) -> bool:
    return math.isfinite(value) and vmin <= value <= vmax


def validate_hdr_metadata(meta: HdrMetadataType1) -> bool:
    """Range-check every flagged group; NaN and infinities are invalid."""

    mask = meta.group_mask

    if mask & HdrMetadataGroup.PRIMARIES:
        if not all(_in_range(v, 0.0, 1.0) for xy in meta.primary for v in xy):
            return False

    if mask & HdrMetadataGroup.WHITE:
        if not all(_in_range(v, 0.0, 1.0) for v in meta.white):
            return False

    if mask & HdrMetadataGroup.MAXDML and not _in_range(meta.max_dml, 1.0, 65535.0):
        return False

    if mask & HdrMetadataGroup.MINDML and not _in_range(meta.min_dml, 0.0001, 6.5535):
        return False

    if mask & HdrMetadataGroup.MAXCLL and not _in_range(meta.max_cll, 1.0, 65535.0):
        return False

    if mask & HdrMetadataGroup.MAXFALL and not _in_range(meta.max_fall, 1.0, 65535.0):
        return False

    return True


@dataclass
class OutputColorOutcome:
    """Transforms of one output; ``None`` means identity."""

    from_srgb_to_output: Optional[ColorTransform] = None
    from_srgb_to_blend: Optional[ColorTransform] = None
    from_blend_to_output: Optional[ColorTransform] = None
    hdr_meta: HdrMetadataType1 = field(default_factory=HdrMetadataType1)

    def destroy(self) -> None:
        """Drop the references to all transforms."""

        for name in ("from_srgb_to_output", "from_srgb_to_blend", "from_blend_to_output"):
            xform = getattr(self, name)
            if xform is not None:
                xform.unref()
                setattr(self, name, None)


def meta_clamp(value: float, valname: str, vmin: float, vmax: float, output_name: str) -> float:
    ret = value

    # NaN fails both comparisons
    if not ret >= vmin:
        ret = vmin
    if not ret <= vmax:
        ret = vmax

    if ret != value:
        logger.warning(
            "output '%s' clamping %s value from %f to %f.", output_name, valname, value, ret
        )
    return ret


def get_hdr_meta(output) -> HdrMetadataType1:
    """Static metadata from the configured color characteristics, PQ mode only."""

    meta = HdrMetadataType1()
    if output.eotf_mode != EotfMode.ST2084:
        return meta

    cc = output.color_characteristics
    name = output.name

    if cc.group_mask & ColorCharacteristicsGroup.PRIMARIES:
        meta.primary = [
            (
                meta_clamp(x, "primary", 0.0, 1.0, name),
                meta_clamp(y, "primary", 0.0, 1.0, name),
            )
            for x, y in cc.primary
        ]
        meta.group_mask |= HdrMetadataGroup.PRIMARIES

    if cc.group_mask & ColorCharacteristicsGroup.WHITE:
        meta.white = (
            meta_clamp(cc.white[0], "white", 0.0, 1.0, name),
            meta_clamp(cc.white[1], "white", 0.0, 1.0, name),
        )
        meta.group_mask |= HdrMetadataGroup.WHITE

    if cc.group_mask & ColorCharacteristicsGroup.MAXL:
        meta.max_dml = meta_clamp(cc.max_luminance, "maxDML", 1.0, 65535.0, name)
        meta.max_cll = meta_clamp(cc.max_luminance, "maxCLL", 1.0, 65535.0, name)
        meta.group_mask |= HdrMetadataGroup.MAXDML | HdrMetadataGroup.MAXCLL

    if cc.group_mask & ColorCharacteristicsGroup.MINL:
        meta.min_dml = meta_clamp(cc.min_luminance, "minDML", 0.0001, 6.5535, name)
        meta.group_mask |= HdrMetadataGroup.MINDML

    if cc.group_mask & ColorCharacteristicsGroup.MAXFALL:
        meta.max_fall = meta_clamp(cc.max_fall, "maxFALL", 1.0, 65535.0, name)
        meta.group_mask |= HdrMetadataGroup.MAXFALL

    return meta


def compute(cm, output) -> OutputColorOutcome:
    """
    Build the color outcome of ``output`` with the transforms of ``cm``.

    Nothing is returned partially built: on failure every transform
    acquired so far is released before the error propagates.
    """

    if output.color_profile is None:
        raise InvariantError(f"output '{output.name}' has no color profile")

    stock = cm.stock_profile
    output_profile = output.color_profile
    perceptual = render_intent_info_from(RenderIntent.PERCEPTUAL)

    outcome = OutputColorOutcome(hdr_meta=get_hdr_meta(output))
    try:
        outcome.from_blend_to_output = cm.transforms.get_transform(
            TransformSearchParam(TransformCategory.BLEND_TO_OUTPUT, None, output_profile, None)
        )
        outcome.from_srgb_to_blend = cm.transforms.get_transform(
            TransformSearchParam(TransformCategory.INPUT_TO_BLEND, stock, output_profile, perceptual)
        )
        if output_profile is not stock:
            outcome.from_srgb_to_output = cm.transforms.get_transform(
                TransformSearchParam(
                    TransformCategory.INPUT_TO_OUTPUT, stock, output_profile, perceptual
                )
            )
    except ColorError:
        outcome.destroy()
        raise

    return outcome
