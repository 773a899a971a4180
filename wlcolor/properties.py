"""
Static color property tables.

Named primaries, named transfer functions, rendering intents and the
color features a color manager may advertise. Every lookup returns the
same interned info object, so callers may compare them by identity.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from wlcolor.core.codes import (
    ProtocolFeature,
    ProtocolPrimaries,
    ProtocolRenderIntent,
    ProtocolTransferFunction,
)

XY = Tuple[float, float]


@dataclass(frozen=True)
class ColorGamut:
    """Three primaries (RGB order) and a white point in CIE 1931 xy."""

    primary: Tuple[XY, XY, XY]
    white_point: XY

    def coordinates(self) -> Tuple[float, ...]:
        """All eight coordinates, primaries first."""

        return tuple(v for xy in (*self.primary, self.white_point) for v in xy)


class ColorFeature(Enum):
    ICC = 0
    PARAMETRIC = 1
    SET_PRIMARIES = 2
    SET_TF_POWER = 3
    SET_MASTERING_DISPLAY_PRIMARIES = 4
    EXTENDED_TARGET_VOLUME = 5


class RenderIntent(Enum):
    PERCEPTUAL = 0
    RELATIVE = 1
    SATURATION = 2
    ABSOLUTE = 3
    RELATIVE_BPC = 4


class ColorPrimaries(Enum):
    SRGB = 0
    PAL_M = 1
    PAL = 2
    NTSC = 3
    GENERIC_FILM = 4
    BT2020 = 5
    CIE1931_XYZ = 6
    DCI_P3 = 7
    DISPLAY_P3 = 8
    ADOBE_RGB = 9


class TransferFunction(Enum):
    LINEAR = 0
    GAMMA22 = 1
    GAMMA28 = 2
    SRGB = 3
    EXT_SRGB = 4
    BT709 = 5
    BT1361 = 6
    ST240 = 7
    ST428 = 8
    ST2084_PQ = 9
    LOG_100 = 10
    LOG_316 = 11
    XVYCC = 12
    HLG = 13
    POWER = 14


@dataclass(frozen=True)
class ColorFeatureInfo:
    feature: ColorFeature
    desc: str
    protocol_feature: ProtocolFeature


@dataclass(frozen=True)
class RenderIntentInfo:
    intent: RenderIntent
    desc: str
    protocol_intent: ProtocolRenderIntent
    icc_intent: int  # ICC header rendering intent number
    bpc: bool        # black point compensation


@dataclass(frozen=True)
class ColorPrimariesInfo:
    primaries: ColorPrimaries
    desc: str
    protocol_primaries: ProtocolPrimaries
    color_gamut: ColorGamut


@dataclass(frozen=True)
class TransferFunctionInfo:
    tf: TransferFunction
    desc: str
    protocol_tf: Optional[ProtocolTransferFunction]
    has_parameters: bool


_D65: XY = (0.3127, 0.3290)
_ILLUMINANT_C: XY = (0.3101, 0.3162)

COLOR_FEATURE_INFO: Dict[ColorFeature, ColorFeatureInfo] = {
    info.feature: info
    for info in (
        ColorFeatureInfo(
            ColorFeature.ICC,
            "Allow clients to use the new_icc_creator request "
            "from the CM&HDR protocol extension",
            ProtocolFeature.ICC_V2_V4,
        ),
        ColorFeatureInfo(
            ColorFeature.PARAMETRIC,
            "Allow clients to use the new_parametric_creator "
            "request from the CM&HDR protocol extension",
            ProtocolFeature.PARAMETRIC,
        ),
        ColorFeatureInfo(
            ColorFeature.SET_PRIMARIES,
            "Allow clients to use the parametric set_primaries "
            "request from the CM&HDR protocol extension",
            ProtocolFeature.SET_PRIMARIES,
        ),
        ColorFeatureInfo(
            ColorFeature.SET_TF_POWER,
            "Allow clients to use the parametric set_tf_power "
            "request from the CM&HDR protocol extension",
            ProtocolFeature.SET_TF_POWER,
        ),
        ColorFeatureInfo(
            ColorFeature.SET_MASTERING_DISPLAY_PRIMARIES,
            "Allow clients to use the parametric "
            "set_mastering_display_primaries request from the "
            "CM&HDR protocol extension",
            ProtocolFeature.SET_MASTERING_DISPLAY_PRIMARIES,
        ),
        ColorFeatureInfo(
            ColorFeature.EXTENDED_TARGET_VOLUME,
            "Allow clients to specify (through the CM&HDR protocol "
            "extension) target color volumes that extend outside of the "
            "primary color volume. This can only be supported when feature "
            "SET_MASTERING_DISPLAY_PRIMARIES is supported",
            ProtocolFeature.EXTENDED_TARGET_VOLUME,
        ),
    )
}

RENDER_INTENT_INFO: Dict[RenderIntent, RenderIntentInfo] = {
    info.intent: info
    for info in (
        RenderIntentInfo(
            RenderIntent.PERCEPTUAL, "Perceptual",
            ProtocolRenderIntent.PERCEPTUAL, 0, False,
        ),
        RenderIntentInfo(
            RenderIntent.RELATIVE, "Media-relative colorimetric",
            ProtocolRenderIntent.RELATIVE, 1, False,
        ),
        RenderIntentInfo(
            RenderIntent.SATURATION, "Saturation",
            ProtocolRenderIntent.SATURATION, 2, False,
        ),
        RenderIntentInfo(
            RenderIntent.ABSOLUTE, "ICC-absolute colorimetric",
            ProtocolRenderIntent.ABSOLUTE, 3, False,
        ),
        RenderIntentInfo(
            RenderIntent.RELATIVE_BPC,
            "Media-relative colorimetric + black point compensation",
            ProtocolRenderIntent.RELATIVE_BPC, 1, True,
        ),
    )
}

COLOR_PRIMARIES_INFO: Dict[ColorPrimaries, ColorPrimariesInfo] = {
    info.primaries: info
    for info in (
        ColorPrimariesInfo(
            ColorPrimaries.SRGB,
            "Color primaries for the sRGB color space as defined by "
            "the BT.709 standard",
            ProtocolPrimaries.SRGB,
            ColorGamut(((0.64, 0.33), (0.30, 0.60), (0.15, 0.06)), _D65),
        ),
        ColorPrimariesInfo(
            ColorPrimaries.PAL_M,
            "Color primaries for PAL-M as defined by the BT.470 standard",
            ProtocolPrimaries.PAL_M,
            ColorGamut(((0.67, 0.33), (0.21, 0.71), (0.14, 0.08)), _ILLUMINANT_C),
        ),
        ColorPrimariesInfo(
            ColorPrimaries.PAL,
            "Color primaries for PAL as defined by the BT.601 standard",
            ProtocolPrimaries.PAL,
            ColorGamut(((0.64, 0.33), (0.29, 0.60), (0.15, 0.06)), _D65),
        ),
        ColorPrimariesInfo(
            ColorPrimaries.NTSC,
            "Color primaries for NTSC as defined by the BT.601 standard",
            ProtocolPrimaries.NTSC,
            ColorGamut(((0.630, 0.340), (0.310, 0.595), (0.155, 0.070)), _D65),
        ),
        ColorPrimariesInfo(
            ColorPrimaries.GENERIC_FILM,
            "Generic film with color filters using Illuminant C",
            ProtocolPrimaries.GENERIC_FILM,
            ColorGamut(((0.681, 0.319), (0.243, 0.692), (0.145, 0.049)), _ILLUMINANT_C),
        ),
        ColorPrimariesInfo(
            ColorPrimaries.BT2020,
            "Color primaries as defined by the BT.2020 and BT.2100 standard",
            ProtocolPrimaries.BT2020,
            ColorGamut(((0.708, 0.292), (0.170, 0.797), (0.131, 0.046)), _D65),
        ),
        ColorPrimariesInfo(
            ColorPrimaries.CIE1931_XYZ,
            "Color primaries of the full CIE 1931 XYZ color space",
            ProtocolPrimaries.CIE1931_XYZ,
            ColorGamut(((1.0, 0.0), (0.0, 1.0), (0.0, 0.0)), (0.3333, 0.3333)),
        ),
        ColorPrimariesInfo(
            ColorPrimaries.DCI_P3,
            "Color primaries of the DCI P3 color space as defined by "
            "the SMPTE RP 431 standard",
            ProtocolPrimaries.DCI_P3,
            ColorGamut(((0.680, 0.320), (0.265, 0.690), (0.150, 0.060)), (0.314, 0.351)),
        ),
        ColorPrimariesInfo(
            ColorPrimaries.DISPLAY_P3,
            "Color primaries of Display P3 variant of the DCI-P3 color "
            "space as defined by the SMPTE EG 432 standard",
            ProtocolPrimaries.DISPLAY_P3,
            ColorGamut(((0.680, 0.320), (0.265, 0.690), (0.150, 0.060)), _D65),
        ),
        ColorPrimariesInfo(
            ColorPrimaries.ADOBE_RGB,
            "Color primaries of the Adobe RGB color space as defined "
            "by the ISO 12640 standard",
            ProtocolPrimaries.ADOBE_RGB,
            ColorGamut(((0.64, 0.33), (0.21, 0.71), (0.15, 0.06)), _D65),
        ),
    )
}

TRANSFER_FUNCTION_INFO: Dict[TransferFunction, TransferFunctionInfo] = {
    info.tf: info
    for info in (
        TransferFunctionInfo(TransferFunction.LINEAR, "Linear transfer function",
                             ProtocolTransferFunction.LINEAR, False),
        TransferFunctionInfo(TransferFunction.GAMMA22,
                             "Assumed display gamma 2.2 transfer function",
                             ProtocolTransferFunction.GAMMA22, False),
        TransferFunctionInfo(TransferFunction.GAMMA28,
                             "Assumed display gamma 2.8 transfer function",
                             ProtocolTransferFunction.GAMMA28, False),
        TransferFunctionInfo(TransferFunction.SRGB, "sRGB piece-wise transfer function",
                             ProtocolTransferFunction.SRGB, False),
        TransferFunctionInfo(TransferFunction.EXT_SRGB,
                             "Extended sRGB piece-wise transfer function",
                             ProtocolTransferFunction.EXT_SRGB, False),
        TransferFunctionInfo(TransferFunction.BT709, "BT.709 transfer function",
                             ProtocolTransferFunction.BT709, False),
        TransferFunctionInfo(TransferFunction.BT1361, "BT.1361 extended transfer function",
                             ProtocolTransferFunction.BT1361, False),
        TransferFunctionInfo(TransferFunction.ST240, "SMPTE ST 240 transfer function",
                             ProtocolTransferFunction.ST240, False),
        TransferFunctionInfo(TransferFunction.ST428, "SMPTE ST 428 transfer function",
                             ProtocolTransferFunction.ST428, False),
        TransferFunctionInfo(TransferFunction.ST2084_PQ,
                             "Perceptual quantizer transfer function",
                             ProtocolTransferFunction.ST2084_PQ, False),
        TransferFunctionInfo(TransferFunction.LOG_100, "Logarithmic 100:1 transfer function",
                             ProtocolTransferFunction.LOG_100, False),
        TransferFunctionInfo(TransferFunction.LOG_316,
                             "Logarithmic (100*Sqrt(10) : 1) transfer function",
                             ProtocolTransferFunction.LOG_316, False),
        TransferFunctionInfo(TransferFunction.XVYCC, "IEC 61966-2-4 transfer function",
                             ProtocolTransferFunction.XVYCC, False),
        TransferFunctionInfo(TransferFunction.HLG, "Hybrid log-gamma transfer function",
                             ProtocolTransferFunction.HLG, False),
        TransferFunctionInfo(TransferFunction.POWER,
                             "Parameterized power-law transfer function",
                             None, True),
    )
}


def color_feature_info_from(feature: ColorFeature) -> ColorFeatureInfo:
    return COLOR_FEATURE_INFO[feature]


def render_intent_info_from(intent: RenderIntent) -> RenderIntentInfo:
    return RENDER_INTENT_INFO[intent]


def render_intent_info_from_protocol(protocol_intent: int) -> Optional[RenderIntentInfo]:
    """Look up a render intent by its protocol code; ``None`` if unknown."""

    for info in RENDER_INTENT_INFO.values():
        if info.protocol_intent == protocol_intent:
            return info
    return None


def color_primaries_info_from(primaries: ColorPrimaries) -> ColorPrimariesInfo:
    return COLOR_PRIMARIES_INFO[primaries]


def color_primaries_info_from_protocol(protocol_primaries: int) -> Optional[ColorPrimariesInfo]:
    for info in COLOR_PRIMARIES_INFO.values():
        if info.protocol_primaries == protocol_primaries:
            return info
    return None


def tf_info_from(tf: TransferFunction) -> TransferFunctionInfo:
    return TRANSFER_FUNCTION_INFO[tf]


def tf_info_from_protocol(protocol_tf: int) -> Optional[TransferFunctionInfo]:
    for info in TRANSFER_FUNCTION_INFO.values():
        if info.protocol_tf is not None and info.protocol_tf == protocol_tf:
            return info
    return None
