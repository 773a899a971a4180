"""
Numeric codes of the color-management protocol extension.

Enum values match the protocol XML; errors are scoped per interface.
"""

from __future__ import annotations

from enum import IntEnum


class ProtocolRenderIntent(IntEnum):
    PERCEPTUAL = 0
    RELATIVE = 1
    SATURATION = 2
    ABSOLUTE = 3
    RELATIVE_BPC = 4


class ProtocolFeature(IntEnum):
    ICC_V2_V4 = 0
    PARAMETRIC = 1
    SET_PRIMARIES = 2
    SET_TF_POWER = 3
    SET_LUMINANCES = 4
    SET_MASTERING_DISPLAY_PRIMARIES = 5
    EXTENDED_TARGET_VOLUME = 6


class ProtocolPrimaries(IntEnum):
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


class ProtocolTransferFunction(IntEnum):
    BT709 = 0
    GAMMA22 = 1
    GAMMA28 = 2
    ST240 = 3
    LINEAR = 4
    LOG_100 = 5
    LOG_316 = 6
    XVYCC = 7
    BT1361 = 8
    SRGB = 9
    EXT_SRGB = 10
    ST2084_PQ = 11
    ST428 = 12
    HLG = 13


class ColorManagerError(IntEnum):
    UNSUPPORTED_FEATURE = 0
    SURFACE_EXISTS = 1


class SurfaceError(IntEnum):
    RENDER_INTENT = 0
    IMAGE_DESCRIPTION = 1


class FeedbackSurfaceError(IntEnum):
    INERT = 0


class IccCreatorError(IntEnum):
    INCOMPLETE_SET = 0
    ALREADY_SET = 1
    BAD_FD = 2
    BAD_SIZE = 3
    OUT_OF_FILE = 4


class ImageDescriptionError(IntEnum):
    NOT_READY = 0
    NO_INFORMATION = 1


class FailureCause(IntEnum):
    LOW_VERSION = 0
    UNSUPPORTED = 1
    OPERATING_SYSTEM = 2
    NO_OUTPUT = 3
