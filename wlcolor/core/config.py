"""
Configuration primitives for wlcolor.

Defines enums for output modes, transform categories and backend selection,
and a dataclass collecting the tunable parameters of a color manager.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import FrozenSet

from wlcolor.properties import ColorFeature


class ColorManagerKind(Enum):
    """Color manager backend selection."""

    NOOP = "noop"  # Stock profile only, identity everywhere
    CMS = "cms"    # Full profile and transform engine


class EotfMode(IntEnum):
    """Output EOTF mode, as negotiated with the display."""

    NONE = 0
    SDR = 0x01              # Traditional gamma, SDR luminance range
    TRADITIONAL_HDR = 0x02  # Traditional gamma, HDR luminance range
    ST2084 = 0x04           # SMPTE ST 2084 (PQ)
    HLG = 0x08              # Hybrid log-gamma


class TransformCategory(Enum):
    """The leg of the output pipeline a color transform serves."""

    INPUT_TO_BLEND = "input-to-blend"
    BLEND_TO_OUTPUT = "blend-to-output"
    INPUT_TO_OUTPUT = "input-to-output"


class ProfileType(Enum):
    """Backing representation of a color profile."""

    ICC = "icc"
    PARAMS = "params"


class TransformStatus(Enum):
    """Outcome of realizing a transform pipeline."""

    FAILED = "failed"
    OPTIMIZED = "optimized"  # Fits pre-curve, matrix, post-curve
    LUT_3D = "3dlut"         # Sampled 3D LUT fallback


# ICC files handed over by clients must fit in (0, 4 MiB].
MAX_ICC_SIZE = 4 * 1024 * 1024


@dataclass
class ColorManagerConfig:
    """
    Complete configuration for a color manager instance.

    All parameters have defaults matching the compositor's behavior.
    """

    kind: ColorManagerKind = ColorManagerKind.CMS

    # Sampling
    num_1d_points: int = 1024  # tabulated curves and EOTF estimation
    num_3d_points: int = 33    # 3D LUT edge length

    # Optimizer
    matrix_precision_bits: int = 12  # identity test threshold is 2^-bits

    # Protocol limits
    max_icc_size: int = MAX_ICC_SIZE

    # Features advertised in addition to the backend defaults
    extra_color_features: FrozenSet[ColorFeature] = field(default_factory=frozenset)

    def validate(self) -> None:
        """Validate configuration parameters."""

        if not isinstance(self.kind, ColorManagerKind):
            raise ValueError(f"Unknown color manager kind: {self.kind}")

        if not (2 <= self.num_1d_points <= 65536):
            raise ValueError(f"1D point count {self.num_1d_points} out of range [2, 65536]")

        if not (2 <= self.num_3d_points <= 256):
            raise ValueError(f"3D point count {self.num_3d_points} out of range [2, 256]")

        if not (1 <= self.matrix_precision_bits <= 52):
            raise ValueError(
                f"Matrix precision {self.matrix_precision_bits} out of range [1, 52]"
            )

        if not (0 < self.max_icc_size <= 0xFFFFFFFF):
            raise ValueError(f"Maximum ICC size {self.max_icc_size} out of range")

        for feature in self.extra_color_features:
            if not isinstance(feature, ColorFeature):
                raise ValueError(f"Unknown color feature: {feature}")
