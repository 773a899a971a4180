"""
Color manager interface.

A color manager owns the profile registry and transform cache of one
compositor and decides how surfaces and outputs are color managed.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import FrozenSet, Optional

from wlcolor.core.config import ColorManagerConfig
from wlcolor.core.errors import InvariantError, UnsupportedError
from wlcolor.outcome import OutputColorOutcome
from wlcolor.profile import ColorProfile, ColorProfileParams, ProfileRegistry
from wlcolor.properties import ColorFeature, ColorPrimaries, RenderIntent, TransferFunction
from wlcolor.transform import ColorTransform

logger = logging.getLogger(__name__)


@dataclass
class SurfaceColorTransform:
    """
    Surface to blending space transform of one surface on one output.

    ``transform`` is ``None`` for identity. ``identity_pipeline`` tells
    the renderer that the surface content is already in output space.
    """

    transform: Optional[ColorTransform] = None
    identity_pipeline: bool = False

    def release(self) -> None:
        if self.transform is not None:
            self.transform.unref()
            self.transform = None
        self.identity_pipeline = False


class ColorManager(ABC):
    """Common state and entry points of the color manager backends."""

    name = "abstract"
    supports_client_protocol = False

    default_color_features: FrozenSet[ColorFeature] = frozenset()
    default_rendering_intents: FrozenSet[RenderIntent] = frozenset()
    default_primaries_named: FrozenSet[ColorPrimaries] = frozenset()
    default_tf_named: FrozenSet[TransferFunction] = frozenset()

    def __init__(self, compositor, config: Optional[ColorManagerConfig] = None) -> None:
        self.config = config or ColorManagerConfig()
        self.config.validate()

        self.compositor = compositor
        self.profiles = ProfileRegistry()

        self.supported_color_features = frozenset(
            self.default_color_features | self.config.extra_color_features
        )
        self.supported_rendering_intents = frozenset(self.default_rendering_intents)
        self.supported_primaries_named = frozenset(self.default_primaries_named)
        self.supported_tf_named = frozenset(self.default_tf_named)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} '{self.name}'>"

    def supports_feature(self, feature: ColorFeature) -> bool:
        return feature in self.supported_color_features

    def supports_intent(self, intent: RenderIntent) -> bool:
        return intent in self.supported_rendering_intents

    @property
    @abstractmethod
    def stock_profile(self) -> ColorProfile:
        """The stock sRGB profile, without taking a reference."""

    @abstractmethod
    def init(self) -> None:
        """Prepare the backend; raises :class:`ColorError` on failure."""

    def destroy(self) -> None:
        stock = self.stock_profile
        if stock.ref_count < 1:
            raise InvariantError("stock sRGB color profile already destroyed")
        stock.unref()

        if len(self.profiles):
            logger.error(
                "%u color profiles still alive while destroying the color manager",
                len(self.profiles),
            )

    def ref_stock_srgb_profile(self) -> ColorProfile:
        return self.stock_profile.ref()

    @abstractmethod
    def get_color_profile_from_icc(self, icc_data: bytes, name_part: str) -> ColorProfile:
        """
        Create a profile from ICC data, or a new reference to an identical one.

        Raises :class:`ColorError` with a user-facing message on failure.
        """

    @abstractmethod
    def get_color_profile_from_params(
        self, params: ColorProfileParams, name_part: str
    ) -> ColorProfile:
        """Create a parametric profile, or a new reference to an identical one."""

    def send_image_desc_info(self, info, profile: ColorProfile) -> None:
        raise UnsupportedError(f"{self.name} color manager cannot describe color profiles")

    @abstractmethod
    def get_surface_color_transform(self, surface, output) -> SurfaceColorTransform:
        """The caller owns the returned transform reference."""

    @abstractmethod
    def create_output_color_outcome(self, output) -> OutputColorOutcome:
        """Fully populated outcome of ``output``."""
