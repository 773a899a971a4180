"""
No-op color manager.

Everything is sRGB and every transform is identity. Only the stock
profile exists and the client protocol is not offered.
"""

from __future__ import annotations

import logging
from typing import Optional

from wlcolor.core.config import EotfMode
from wlcolor.core.errors import ColorTransformError, InvariantError, UnsupportedError
from wlcolor.manager.base import ColorManager, SurfaceColorTransform
from wlcolor.outcome import HdrMetadataType1, OutputColorOutcome
from wlcolor.profile import ColorProfile, ColorProfileParams

logger = logging.getLogger(__name__)


class NoopColorManager(ColorManager):
    name = "no-op"
    supports_client_protocol = False

    def __init__(self, compositor, config=None) -> None:
        super().__init__(compositor, config)
        self._stock: Optional[ColorProfile] = None

    @property
    def stock_profile(self) -> ColorProfile:
        if self._stock is None:
            raise InvariantError("no-op color manager not initialized")
        return self._stock

    def init(self) -> None:
        # No renderer requirements to check.
        self._stock = self.profiles.register(ColorProfile("stock sRGB color profile"))

    def get_color_profile_from_icc(self, icc_data: bytes, name_part: str) -> ColorProfile:
        raise UnsupportedError("ICC profiles are unsupported.")

    def get_color_profile_from_params(
        self, params: ColorProfileParams, name_part: str
    ) -> ColorProfile:
        raise UnsupportedError("parametric profiles are unsupported.")

    def _check_output(self, output) -> None:
        if output.color_profile is None:
            raise InvariantError(f"output '{output.name}' has no color profile")
        if output.color_profile is not self.stock_profile:
            raise InvariantError(f"output '{output.name}' does not use the stock profile")

        if output.eotf_mode != EotfMode.SDR:
            logger.error(
                "Error: color manager no-op does not support EOTF mode %s of output %s.",
                output.eotf_mode.name,
                output.name,
            )
            raise ColorTransformError(
                f"EOTF mode {output.eotf_mode.name} is unsupported by the no-op color manager"
            )

    def get_surface_color_transform(self, surface, output) -> SurfaceColorTransform:
        if surface.color_profile is not None and surface.color_profile is not self.stock_profile:
            raise InvariantError("surface color profile is not the stock one")
        self._check_output(output)

        return SurfaceColorTransform(transform=None, identity_pipeline=True)

    def create_output_color_outcome(self, output) -> OutputColorOutcome:
        self._check_output(output)
        return OutputColorOutcome(hdr_meta=HdrMetadataType1())
