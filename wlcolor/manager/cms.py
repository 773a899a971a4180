"""
Color manager backed by the profile and transform engine.

Supports ICC profiles on surfaces and outputs, every rendering intent
and every named set of primaries. Parametric profiles can be created but
not yet used in transforms.
"""

from __future__ import annotations

import logging
from typing import Optional

from wlcolor import outcome
from wlcolor.core.config import TransformCategory
from wlcolor.core.errors import ColorError, InvariantError, UnsupportedError
from wlcolor.icc.writer import build_stock_srgb_profile
from wlcolor.manager.base import ColorManager, SurfaceColorTransform
from wlcolor.outcome import OutputColorOutcome
from wlcolor.profile import (
    ColorProfile,
    ColorProfileParams,
    IccColorProfile,
    ReadOnlyFile,
)
from wlcolor.properties import (
    ColorFeature,
    ColorPrimaries,
    RenderIntent,
    RenderIntentInfo,
    TransferFunction,
    color_primaries_info_from,
    render_intent_info_from,
    tf_info_from,
)
from wlcolor.transform import TransformCache, TransformSearchParam

logger = logging.getLogger(__name__)


class CmsColorManager(ColorManager):
    name = "cms"
    supports_client_protocol = True

    default_color_features = frozenset({ColorFeature.ICC})
    default_rendering_intents = frozenset(RenderIntent)
    default_primaries_named = frozenset(ColorPrimaries)
    default_tf_named = frozenset()

    def __init__(self, compositor, config=None) -> None:
        super().__init__(compositor, config)
        self.transforms = TransformCache(self.config)
        self._stock: Optional[IccColorProfile] = None

    @property
    def stock_profile(self) -> IccColorProfile:
        if self._stock is None:
            raise InvariantError("color manager not initialized")
        return self._stock

    def init(self) -> None:
        if not self.compositor.supports_color_ops:
            logger.error(
                "color operations capability missing. Is the renderer color capable?"
            )
            raise UnsupportedError("color operations capability missing")

        stock = self.profiles.create_from_icc(
            build_stock_srgb_profile(), "sRGB stock", shareable=False
        )
        try:
            stock.ensure_output_extract(self.config.num_1d_points)
        except ColorError:
            stock.unref()
            raise

        self._stock = stock
        logger.info("%s color manager initialized.", self.name)

    def destroy(self) -> None:
        super().destroy()
        self._stock = None
        if len(self.transforms):
            raise InvariantError("color transforms still alive at color manager destruction")

    def get_color_profile_from_icc(self, icc_data: bytes, name_part: str) -> ColorProfile:
        return self.profiles.create_from_icc(icc_data, name_part)

    def get_color_profile_from_params(
        self, params: ColorProfileParams, name_part: str
    ) -> ColorProfile:
        return self.profiles.create_from_params(params, name_part)

    def send_image_desc_info(self, info, profile: ColorProfile) -> None:
        """Describe ``profile`` through the events of an image description info object."""

        stock = self.stock_profile
        if isinstance(profile, IccColorProfile) and profile is not stock:
            if profile.rofile is None:
                raise InvariantError(f"color profile p{profile.id} has no shareable ICC file")

            fd = profile.rofile.get_fd()
            try:
                info.send_icc_file(fd, profile.rofile.size)
            finally:
                ReadOnlyFile.put_fd(fd)
            return

        if profile is not stock:
            raise InvariantError(
                "parametric color profiles other than the stock sRGB one cannot be described"
            )

        # BT.709 primaries and D65 white point
        primaries_info = color_primaries_info_from(ColorPrimaries.SRGB)
        info.send_primaries_named(primaries_info)
        info.send_primaries(primaries_info.color_gamut)
        info.send_tf_named(tf_info_from(TransferFunction.GAMMA22))

    def _profile_or_stock(self, profile: Optional[ColorProfile]) -> ColorProfile:
        return profile if profile is not None else self.stock_profile

    def _intent_or_default(self, surface) -> RenderIntentInfo:
        if surface is not None and surface.render_intent is not None:
            return surface.render_intent
        return render_intent_info_from(RenderIntent.PERCEPTUAL)

    def get_surface_color_transform(self, surface, output) -> SurfaceColorTransform:
        param = TransformSearchParam(
            TransformCategory.INPUT_TO_BLEND,
            self._profile_or_stock(surface.color_profile),
            self._profile_or_stock(output.color_profile),
            self._intent_or_default(surface),
        )
        xform = self.transforms.get_transform(param)

        # TODO: compare against an INPUT_TO_OUTPUT transform once image
        # adjustments exist, profile identity misses them.
        return SurfaceColorTransform(
            transform=xform,
            identity_pipeline=param.input_profile is param.output_profile,
        )

    def create_output_color_outcome(self, output) -> OutputColorOutcome:
        return outcome.compute(self, output)
