"""
Per-surface color management objects.

Both objects go inert when their surface is destroyed: ``surface`` is
reset to ``None`` by the surface itself.
"""

from __future__ import annotations

from wlcolor.core.codes import FeedbackSurfaceError, SurfaceError
from wlcolor.properties import render_intent_info_from_protocol
from wlcolor.protocol.image_description import ImageDescription, ImageDescriptionState
from wlcolor.protocol.resource import Client, Resource


class ColorManagementSurface(Resource):
    """Lets a client tag a surface with an image description and intent."""

    interface = "xx_color_management_surface_v4"

    def __init__(self, client: Client, version: int, surface) -> None:
        super().__init__(client, version)
        self.surface = surface
        surface.cm_surface = self

    def set_image_description(self, image_desc: ImageDescription, protocol_intent: int) -> None:
        surface = self.surface
        if surface is None:
            self.post_error(
                SurfaceError.IMAGE_DESCRIPTION, "the wl_surface has already been destroyed"
            )
        if image_desc.state == ImageDescriptionState.FAILED:
            self.post_error(
                SurfaceError.IMAGE_DESCRIPTION, "the image description failed to be created"
            )
        if image_desc.state != ImageDescriptionState.READY:
            self.post_error(SurfaceError.IMAGE_DESCRIPTION, "the image description is not ready")

        render_intent = render_intent_info_from_protocol(protocol_intent)
        if render_intent is None:
            self.post_error(SurfaceError.RENDER_INTENT, "unknown render intent")

        cm = image_desc.color_manager
        if not cm.supports_intent(render_intent.intent):
            self.post_error(SurfaceError.RENDER_INTENT, "unsupported render intent")

        profile = image_desc.profile.ref()
        surface.pending.clear()
        surface.pending.color_profile = profile
        surface.pending.render_intent = render_intent

    def unset_image_description(self) -> None:
        if self.surface is None:
            self.post_error(
                SurfaceError.IMAGE_DESCRIPTION, "the wl_surface has already been destroyed"
            )
        self.surface.pending.clear()

    def _destroy(self) -> None:
        surface = self.surface
        if surface is None:
            return
        surface.cm_surface = None
        surface.pending.clear()
        self.surface = None


class ColorManagementFeedbackSurface(Resource):
    """Tells a client which image description suits a surface best."""

    interface = "xx_color_management_feedback_surface_v4"

    def __init__(self, client: Client, version: int, surface) -> None:
        super().__init__(client, version)
        self.surface = surface
        surface.cm_feedback_surfaces.append(self)

    def get_preferred(self) -> ImageDescription:
        surface = self.surface
        if surface is None:
            self.post_error(FeedbackSurfaceError.INERT, "the wl_surface has already been destroyed")

        return ImageDescription.from_profile(
            self.client,
            self.version,
            surface.compositor.color_manager,
            surface.preferred_color_profile,
            supports_get_info=True,
        )

    def _destroy(self) -> None:
        surface = self.surface
        if surface is None:
            return
        surface.cm_feedback_surfaces = [r for r in surface.cm_feedback_surfaces if r is not self]
        self.surface = None
