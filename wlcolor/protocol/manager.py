"""
The color-management global and the per-client manager object.

Binding advertises the features and rendering intents of the color
manager; the manager object then hands out the per-output, per-surface
and creator objects.
"""

from __future__ import annotations

import logging

from wlcolor.core.codes import ColorManagerError
from wlcolor.core.errors import InvariantError
from wlcolor.properties import (
    ColorFeature,
    RenderIntent,
    color_feature_info_from,
    render_intent_info_from,
)
from wlcolor.protocol.icc_creator import IccCreator
from wlcolor.protocol.output import ColorManagementOutput
from wlcolor.protocol.resource import Client, Resource
from wlcolor.protocol.surface import ColorManagementFeedbackSurface, ColorManagementSurface

logger = logging.getLogger(__name__)


class ColorManagerResource(Resource):
    interface = "xx_color_manager_v4"

    def __init__(self, client: Client, version: int, compositor) -> None:
        super().__init__(client, version)
        self.compositor = compositor

    def get_output(self, head) -> ColorManagementOutput:
        """A head without an enabled output yields an inert object."""

        active_head = head if head is not None and head.active else None
        return ColorManagementOutput(self.client, self.version, active_head)

    def get_surface(self, surface) -> ColorManagementSurface:
        if surface.cm_surface is not None:
            self.post_error(ColorManagerError.SURFACE_EXISTS, "surface already requested")
        return ColorManagementSurface(self.client, self.version, surface)

    def get_feedback_surface(self, surface) -> ColorManagementFeedbackSurface:
        return ColorManagementFeedbackSurface(self.client, self.version, surface)

    def new_icc_creator(self) -> IccCreator:
        cm = self.compositor.color_manager
        if not cm.supports_feature(ColorFeature.ICC):
            self.post_error(
                ColorManagerError.UNSUPPORTED_FEATURE,
                "creating ICC image description creator is still unsupported",
            )
        return IccCreator(self.client, self.version, self.compositor)

    def new_parametric_creator(self) -> None:
        self.post_error(
            ColorManagerError.UNSUPPORTED_FEATURE,
            "creating parametric image description creator is still unsupported",
        )


class ColorManagementGlobal:
    """Advertised once per compositor; every bind creates a manager object."""

    interface = "xx_color_manager_v4"
    version = 1

    def __init__(self, compositor) -> None:
        cm = compositor.color_manager
        if not cm.supports_intent(RenderIntent.PERCEPTUAL):
            raise InvariantError("color manager must support the perceptual rendering intent")
        self.compositor = compositor
        logger.info("Color management protocol enabled, version %u", self.version)

    def bind(self, client: Client, version: int = 1) -> ColorManagerResource:
        if not 1 <= version <= self.version:
            raise InvariantError(f"binding {self.interface} with unsupported version {version}")

        cm = self.compositor.color_manager
        resource = ColorManagerResource(client, version, self.compositor)

        for feature in ColorFeature:
            if cm.supports_feature(feature):
                info = color_feature_info_from(feature)
                resource.send("supported_feature", int(info.protocol_feature))

        for intent in RenderIntent:
            if cm.supports_intent(intent):
                info = render_intent_info_from(intent)
                resource.send("supported_intent", int(info.protocol_intent))

        return resource
