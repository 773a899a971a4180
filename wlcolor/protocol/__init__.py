"""Color-management protocol objects."""

from wlcolor.protocol.icc_creator import IccCreator
from wlcolor.protocol.image_description import (
    ImageDescription,
    ImageDescriptionInfo,
    ImageDescriptionState,
)
from wlcolor.protocol.manager import ColorManagementGlobal, ColorManagerResource
from wlcolor.protocol.output import ColorManagementOutput
from wlcolor.protocol.resource import Client, Resource
from wlcolor.protocol.surface import ColorManagementFeedbackSurface, ColorManagementSurface

__all__ = [
    "Client",
    "Resource",
    "ColorManagementGlobal",
    "ColorManagerResource",
    "ColorManagementOutput",
    "ColorManagementSurface",
    "ColorManagementFeedbackSurface",
    "IccCreator",
    "ImageDescription",
    "ImageDescriptionInfo",
    "ImageDescriptionState",
]
