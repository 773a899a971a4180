"""Color manager backends."""

from wlcolor.manager.base import ColorManager, SurfaceColorTransform
from wlcolor.manager.cms import CmsColorManager
from wlcolor.manager.factory import create_color_manager
from wlcolor.manager.noop import NoopColorManager

__all__ = [
    "ColorManager",
    "SurfaceColorTransform",
    "CmsColorManager",
    "NoopColorManager",
    "create_color_manager",
]
