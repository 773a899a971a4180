"""
Factory utilities for selecting a color manager backend.
"""

from __future__ import annotations

from wlcolor.core.config import ColorManagerConfig, ColorManagerKind


def create_color_manager(compositor, config: ColorManagerConfig | None = None):
    """Instantiate the color manager selected by ``config.kind``."""

    config = config or ColorManagerConfig()

    if config.kind == ColorManagerKind.CMS:
        from wlcolor.manager.cms import CmsColorManager

        return CmsColorManager(compositor, config)

    if config.kind == ColorManagerKind.NOOP:
        from wlcolor.manager.noop import NoopColorManager

        return NoopColorManager(compositor, config)

    raise ValueError(f"Unknown color manager kind: {config.kind}")
