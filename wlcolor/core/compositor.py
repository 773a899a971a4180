"""
Compositor-side collaborators of the color subsystem.

Heads, outputs and surfaces carry the color state the color manager reads
(profiles, EOTF mode, display characteristics) and the state it produces
(output color outcomes, per-surface transforms).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from wlcolor.core.config import ColorManagerConfig, EotfMode
from wlcolor.core.errors import ColorError, InvariantError, UnsupportedError
from wlcolor.manager.factory import create_color_manager
from wlcolor.outcome import ColorCharacteristicsGroup, OutputColorOutcome, validate_hdr_metadata
from wlcolor.properties import XY

logger = logging.getLogger(__name__)


@dataclass
class ColorCharacteristics:
    """Display color characteristics configured for an output."""

    group_mask: ColorCharacteristicsGroup = ColorCharacteristicsGroup(0)
    primary: List[XY] = field(default_factory=lambda: [(0.0, 0.0)] * 3)
    white: XY = (0.0, 0.0)
    max_luminance: float = 0.0
    min_luminance: float = 0.0
    max_fall: float = 0.0


class Head:
    """A connector; exposed to clients while attached to an enabled output."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.output: Optional[Output] = None
        self.cm_output_resources: List = []

    def __repr__(self) -> str:
        return f"<Head '{self.name}'>"

    @property
    def active(self) -> bool:
        return self.output is not None and self.output.enabled

    def remove_global(self) -> None:
        """Make every protocol output object of this head inert."""

        for res in self.cm_output_resources:
            res.head = None
        self.cm_output_resources = []


class Output:
    """
    A display output driven by one or more heads.

    The output holds a reference to its color profile; ``None`` stands for
    the stock sRGB profile until the output is enabled.
    """

    def __init__(self, compositor: Compositor, name: str) -> None:
        self.compositor = compositor
        self.name = name
        self.heads: List[Head] = []
        self.enabled = False

        self.color_profile = None
        self.eotf_mode = EotfMode.SDR
        self.color_characteristics = ColorCharacteristics()

        self.color_outcome: Optional[OutputColorOutcome] = None
        self.color_outcome_serial = 0

    def __repr__(self) -> str:
        return f"<Output '{self.name}'>"

    def attach_head(self, head: Head) -> None:
        if head.output is not None:
            raise InvariantError(f"head '{head.name}' already attached to '{head.output.name}'")
        head.output = self
        self.heads.append(head)

    def detach_head(self, head: Head) -> None:
        head.remove_global()
        head.output = None
        self.heads = [h for h in self.heads if h is not head]

    def set_eotf_mode(self, mode: EotfMode) -> None:
        if self.enabled:
            raise InvariantError(f"EOTF mode of enabled output '{self.name}' cannot change")
        self.eotf_mode = mode

    def set_color_characteristics(self, cc: Optional[ColorCharacteristics]) -> None:
        if self.enabled:
            raise InvariantError(
                f"color characteristics of enabled output '{self.name}' cannot change"
            )
        self.color_characteristics = cc or ColorCharacteristics()

    def set_color_profile(self, profile=None) -> bool:
        """
        Take a new reference to ``profile`` (stock sRGB when ``None``).

        On an enabled output the color outcome is recomputed; if that fails
        the previous profile is restored and ``False`` is returned.
        """

        cm = self.compositor.color_manager
        new_profile = profile.ref() if profile is not None else cm.ref_stock_srgb_profile()
        old_profile = self.color_profile
        self.color_profile = new_profile

        if self.enabled and not self.set_color_outcome():
            self.color_profile = old_profile
            new_profile.unref()
            return False

        if old_profile is not None:
            old_profile.unref()
        return True

    def set_color_outcome(self) -> bool:
        """Compute and install a new color outcome; ``False`` keeps the old one."""

        cm = self.compositor.color_manager
        try:
            outcome = cm.create_output_color_outcome(self)
        except ColorError as exc:
            logger.error(
                'Creating color transformation for output "%s" failed: %s', self.name, exc
            )
            return False

        if not validate_hdr_metadata(outcome.hdr_meta):
            logger.error('Output "%s" color outcome has invalid HDR static metadata.', self.name)
            outcome.destroy()
            return False

        if self.color_outcome is not None:
            self.color_outcome.destroy()
        self.color_outcome = outcome
        self.color_outcome_serial += 1

        if self.enabled:
            self.send_image_description_changed()
        return True

    def enable(self) -> bool:
        if self.enabled:
            return True
        if self.color_profile is None:
            self.color_profile = self.compositor.color_manager.ref_stock_srgb_profile()
        if not self.set_color_outcome():
            return False

        self.enabled = True
        logger.info("Output '%s' enabled", self.name)
        logger.info("  color profile: p%u", self.color_profile.id)
        logger.info("  EOTF mode: %s", self.eotf_mode.name)
        return True

    def send_image_description_changed(self) -> None:
        for head in self.heads:
            for res in head.cm_output_resources:
                res.send("image_description_changed")

    def destroy(self) -> None:
        for head in list(self.heads):
            self.detach_head(head)

        if self.color_outcome is not None:
            self.color_outcome.destroy()
            self.color_outcome = None
        if self.color_profile is not None:
            self.color_profile.unref()
            self.color_profile = None
        self.enabled = False


@dataclass
class SurfaceColorState:
    """Double-buffered color state of a surface."""

    color_profile: object = None
    render_intent: object = None

    def clear(self) -> None:
        if self.color_profile is not None:
            self.color_profile.unref()
        self.color_profile = None
        self.render_intent = None


class Surface:
    """
    A client surface.

    Clients set ``pending`` state through the protocol; :meth:`commit`
    makes it current. The preferred profile follows the primary output.
    """

    def __init__(self, compositor: Compositor) -> None:
        self.compositor = compositor
        self.pending = SurfaceColorState()
        self.color_profile = None
        self.render_intent = None
        self.preferred_color_profile = compositor.color_manager.ref_stock_srgb_profile()
        self.output: Optional[Output] = None

        self.cm_surface = None
        self.cm_feedback_surfaces: List = []

    def commit(self) -> None:
        profile = self.pending.color_profile
        if profile is not self.color_profile:
            if profile is not None:
                profile.ref()
            if self.color_profile is not None:
                self.color_profile.unref()
            self.color_profile = profile
        self.render_intent = self.pending.render_intent

    def set_output(self, output: Optional[Output]) -> None:
        """Make ``output`` the primary output and update the preferred profile."""

        self.output = output
        cm = self.compositor.color_manager
        if output is not None and output.color_profile is not None:
            preferred = output.color_profile.ref()
        else:
            preferred = cm.ref_stock_srgb_profile()

        if preferred is self.preferred_color_profile:
            preferred.unref()
            return

        self.preferred_color_profile.unref()
        self.preferred_color_profile = preferred
        self.send_preferred_image_description_changed()

    def send_preferred_image_description_changed(self) -> None:
        for res in self.cm_feedback_surfaces:
            res.send("preferred_changed")

    def get_color_transform(self, output: Output):
        """Resolved transform of this surface on ``output``; caller owns it."""

        return self.compositor.color_manager.get_surface_color_transform(self, output)

    def destroy(self) -> None:
        if self.cm_surface is not None:
            self.cm_surface.surface = None
            self.cm_surface = None
        for res in self.cm_feedback_surfaces:
            res.surface = None
        self.cm_feedback_surfaces = []

        self.pending.clear()
        if self.color_profile is not None:
            self.color_profile.unref()
            self.color_profile = None
        self.render_intent = None
        if self.preferred_color_profile is not None:
            self.preferred_color_profile.unref()
            self.preferred_color_profile = None

        self.compositor.surfaces = [s for s in self.compositor.surfaces if s is not self]


class Compositor:
    """
    Owner of the color manager and of the outputs and surfaces it serves.

    ``supports_color_ops`` is the renderer capability the full color
    manager requires.
    """

    def __init__(
        self,
        config: Optional[ColorManagerConfig] = None,
        supports_color_ops: bool = True,
    ) -> None:
        self.config = config or ColorManagerConfig()
        self.config.validate()
        self.supports_color_ops = supports_color_ops

        self.heads: List[Head] = []
        self.outputs: List[Output] = []
        self.surfaces: List[Surface] = []
        self.color_management_global = None

        self.color_manager = create_color_manager(self, self.config)
        logger.info("Color manager: %s", self.color_manager.name)
        self.color_manager.init()

    def create_head(self, name: str) -> Head:
        head = Head(name)
        self.heads.append(head)
        return head

    def create_output(self, name: str, heads: Optional[List[Head]] = None) -> Output:
        output = Output(self, name)
        for head in heads or []:
            output.attach_head(head)
        self.outputs.append(output)
        return output

    def create_surface(self) -> Surface:
        surface = Surface(self)
        self.surfaces.append(surface)
        return surface

    def enable_color_management_protocol(self):
        """Create the color-management global; the backend must support it."""

        if not self.color_manager.supports_client_protocol:
            raise UnsupportedError(
                f"{self.color_manager.name} color manager does not support the protocol"
            )
        if self.color_management_global is None:
            from wlcolor.protocol.manager import ColorManagementGlobal

            self.color_management_global = ColorManagementGlobal(self)
        return self.color_management_global

    def destroy(self) -> None:
        for surface in list(self.surfaces):
            surface.destroy()
        for output in self.outputs:
            output.destroy()
        self.outputs = []
        self.color_manager.destroy()
