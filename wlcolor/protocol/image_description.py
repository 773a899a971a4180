"""
Image description objects and their information streams.

An image description starts out not created and ends either ready,
backed by a color profile, or failed. Only descriptions that allow it
answer ``get_information``.
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from typing import Optional

from wlcolor.core.codes import FailureCause, ImageDescriptionError
from wlcolor.core.errors import ColorError, InvariantError
from wlcolor.properties import ColorGamut, ColorPrimariesInfo, TransferFunctionInfo
from wlcolor.protocol.resource import Client, Resource

logger = logging.getLogger(__name__)


class ImageDescriptionState(Enum):
    NOT_CREATED = "not-created"
    READY = "ready"
    FAILED = "failed"


class ImageDescriptionInfo(Resource):
    """Short-lived object streaming the details of one color profile."""

    interface = "xx_image_description_info_v4"

    def send_icc_file(self, fd: int, length: int) -> None:
        if fd < 0:
            self.post_no_memory()
        # The client receives its own descriptor, like fd passing does.
        self.send("icc_file", os.dup(fd), length)

    def send_primaries_named(self, primaries_info: ColorPrimariesInfo) -> None:
        self.send("primaries_named", int(primaries_info.protocol_primaries))

    def send_primaries(self, color_gamut: ColorGamut) -> None:
        coords = list(color_gamut.primary) + [color_gamut.white_point]
        self.send("primaries", *(round(v * 10000) for xy in coords for v in xy))

    def send_tf_named(self, tf_info: TransferFunctionInfo) -> None:
        if tf_info.protocol_tf is None:
            raise InvariantError(f"transfer function '{tf_info.desc}' has no protocol code")
        self.send("tf_named", int(tf_info.protocol_tf))

    def send_done(self) -> None:
        self.send("done")


class ImageDescription(Resource):
    """
    Client handle to a color profile.

    ``profile`` is ``None`` until the description is ready. A failed
    description keeps no profile and refuses every request but destroy.
    """

    interface = "xx_image_description_v4"

    def __init__(
        self,
        client: Client,
        version: int,
        color_manager,
        supports_get_info: bool,
    ) -> None:
        super().__init__(client, version)
        self.color_manager = color_manager
        self.supports_get_info = supports_get_info
        self.profile = None
        self.state = ImageDescriptionState.NOT_CREATED

    @classmethod
    def from_profile(
        cls, client: Client, version: int, color_manager, profile, supports_get_info: bool = True
    ) -> ImageDescription:
        desc = cls(client, version, color_manager, supports_get_info)
        desc.set_ready(profile.ref())
        return desc

    @classmethod
    def failed(cls, client: Client, version: int, cause: FailureCause, msg: str) -> ImageDescription:
        desc = cls(client, version, None, False)
        desc.set_failed(cause, msg)
        return desc

    def set_ready(self, profile) -> None:
        """Adopt the caller's reference to ``profile`` and announce it."""

        if self.state != ImageDescriptionState.NOT_CREATED:
            raise InvariantError(f"image description already {self.state.value}")
        self.profile = profile
        self.state = ImageDescriptionState.READY
        self.send("ready", profile.id)

    def set_failed(self, cause: FailureCause, msg: str) -> None:
        if self.state != ImageDescriptionState.NOT_CREATED:
            raise InvariantError(f"image description already {self.state.value}")
        self.state = ImageDescriptionState.FAILED
        self.send("failed", int(cause), msg)

    def get_information(self) -> Optional[ImageDescriptionInfo]:
        """
        Stream the profile details through a new info object.

        The info object is destroyed before returning; its events stay
        readable.
        """

        if self.state == ImageDescriptionState.FAILED:
            self.post_error(
                ImageDescriptionError.NOT_READY,
                "we gracefully failed to create this image description",
            )
        if self.state == ImageDescriptionState.NOT_CREATED:
            self.post_error(ImageDescriptionError.NOT_READY, "image description not ready yet")
        if not self.supports_get_info:
            self.post_error(
                ImageDescriptionError.NO_INFORMATION,
                "get_information is not allowed for this image description",
            )

        info = ImageDescriptionInfo(self.client, self.version)
        try:
            self.color_manager.send_image_desc_info(info, self.profile)
        except ColorError as exc:
            logger.error("sending information of p%u failed: %s", self.profile.id, exc)
        else:
            info.send_done()
        finally:
            info.destroy()
        return info

    def _destroy(self) -> None:
        if self.profile is not None:
            self.profile.unref()
            self.profile = None
