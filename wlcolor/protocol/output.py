"""Per-output color management objects."""

from __future__ import annotations

from wlcolor.core.codes import FailureCause
from wlcolor.protocol.image_description import ImageDescription
from wlcolor.protocol.resource import Client, Resource


class ColorManagementOutput(Resource):
    """
    Color management extension of one head.

    ``head`` becomes ``None`` when the head loses its global; the object
    is inert from then on.
    """

    interface = "xx_color_management_output_v4"

    def __init__(self, client: Client, version: int, head) -> None:
        super().__init__(client, version)
        self.head = head
        if head is not None:
            head.cm_output_resources.append(self)

    def get_image_description(self) -> ImageDescription:
        head = self.head
        if head is None or not head.active:
            return ImageDescription.failed(
                self.client,
                self.version,
                FailureCause.NO_OUTPUT,
                "the wl_output global no longer exists",
            )

        compositor = head.output.compositor
        return ImageDescription.from_profile(
            self.client,
            self.version,
            compositor.color_manager,
            head.output.color_profile,
            supports_get_info=True,
        )

    def _destroy(self) -> None:
        if self.head is not None:
            self.head.cm_output_resources = [
                r for r in self.head.cm_output_resources if r is not self
            ]
            self.head = None
