"""
ICC-based image description creator.

The client hands over a file descriptor with an offset and a length; the
ICC data is read once, when the image description is created.
"""

from __future__ import annotations

import fcntl
import logging
import os

from wlcolor.core.codes import FailureCause, IccCreatorError
from wlcolor.core.errors import ColorError
from wlcolor.protocol.image_description import ImageDescription
from wlcolor.protocol.resource import Client, Resource

logger = logging.getLogger(__name__)

# Largest value of off_t
MAX_FILE_OFFSET = (1 << 63) - 1


class IccCreator(Resource):
    interface = "xx_image_description_creator_icc_v4"

    def __init__(self, client: Client, version: int, compositor) -> None:
        super().__init__(client, version)
        self.compositor = compositor
        self.icc_profile_fd = -1
        self.icc_data_length = 0
        self.icc_data_offset = 0

    def set_icc_file(self, icc_profile_fd: int, offset: int, length: int) -> None:
        """Take ownership of ``icc_profile_fd``; it is closed on error."""

        max_size = self.compositor.color_manager.config.max_icc_size
        access_mode = _access_mode(icc_profile_fd)

        if self.icc_data_length > 0:
            err_code, err_msg = IccCreatorError.ALREADY_SET, "ICC file was already set"
        elif length == 0 or length > max_size:
            err_code, err_msg = IccCreatorError.BAD_SIZE, "invalid ICC file size"
        elif access_mode is None:
            err_code, err_msg = IccCreatorError.BAD_FD, "ICC fd is not valid"
        elif access_mode == os.O_WRONLY:
            err_code, err_msg = IccCreatorError.BAD_FD, "ICC fd is not readable"
        elif not _is_seekable(icc_profile_fd):
            err_code, err_msg = IccCreatorError.BAD_FD, "ICC fd is not seekable"
        else:
            self.icc_profile_fd = icc_profile_fd
            self.icc_data_length = length
            self.icc_data_offset = offset
            return

        _close_fd(icc_profile_fd)
        self.post_error(err_code, err_msg)

    def _length_and_offset_fit(self) -> bool:
        return self.icc_data_offset + self.icc_data_length <= MAX_FILE_OFFSET

    def _read_icc_data(self, image_desc: ImageDescription):
        """ICC bytes, or ``None`` after marking ``image_desc`` failed."""

        length = self.icc_data_length
        chunks = []
        bytes_read = 0
        while bytes_read < length:
            # os.pread retries EINTR itself
            try:
                chunk = os.pread(
                    self.icc_profile_fd, length - bytes_read, self.icc_data_offset + bytes_read
                )
            except OSError as exc:
                image_desc.set_failed(
                    FailureCause.OPERATING_SYSTEM, f"failed to read ICC file: {exc.strerror}"
                )
                return None

            if not chunk:
                self.post_error(IccCreatorError.OUT_OF_FILE, "tried to read ICC beyond EOF")
            chunks.append(chunk)
            bytes_read += len(chunk)

        return b"".join(chunks)

    def _create_profile(self, image_desc: ImageDescription) -> bool:
        if not self._length_and_offset_fit():
            image_desc.set_failed(
                FailureCause.OPERATING_SYSTEM, "length + offset does not fit off_t"
            )
            return False

        icc_data = self._read_icc_data(image_desc)
        if icc_data is None:
            return False

        cm = self.compositor.color_manager
        try:
            profile = cm.get_color_profile_from_icc(icc_data, "icc-from-client")
        except ColorError as exc:
            logger.debug("ICC image description rejected: %s", exc)
            image_desc.set_failed(FailureCause.UNSUPPORTED, str(exc))
            return False

        image_desc.set_ready(profile)
        return True

    def create(self) -> ImageDescription:
        """Create the image description; this request destroys the creator."""

        if self.icc_data_length == 0:
            self.post_error(
                IccCreatorError.INCOMPLETE_SET,
                "trying to create image description before setting the ICC file",
            )

        image_desc = ImageDescription(
            self.client, self.version, self.compositor.color_manager, supports_get_info=False
        )
        try:
            self._create_profile(image_desc)
        finally:
            self.destroy()
        return image_desc

    def _destroy(self) -> None:
        if self.icc_profile_fd >= 0:
            os.close(self.icc_profile_fd)
            self.icc_profile_fd = -1


def _access_mode(fd: int):
    """``O_RDONLY``, ``O_WRONLY`` or ``O_RDWR``; ``None`` for an invalid fd."""

    try:
        return fcntl.fcntl(fd, fcntl.F_GETFL) & os.O_ACCMODE
    except OSError:
        return None


def _close_fd(fd: int) -> None:
    try:
        os.close(fd)
    except OSError as exc:
        logger.debug("closing ICC fd %d failed: %s", fd, exc.strerror)


def _is_seekable(fd: int) -> bool:
    try:
        os.lseek(fd, 0, os.SEEK_CUR)
    except OSError:
        return False
    return True
