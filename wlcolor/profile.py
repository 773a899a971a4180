"""
Color profile model and registry.

A color profile is either backed by ICC data or by a validated set of
parameters. Profiles are reference counted; the registry owned by a
color manager hands out ids, deduplicates by content and unregisters a
profile before releasing its resources.
"""

from __future__ import annotations

import fcntl
import heapq
import logging
import os
import tempfile
from dataclasses import dataclass
from typing import Iterator, List, Optional, Set, Tuple

import numpy as np

from wlcolor.core.config import ProfileType
from wlcolor.core.errors import (
    IccProfileError,
    InvariantError,
    ProfileExtractError,
    UnsupportedError,
)
from wlcolor.curves import TabulatedCurve, ToneCurve
from wlcolor.icc.profile import IccProfile
from wlcolor.pipeline.chain import device_to_absolute_xyz
from wlcolor.properties import ColorGamut, ColorPrimariesInfo, TransferFunctionInfo

logger = logging.getLogger(__name__)

# ICC data handed to the registry must be shorter than this.
ICC_SIZE_LIMIT = 0xFFFFFFFF


class IdAllocator:
    """Hands out the lowest free positive id; 0 is never used."""

    def __init__(self) -> None:
        self._next = 1
        self._free: List[int] = []
        self._used: Set[int] = set()

    def __len__(self) -> int:
        return len(self._used)

    def get_id(self) -> int:
        if self._free:
            new_id = heapq.heappop(self._free)
        else:
            new_id = self._next
            self._next += 1
        self._used.add(new_id)
        return new_id

    def put_id(self, old_id: int) -> None:
        if old_id == 0 or old_id not in self._used:
            raise InvariantError(f"releasing id {old_id} that was never allocated")
        self._used.remove(old_id)
        heapq.heappush(self._free, old_id)


class ReadOnlyFile:
    """
    Anonymous file holding immutable bytes, shareable with clients.

    Uses a sealed memfd where the platform has one, otherwise an unlinked
    temporary file.
    """

    def __init__(self, data: bytes) -> None:
        self.size = len(data)
        self._sealed = hasattr(os, "memfd_create")
        if self._sealed:
            self._fd = os.memfd_create(
                "wlcolor-ro-file", os.MFD_CLOEXEC | os.MFD_ALLOW_SEALING
            )
        else:
            self._fd = os.dup(tempfile.TemporaryFile().fileno())

        os.pwrite(self._fd, data, 0)
        if self._sealed:
            fcntl.fcntl(
                self._fd,
                fcntl.F_ADD_SEALS,
                fcntl.F_SEAL_SHRINK | fcntl.F_SEAL_GROW | fcntl.F_SEAL_WRITE | fcntl.F_SEAL_SEAL,
            )

    @property
    def closed(self) -> bool:
        return self._fd < 0

    def get_fd(self) -> int:
        """A new read-only descriptor; release it with :meth:`put_fd`."""

        if self.closed:
            raise InvariantError("read-only file already closed")
        if not self._sealed:
            return os.dup(self._fd)
        return os.open(f"/proc/self/fd/{self._fd}", os.O_RDONLY | os.O_CLOEXEC)

    @staticmethod
    def put_fd(fd: int) -> None:
        os.close(fd)

    def close(self) -> None:
        if not self.closed:
            os.close(self._fd)
            self._fd = -1


@dataclass(frozen=True)
class ColorProfileParams:
    """
    Complete parameter set of a parametric profile.

    Negative luminance values mean the value is absent.
    """

    primaries: ColorGamut
    primaries_info: Optional[ColorPrimariesInfo]
    tf_info: TransferFunctionInfo
    tf_params: Tuple[float, ...]
    target_primaries: ColorGamut
    min_luminance: float = -1.0
    max_luminance: float = -1.0
    max_cll: float = -1.0
    max_fall: float = -1.0


@dataclass
class OutputProfileExtract:
    """Per-channel curves needed when a profile describes an output."""

    eotf: List[ToneCurve]
    inv_eotf: List[ToneCurve]
    vcgt: Optional[List[ToneCurve]] = None


class ColorProfile:
    """
    Reference-counted color profile.

    The creator holds the first reference. Using the profile as a context
    manager drops one reference on exit.
    """

    profile_type: Optional[ProfileType] = None

    def __init__(self, description: str) -> None:
        self.id = 0
        self.description = description
        self.ref_count = 1
        self.registry: Optional[ProfileRegistry] = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} p{self.id} refs={self.ref_count}>"

    def __enter__(self) -> ColorProfile:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unref()

    @property
    def alive(self) -> bool:
        return self.ref_count > 0

    def ref(self) -> ColorProfile:
        if not self.alive:
            raise InvariantError(f"referencing destroyed color profile p{self.id}")
        self.ref_count += 1
        return self

    def unref(self) -> None:
        if not self.alive:
            raise InvariantError(f"color profile p{self.id} unreferenced too many times")
        self.ref_count -= 1
        if self.ref_count == 0:
            self._destroy()

    def _destroy(self) -> None:
        if self.registry is not None:
            self.registry.unregister(self)
        self.release()

    def release(self) -> None:
        """Free resources held by the profile itself."""


class IccColorProfile(ColorProfile):
    profile_type = ProfileType.ICC

    def __init__(
        self,
        description: str,
        icc: IccProfile,
        md5: bytes,
        rofile: Optional[ReadOnlyFile] = None,
    ) -> None:
        super().__init__(description)
        self.icc = icc
        self.md5 = md5
        self.rofile = rofile
        self.extract: Optional[OutputProfileExtract] = None

    def release(self) -> None:
        if self.rofile is not None:
            self.rofile.close()
            self.rofile = None

    def ensure_output_extract(self, num_points: int = 1024) -> OutputProfileExtract:
        """Compute EOTF, inverse EOTF and calibration curves once."""

        if self.extract is not None:
            return self.extract

        icc = self.icc
        if icc.is_matrix_shaper():
            eotf = icc.trc_curves()
            if eotf is None:
                raise ProfileExtractError("TRC tag missing from matrix-shaper ICC profile")
        else:
            eotf = estimate_eotf(icc, num_points)

        try:
            inv_eotf = [curve.reverse() for curve in eotf]
        except (ValueError, FloatingPointError) as exc:
            raise ProfileExtractError("inverting EOTF failed") from exc

        try:
            vcgt = icc.read_vcgt()
        except IccProfileError as exc:
            logger.warning("ignoring calibration curves of p%u: %s", self.id, exc)
            vcgt = None

        self.extract = OutputProfileExtract(eotf=list(eotf), inv_eotf=inv_eotf, vcgt=vcgt)
        return self.extract


class ParametricColorProfile(ColorProfile):
    profile_type = ProfileType.PARAMS

    def __init__(self, description: str, params: ColorProfileParams) -> None:
        super().__init__(description)
        self.params = params

    def ensure_output_extract(self, num_points: int = 1024) -> OutputProfileExtract:
        raise UnsupportedError("output extract is not implemented for parametric profiles")


def ensure_output_extract(profile: ColorProfile, num_points: int = 1024) -> OutputProfileExtract:
    if isinstance(profile, (IccColorProfile, ParametricColorProfile)):
        return profile.ensure_output_extract(num_points)
    raise UnsupportedError(f"color profile p{profile.id} has no content to extract")


def estimate_eotf(icc: IccProfile, num_points: int) -> List[ToneCurve]:
    """
    Approximate per-channel EOTF of a non matrix-shaper profile.

    Each channel is ramped alone through the device to ICC-absolute XYZ
    transform and every sample is projected onto the XYZ of the channel
    at full drive.
    """

    try:
        pipeline = device_to_absolute_xyz(icc)
    except (IccProfileError, ValueError) as exc:
        raise ProfileExtractError("estimating EOTF failed") from exc

    ramp = np.linspace(0.0, 1.0, num_points)
    curves: List[ToneCurve] = []
    for ch in range(3):
        rgb = np.zeros(3)
        rgb[ch] = 1.0
        prim_max = pipeline.evaluate(rgb)
        magnitude = float(np.dot(prim_max, prim_max))
        if not magnitude > 0.0:
            raise ProfileExtractError("estimating EOTF failed")

        samples = np.zeros((num_points, 3))
        samples[:, ch] = ramp
        xyz = pipeline.evaluate(samples)
        curve = TabulatedCurve(xyz @ prim_max / magnitude)
        if not curve.is_monotonic():
            raise ProfileExtractError("estimating EOTF failed")
        curves.append(curve)
    return curves


def icc_profile_description(icc: IccProfile, md5: bytes, name_part: str) -> str:
    return "ICCv%.1f %s %s" % (icc.version_number, name_part, md5.hex())


def params_profile_description(params: ColorProfileParams, name_part: str) -> str:
    primaries = params.primaries_info.desc if params.primaries_info else "custom primaries"
    return "Parametric (%s): %s, %s" % (name_part, primaries, params.tf_info.desc)


class ProfileRegistry:
    """Live profiles of one color manager, with id allocation and dedup."""

    def __init__(self) -> None:
        self._profiles: List[ColorProfile] = []
        self._ids = IdAllocator()

    def __iter__(self) -> Iterator[ColorProfile]:
        return iter(list(self._profiles))

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, profile: object) -> bool:
        return any(p is profile for p in self._profiles)

    def register(self, profile: ColorProfile) -> ColorProfile:
        if profile.registry is not None:
            raise InvariantError(f"color profile p{profile.id} already registered")
        profile.id = self._ids.get_id()
        profile.registry = self
        self._profiles.append(profile)
        logger.debug("New color profile: p%u", profile.id)
        logger.debug("  description: %s", profile.description)
        return profile

    def unregister(self, profile: ColorProfile) -> None:
        self._profiles = [p for p in self._profiles if p is not profile]
        logger.debug(
            "Destroyed color profile p%u. Description: %s", profile.id, profile.description
        )
        self._ids.put_id(profile.id)
        profile.registry = None

    def find_icc(self, md5: bytes) -> Optional[IccColorProfile]:
        for profile in self._profiles:
            if isinstance(profile, IccColorProfile) and profile.md5 == md5:
                return profile
        return None

    def find_params(self, params: ColorProfileParams) -> Optional[ParametricColorProfile]:
        for profile in self._profiles:
            if isinstance(profile, ParametricColorProfile) and profile.params == params:
                return profile
        return None

    def create_from_icc(
        self, data: bytes, name_part: str, shareable: bool = True
    ) -> IccColorProfile:
        """
        Parse and validate display-class ICC data.

        Returns a new reference to an existing profile with the same
        content hash, otherwise a newly registered profile. Only shareable
        profiles keep a read-only file for handing the data to clients.
        """

        if len(data) >= ICC_SIZE_LIMIT:
            raise IccProfileError("Too much ICC data.")

        icc = IccProfile.from_bytes(data)
        icc.validate_display()
        md5 = icc.profile_id()

        existing = self.find_icc(md5)
        if existing is not None:
            existing.ref()
            return existing

        rofile = ReadOnlyFile(icc.data) if shareable else None
        profile = IccColorProfile(icc_profile_description(icc, md5, name_part), icc, md5, rofile)
        self.register(profile)
        return profile

    def create_from_params(self, params: ColorProfileParams, name_part: str) -> ParametricColorProfile:
        existing = self.find_params(params)
        if existing is not None:
            existing.ref()
            return existing

        profile = ParametricColorProfile(params_profile_description(params, name_part), params)
        self.register(profile)
        return profile
