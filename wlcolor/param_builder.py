"""
Parametric color profile builder.

Parameters are set group by group. Every failure is recorded as a
message; the first error code is the one reported when the profile is
finally created.
"""

from __future__ import annotations

import logging
from enum import IntFlag
from typing import List, Optional, Tuple

from wlcolor.core.errors import (
    ColorError,
    InvariantError,
    ParamBuilderError,
    ParamBuilderErrorCode,
)
from wlcolor.profile import ColorProfile, ColorProfileParams
from wlcolor.properties import (
    ColorFeature,
    ColorGamut,
    ColorPrimaries,
    ColorPrimariesInfo,
    TransferFunction,
    TransferFunctionInfo,
    color_primaries_info_from,
    tf_info_from,
)

logger = logging.getLogger(__name__)

# Legal range of CIE xy coordinates
CIE_XY_MIN = -1.0
CIE_XY_MAX = 2.0

# Smallest triangle area accepted and the tolerance of the inside test
AREA_PRECISION = 1e-5


class ParamsGroup(IntFlag):
    PRIMARIES = 0x01
    TF = 0x02
    TARGET_PRIMARIES = 0x04
    LUMINANCE = 0x08
    MAXCLL = 0x10
    MAXFALL = 0x20


def triangle_area(x1: float, y1: float, x2: float, y2: float, x3: float, y3: float) -> float:
    """Shoelace formula."""

    return abs((x1 - x3) * (y2 - y1) - (x1 - x2) * (y3 - y1)) / 2.0


def is_point_inside_triangle(point: Tuple[float, float], triangle) -> bool:
    """False as well for degenerate triangles."""

    (x1, y1), (x2, y2), (x3, y3) = triangle
    px, py = point

    area = triangle_area(x1, y1, x2, y2, x3, y3)
    if area <= AREA_PRECISION:
        return False

    a1 = triangle_area(px, py, x1, y1, x2, y2)
    a2 = triangle_area(px, py, x1, y1, x3, y3)
    a3 = triangle_area(px, py, x2, y2, x3, y3)
    return abs(area - (a1 + a2 + a3)) <= AREA_PRECISION


def gamut_error(gamut: ColorGamut, gamut_name: str) -> Optional[str]:
    """Describe why ``gamut`` is unusable, or ``None`` if it is fine."""

    if any(not (CIE_XY_MIN <= v <= CIE_XY_MAX) for v in gamut.coordinates()):
        return f"invalid {gamut_name}"
    if not is_point_inside_triangle(gamut.white_point, gamut.primary):
        return f"white point out of {gamut_name} volume"
    return None


class ColorProfileParamBuilder:
    """
    Accumulates parameters for a parametric color profile.

    Setters return ``False`` on failure and leave the group unset. The
    builder is consumed by :meth:`create_color_profile`, successful or not.
    """

    def __init__(self, compositor) -> None:
        self.compositor = compositor
        self.group_mask = ParamsGroup(0)

        self._primaries: Optional[ColorGamut] = None
        self._primaries_info: Optional[ColorPrimariesInfo] = None
        self._tf_info: Optional[TransferFunctionInfo] = None
        self._tf_params: Tuple[float, ...] = ()
        self._target_primaries: Optional[ColorGamut] = None
        self._min_luminance = -1.0
        self._max_luminance = -1.0
        self._max_cll = -1.0
        self._max_fall = -1.0

        self._err: Optional[ParamBuilderErrorCode] = None
        self._messages: List[str] = []
        self._consumed = False

    @property
    def color_manager(self):
        return self.compositor.color_manager

    def _check_alive(self) -> None:
        if self._consumed:
            raise InvariantError("parametric builder used after create_color_profile()")

    def _store_error(self, code: ParamBuilderErrorCode, message: str) -> None:
        if self._err is None:
            self._err = code
        self._messages.append(message)

    def _feature_supported(self, feature: ColorFeature) -> bool:
        return feature in self.color_manager.supported_color_features

    def get_error(self) -> Optional[Tuple[ParamBuilderErrorCode, str]]:
        """First error code and all messages so far, or ``None``."""

        if self._err is None:
            return None
        return self._err, "\n".join(self._messages)

    def _group_already_set(self, group: ParamsGroup, what: str) -> bool:
        if self.group_mask & group:
            self._store_error(ParamBuilderErrorCode.ALREADY_SET, f"{what} already set")
            return True
        return False

    def _gamut_rejected(self, gamut: ColorGamut, gamut_name: str) -> bool:
        message = gamut_error(gamut, gamut_name)
        if message is not None:
            self._store_error(ParamBuilderErrorCode.CIE_XY_OUT_OF_RANGE, message)
            return True
        return False

    def set_primaries(self, primaries: ColorGamut) -> bool:
        self._check_alive()
        success = True

        if not self._feature_supported(ColorFeature.SET_PRIMARIES):
            self._store_error(
                ParamBuilderErrorCode.INVALID_PRIMARIES,
                "set_primaries not supported by the color manager",
            )
            success = False

        if self._group_already_set(ParamsGroup.PRIMARIES, "primaries were"):
            success = False

        if success and self._gamut_rejected(primaries, "primaries"):
            success = False

        if not success:
            return False

        self._primaries = primaries
        self.group_mask |= ParamsGroup.PRIMARIES
        return True

    def set_primaries_named(self, primaries: ColorPrimaries) -> bool:
        self._check_alive()
        success = True

        if primaries not in self.color_manager.supported_primaries_named:
            self._store_error(
                ParamBuilderErrorCode.INVALID_PRIMARIES,
                f"named primaries {primaries.value} not supported by the color manager",
            )
            success = False

        if self._group_already_set(ParamsGroup.PRIMARIES, "primaries were"):
            success = False

        if not success:
            return False

        self._primaries_info = color_primaries_info_from(primaries)
        self._primaries = self._primaries_info.color_gamut
        self.group_mask |= ParamsGroup.PRIMARIES
        return True

    def set_tf_named(self, tf: TransferFunction) -> bool:
        self._check_alive()
        success = True

        if tf not in self.color_manager.supported_tf_named:
            self._store_error(
                ParamBuilderErrorCode.INVALID_TF,
                f"named tf {tf.value} not supported by the color manager",
            )
            success = False

        if self._group_already_set(ParamsGroup.TF, "tf was"):
            success = False

        if not success:
            return False

        info = tf_info_from(tf)
        if info.has_parameters:
            raise InvariantError(f"named tf {tf.name} requires parameters")

        self._tf_info = info
        self.group_mask |= ParamsGroup.TF
        return True

    def set_tf_power_exponent(self, power_exponent: float) -> bool:
        self._check_alive()
        success = True

        if not self._feature_supported(ColorFeature.SET_TF_POWER):
            self._store_error(
                ParamBuilderErrorCode.INVALID_TF,
                "set_tf_power not supported by the color manager",
            )
            success = False

        if self._group_already_set(ParamsGroup.TF, "tf was"):
            success = False

        if not (1.0 <= power_exponent <= 10.0):
            self._store_error(
                ParamBuilderErrorCode.INVALID_TF,
                f"tf power exponent {power_exponent:f} is not in the range [1.0, 10.0]",
            )
            success = False

        if not success:
            return False

        self._tf_info = tf_info_from(TransferFunction.POWER)
        self._tf_params = (float(power_exponent),)
        self.group_mask |= ParamsGroup.TF
        return True

    def set_target_primaries(self, target_primaries: ColorGamut) -> bool:
        self._check_alive()
        success = True

        if not self._feature_supported(ColorFeature.SET_MASTERING_DISPLAY_PRIMARIES):
            self._store_error(
                ParamBuilderErrorCode.INVALID_TARGET_PRIMARIES,
                "set_mastering_display_primaries not supported by the color manager",
            )
            success = False

        if self._group_already_set(ParamsGroup.TARGET_PRIMARIES, "target primaries were"):
            success = False

        if success and self._gamut_rejected(target_primaries, "target primaries"):
            success = False

        if not success:
            return False

        self._target_primaries = target_primaries
        self.group_mask |= ParamsGroup.TARGET_PRIMARIES
        return True

    def set_target_luminance(self, min_luminance: float, max_luminance: float) -> bool:
        self._check_alive()
        success = True

        if self._group_already_set(ParamsGroup.LUMINANCE, "target luminance was"):
            success = False

        if min_luminance >= max_luminance:
            self._store_error(
                ParamBuilderErrorCode.INVALID_LUMINANCE,
                f"min luminance {min_luminance:f} shouldn't be greater than or "
                f"equal to max {max_luminance:f}",
            )
            success = False

        if not success:
            return False

        self._min_luminance = float(min_luminance)
        self._max_luminance = float(max_luminance)
        self.group_mask |= ParamsGroup.LUMINANCE
        return True

    def set_max_fall(self, max_fall: float) -> bool:
        self._check_alive()
        if self._group_already_set(ParamsGroup.MAXFALL, "max fall was"):
            return False

        self._max_fall = float(max_fall)
        self.group_mask |= ParamsGroup.MAXFALL
        return True

    def set_max_cll(self, max_cll: float) -> bool:
        self._check_alive()
        if self._group_already_set(ParamsGroup.MAXCLL, "max cll was"):
            return False

        self._max_cll = float(max_cll)
        self.group_mask |= ParamsGroup.MAXCLL
        return True

    def _complete_params(self) -> None:
        if not self.group_mask & ParamsGroup.TARGET_PRIMARIES:
            self._target_primaries = self._primaries

        if not self.group_mask & ParamsGroup.LUMINANCE:
            self._min_luminance = -1.0
            self._max_luminance = -1.0
        if not self.group_mask & ParamsGroup.MAXCLL:
            self._max_cll = -1.0
        if not self.group_mask & ParamsGroup.MAXFALL:
            self._max_fall = -1.0

    def _validate_params_set(self) -> None:
        if not self.group_mask & ParamsGroup.PRIMARIES:
            self._store_error(ParamBuilderErrorCode.INCOMPLETE_SET, "primaries not set")

        if not self.group_mask & ParamsGroup.TF:
            self._store_error(ParamBuilderErrorCode.INCOMPLETE_SET, "transfer function not set")

        luminance_groups = ParamsGroup.LUMINANCE | ParamsGroup.MAXCLL | ParamsGroup.MAXFALL
        is_pq = self._tf_info is not None and self._tf_info.tf == TransferFunction.ST2084_PQ
        if self.group_mask & luminance_groups and not is_pq:
            self._store_error(
                ParamBuilderErrorCode.INCONSISTENT_SET,
                "luminance values were given but transfer function "
                "is not Rec. ITU-R BT.2100-2 (PQ)",
            )

    def _validate_light_level(self, name: str, value: float) -> None:
        if not self.group_mask & ParamsGroup.LUMINANCE:
            return

        if self._min_luminance >= value:
            self._store_error(
                ParamBuilderErrorCode.INCONSISTENT_LUMINANCES,
                f"{name} ({value:f}) should be greater or equal to min luminance "
                f"({self._min_luminance:f})",
            )
        if self._max_luminance < value:
            self._store_error(
                ParamBuilderErrorCode.INCONSISTENT_LUMINANCES,
                f"{name} ({value:f}) should not be greater than max luminance "
                f"({self._max_luminance:f})",
            )

    def _validate_params(self) -> None:
        if self.group_mask & ParamsGroup.PRIMARIES:
            self._gamut_rejected(self._primaries, "primaries")

        if self.group_mask & ParamsGroup.TARGET_PRIMARIES:
            self._gamut_rejected(self._target_primaries, "target primaries")

        if self.group_mask & ParamsGroup.MAXCLL:
            self._validate_light_level("maxCLL", self._max_cll)

        if self.group_mask & ParamsGroup.MAXFALL:
            self._validate_light_level("maxFALL", self._max_fall)

    def create_color_profile(self, name_part: str) -> ColorProfile:
        """
        Validate everything and hand the parameters to the color manager.

        Raises
        ------
        ParamBuilderError
            With the first error code and every message collected.
        """

        self._check_alive()
        self._consumed = True

        self._complete_params()
        self._validate_params_set()
        self._validate_params()

        if self._err is not None:
            raise ParamBuilderError(self._err, self._messages)

        params = ColorProfileParams(
            primaries=self._primaries,
            primaries_info=self._primaries_info,
            tf_info=self._tf_info,
            tf_params=self._tf_params,
            target_primaries=self._target_primaries,
            min_luminance=self._min_luminance,
            max_luminance=self._max_luminance,
            max_cll=self._max_cll,
            max_fall=self._max_fall,
        )

        try:
            return self.color_manager.get_color_profile_from_params(params, name_part)
        except ColorError as exc:
            raise ParamBuilderError(ParamBuilderErrorCode.UNSUPPORTED, [str(exc)]) from exc
