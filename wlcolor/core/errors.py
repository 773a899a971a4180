"""
Exception hierarchy for wlcolor.

Content errors (bad ICC data, inconsistent parameters) derive from
:class:`ColorError` and are always recoverable. Protocol errors are raised
by the protocol objects and disconnect the offending client. Internal
invariant violations raise :class:`InvariantError`.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:  # pragma: no cover
    from wlcolor.protocol.resource import Resource


class ColorError(Exception):
    """Base class for recoverable color management errors."""


class IccProfileError(ColorError):
    """ICC data was not understood or failed validation."""


class ProfileExtractError(ColorError):
    """EOTF, inverse EOTF or calibration curves could not be extracted."""


class UnsupportedError(ColorError):
    """The requested operation is not implemented by this backend or variant."""


class ColorTransformError(ColorError):
    """A color transform could not be realized."""


class ParamBuilderErrorCode(Enum):
    """Error codes of the parametric profile builder."""

    ALREADY_SET = "already_set"
    INVALID_PRIMARIES = "invalid_primaries"
    INVALID_TF = "invalid_tf"
    INVALID_TARGET_PRIMARIES = "invalid_target_primaries"
    INVALID_LUMINANCE = "invalid_luminance"
    INCOMPLETE_SET = "incomplete_set"
    INCONSISTENT_SET = "inconsistent_set"
    CIE_XY_OUT_OF_RANGE = "cie_xy_out_of_range"
    INCONSISTENT_LUMINANCES = "inconsistent_luminances"
    UNSUPPORTED = "unsupported"


class ParamBuilderError(ColorError):
    """
    Accumulated parametric builder failure.

    ``code`` is the first error encountered; ``messages`` keeps every
    message in the order they were stored.
    """

    def __init__(self, code: ParamBuilderErrorCode, messages: List[str]) -> None:
        self.code = code
        self.messages = list(messages)
        super().__init__("\n".join(self.messages))


class ProtocolError(Exception):
    """A client violated the protocol on ``resource``."""

    def __init__(self, resource: Optional["Resource"], code: int, message: str) -> None:
        self.resource = resource
        self.code = code
        self.message = message
        name = resource.interface if resource is not None else "client"
        super().__init__(f"{name}: error {int(code)}: {message}")


class InvariantError(RuntimeError):
    """An internal invariant of the color subsystem was violated."""
