"""Color management for a Wayland compositor.

ICC and parametric color profiles, color transform construction and
caching, output color outcomes and the color-management protocol objects.
"""

from wlcolor.core.compositor import (
    ColorCharacteristics,
    Compositor,
    Head,
    Output,
    Surface,
)
from wlcolor.core.config import (
    ColorManagerConfig,
    ColorManagerKind,
    EotfMode,
    ProfileType,
    TransformCategory,
    TransformStatus,
)
from wlcolor.core.errors import (
    ColorError,
    ColorTransformError,
    IccProfileError,
    InvariantError,
    ParamBuilderError,
    ProfileExtractError,
    ProtocolError,
    UnsupportedError,
)
from wlcolor.manager import (
    CmsColorManager,
    ColorManager,
    NoopColorManager,
    create_color_manager,
)
from wlcolor.outcome import HdrMetadataType1, OutputColorOutcome, validate_hdr_metadata
from wlcolor.param_builder import ColorProfileParamBuilder
from wlcolor.profile import ColorProfile, ColorProfileParams, IccColorProfile, ParametricColorProfile
from wlcolor.transform import ColorTransform, TransformSearchParam

__all__ = [
    "Compositor",
    "Head",
    "Output",
    "Surface",
    "ColorCharacteristics",
    "ColorManagerConfig",
    "ColorManagerKind",
    "EotfMode",
    "ProfileType",
    "TransformCategory",
    "TransformStatus",
    "ColorError",
    "ColorTransformError",
    "IccProfileError",
    "InvariantError",
    "ParamBuilderError",
    "ProfileExtractError",
    "ProtocolError",
    "UnsupportedError",
    "ColorManager",
    "CmsColorManager",
    "NoopColorManager",
    "create_color_manager",
    "ColorProfile",
    "ColorProfileParams",
    "IccColorProfile",
    "ParametricColorProfile",
    "ColorProfileParamBuilder",
    "ColorTransform",
    "TransformSearchParam",
    "HdrMetadataType1",
    "OutputColorOutcome",
    "validate_hdr_metadata",
]

__version__ = "0.1.0"
