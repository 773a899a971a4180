"""
Tests for configuration and backend selection.
"""

from __future__ import annotations

import pytest

from wlcolor import (
    CmsColorManager,
    ColorManagerConfig,
    ColorManagerKind,
    Compositor,
    NoopColorManager,
    UnsupportedError,
    create_color_manager,
)
from wlcolor.properties import ColorFeature


def test_default_config_is_valid() -> None:
    config = ColorManagerConfig()
    config.validate()
    assert config.kind == ColorManagerKind.CMS
    assert config.max_icc_size == 4 * 1024 * 1024


@pytest.mark.parametrize(
    "kwargs",
    [
        {"num_1d_points": 1},
        {"num_3d_points": 257},
        {"matrix_precision_bits": 0},
        {"max_icc_size": 0},
        {"extra_color_features": frozenset({"icc"})},
    ],
)
def test_invalid_config_rejected(kwargs) -> None:
    with pytest.raises(ValueError):
        ColorManagerConfig(**kwargs).validate()


def test_factory_selects_backend() -> None:
    comp = Compositor()
    try:
        assert isinstance(comp.color_manager, CmsColorManager)
        noop = create_color_manager(comp, ColorManagerConfig(kind=ColorManagerKind.NOOP))
        assert isinstance(noop, NoopColorManager)
    finally:
        comp.destroy()


def test_factory_rejects_unknown_kind() -> None:
    config = ColorManagerConfig()
    config.kind = "lcms"
    with pytest.raises(ValueError):
        create_color_manager(None, config)


def test_cms_requires_color_capable_renderer() -> None:
    with pytest.raises(UnsupportedError):
        Compositor(supports_color_ops=False)


def test_noop_ignores_renderer_capability() -> None:
    comp = Compositor(ColorManagerConfig(kind=ColorManagerKind.NOOP), supports_color_ops=False)
    assert comp.color_manager.name == "no-op"
    comp.destroy()


def test_extra_features_are_advertised() -> None:
    config = ColorManagerConfig(extra_color_features=frozenset({ColorFeature.PARAMETRIC}))
    comp = Compositor(config)
    try:
        cm = comp.color_manager
        assert cm.supports_feature(ColorFeature.ICC)
        assert cm.supports_feature(ColorFeature.PARAMETRIC)
        assert not cm.supports_feature(ColorFeature.SET_PRIMARIES)
    finally:
        comp.destroy()
