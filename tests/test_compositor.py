"""
Tests for outputs, surfaces and the compositor lifecycle.
"""

from __future__ import annotations

import logging

import pytest

from wlcolor import ColorProfileParamBuilder, Compositor
from wlcolor.core.errors import InvariantError
from wlcolor.properties import ColorPrimaries, TransferFunction


def test_enable_uses_stock_profile(compositor, caplog) -> None:
    output = compositor.create_output("eDP-1")
    assert output.color_profile is None

    with caplog.at_level(logging.INFO, logger="wlcolor.core.compositor"):
        assert output.enable()
    assert output.color_profile is compositor.color_manager.stock_profile
    assert "Output 'eDP-1' enabled" in caplog.text
    assert "  color profile: p1" in caplog.text

    # enabling twice is harmless
    assert output.enable()
    assert output.color_outcome_serial == 1


def test_failed_profile_change_is_reverted(compositor) -> None:
    cm = compositor.color_manager
    cm.supported_tf_named = frozenset({TransferFunction.GAMMA22})
    output = compositor.create_output("out")
    assert output.enable()
    outcome = output.color_outcome

    builder = ColorProfileParamBuilder(compositor)
    builder.set_primaries_named(ColorPrimaries.SRGB)
    builder.set_tf_named(TransferFunction.GAMMA22)
    with builder.create_color_profile("params") as profile:
        assert not output.set_color_profile(profile)
        assert profile.ref_count == 1

    assert output.color_profile is cm.stock_profile
    assert output.color_outcome is outcome
    assert output.color_outcome_serial == 1


def test_head_attaches_once(compositor) -> None:
    head = compositor.create_head("DP-2")
    output = compositor.create_output("a", [head])
    assert not head.active
    assert output.enable()
    assert head.active
    with pytest.raises(InvariantError):
        compositor.create_output("b", [head])


def test_commit_moves_profile_references(compositor, bt2020_icc) -> None:
    cm = compositor.color_manager
    surface = compositor.create_surface()
    assert surface.preferred_color_profile is cm.stock_profile

    profile = cm.get_color_profile_from_icc(bt2020_icc, "surface")
    surface.pending.color_profile = profile
    surface.commit()
    assert profile.ref_count == 2

    surface.commit()
    assert profile.ref_count == 2

    surface.pending.clear()
    surface.commit()
    assert surface.color_profile is None
    assert profile not in cm.profiles


def test_surface_preferred_profile_follows_output(compositor, bt2020_icc) -> None:
    cm = compositor.color_manager
    with cm.get_color_profile_from_icc(bt2020_icc, "output") as profile:
        output = compositor.create_output("wide")
        output.set_color_profile(profile)
        assert output.enable()

    surface = compositor.create_surface()
    surface.set_output(output)
    assert surface.preferred_color_profile is output.color_profile

    surface.set_output(None)
    assert surface.preferred_color_profile is cm.stock_profile


def test_destroy_releases_everything(bt2020_icc) -> None:
    comp = Compositor()
    cm = comp.color_manager
    with cm.get_color_profile_from_icc(bt2020_icc, "output") as profile:
        output = comp.create_output("out", [comp.create_head("out")])
        output.set_color_profile(profile)
        assert output.enable()
    comp.create_surface().set_output(output)

    comp.destroy()
    assert len(cm.transforms) == 0
    assert len(cm.profiles) == 0
    assert comp.surfaces == []
