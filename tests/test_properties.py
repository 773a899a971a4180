"""
Tests for the color property tables.
"""

from __future__ import annotations

import pytest

from wlcolor.core.codes import ProtocolPrimaries, ProtocolRenderIntent, ProtocolTransferFunction
from wlcolor.properties import (
    ColorPrimaries,
    RenderIntent,
    TransferFunction,
    color_primaries_info_from,
    color_primaries_info_from_protocol,
    render_intent_info_from,
    render_intent_info_from_protocol,
    tf_info_from,
    tf_info_from_protocol,
)


def test_srgb_primaries() -> None:
    info = color_primaries_info_from(ColorPrimaries.SRGB)
    assert info.protocol_primaries == ProtocolPrimaries.SRGB
    assert info.color_gamut.primary[0] == pytest.approx((0.64, 0.33))
    assert info.color_gamut.white_point == pytest.approx((0.3127, 0.3290))


@pytest.mark.parametrize("primaries", list(ColorPrimaries))
def test_primaries_protocol_lookup_round_trips(primaries: ColorPrimaries) -> None:
    info = color_primaries_info_from(primaries)
    assert color_primaries_info_from_protocol(int(info.protocol_primaries)) is info


def test_unknown_protocol_codes() -> None:
    assert color_primaries_info_from_protocol(999) is None
    assert render_intent_info_from_protocol(999) is None
    assert tf_info_from_protocol(999) is None


def test_render_intent_table() -> None:
    bpc = render_intent_info_from(RenderIntent.RELATIVE_BPC)
    assert bpc.bpc
    assert bpc.icc_intent == 1
    assert render_intent_info_from(RenderIntent.ABSOLUTE).icc_intent == 3
    assert render_intent_info_from_protocol(ProtocolRenderIntent.PERCEPTUAL) is (
        render_intent_info_from(RenderIntent.PERCEPTUAL)
    )


def test_transfer_function_table() -> None:
    assert tf_info_from(TransferFunction.POWER).has_parameters
    assert tf_info_from(TransferFunction.POWER).protocol_tf is None
    assert not tf_info_from(TransferFunction.ST2084_PQ).has_parameters
    assert tf_info_from_protocol(ProtocolTransferFunction.GAMMA22) is (
        tf_info_from(TransferFunction.GAMMA22)
    )
