"""
Tests for core data types.
"""
import math

import pytest

from nightmare_ai.types import (
    ActionKind,
    FearKind,
    FearResponse,
    ObservationContext,
    ReactorType,
    ScareEvent,
    ScareKind,
    ScareRecommendation,
    Vector2D,
)
from nightmare_ai.util import argmax_ordered, clamp


class TestEnums:
    """Enum parsing and fallbacks."""

    def test_fear_kind_parse_known(self):
        assert FearKind.parse("darkness") == FearKind.DARKNESS
        assert FearKind.parse("SUDDEN_NOISES") == FearKind.SUDDEN_NOISES
        assert FearKind.parse(FearKind.GORE) == FearKind.GORE

    def test_fear_kind_unknown_fallback(self):
        assert FearKind.parse("spiders") == FearKind.UNKNOWN
        assert FearKind.parse(None) == FearKind.UNKNOWN
        assert FearKind.parse(42) == FearKind.UNKNOWN

    def test_scare_kind_unknown_fallback(self):
        assert ScareKind.parse("whisper") == ScareKind.WHISPER
        assert ScareKind.parse("jumpscare") == ScareKind.AMBIENT_SOUND
        assert ScareKind.parse(None) == ScareKind.AMBIENT_SOUND

    def test_action_kind_parse(self):
        assert ActionKind.parse("hide") == ActionKind.HIDE
        assert ActionKind.parse("dance") is None

    def test_declaration_order(self):
        """Declaration order is the tie-break order."""
        assert list(FearKind)[0] == FearKind.DARKNESS
        assert list(FearKind)[-1] == FearKind.UNKNOWN
        assert list(ReactorType)[0] == ReactorType.CAUTIOUS
        assert len(list(ScareKind)) == 6


class TestVector2D:

    def test_arithmetic(self):
        a = Vector2D(1, 2)
        b = Vector2D(4, 6)
        assert a + b == Vector2D(5, 8)
        assert b - a == Vector2D(3, 4)
        assert (b - a).length() == 5.0
        assert a.distance_to(b) == 5.0

    def test_immutable(self):
        v = Vector2D(1, 1)
        with pytest.raises(Exception):
            v.x = 3


class TestRecords:

    def test_fear_response_strength_clamped(self):
        assert FearResponse(FearKind.GORE, 1.7).strength == 1.0
        assert FearResponse(FearKind.GORE, -0.2).strength == 0.0

    def test_context_defaults(self):
        ctx = ObservationContext()
        assert ctx.current_sanity == 100.0
        assert ctx.time_since_last_scare == 60.0
        assert ctx.recent_sanity_loss == 0.0
        assert ctx.to_dict()["nearby_exits"] == 2

    def test_scare_event_to_dict(self):
        event = ScareEvent(ScareKind.WHISPER, 0.4, Vector2D(1, 2), duration=2.5)
        data = event.to_dict()
        assert data["kind"] == "whisper"
        assert data["position"] == {"x": 1, "y": 2}
        assert data["creature_type"] is None

    def test_recommendation_to_dict(self):
        rec = ScareRecommendation(
            ScareKind.SUDDEN_NOISE, FearKind.SUDDEN_NOISES, 0.5, Vector2D(), 10.0, 0.4
        )
        assert rec.to_dict()["fear_target"] == "sudden_noises"


class TestUtil:

    def test_clamp(self):
        assert clamp(2.0, 0.0, 1.0) == 1.0
        assert clamp(-1.0, 0.0, 1.0) == 0.0
        assert clamp(0.4, 0.0, 1.0) == 0.4

    def test_argmax_ties_go_to_first(self):
        values = {FearKind.GORE: 0.7, FearKind.DARKNESS: 0.7, FearKind.CREATURES: 0.2}
        assert argmax_ordered(values, list(FearKind)) == FearKind.DARKNESS

    def test_argmax_empty(self):
        assert argmax_ordered({}, list(FearKind)) is None
