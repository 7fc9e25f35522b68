"""
Tests for scare effectiveness tracking.
"""
import random
from collections import Counter

import pytest

from nightmare_ai.decision import ScareEffectiveness
from nightmare_ai.types import ScareKind


class TestSettle:

    def test_waits_for_window(self):
        tracker = ScareEffectiveness(window=10.0)
        tracker.record_fire(ScareKind.WHISPER, sanity=80.0, now=0.0)

        assert tracker.settle(now=9.9, sanity=60.0) == []
        assert tracker.pending() == 1

        assert tracker.settle(now=10.0, sanity=70.0) == [(ScareKind.WHISPER, 0.5)]
        assert tracker.pending() == 0

    def test_response_clamped(self):
        tracker = ScareEffectiveness(window=0.0)
        tracker.record_fire(ScareKind.SUDDEN_NOISE, sanity=50.0, now=0.0)
        tracker.record_fire(ScareKind.HALLUCINATION, sanity=50.0, now=0.0)

        scored = dict(tracker.settle(now=0.0, sanity=0.0))
        assert scored[ScareKind.SUDDEN_NOISE] == 1.0

        tracker.record_fire(ScareKind.WHISPER, sanity=50.0, now=0.0)
        assert tracker.settle(now=0.0, sanity=80.0) == [(ScareKind.WHISPER, 0.0)]

    def test_settles_in_firing_order(self):
        tracker = ScareEffectiveness(window=10.0)
        tracker.record_fire(ScareKind.WHISPER, 100.0, now=0.0)
        tracker.record_fire(ScareKind.SUDDEN_NOISE, 100.0, now=5.0)

        assert [k for k, _ in tracker.settle(now=12.0, sanity=90.0)] == [ScareKind.WHISPER]
        assert [k for k, _ in tracker.settle(now=15.0, sanity=90.0)] == [ScareKind.SUDDEN_NOISE]


class TestUpdate:

    def test_first_sample_then_ema(self):
        tracker = ScareEffectiveness()

        assert tracker.update(ScareKind.WHISPER, 0.6) == 0.6
        assert tracker.update(ScareKind.WHISPER, 0.0) == pytest.approx(0.42)
        assert tracker.samples[ScareKind.WHISPER] == 2

    def test_mean(self):
        tracker = ScareEffectiveness()
        assert tracker.mean() is None

        tracker.update(ScareKind.WHISPER, 0.2)
        tracker.update(ScareKind.SUDDEN_NOISE, 0.6)
        assert tracker.mean() == pytest.approx(0.4)


class TestChoice:

    def test_weights_use_floor_and_mean(self):
        tracker = ScareEffectiveness(floor=0.1)
        tracker.update(ScareKind.WHISPER, 0.9)
        tracker.update(ScareKind.SUDDEN_NOISE, 0.1)

        weights = tracker.weights()
        assert weights[ScareKind.WHISPER] == pytest.approx(1.0)
        assert weights[ScareKind.SUDDEN_NOISE] == pytest.approx(0.2)
        assert weights[ScareKind.HALLUCINATION] == pytest.approx(0.6)

    def test_favours_effective_kind(self):
        tracker = ScareEffectiveness(floor=0.1)
        for kind in ScareKind:
            tracker.update(kind, 0.0)
        tracker.update(ScareKind.CREATURE_APPEARANCE, 1.0)

        rng = random.Random(2024)
        counts = Counter(tracker.choose(rng) for _ in range(2000))

        top = counts.most_common(1)[0][0]
        assert top == ScareKind.CREATURE_APPEARANCE
        assert counts[ScareKind.CREATURE_APPEARANCE] > counts[ScareKind.WHISPER] * 2

    def test_uniform_without_data(self):
        tracker = ScareEffectiveness()
        rng = random.Random(3)
        assert {tracker.choose(rng) for _ in range(300)} == set(ScareKind)

    def test_has_data_and_pending(self):
        tracker = ScareEffectiveness()
        assert not tracker.has_data

        tracker.record_fire(ScareKind.WHISPER, 50.0, 0.0)
        assert tracker.pending() == 1
        assert not tracker.has_data

        tracker.settle(10.0, 40.0)
        assert tracker.pending() == 0
        assert tracker.has_data
        assert tracker.to_dict() == {"whisper": pytest.approx(0.5)}
