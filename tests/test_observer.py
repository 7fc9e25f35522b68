"""
Tests for event ingestion.

Validates that:
- Histories stay bounded, oldest evicted first
- Each event kind produces the right action or fear response
- Unsupported input is ignored without touching the histories
"""
import pytest

from nightmare_ai.config import DirectorConfig
from nightmare_ai.environment import (
    EventBus,
    PlayerActed,
    PlayerDamaged,
    PlayerInteracted,
    PlayerMoved,
    PlayerSanityChanged,
    ScareTriggered,
    parse_event,
)
from nightmare_ai.observer import Observer, fear_from_scare, fear_from_source
from nightmare_ai.types import ActionKind, FearKind, ScareKind, Vector2D
from nightmare_ai.world import PlayerState


@pytest.fixture
def player():
    return PlayerState(position=Vector2D(10, 10))


@pytest.fixture
def observer(player):
    return Observer(player)


class TestBoundedHistories:

    def test_action_history_keeps_latest_1000(self, observer):
        for i in range(1200):
            observer.record(PlayerActed(action=ActionKind.MOVE, position=Vector2D(i, 0)))

        assert len(observer.actions) == 1000
        xs = [a.position.x for a in observer.actions]
        assert xs == list(range(200, 1200))

    def test_fear_history_capped_per_kind(self, observer):
        for i in range(30):
            observer.record(PlayerSanityChanged(old_value=100, new_value=100 - (i % 10 + 1), source="gore"))
        observer.record(PlayerSanityChanged(old_value=50, new_value=40, source="darkness"))

        assert len(observer.fear_responses[FearKind.GORE]) == 20
        assert observer.fear_counts[FearKind.GORE] == 30
        assert len(observer.fear_responses[FearKind.DARKNESS]) == 1

    def test_custom_capacity(self, player):
        observer = Observer(player, config=DirectorConfig(action_history_size=5))
        for _ in range(8):
            observer.record(PlayerActed(action=ActionKind.HIDE))
        assert len(observer.actions) == 5


class TestRecord:

    def test_move_vs_run(self, observer):
        observer.record(PlayerMoved(position=Vector2D(1, 0), old_position=Vector2D(0, 0), speed=1.0))
        observer.record(PlayerMoved(position=Vector2D(5, 0), old_position=Vector2D(1, 0), speed=2.0))

        kinds = [a.kind for a in observer.actions]
        assert kinds == [ActionKind.MOVE, ActionKind.RUN]
        assert observer.actions[1].direction == Vector2D(4, 0)
        assert len(observer.movement.positions) == 2

    def test_damage_records_freeze(self, observer, player):
        observer.record(PlayerDamaged(source="spider", amount=12))

        action = observer.actions[-1]
        assert action.kind == ActionKind.FREEZE
        assert action.position == player.position
        assert action.context == {"source": "spider", "amount": 12}
        assert observer.damage_total == 12

    def test_sanity_loss_records_fear(self, observer):
        observer.record(PlayerSanityChanged(old_value=80, new_value=70, source="creature"))

        response = observer.fear_responses[FearKind.CREATURES][-1]
        assert response.strength == pytest.approx(0.5)
        assert response.sanity_loss == 10
        assert observer.sanity_loss_total == 10

    def test_large_sanity_loss_strength_capped(self, observer):
        observer.record(PlayerSanityChanged(old_value=90, new_value=30))
        assert observer.fear_responses[FearKind.UNKNOWN][-1].strength == 1.0

    def test_sanity_gain_ignored(self, observer):
        observer.record(PlayerSanityChanged(old_value=50, new_value=60))
        assert observer.fear_responses == {}

    def test_interaction(self, observer):
        observer.record(PlayerInteracted(target="door", interaction_type="open"))
        observer.record(PlayerInteracted(target="door", interaction_type="open"))
        observer.record(PlayerInteracted(target="note"))

        assert [a.kind for a in observer.actions] == [ActionKind.INTERACT] * 3
        assert observer.interaction_types == {"open": 2}

    @pytest.mark.parametrize("scare, fear", [
        (ScareKind.AMBIENT_SOUND, FearKind.ISOLATION),
        (ScareKind.SUDDEN_NOISE, FearKind.SUDDEN_NOISES),
        (ScareKind.CREATURE_APPEARANCE, FearKind.CREATURES),
        (ScareKind.ENVIRONMENT_CHANGE, FearKind.UNKNOWN),
        (ScareKind.HALLUCINATION, FearKind.ISOLATION),
        (ScareKind.WHISPER, FearKind.ISOLATION),
    ])
    def test_scare_maps_to_fear(self, observer, scare, fear):
        observer.tick(12.0)
        observer.record(ScareTriggered(scare_kind=scare, intensity=0.8))

        assert observer.fear_responses[fear][-1].strength == pytest.approx(0.8)
        assert observer.context.time_since_last_scare == 0.0

    def test_scare_uses_recent_sanity_loss(self, observer, player):
        player.reduce_sanity(7)
        observer.tick(0.1)
        observer.record(ScareTriggered(scare_kind=ScareKind.WHISPER))

        response = observer.fear_responses[FearKind.ISOLATION][-1]
        assert response.strength == 0.5
        assert response.sanity_loss == pytest.approx(7)

    def test_acted_defaults_to_player_position(self, observer, player):
        observer.record(PlayerActed(action=ActionKind.RETREAT))
        assert observer.actions[-1].position == player.position

    def test_unsupported_input_ignored(self, observer):
        assert observer.record("not an event") is False
        assert observer.record({"type": "player_moved"}) is False
        assert observer.record(None) is False
        assert len(observer.actions) == 0

    def test_malformed_dict_leaves_histories_unchanged(self, observer):
        assert parse_event({"type": "player_damaged", "amount": "lots"}) is None
        assert len(observer.actions) == 0
        assert observer.fear_responses == {}

    @pytest.mark.parametrize("event", [
        PlayerDamaged(source="trap", amount="lots"),
        PlayerInteracted(target="door", interaction_type=["open"]),
        PlayerActed(action="moonwalk"),
        ScareTriggered(scare_kind=ScareKind.WHISPER, intensity="loud"),
    ])
    def test_malformed_typed_event_leaves_histories_unchanged(self, observer, event):
        assert observer.record(event) is False
        assert len(observer.actions) == 0
        assert observer.fear_responses == {}
        assert observer.damage_total == 0.0
        assert observer.interaction_types == {}

    def test_raw_string_scare_kind(self, observer):
        assert observer.record(ScareTriggered(scare_kind="whisper", intensity=0.6)) is True
        assert observer.fear_responses[FearKind.ISOLATION][-1].strength == pytest.approx(0.6)

    def test_unknown_scare_kind_maps_to_unknown_fear(self, observer):
        observer.tick(5.0)
        assert observer.record(ScareTriggered(scare_kind="roar", intensity=0.6)) is True

        assert observer.fear_responses[FearKind.UNKNOWN][-1].strength == pytest.approx(0.6)
        assert observer.context.time_since_last_scare == 0.0

    def test_raw_string_action_is_parsed(self, observer):
        observer.record(PlayerActed(action="HIDE"))
        assert observer.actions[-1].kind is ActionKind.HIDE


class TestFearFromSource:

    def test_mapping(self):
        assert fear_from_source("creature") == FearKind.CREATURES
        assert fear_from_source("darkness") == FearKind.DARKNESS
        assert fear_from_source("bad_dream") == FearKind.UNKNOWN
        assert fear_from_source(None) == FearKind.UNKNOWN


class TestFearFromScare:

    def test_mapping(self):
        assert fear_from_scare(ScareKind.CREATURE_APPEARANCE) == FearKind.CREATURES
        assert fear_from_scare("sudden_noise") == FearKind.SUDDEN_NOISES
        assert fear_from_scare("Whisper") == FearKind.ISOLATION
        assert fear_from_scare("roar") == FearKind.UNKNOWN
        assert fear_from_scare(None) == FearKind.UNKNOWN


class TestContext:

    def test_tick_tracks_sanity_and_time(self, observer, player):
        player.reduce_sanity(15)
        observer.tick(1.0)

        assert observer.context.current_sanity == 85
        assert observer.context.recent_sanity_loss == 15
        assert observer.context.time_since_last_scare == 61.0

        observer.tick(1.0)
        assert observer.context.recent_sanity_loss == 0.0

    def test_update_environment(self, observer):
        observer.update_environment(light_level=1.4, nearby_exits=0, nearby_creatures=3)

        assert observer.context.light_level == 1.0
        assert observer.context.open_space == 0.5
        assert observer.context.nearby_exits == 0
        assert observer.context.nearby_creatures == 3

    def test_reset_scare_timer(self, observer):
        observer.reset_scare_timer()
        assert observer.context.time_since_last_scare == 0.0


class TestAnalysisGate:

    def test_maybe_analyze_interval(self, player):
        calls = []

        class StubAnalyzer:
            fear_profile = {}

            def analyze(self, obs):
                calls.append(obs)

        observer = Observer(player, analyzer=StubAnalyzer())

        assert not observer.maybe_analyze(4.0)
        assert observer.maybe_analyze(5.0)
        assert not observer.maybe_analyze(9.0)
        assert observer.maybe_analyze(10.5)
        assert len(calls) == 2

    def test_analyze_without_analyzer_is_noop(self, observer):
        observer.analyze_cycle()


class TestBusWiring:

    def test_subscribe_receives_dispatched_events(self, observer):
        bus = EventBus()
        observer.subscribe(bus)

        bus.publish({"type": "player_acted", "action": "hide"})
        bus.publish({"type": "player_sanity_changed", "old_value": 60, "new_value": 50})
        bus.dispatch_pending()

        assert observer.actions[-1].kind == ActionKind.HIDE
        assert FearKind.UNKNOWN in observer.fear_responses
