"""
End-to-end tests for the nightmare engine.

Drives the whole loop (bus -> observer -> analyzer -> director) through
NightmareEngine.tick() with a seeded config.
"""
import numpy as np
import pytest

from nightmare_ai.config import ConfigPresets, DirectorConfig
from nightmare_ai.engine import NightmareEngine
from nightmare_ai.environment import PlayerActed, PlayerMoved, PlayerSanityChanged
from nightmare_ai.types import ActionKind, FearKind, ReactorType, ScareKind, Vector2D
from nightmare_ai.world import PlayerState, RecordingWorld, World


@pytest.fixture
def world():
    return RecordingWorld()


@pytest.fixture
def engine(world):
    return NightmareEngine(
        player=PlayerState(position=Vector2D(50, 50)),
        world=world,
        config=ConfigPresets.deterministic_test(42),
        session_id="test",
    )


def run(engine, seconds, dt=0.1):
    fired = []
    for _ in range(int(round(seconds / dt))):
        event = engine.tick(dt)
        if event is not None:
            fired.append(event)
    return fired


class TestQueries:

    def test_defaults_before_analysis(self, engine):
        assert engine.get_dominant_fear() == FearKind.DARKNESS
        assert all(v == 0.5 for v in engine.get_player_fear_profile().values())
        assert all(v == 0.5 for v in engine.get_player_reactor_profile().values())
        assert engine.get_top_patterns(3) == []
        assert engine.get_scare_recommendation() is None
        assert engine.get_heatmap().shape == (50, 50)

    def test_profile_copies(self, engine):
        profile = engine.get_player_fear_profile()
        profile[FearKind.GORE] = 1.0
        assert engine.get_player_fear_profile()[FearKind.GORE] == 0.5


class TestTickOrder:

    def test_events_processed_on_tick(self, engine):
        engine.publish(PlayerActed(action=ActionKind.HIDE))
        assert len(engine.observer.actions) == 0

        engine.tick(0.01)
        assert len(engine.observer.actions) == 1

    def test_dict_events_and_rejections(self, engine):
        assert engine.publish({"type": "player_acted", "action": "hide"})
        assert not engine.publish({"type": "player_acted", "action": "moonwalk"})
        assert not engine.publish(12)
        engine.tick(0.01)

        assert engine.metrics.get_counter("events.accepted") == 1
        assert engine.metrics.get_counter("events.rejected") == 2
        assert len(engine.observer.actions) == 1

    def test_analysis_every_five_seconds(self, engine):
        run(engine, 4.75, dt=0.25)
        assert engine.analyzer.cycles == 0

        run(engine, 0.25, dt=0.25)
        assert engine.analyzer.cycles == 1
        assert engine.get_scare_recommendation() is not None

        run(engine, 5.0, dt=0.25)
        assert engine.analyzer.cycles == 2

    def test_director_cadence(self, engine):
        run(engine, 2.0, dt=0.25)
        assert engine.director_timer.fired_count == 4

    def test_tension_drifts_with_simulated_time(self, engine):
        run(engine, 5.0, dt=0.1)
        # A fire never lowers tension with the default release of 0
        assert engine.director.tension == pytest.approx(0.2)


class TestSession:

    def test_dark_fearing_hider(self, engine, world):
        player = engine.player
        for step in range(400):
            old = player.position
            player.position = old + Vector2D(1.0, 0.5 if step % 20 < 10 else -0.5)
            engine.publish(PlayerMoved(position=player.position, old_position=old, speed=1.1))
            if step % 4 == 0:
                engine.publish(PlayerActed(action=ActionKind.HIDE))
            if step % 10 == 0:
                # Each dark spell costs 16 sanity (fear strength 0.8)
                engine.publish(
                    PlayerSanityChanged(old_value=90, new_value=74, source="darkness")
                )
            engine.tick(0.1)

        assert engine.get_dominant_fear() == FearKind.DARKNESS
        assert engine.get_player_fear_profile()[FearKind.DARKNESS] > 0.5
        assert engine.get_player_reactor_profile()[ReactorType.CAUTIOUS] == 1.0
        assert engine.get_predicted_actions()[ActionKind.HIDE] == 0.4

        rec = engine.get_scare_recommendation()
        assert rec.fear_target == FearKind.DARKNESS
        assert rec.scare_kind == ScareKind.ENVIRONMENT_CHANGE

        movement = engine.get_movement_analysis()
        assert movement.average_speed > 0
        assert engine.get_heatmap().max() > 0

        assert len(engine.director.history) >= 1
        assert engine.metrics.get_counter("director.scares_fired") == len(engine.director.history)

    def test_fired_scares_feed_back_into_observer(self, engine):
        fired = run(engine, 20.0)
        assert fired
        count = len(engine.director.history)

        # Republished scares are delivered at the start of the next tick
        engine.tick(0.01)
        total = sum(len(w) for w in engine.observer.fear_responses.values())
        assert total == count

    def test_publish_fired_scares_can_be_disabled(self):
        engine = NightmareEngine(config=DirectorConfig(prng_seed=1, publish_fired_scares=False))
        run(engine, 20.0)

        assert engine.director.history
        assert engine.observer.fear_responses == {}

    def test_seeded_sessions_replay(self):
        def session():
            engine = NightmareEngine(
                player=PlayerState(position=Vector2D(10, 10)),
                config=ConfigPresets.deterministic_test(7),
            )
            return [(e.kind, round(e.intensity, 9)) for e in run(engine, 30.0)]

        assert session() == session()


class TestErrorContainment:

    def test_world_errors_counted(self):
        class ExplodingWorld(World):
            def spawn_creature(self, kind, position):
                raise RuntimeError("spawn failed")

            def modify_environment(self, position, intensity):
                raise RuntimeError("corruption failed")

        engine = NightmareEngine(
            world=ExplodingWorld(),
            config=ConfigPresets.deterministic_test(3),
        )
        run(engine, 120.0)

        kinds = {e.kind for e in engine.director.history}
        effects = kinds & {ScareKind.CREATURE_APPEARANCE, ScareKind.ENVIRONMENT_CHANGE}
        assert engine.metrics.get_total_errors() >= len(effects)

    def test_listener_errors_counted(self, engine):
        def broken(event):
            raise ValueError("bad listener")

        engine.bus.subscribe(PlayerActed, broken)
        engine.publish(PlayerActed(action=ActionKind.MOVE))
        engine.tick(0.01)

        assert engine.metrics.get_total_errors() == 1
        assert len(engine.observer.actions) == 1


class TestStatus:

    def test_status_snapshot(self, engine):
        run(engine, 6.0)
        status = engine.get_status()

        assert status["session_id"] == "test"
        assert status["tick"] == 60
        assert status["dominant_fear"] == "darkness"
        assert set(status["fear_profile"]) == {k.value for k in FearKind}
        assert "mood" in status["director"]
        assert "drop_count" in status["events"]
        assert isinstance(engine.get_heatmap(), np.ndarray)

    def test_wall_clock_tick(self, engine):
        engine.tick()
        engine.tick()
        assert engine.tick_count == 2
        assert engine.now >= 0.0
