#!/usr/bin/env python3
"""
Nightmare AI Demo Script

Drives a simulated two-minute session against the director:
1. A scripted player wanders, hides, and reacts to scares
2. The director builds fear/reactor profiles and fires scares
3. Profiles, patterns and recommendations are printed at the end

Run with:
    python demo.py [--seed 7] [--preset relentless] [--json-logs logs/]

No game required - the world just records the effects it receives.
"""
import argparse
import math
import random

from nightmare_ai.config import ConfigPresets, get_preset
from nightmare_ai.engine import NightmareEngine
from nightmare_ai.environment import (
    PlayerActed,
    PlayerDamaged,
    PlayerInteracted,
    PlayerMoved,
    PlayerSanityChanged,
)
from nightmare_ai.logging_config import configure_logging
from nightmare_ai.types import ActionKind, ScareEvent, ScareKind, Vector2D
from nightmare_ai.world import PlayerState, RecordingWorld

FRAME = 1 / 30
SESSION_SECONDS = 120.0


def print_header(text: str):
    """Print a styled header."""
    print(f"\n{'='*60}")
    print(f"  {text}")
    print(f"{'='*60}\n")


def print_profile(title: str, profile: dict):
    print(f"  {title}:")
    for key, value in sorted(profile.items(), key=lambda kv: kv[1], reverse=True):
        bar = "#" * int(value * 20)
        print(f"    {key.value:<16} {value:5.2f} {bar}")


class ScriptedPlayer:
    """A nervous player that hates the dark and loud noises."""

    def __init__(self, engine: NightmareEngine, rng: random.Random):
        self.engine = engine
        self.rng = rng
        self.heading = 0.0

    def step(self, t: float) -> None:
        player = self.engine.player
        old = player.position

        self.heading += self.rng.uniform(-0.6, 0.6)
        speed = 2.5 if math.sin(t / 7) > 0.6 else 1.0
        new = old + Vector2D(math.cos(self.heading) * speed, math.sin(self.heading) * speed)
        new = Vector2D(max(0.0, min(255.0, new.x)), max(0.0, min(255.0, new.y)))
        player.position = new
        self.engine.publish(PlayerMoved(position=new, old_position=old, speed=speed))

        roll = self.rng.random()
        if roll < 0.05:
            self.engine.publish(PlayerActed(action=ActionKind.HIDE))
        elif roll < 0.08:
            self.engine.publish(PlayerActed(action=ActionKind.RETREAT))
        elif roll < 0.10:
            self.engine.publish(PlayerInteracted(target="door", interaction_type="open"))
        elif roll < 0.11:
            player.health = max(0.0, player.health - 5)
            self.engine.publish(PlayerDamaged(source="spider", amount=5))

        # Darkness slowly eats at sanity
        self.engine.update_environment(light_level=0.5 + 0.5 * math.cos(t / 10))
        if self.engine.observer.context.light_level < 0.2 and self.rng.random() < 0.05:
            old_sanity = player.sanity
            player.reduce_sanity(3)
            self.engine.publish(
                PlayerSanityChanged(old_value=old_sanity, new_value=player.sanity, source="darkness")
            )

    def react(self, event: ScareEvent) -> None:
        """Loud scares hurt this player's sanity well after the scare itself."""
        if event.kind in (ScareKind.SUDDEN_NOISE, ScareKind.CREATURE_APPEARANCE):
            player = self.engine.player
            old_sanity = player.sanity
            player.reduce_sanity(8 * event.intensity)
            source = "creature" if event.kind == ScareKind.CREATURE_APPEARANCE else "sudden_noises"
            self.engine.publish(
                PlayerSanityChanged(old_value=old_sanity, new_value=player.sanity, source=source)
            )


def run_session(seed: int, preset: str) -> NightmareEngine:
    config = get_preset(preset) or ConfigPresets.standard()
    config.prng_seed = seed

    world = RecordingWorld()
    engine = NightmareEngine(
        player=PlayerState(position=Vector2D(128, 128)),
        world=world,
        config=config,
        session_id=f"demo-{seed}",
    )
    script = ScriptedPlayer(engine, random.Random(seed))

    print_header(f"Session: preset={preset} seed={seed}")

    t = 0.0
    while t < SESSION_SECONDS:
        script.step(t)
        fired = engine.tick(FRAME)
        if fired is not None:
            print(
                f"  [{t:6.1f}s] 👻 {fired.kind.value:<20} intensity={fired.intensity:.2f} "
                f"sanity={engine.player.sanity:5.1f}"
            )
            script.react(fired)
        t += FRAME

    print(f"\n  World effects: {len(world.spawned)} creatures, {len(world.modified)} corruptions")
    return engine


def print_summary(engine: NightmareEngine):
    print_header("Player Model")

    print_profile("Fear profile", engine.get_player_fear_profile())
    print()
    print_profile("Reactor profile", engine.get_player_reactor_profile())

    print(f"\n  Dominant fear: {engine.get_dominant_fear().value}")
    print("  Predicted next actions:")
    for action, p in engine.get_predicted_actions().items():
        print(f"    {action.value:<12} {p:.2f}")

    print("\n  Top patterns:")
    for pattern in engine.get_top_patterns(3):
        print(f"    {pattern.name:<16} {pattern.weight:.2f}  {pattern.description}")

    rec = engine.get_scare_recommendation()
    if rec:
        print(
            f"\n  Next recommended scare: {rec.scare_kind.value} targeting "
            f"{rec.fear_target.value} (intensity {rec.intensity:.2f}, in {rec.delay:.0f}s)"
        )

    movement = engine.get_movement_analysis()
    heatmap = engine.get_heatmap()
    print(
        f"\n  Movement: speed={movement.average_speed:.2f} turns={movement.direction_changes} "
        f"area={movement.explored_area:.0f} hot cells={int((heatmap > 0).sum())}"
    )


def main():
    parser = argparse.ArgumentParser(description="Nightmare AI director demo")
    parser.add_argument("--seed", type=int, default=7)
    parser.add_argument("--preset", default="standard")
    parser.add_argument("--log-level", default="WARNING")
    parser.add_argument("--json-logs", default=None, help="Directory for rotating log files")
    args = parser.parse_args()

    configure_logging(level=args.log_level, log_dir=args.json_logs)

    print("\n" + "👁️ " * 20)
    print("\n     NIGHTMARE AI - Adaptive Scare Director Demo\n")
    print("👁️ " * 20)

    engine = run_session(args.seed, args.preset)
    print_summary(engine)

    print_header("Demo Complete!")


if __name__ == "__main__":
    main()
