"""
Input validation for inbound gameplay telemetry.

Validates:
- Positions
- Numeric fields (finite, in range)
- Required string identifiers
- Whole event payloads, per event type
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List

from .types import ActionKind


@dataclass
class ValidationError:
    """A validation error."""
    field: str
    message: str
    value: str = ""


class ValidationResult:
    """Result of validation check."""

    def __init__(self):
        self.errors: List[ValidationError] = []

    def add_error(self, field: str, message: str, value: Any = "") -> None:
        self.errors.append(ValidationError(field, message, str(value)[:50]))

    def extend(self, other: "ValidationResult") -> None:
        self.errors.extend(other.errors)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        return "; ".join(f"{e.field}: {e.message}" for e in self.errors)


def is_number(value: Any) -> bool:
    """True for finite ints/floats (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def validate_number(
    field: str,
    value: Any,
    lo: float = -math.inf,
    hi: float = math.inf,
) -> ValidationResult:
    """Validate a finite number within [lo, hi]."""
    result = ValidationResult()

    if not is_number(value):
        result.add_error(field, "Must be a finite number", value)
    elif value < lo or value > hi:
        result.add_error(field, f"Must be between {lo} and {hi}", value)

    return result


def validate_position(field: str, value: Any) -> ValidationResult:
    """Validate a position given as {"x", "y"}, (x, y) or a Vector2D."""
    result = ValidationResult()

    if value is None:
        result.add_error(field, "Position is required")
        return result

    if isinstance(value, dict):
        coords = (value.get("x"), value.get("y"))
    elif isinstance(value, (list, tuple)) and len(value) == 2:
        coords = tuple(value)
    elif hasattr(value, "x") and hasattr(value, "y"):
        coords = (value.x, value.y)
    else:
        result.add_error(field, "Unrecognized position shape", value)
        return result

    if not all(is_number(c) for c in coords):
        result.add_error(field, "Coordinates must be finite numbers", value)

    return result


def validate_identifier(field: str, value: Any, max_length: int = 128) -> ValidationResult:
    """Validate a non-empty string identifier (damage source, target, ...)."""
    result = ValidationResult()

    if not isinstance(value, str) or not value.strip():
        result.add_error(field, "Must be a non-empty string", value)
    elif len(value) > max_length:
        result.add_error(field, f"Too long (max {max_length})", value)

    return result


def validate_sanity(field: str, value: Any) -> ValidationResult:
    return validate_number(field, value, 0.0, 100.0)


def validate_event_payload(event_type: str, payload: Dict[str, Any]) -> ValidationResult:
    """
    Validate the payload of a loose (dict) event before it is typed.

    Args:
        event_type: Wire name of the event ("player_moved", ...)
        payload: Event fields

    Returns:
        ValidationResult listing every problem found
    """
    result = ValidationResult()

    if not isinstance(payload, dict):
        result.add_error("payload", "Payload must be a dictionary", payload)
        return result

    if event_type == "player_moved":
        result.extend(validate_position("position", payload.get("position")))
        if payload.get("old_position") is not None:
            result.extend(validate_position("old_position", payload["old_position"]))
        if payload.get("speed") is not None:
            result.extend(validate_number("speed", payload["speed"], 0.0))

    elif event_type == "player_damaged":
        result.extend(validate_identifier("source", payload.get("source")))
        result.extend(validate_number("amount", payload.get("amount"), 0.0))

    elif event_type == "player_sanity_changed":
        result.extend(validate_sanity("old_value", payload.get("old_value")))
        result.extend(validate_sanity("new_value", payload.get("new_value")))
        if payload.get("source") is not None:
            result.extend(validate_identifier("source", payload["source"]))

    elif event_type == "player_interacted":
        result.extend(validate_identifier("target", payload.get("target")))
        if payload.get("interaction_type") is not None:
            result.extend(validate_identifier("interaction_type", payload["interaction_type"]))

    elif event_type == "scare_triggered":
        if payload.get("scare_kind") is None:
            result.add_error("scare_kind", "Scare kind is required")
        if payload.get("intensity") is not None:
            result.extend(validate_number("intensity", payload["intensity"], 0.0, 1.0))

    elif event_type == "player_acted":
        if ActionKind.parse(payload.get("action")) is None:
            result.add_error("action", "Unknown action kind", payload.get("action"))
        if payload.get("position") is not None:
            result.extend(validate_position("position", payload["position"]))

    else:
        result.add_error("type", "Unknown event type", event_type)

    return result
