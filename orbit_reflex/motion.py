from __future__ import annotations

import math
from dataclasses import dataclass, replace

FULL_TURN_DEG = 360.0


@dataclass(frozen=True, slots=True)
class MovingEntity:
    entity_id: int
    angle_deg: float  # semantically mod 360
    angular_speed: float  # degrees per frame


def normalize_degrees(angle_deg: float) -> float:
    """Map an angle into [0, 360).

    Non-finite input is returned unchanged so callers can reject it.
    """

    a = float(angle_deg)
    if not math.isfinite(a):
        return a
    out = a % FULL_TURN_DEG
    # Tiny negative inputs round up to exactly 360.0 under float modulo.
    if out >= FULL_TURN_DEG:
        return 0.0
    return out


def advance(entity: MovingEntity, delta_speed: float | None = None) -> MovingEntity:
    """Advance one frame: angle + speed, normalized."""

    step = entity.angular_speed if delta_speed is None else float(delta_speed)
    return replace(entity, angle_deg=normalize_degrees(entity.angle_deg + step))


def orbit_position(angle_deg: float, radius: float) -> tuple[float, float]:
    """Offset from the orbit center (screen axes: +y points down)."""

    rad = math.radians(angle_deg)
    return math.cos(rad) * radius, math.sin(rad) * radius
