from __future__ import annotations

import math
from dataclasses import dataclass

from .motion import FULL_TURN_DEG, normalize_degrees


def zone_arc(center_deg: float, width_deg: float) -> tuple[float, float]:
    """Return (start, end) of the zone arc, unnormalized, with start <= end."""

    half = float(width_deg) / 2.0
    return center_deg - half, center_deg + half


def zone_bounds(center_deg: float, width_deg: float) -> tuple[float, float]:
    """Return normalized (start, end) of the zone arc."""

    start, end = zone_arc(center_deg, width_deg)
    return normalize_degrees(start), normalize_degrees(end)


def in_zone(angle_deg: float, center_deg: float, width_deg: float) -> bool:
    """True if ``angle_deg`` lies in the closed arc centered on ``center_deg``.

    Both endpoints count as inside. When the arc straddles 0/360 the test
    becomes ``angle >= start or angle <= end``. Non-finite input is never
    inside.
    """

    if not (math.isfinite(angle_deg) and math.isfinite(center_deg) and math.isfinite(width_deg)):
        return False
    if width_deg < 0:
        return False
    if width_deg >= FULL_TURN_DEG:
        return True

    angle = normalize_degrees(angle_deg)
    start, end = zone_bounds(center_deg, width_deg)
    if start <= end:
        return start <= angle <= end
    return angle >= start or angle <= end


@dataclass(frozen=True, slots=True)
class ZoneConfig:
    center_deg: float = 0.0
    width_deg: float = 30.0
    # Rendering only.
    orbit_radius: float = 120.0
    entity_radius: float = 16.0

    def __post_init__(self) -> None:
        if not math.isfinite(self.center_deg):
            raise ValueError("center_deg must be finite")
        if not math.isfinite(self.width_deg) or not (0.0 <= self.width_deg <= FULL_TURN_DEG):
            raise ValueError("width_deg must be in [0, 360]")
        if self.orbit_radius <= 0 or self.entity_radius <= 0:
            raise ValueError("radii must be > 0")

    def contains(self, angle_deg: float) -> bool:
        return in_zone(angle_deg, self.center_deg, self.width_deg)

    def bounds(self) -> tuple[float, float]:
        return zone_bounds(self.center_deg, self.width_deg)

    def arc(self) -> tuple[float, float]:
        """Continuous (start, end) for drawing; may extend past 0 or 360."""
        return zone_arc(self.center_deg, self.width_deg)
