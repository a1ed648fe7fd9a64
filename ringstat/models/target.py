"""
Target definitions for RingStat.

Provides the target type enumeration and the ring boundary geometry
used to classify distances and to colour shots in visualizations.
"""

import math
from dataclasses import dataclass
from enum import Enum

from ringstat.utils.constants import (
    DEFAULT_SCORE_COLOR,
    DIRECTION_THRESHOLD_MM,
    INNER_TEN_COLOR,
    KK_INNER_TEN_DIAMETER,
    KK_PROJECTILE_RADIUS,
    KK_RING_STEP,
    KK_TEN_DIAMETER,
    LG_PROJECTILE_RADIUS,
    LG_RING_DIAMETERS,
    RING_FILL_COLORS,
    SCORE_COLORS,
)


class TargetType(str, Enum):
    """Supported target faces."""
    LG = "LG"   # Air rifle 10m
    KK = "KK"   # Small bore 50m

    @classmethod
    def from_discipline(cls, discipline: str | None) -> "TargetType":
        """Small bore when the discipline name mentions KK, air rifle otherwise."""
        if discipline and "KK" in discipline.upper():
            return cls.KK
        return cls.LG


@dataclass(frozen=True)
class Ring:
    """One scoring ring: its value, outer boundary radius (mm) and fill colour."""
    value: int
    radius: float
    color: str


@dataclass(frozen=True)
class Target:
    """Ring geometry of a target face.

    Rings are ordered from ring 1 (outermost) to ring 10.
    """

    target_type: TargetType
    rings: tuple[Ring, ...]
    inner_ten_radius: float | None
    projectile_radius: float

    @classmethod
    def from_type(cls, target_type: TargetType | str) -> "Target":
        """Create a Target from its type, looking up the standard geometry."""
        if isinstance(target_type, str):
            target_type = TargetType(target_type)

        if target_type == TargetType.KK:
            rings = tuple(
                Ring(n, (KK_TEN_DIAMETER + KK_RING_STEP * (10 - n)) / 2,
                     RING_FILL_COLORS[n])
                for n in range(1, 11)
            )
            return cls(
                target_type=target_type,
                rings=rings,
                inner_ten_radius=KK_INNER_TEN_DIAMETER / 2,
                projectile_radius=KK_PROJECTILE_RADIUS,
            )

        rings = tuple(
            Ring(n, diameter / 2, RING_FILL_COLORS[n])
            for n, diameter in enumerate(LG_RING_DIAMETERS, start=1)
        )
        return cls(
            target_type=target_type,
            rings=rings,
            inner_ten_radius=None,
            projectile_radius=LG_PROJECTILE_RADIUS,
        )

    @classmethod
    def from_discipline(cls, discipline: str | None) -> "Target":
        return cls.from_type(TargetType.from_discipline(discipline))

    @property
    def outer_radius(self) -> float:
        return self.rings[0].radius

    def ring_for_distance(self, distance_mm: float) -> int:
        """Innermost ring whose boundary contains the given distance.

        Returns 0 for distances outside ring 1.
        """
        for ring in reversed(self.rings):
            if distance_mm <= ring.radius:
                return ring.value
        return 0

    def ring_for_point(self, x: float, y: float) -> int:
        return self.ring_for_distance(math.hypot(x, y))

    def is_inner_ten(self, x: float, y: float) -> bool:
        if self.inner_ten_radius is None:
            return self.ring_for_point(x, y) == 10
        return math.hypot(x, y) <= self.inner_ten_radius

    def to_dict(self) -> dict:
        """Ring boundaries for drawing, outermost first."""
        rings = [
            {"label": str(r.value), "radius": r.radius, "color": r.color}
            for r in self.rings
        ]
        if self.inner_ten_radius is not None:
            rings.append({
                "label": "",
                "radius": self.inner_ten_radius,
                "color": INNER_TEN_COLOR,
            })
        return {
            "target_type": self.target_type.value,
            "rings": rings,
            "projectile_radius": self.projectile_radius,
        }


def ring_color(score: float) -> str:
    """Marker colour for a shot score (green for tens down to red for fives)."""
    return SCORE_COLORS.get(int(math.floor(score)), DEFAULT_SCORE_COLOR)


def format_score(ring: int, ring01_raw: int, use_decimal: bool) -> str:
    """Display a shot score as decimal rings ("10.5") or integer rings ("10")."""
    if use_decimal:
        return f"{ring01_raw / 10:.1f}"
    return str(ring)


def format_direction(x: float, y: float) -> str:
    """Describe an offset from center, e.g. "1.2mm right, 0.5mm below"."""
    abs_x = abs(x)
    abs_y = abs(y)

    x_dir = "right" if x > 0 else "left"
    y_dir = "below" if y > 0 else "above"

    if abs_x < DIRECTION_THRESHOLD_MM and abs_y < DIRECTION_THRESHOLD_MM:
        return "centered"
    if abs_x < DIRECTION_THRESHOLD_MM:
        return f"{abs_y:.1f}mm {y_dir}"
    if abs_y < DIRECTION_THRESHOLD_MM:
        return f"{abs_x:.1f}mm {x_dir}"
    return f"{abs_x:.1f}mm {x_dir}, {abs_y:.1f}mm {y_dir}"
