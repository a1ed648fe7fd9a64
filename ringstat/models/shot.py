"""
Data models for shot telemetry and shot-group analysis in RingStat.

Shot: One decoded impact as recorded by the scoring hardware.
TeilerStats, Spread, Direction, Center, Tendency: Parts of the analysis.
ShotGroupAnalysis: Complete analysis of one session's shot list.
BestTeiler: Closest adjacent shot pair within a session.
"""

from dataclasses import dataclass, field
from typing import Optional

from ringstat.decoding import (
    decode_coordinate,
    decode_ring01,
    decode_teiler01,
    truncate_ring,
)


@dataclass(frozen=True)
class Shot:
    """A single decoded shot.

    Attributes:
        shot_number: Sequence number within the session (1-based).
        x: Horizontal offset from target center in mm (positive = right).
        y: Vertical offset from target center in mm (positive = below).
        ring: Integer ring value (0-10).
        ring01: Decimal ring value (e.g. 10.5).
        teiler01: Teiler to the previous shot as reported by the hardware,
                  in mm. None when the hardware did not report one.
        innenzehner: True if the shot is an inner ten.
    """
    shot_number: int
    x: float
    y: float
    ring: int
    ring01: float
    teiler01: Optional[float] = None
    innenzehner: bool = False

    @classmethod
    def from_record(cls, record: dict) -> "Shot":
        """Decode a raw shot record from the scoring database.

        Raises:
            ValueError: If the record is missing fields or holds
                        non-numeric values.
        """
        try:
            shot_number = int(record["shot_number"])
            if record["x"] is None or record["y"] is None:
                raise ValueError("missing coordinate")
            teiler_raw = record.get("teiler01")
            return cls(
                shot_number=shot_number,
                x=decode_coordinate(record["x"]),
                y=decode_coordinate(record["y"]),
                ring=truncate_ring(record.get("ring")),
                ring01=decode_ring01(record.get("ring01")),
                teiler01=decode_teiler01(teiler_raw) if teiler_raw else None,
                innenzehner=bool(record.get("innenzehner")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid shot record {record!r}: {e}") from e

    @property
    def score(self) -> float:
        return self.ring01


@dataclass
class TeilerStats:
    """Distances between consecutive shots (mm)."""
    best: float
    worst: float
    average: float
    from_external_source: bool

    def to_dict(self) -> dict:
        return {
            "best": self.best,
            "worst": self.worst,
            "average": self.average,
            "from_external_source": self.from_external_source,
        }


@dataclass
class Spread:
    """Dispersion of the group around its own centroid.

    Attributes:
        x_std: Population standard deviation of x (mm).
        y_std: Population standard deviation of y (mm).
        total: sqrt(x_std² + y_std²).
        radius: 2 × total, an approximate 2-sigma circle.
    """
    x_std: float
    y_std: float
    total: float
    radius: float

    def to_dict(self) -> dict:
        return {
            "x_std": self.x_std,
            "y_std": self.y_std,
            "total": self.total,
            "radius": self.radius,
        }


@dataclass
class Direction:
    """Categorical direction of an offset plus its angle in degrees [0, 360)."""
    x: str
    y: str
    angle: float = 0.0

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "angle": self.angle}


@dataclass
class Center:
    """Center of impact and its distance from the point of aim."""
    x: float
    y: float
    offset: float
    direction: Direction

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "offset": self.offset,
            "direction": self.direction.to_dict(),
        }


@dataclass
class Tendency:
    """Shot counts per quadrant and the most frequently hit quadrant."""
    quadrant_distribution: dict[str, int]
    dominant: str

    def to_dict(self) -> dict:
        return {
            "quadrant_distribution": dict(self.quadrant_distribution),
            "dominant": self.dominant,
        }


@dataclass
class ShotGroupAnalysis:
    """Complete statistical summary of one session's shot group."""
    teiler: TeilerStats
    spread: Spread
    center: Center
    tendency: Tendency
    teiler_values: list[float] = field(default_factory=list, repr=False)

    def to_dict(self) -> dict:
        return {
            "teiler": self.teiler.to_dict(),
            "spread": self.spread.to_dict(),
            "center": self.center.to_dict(),
            "tendency": self.tendency.to_dict(),
        }


@dataclass(frozen=True)
class BestTeiler:
    """Smallest adjacent-pair teiler and the shots that produced it."""
    distance: float
    from_shot: int
    to_shot: int

    def to_dict(self) -> dict:
        return {
            "distance": self.distance,
            "from_shot": self.from_shot,
            "to_shot": self.to_shot,
        }
