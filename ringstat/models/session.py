"""
Session model for RingStat.

A session is one target ("Scheibe") shot by a member: the scoring
hardware stores its totals and best teiler as scaled integers next to
the individual shots.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from ringstat.decoding import RawValue, decode_ring01, decode_teiler01


def _parse_date(value) -> datetime:
    if isinstance(value, str):
        # Database exports use either "2024-01-05 18:30:00" or ISO "T" form
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    elif isinstance(value, date) and not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if not isinstance(value, datetime):
        raise ValueError(f"Unsupported session date: {value!r}")
    # Naive UTC so dates from different sources compare
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _plain(value: RawValue):
    """Raw field as a JSON-friendly number (drivers may return Decimal)."""
    if isinstance(value, Decimal):
        return float(value)
    return value


@dataclass(frozen=True)
class SessionSummary:
    """Totals of one session as stored by the scoring hardware.

    Attributes:
        session_id: Identifier of the target in the scoring database.
        session_date: When the session was shot.
        discipline: Discipline name (e.g. "LG 10m", "KK 50m").
        shots_count: Number of shots recorded.
        total_score_raw: Integer-ring total, tenths-scaled (2580 = 258).
        total_score_decimal_raw: Decimal-ring total, tenths-scaled
                                 (2712 = 271.2).
        best_teiler_raw: Best teiler reported by the hardware,
                         tenths-scaled (1751 = 175.1 mm).
    """
    session_id: str
    session_date: datetime
    discipline: str = ""
    shots_count: int = 0
    total_score_raw: RawValue = 0
    total_score_decimal_raw: RawValue = 0
    best_teiler_raw: RawValue = None

    @classmethod
    def from_record(cls, record: dict) -> "SessionSummary":
        """Build a summary from a raw session record.

        Raises:
            ValueError: If the record has no id or an unparseable date.
        """
        try:
            return cls(
                session_id=str(record["session_id"]),
                session_date=_parse_date(record["session_date"]),
                discipline=record.get("discipline") or "",
                shots_count=int(record.get("shots_count") or 0),
                total_score_raw=record.get("total_score") or 0,
                total_score_decimal_raw=record.get("total_score_decimal") or 0,
                best_teiler_raw=record.get("best_teiler_raw"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid session record {record!r}: {e}") from e

    @property
    def total_rings_decimal(self) -> float:
        """Decimal-ring total (Ring01 system)."""
        return decode_ring01(self.total_score_decimal_raw)

    @property
    def total_rings(self) -> int:
        """Integer-ring total: the last digit of the raw field is dropped."""
        return int(math.floor(float(self.total_score_raw or 0) / 10))

    @property
    def total_rings_preferred(self) -> float:
        """Decimal total when recorded, integer total otherwise."""
        return decode_ring01(self.total_score_decimal_raw or self.total_score_raw)

    @property
    def best_teiler(self) -> Optional[float]:
        """Hardware best teiler in mm, or None when absent or not positive."""
        try:
            teiler = decode_teiler01(self.best_teiler_raw)
        except (TypeError, ValueError):
            return None
        if math.isnan(teiler) or teiler <= 0:
            return None
        return teiler

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "session_date": self.session_date.isoformat(),
            "discipline": self.discipline,
            "shots_count": self.shots_count,
            "total_score": _plain(self.total_score_raw),
            "total_score_decimal": _plain(self.total_score_decimal_raw),
            "best_teiler_raw": _plain(self.best_teiler_raw),
        }
