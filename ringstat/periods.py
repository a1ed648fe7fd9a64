"""
Calendar bucketing and trend series for RingStat.

Sessions are grouped into daily, weekly (ISO-8601, Monday start) or
monthly buckets, sorted chronologically and cut to the most recent N
buckets. Each bucket is reduced to one TrendPoint for the selected metric.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Optional, Sequence

from ringstat.aggregation import (
    SessionAnalysisResult,
    analyze_sessions,
    best_teiler,
    round_fixed,
    weighted_average,
)
from ringstat.models.session import SessionSummary
from ringstat.storage.source import SessionSource
from ringstat.utils.constants import (
    DEFAULT_MAX_WORKERS,
    DEFAULT_TREND_LIMIT,
    MONTH_ABBREVIATIONS,
)

logger = logging.getLogger(__name__)


class Period(str, Enum):
    """Trend bucket granularity."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class TrendMetric(str, Enum):
    """Value computed per trend bucket."""
    AVG_SCORE = "avgScore"
    BEST_SCORE = "bestScore"
    BEST_TEILER = "bestTeiler"
    AVG_SPREAD = "avgSpread"
    AVG_OFFSET = "avgOffset"

    @property
    def needs_analysis(self) -> bool:
        return self in (TrendMetric.AVG_SPREAD, TrendMetric.AVG_OFFSET)


@dataclass
class PeriodBucket:
    """Sessions falling into one calendar period."""
    key: str
    label: str
    bucket_date: date
    sessions: list[SessionSummary] = field(default_factory=list)


@dataclass
class TrendPoint:
    """One value of a trend series."""
    period_key: str
    period_label: str
    value: float
    sample_count: int
    bucket_date: date

    def to_dict(self) -> dict:
        return {
            "period": self.period_label,
            "key": self.period_key,
            "value": self.value,
            "count": self.sample_count,
            "date": self.bucket_date.isoformat(),
        }


def iso_week_number(day: date) -> int:
    """ISO-8601 week number (weeks start Monday, week 1 holds the first Thursday)."""
    return day.isocalendar()[1]


def week_start(day: date) -> date:
    """Monday of the ISO week containing day."""
    return day - timedelta(days=day.weekday())


def period_key(day: date, period: Period) -> tuple[str, str, date]:
    """Bucket key, display label and bucket date for a session day."""
    if period == Period.WEEKLY:
        monday = week_start(day)
        return monday.isoformat(), f"KW {iso_week_number(day)}", monday
    if period == Period.MONTHLY:
        key = f"{day.year}-{day.month:02d}"
        label = f"{MONTH_ABBREVIATIONS[day.month - 1]} {day.year % 100:02d}"
        return key, label, date(day.year, day.month, 1)
    return day.isoformat(), day.strftime("%d.%m"), day


def group_sessions_by_period(sessions: Sequence[SessionSummary],
                             period: Period | str = Period.MONTHLY,
                             limit: int = DEFAULT_TREND_LIMIT) -> list[PeriodBucket]:
    """Partition sessions into calendar buckets.

    Args:
        sessions: Sessions in any order.
        period: "daily", "weekly" or "monthly".
        limit: Number of most recent buckets to keep.

    Returns:
        Buckets in chronological order, at most `limit` of them.

    Raises:
        ValueError: If period is not a known granularity.
    """
    period = Period(period)
    buckets: dict[str, PeriodBucket] = {}

    for session in sessions:
        key, label, bucket_date = period_key(session.session_date.date(), period)
        if key not in buckets:
            buckets[key] = PeriodBucket(key=key, label=label, bucket_date=bucket_date)
        buckets[key].sessions.append(session)

    ordered = sorted(buckets.values(), key=lambda b: b.bucket_date)
    if limit <= 0:
        return []
    return ordered[-limit:]


def _avg_score(sessions: Sequence[SessionSummary]) -> float:
    total_rings = 0.0
    total_shots = 0
    for s in sessions:
        rings = s.total_rings_preferred
        if s.shots_count > 0 and rings > 0:
            total_rings += rings
            total_shots += s.shots_count
    return total_rings / total_shots if total_shots > 0 else 0.0


def _weighted_analysis_value(results: Sequence[Optional[SessionAnalysisResult]],
                             metric: TrendMetric) -> float:
    pairs = []
    for result in results:
        if result is None:
            continue
        if metric == TrendMetric.AVG_SPREAD:
            value = result.analysis.spread.total
        else:
            value = result.analysis.center.offset
        if value > 0:
            pairs.append((value, result.shot_count))
    average = weighted_average(pairs)
    return average if average is not None else 0.0


def bucket_value(bucket: PeriodBucket,
                 metric: TrendMetric,
                 results: Sequence[Optional[SessionAnalysisResult]] = ()) -> float:
    """Reduce one bucket to the metric value (0 when nothing qualifies)."""
    sessions = bucket.sessions
    if metric == TrendMetric.AVG_SCORE:
        return _avg_score(sessions)
    if metric == TrendMetric.BEST_SCORE:
        return max([0.0] + [s.total_rings_preferred for s in sessions])
    if metric == TrendMetric.BEST_TEILER:
        teiler = best_teiler(sessions)
        return teiler if teiler is not None else 0.0
    return _weighted_analysis_value(results, metric)


def compute_trend(source: SessionSource,
                  sessions: Sequence[SessionSummary],
                  metric: TrendMetric | str = TrendMetric.AVG_SCORE,
                  period: Period | str = Period.MONTHLY,
                  limit: int = DEFAULT_TREND_LIMIT,
                  max_workers: int = DEFAULT_MAX_WORKERS) -> list[TrendPoint]:
    """Trend series of one metric over calendar buckets.

    Raises:
        ValueError: If metric or period is unknown.
    """
    metric = TrendMetric(metric)
    buckets = group_sessions_by_period(sessions, period, limit)

    points = []
    for bucket in buckets:
        results = []
        if metric.needs_analysis:
            results = analyze_sessions(source, bucket.sessions, max_workers)
        value = bucket_value(bucket, metric, results)
        points.append(TrendPoint(
            period_key=bucket.key,
            period_label=bucket.label,
            value=float(round_fixed(value, 2)),
            sample_count=len(bucket.sessions),
            bucket_date=bucket.bucket_date,
        ))

    logger.info(
        f"Trend {metric.value}/{Period(period).value}: {len(points)} buckets "
        f"from {len(sessions)} sessions"
    )
    return points
