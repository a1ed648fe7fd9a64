"""
Multi-session aggregation for RingStat.

Combines per-session totals and per-session shot-group analyses into:
  - dashboard statistics for one member (compute_dashboard_stats)
  - a ranked leaderboard across members (build_leaderboard)
  - paginated, analysis-enriched recent sessions (recent_sessions)
  - a per-session score series (score_trend)

Averages are weighted by shots, not by sessions: a 60-shot session
counts six times as much as a 10-shot one. A session whose shots cannot
be fetched or analysed is logged and left out of the aggregate.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional, Sequence

from ringstat.analysis import analyze_shots, direction_labels
from ringstat.models.session import SessionSummary
from ringstat.models.shot import ShotGroupAnalysis
from ringstat.storage.source import SessionSource
from ringstat.utils.constants import (
    DEFAULT_LEADERBOARD_LIMIT,
    DEFAULT_MAX_WORKERS,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SCORE_TREND_LIMIT,
    MAX_PAGE_SIZE,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Per-Session Analysis
# =============================================================================

@dataclass
class SessionAnalysisResult:
    """Analysis of one session together with the number of shots analysed."""
    session: SessionSummary
    analysis: ShotGroupAnalysis
    shot_count: int


def analyze_session(source: SessionSource,
                    session: SessionSummary) -> Optional[SessionAnalysisResult]:
    """Fetch and analyse one session's shots.

    Failures are logged and reported as None so that one unreachable
    session does not abort an aggregate.
    """
    if session.shots_count <= 0:
        return None
    try:
        shots = source.get_session_shots(session.session_id)
        if not shots:
            return None
        analysis = analyze_shots(shots)
    except Exception as e:
        logger.error(f"Failed to analyze session {session.session_id}: {e}")
        return None
    if analysis is None:
        return None
    return SessionAnalysisResult(session=session, analysis=analysis,
                                 shot_count=len(shots))


def analyze_sessions(source: SessionSource,
                     sessions: Sequence[SessionSummary],
                     max_workers: int = DEFAULT_MAX_WORKERS,
                     ) -> list[Optional[SessionAnalysisResult]]:
    """Analyse sessions concurrently; results are in input order."""
    if not sessions:
        return []
    workers = max(1, min(max_workers, len(sessions)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(lambda s: analyze_session(source, s), sessions))
    analysed = sum(1 for r in results if r is not None)
    logger.debug(f"Analyzed {analysed}/{len(sessions)} sessions")
    return results


# =============================================================================
# Helpers
# =============================================================================

def filter_by_time_range(sessions: Sequence[SessionSummary],
                         time_range: str | int = "all",
                         now: Optional[datetime] = None) -> list[SessionSummary]:
    """Keep sessions from the last N days; "all" keeps everything.

    Raises:
        ValueError: If time_range is neither "all" nor a day count.
    """
    if time_range == "all":
        return list(sessions)
    days = int(time_range)
    if now is None:
        now = datetime.now(timezone.utc).replace(tzinfo=None)
    cutoff = now - timedelta(days=days)
    return [s for s in sessions if s.session_date >= cutoff]


def weighted_average(pairs: Sequence[tuple[float, int]]) -> Optional[float]:
    """Σ(value × weight) / Σ weight, or None when there is no weight."""
    total_weight = sum(w for _, w in pairs)
    if not pairs or total_weight <= 0:
        return None
    return sum(v * w for v, w in pairs) / total_weight


def best_teiler(sessions: Sequence[SessionSummary]) -> Optional[float]:
    """Smallest valid hardware best teiler, or None if no session has one."""
    values = [s.best_teiler for s in sessions if s.best_teiler is not None]
    return min(values) if values else None


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def round_fixed(value: float, places: int) -> Decimal:
    """Round the exact binary value to `places` decimals, halves away from zero."""
    quantum = Decimal(1).scaleb(-places)
    return Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)


def format_fixed(value: float, places: int) -> str:
    return str(round_fixed(value, places))


# =============================================================================
# Dashboard
# =============================================================================

@dataclass
class OffsetSummary:
    """Shot-weighted average center of impact across sessions."""
    x: float
    y: float
    distance: float

    @property
    def direction(self) -> dict:
        x_label, y_label = direction_labels(self.x, self.y)
        return {"x": x_label, "y": y_label}

    def to_dict(self) -> dict:
        return {
            "x": format_fixed(self.x, 2),
            "y": format_fixed(self.y, 2),
            "distance": format_fixed(self.distance, 2),
            "direction": self.direction,
        }


@dataclass
class AggregateStats:
    """Dashboard summary over a set of sessions.

    Attributes:
        total_sessions: Number of sessions considered.
        total_shots: Sum of shots_count.
        average_score: Decimal rings per shot.
        best_score: Best decimal-ring session total.
        average_score_normal: Integer rings per shot.
        best_score_normal: Best integer-ring session total.
        best_teiler: Smallest hardware best teiler (mm), None if unknown.
        avg_spread: Shot-weighted spread.total (mm), None if no analysis.
        avg_offset: Shot-weighted center of impact, None if no analysis.
    """
    total_sessions: int
    total_shots: int
    average_score: float
    best_score: float
    average_score_normal: float
    best_score_normal: int
    best_teiler: Optional[float]
    avg_spread: Optional[float]
    avg_offset: Optional[OffsetSummary]

    def to_dict(self) -> dict:
        """JSON form with the dashboard's display precision."""
        return {
            "total_sessions": self.total_sessions,
            "total_shots": self.total_shots,
            "average_score": format_fixed(self.average_score, 1),
            "best_score": format_fixed(self.best_score, 1),
            "average_score_normal": str(round_half_up(self.average_score_normal)),
            "best_score_normal": str(round_half_up(self.best_score_normal)),
            "best_teiler": (format_fixed(self.best_teiler, 1)
                            if self.best_teiler is not None else None),
            "avg_spread": (format_fixed(self.avg_spread, 2)
                           if self.avg_spread is not None else None),
            "avg_offset": (self.avg_offset.to_dict()
                           if self.avg_offset is not None else None),
        }


def aggregate_stats(sessions: Sequence[SessionSummary],
                    analyses: Sequence[Optional[SessionAnalysisResult]] = (),
                    ) -> AggregateStats:
    """Combine session totals and available analyses into AggregateStats.

    Args:
        sessions: Sessions to summarise.
        analyses: Analysis results for (some of) these sessions; None
                  entries are sessions that could not be analysed.
    """
    total_shots = sum(s.shots_count for s in sessions)
    total_decimal = sum(s.total_rings_decimal for s in sessions)
    total_normal = sum(s.total_rings for s in sessions)

    spread_pairs = []
    offset_x, offset_y, offset_distance = [], [], []
    for result in analyses:
        if result is None:
            continue
        spread = result.analysis.spread.total
        if spread > 0:
            spread_pairs.append((spread, result.shot_count))
        center = result.analysis.center
        if center.offset > 0:
            offset_x.append((center.x, result.shot_count))
            offset_y.append((center.y, result.shot_count))
            offset_distance.append((center.offset, result.shot_count))

    avg_offset = None
    if offset_distance:
        avg_offset = OffsetSummary(
            x=weighted_average(offset_x),
            y=weighted_average(offset_y),
            distance=weighted_average(offset_distance),
        )

    return AggregateStats(
        total_sessions=len(sessions),
        total_shots=total_shots,
        average_score=total_decimal / total_shots if total_shots > 0 else 0.0,
        best_score=max([0.0] + [s.total_rings_decimal for s in sessions]),
        average_score_normal=total_normal / total_shots if total_shots > 0 else 0.0,
        best_score_normal=max([0] + [s.total_rings for s in sessions]),
        best_teiler=best_teiler(sessions),
        avg_spread=weighted_average(spread_pairs),
        avg_offset=avg_offset,
    )


def compute_dashboard_stats(source: SessionSource,
                            sessions: Sequence[SessionSummary],
                            time_range: str | int = "all",
                            now: Optional[datetime] = None,
                            max_workers: int = DEFAULT_MAX_WORKERS,
                            ) -> AggregateStats:
    """Dashboard statistics for one member's sessions."""
    sessions = filter_by_time_range(sessions, time_range, now)
    analyses = analyze_sessions(source, sessions, max_workers)
    stats = aggregate_stats(sessions, analyses)
    logger.info(
        f"Dashboard stats: {stats.total_sessions} sessions, "
        f"{stats.total_shots} shots"
    )
    return stats


# =============================================================================
# Leaderboard
# =============================================================================

@dataclass
class Member:
    """A club member linked to a shooter in the scoring database.

    Attributes:
        member_id: Dashboard user id.
        username: Dashboard login name.
        shooter_id: Scoring database shooter key, "Lastname|Firstname".
        member_since: Registration timestamp, if known.
    """
    member_id: int
    username: str
    shooter_id: str
    member_since: Optional[datetime] = None

    @property
    def last_name(self) -> str:
        return (self.shooter_id or "|").split("|")[0] or "Shooter"

    @property
    def first_name(self) -> str:
        parts = (self.shooter_id or "|").split("|")
        return (parts[1] if len(parts) > 1 else "") or "Unknown"


@dataclass
class LeaderboardEntry:
    """One member's row on the leaderboard."""
    member: Member
    sessions_count: int
    total_shots: int
    avg_score: float
    best_session_score: float
    best_teiler: Optional[float]
    rank: int = 0

    def to_dict(self) -> dict:
        since = self.member.member_since
        return {
            "rank": self.rank,
            "user_id": self.member.member_id,
            "username": self.member.username,
            "first_name": self.member.first_name,
            "last_name": self.member.last_name,
            "sessions_count": self.sessions_count,
            "total_shots": self.total_shots,
            "avg_score": self.avg_score,
            "best_session_score": self.best_session_score,
            "best_teiler": self.best_teiler,
            "member_since": since.isoformat() if since else None,
        }


LEADERBOARD_SORT_KEYS: dict[str, Callable[[LeaderboardEntry], object]] = {
    "avgScore": lambda e: -e.avg_score,
    # Lower is better; members without a teiler go last
    "bestTeiler": lambda e: (e.best_teiler is None, e.best_teiler or 0.0),
    "totalSessions": lambda e: -e.sessions_count,
    "totalShots": lambda e: -e.total_shots,
    "bestSessionScore": lambda e: -e.best_session_score,
}


def leaderboard_entry(member: Member,
                      sessions: Sequence[SessionSummary]) -> LeaderboardEntry:
    """Aggregate one member's sessions into a leaderboard row."""
    total_shots = sum(s.shots_count for s in sessions)
    total_rings = sum(s.total_rings_preferred for s in sessions)
    return LeaderboardEntry(
        member=member,
        sessions_count=len(sessions),
        total_shots=total_shots,
        avg_score=total_rings / total_shots if total_shots > 0 else 0.0,
        best_session_score=max([0.0] + [s.total_rings_preferred for s in sessions]),
        best_teiler=best_teiler(sessions),
    )


def rank_entries(entries: list[LeaderboardEntry],
                 sort_by: str = "avgScore") -> list[LeaderboardEntry]:
    """Sort entries by the selected key and assign 1-based ranks."""
    key = LEADERBOARD_SORT_KEYS.get(sort_by)
    if key is None:
        logger.warning(f"Unknown leaderboard sort key {sort_by!r}, using avgScore")
        key = LEADERBOARD_SORT_KEYS["avgScore"]

    ranked = sorted(entries, key=key)
    for index, entry in enumerate(ranked):
        entry.rank = index + 1
    return ranked


def build_leaderboard(source: SessionSource,
                      members: Sequence[Member],
                      sort_by: str = "avgScore",
                      time_range: str | int = "all",
                      limit: int = DEFAULT_LEADERBOARD_LIMIT,
                      now: Optional[datetime] = None) -> list[LeaderboardEntry]:
    """Rank members by the selected metric.

    Members whose sessions cannot be fetched, or who have no sessions in
    the time range, are left out.
    """
    entries = []
    for member in members:
        try:
            sessions = source.get_sessions(member.shooter_id)
        except Exception as e:
            logger.error(f"Error fetching sessions for user {member.username}: {e}")
            continue

        sessions = filter_by_time_range(sessions, time_range, now)
        if not sessions:
            continue
        entries.append(leaderboard_entry(member, sessions))

    ranked = rank_entries(entries, sort_by)
    logger.info(f"Leaderboard: {len(ranked)} players ranked by {sort_by}")
    return ranked[:limit]


# =============================================================================
# Recent Sessions & Score Trend
# =============================================================================

def _session_analysis_block(session: SessionSummary,
                            result: Optional[SessionAnalysisResult]) -> Optional[dict]:
    hardware_teiler = session.best_teiler
    if result is not None:
        analysis = result.analysis
        return {
            "best_teiler": (hardware_teiler if hardware_teiler is not None
                            else analysis.teiler.best),
            "avg_teiler": analysis.teiler.average,
            "spread": analysis.spread.total,
            "offset": analysis.center.offset,
            "direction": analysis.center.direction.to_dict(),
        }
    if hardware_teiler is not None:
        return {
            "best_teiler": hardware_teiler,
            "avg_teiler": None,
            "spread": None,
            "offset": None,
            "direction": None,
        }
    return None


def recent_sessions(source: SessionSource,
                    sessions: Sequence[SessionSummary],
                    page: int = 1,
                    limit: int = DEFAULT_PAGE_SIZE,
                    max_workers: int = DEFAULT_MAX_WORKERS) -> dict:
    """One page of sessions, each enriched with its group analysis.

    Args:
        sessions: Sessions newest first.
        page: 1-based page number (clamped to >= 1).
        limit: Page size (clamped to 1..50).
    """
    page = max(1, page)
    limit = min(max(1, limit), MAX_PAGE_SIZE)
    offset = (page - 1) * limit

    total = len(sessions)
    total_pages = math.ceil(total / limit)
    page_sessions = list(sessions[offset:offset + limit])
    results = analyze_sessions(source, page_sessions, max_workers)

    enriched = []
    for session, result in zip(page_sessions, results):
        entry = session.to_dict()
        block = _session_analysis_block(session, result)
        if block is not None:
            entry["analysis"] = block
        enriched.append(entry)

    return {
        "sessions": enriched,
        "pagination": {
            "current_page": page,
            "total_pages": total_pages,
            "total_sessions": total,
            "sessions_per_page": limit,
            "has_next_page": page < total_pages,
            "has_prev_page": page > 1,
        },
    }


def score_trend(sessions: Sequence[SessionSummary],
                limit: int = DEFAULT_SCORE_TREND_LIMIT) -> list[dict]:
    """Session totals of the most recent sessions, oldest first.

    Args:
        sessions: Sessions newest first.
    """
    return [
        {
            "date": s.session_date.date().isoformat(),
            "score": float(round_fixed(s.total_rings_preferred, 1)),
        }
        for s in reversed(list(sessions)[:limit])
    ]
