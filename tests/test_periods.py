"""
Tests for calendar bucketing and trend series.
"""

from datetime import date, datetime

import pytest

from ringstat.models.session import SessionSummary
from ringstat.models.shot import Shot
from ringstat.periods import (
    Period,
    TrendMetric,
    compute_trend,
    group_sessions_by_period,
    iso_week_number,
    week_start,
)
from ringstat.storage.source import InMemorySessionSource


def make_session(session_id, when, shots_count=10, decimal_raw=900,
                 normal_raw=0, teiler_raw=None):
    return SessionSummary(
        session_id=session_id,
        session_date=when,
        shots_count=shots_count,
        total_score_raw=normal_raw,
        total_score_decimal_raw=decimal_raw,
        best_teiler_raw=teiler_raw,
    )


def make_shots(points):
    return [Shot(i, x, y, 10, 10.0) for i, (x, y) in enumerate(points, start=1)]


class TestIsoWeeks:

    @pytest.mark.parametrize("day,week", [
        (date(2024, 1, 1), 1),      # Monday
        (date(2024, 1, 7), 1),      # Sunday of the same week
        (date(2024, 12, 30), 1),    # belongs to 2025-W01
        (date(2021, 1, 3), 53),     # belongs to 2020-W53
        (date(2020, 12, 31), 53),
    ])
    def test_week_number(self, day, week):
        assert iso_week_number(day) == week

    def test_week_starts_monday(self):
        assert week_start(date(2024, 1, 7)) == date(2024, 1, 1)
        assert week_start(date(2021, 1, 3)) == date(2020, 12, 28)
        assert week_start(date(2024, 1, 8)) == date(2024, 1, 8)


class TestGrouping:

    def test_monthly_scenario(self):
        """Three sessions over two months give two ordered buckets."""
        sessions = [
            make_session("c", datetime(2024, 2, 1)),
            make_session("a", datetime(2024, 1, 5)),
            make_session("b", datetime(2024, 1, 20)),
        ]
        buckets = group_sessions_by_period(sessions, "monthly", limit=12)
        assert [b.key for b in buckets] == ["2024-01", "2024-02"]
        assert [len(b.sessions) for b in buckets] == [2, 1]
        assert buckets[0].label == "Jan 24"
        assert buckets[0].bucket_date == date(2024, 1, 1)

    def test_weekly(self):
        sessions = [
            make_session("a", datetime(2024, 1, 7, 19, 0)),   # Sunday
            make_session("b", datetime(2024, 1, 1, 9, 0)),    # Monday
            make_session("c", datetime(2024, 1, 8, 9, 0)),    # next Monday
        ]
        buckets = group_sessions_by_period(sessions, Period.WEEKLY)
        assert [b.key for b in buckets] == ["2024-01-01", "2024-01-08"]
        assert [b.label for b in buckets] == ["KW 1", "KW 2"]
        assert len(buckets[0].sessions) == 2

    def test_daily(self):
        sessions = [
            make_session("a", datetime(2024, 1, 5, 10, 0)),
            make_session("b", datetime(2024, 1, 5, 18, 0)),
        ]
        buckets = group_sessions_by_period(sessions, "daily")
        assert len(buckets) == 1
        assert buckets[0].key == "2024-01-05"
        assert buckets[0].label == "05.01"

    def test_limit_keeps_most_recent(self):
        sessions = []
        for i in range(14):
            year, month = 2023 + (i // 12), i % 12 + 1
            sessions.append(make_session(f"s{i}", datetime(year, month, 10)))
        buckets = group_sessions_by_period(sessions, "monthly", limit=12)
        assert len(buckets) == 12
        assert buckets[0].key == "2023-03"
        assert buckets[-1].key == "2024-02"

    def test_unknown_period(self):
        with pytest.raises(ValueError):
            group_sessions_by_period([], "hourly")

    def test_empty(self):
        assert group_sessions_by_period([], "weekly") == []


class TestComputeTrend:

    def _sessions(self):
        return [
            make_session("s1", datetime(2024, 1, 5), shots_count=2,
                         decimal_raw=190, teiler_raw=500),
            make_session("s2", datetime(2024, 1, 20), shots_count=4,
                         decimal_raw=380),
            make_session("s3", datetime(2024, 2, 1), shots_count=10,
                         decimal_raw=950),
        ]

    def _source(self):
        return InMemorySessionSource(shots={
            "s1": make_shots([(0.0, 0.0), (2.0, 0.0)]),
            "s2": make_shots([(0.0, 0.0), (4.0, 0.0), (0.0, 0.0), (4.0, 0.0)]),
        })

    def test_avg_score(self):
        points = compute_trend(self._source(), self._sessions(), "avgScore")
        assert [p.period_key for p in points] == ["2024-01", "2024-02"]
        # (19.0 + 38.0) / 6 shots
        assert points[0].value == pytest.approx(9.5)
        assert points[0].sample_count == 2
        assert points[1].value == pytest.approx(9.5)

    def test_avg_score_skips_empty_sessions(self):
        sessions = self._sessions() + [
            make_session("s4", datetime(2024, 2, 2), shots_count=0, decimal_raw=0)
        ]
        points = compute_trend(self._source(), sessions, "avgScore")
        assert points[1].value == pytest.approx(9.5)
        assert points[1].sample_count == 2

    def test_best_score(self):
        points = compute_trend(self._source(), self._sessions(), "bestScore")
        assert points[0].value == pytest.approx(38.0)
        assert points[1].value == pytest.approx(95.0)

    def test_best_teiler(self):
        """Buckets without a hardware teiler report 0."""
        points = compute_trend(self._source(), self._sessions(),
                               TrendMetric.BEST_TEILER)
        assert points[0].value == pytest.approx(50.0)
        assert points[1].value == 0

    def test_avg_spread_weighted(self):
        points = compute_trend(self._source(), self._sessions(), "avgSpread")
        # (1.0 × 2 + 2.0 × 4) / 6
        assert points[0].value == pytest.approx(1.67)
        assert points[1].value == 0

    def test_avg_offset_weighted(self):
        points = compute_trend(self._source(), self._sessions(), "avgOffset")
        assert points[0].value == pytest.approx(1.67)

    def test_value_rounded(self):
        sessions = [make_session("x", datetime(2024, 1, 1), shots_count=3,
                                 decimal_raw=290)]
        points = compute_trend(self._source(), sessions, "avgScore")
        assert points[0].value == 9.67

    def test_value_rounds_ties_up(self):
        """73.0 rings over 8 shots is exactly 9.125."""
        sessions = [make_session("x", datetime(2024, 1, 1), shots_count=8,
                                 decimal_raw=730)]
        points = compute_trend(self._source(), sessions, "avgScore")
        assert points[0].value == 9.13

    def test_unknown_metric(self):
        with pytest.raises(ValueError):
            compute_trend(self._source(), self._sessions(), "median")

    def test_to_dict(self):
        point = compute_trend(self._source(), self._sessions(),
                              period="weekly")[0].to_dict()
        assert point == {
            "period": "KW 1",
            "key": "2024-01-01",
            "value": 9.5,
            "count": 1,
            "date": "2024-01-01",
        }
