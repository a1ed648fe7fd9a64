"""
RingStat command line entry point.

Reads a JSON export of the scoring database and prints statistics as JSON.

Usage:
    ringstat --data export.json analyze 4711
    ringstat --data export.json --time-range 90 stats "Muster|Max"
    ringstat --data export.json trend "Muster|Max" --metric bestTeiler --period weekly
    ringstat --data export.json sessions "Muster|Max" --page 2
    ringstat --data export.json leaderboard --sort-by bestTeiler
"""

import argparse
import json
import logging
import sys
from datetime import datetime

from ringstat.aggregation import (
    LEADERBOARD_SORT_KEYS,
    Member,
    build_leaderboard,
    compute_dashboard_stats,
    filter_by_time_range,
    recent_sessions,
    score_trend,
)
from ringstat.analysis import analyze_shots, find_best_teiler, score_distribution
from ringstat.models.target import Target
from ringstat.periods import Period, TrendMetric, compute_trend
from ringstat.storage.source import JsonSessionSource, SourceError
from ringstat.utils.config import Config
from ringstat.utils.constants import DEFAULT_PAGE_SIZE

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def load_members(source: JsonSessionSource) -> list[Member]:
    """Members from the export, or one member per shooter when none are listed."""
    if source.member_records:
        members = []
        for record in source.member_records:
            created = record.get("created_at")
            members.append(Member(
                member_id=record["id"],
                username=record["username"],
                shooter_id=record["shooter_id"],
                member_since=datetime.fromisoformat(created) if created else None,
            ))
        return sorted(members, key=lambda m: m.username)
    return [
        Member(member_id=index, username=shooter_id, shooter_id=shooter_id)
        for index, shooter_id in enumerate(source.shooter_ids, start=1)
    ]


def cmd_analyze(source, args, config) -> dict:
    shots = source.get_session_shots(args.session_id)
    analysis = analyze_shots(shots)
    best = find_best_teiler(shots)
    return {
        "session_id": args.session_id,
        "shots": len(shots),
        "analysis": analysis.to_dict() if analysis else None,
        "best_teiler": best.to_dict() if best else None,
        "distribution": score_distribution(shots),
        "target": Target.from_discipline(args.discipline).to_dict(),
    }


def cmd_stats(source, args, config) -> dict:
    sessions = source.get_sessions(args.shooter_id)
    stats = compute_dashboard_stats(
        source, sessions,
        time_range=args.time_range,
        max_workers=config.get("max_workers"),
    )
    return {"stats": stats.to_dict()}


def cmd_trend(source, args, config) -> dict:
    sessions = source.get_sessions(args.shooter_id)
    points = compute_trend(
        source, sessions,
        metric=args.metric,
        period=args.period,
        limit=args.limit,
        max_workers=config.get("max_workers"),
    )
    return {
        "data": [p.to_dict() for p in points],
        "metric": args.metric,
        "period": args.period,
        "total_sessions": len(sessions),
        "score_trend": score_trend(
            sessions, config.get("score_trend_limit")
        ),
    }


def cmd_sessions(source, args, config) -> dict:
    sessions = filter_by_time_range(
        source.get_sessions(args.shooter_id), args.time_range
    )
    return recent_sessions(
        source, sessions,
        page=args.page,
        limit=args.limit,
        max_workers=config.get("max_workers"),
    )


def cmd_leaderboard(source, args, config) -> dict:
    members = load_members(source)
    entries = build_leaderboard(
        source, members,
        sort_by=args.sort_by,
        time_range=args.time_range,
        limit=args.limit,
    )
    return {
        "leaderboard": [e.to_dict() for e in entries],
        "meta": {
            "sort_by": args.sort_by,
            "time_range": args.time_range,
            "generated_at": datetime.now().isoformat(),
        },
    }


COMMANDS = {
    "analyze": cmd_analyze,
    "stats": cmd_stats,
    "trend": cmd_trend,
    "sessions": cmd_sessions,
    "leaderboard": cmd_leaderboard,
}


def build_parser(config: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="RingStat shooting statistics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--data", type=str, default=None,
        help="JSON export of the scoring database "
             "(default: $RINGSTAT_DATA_FILE or config data_file)",
    )
    parser.add_argument(
        "--time-range", type=str, default=config.get("time_range"),
        help='"all" or number of days (default: all)',
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("analyze", help="Shot-group analysis of one session")
    p.add_argument("session_id")
    p.add_argument("--discipline", type=str, default="",
                   help='Discipline name, e.g. "KK 50m" (selects target geometry)')

    p = sub.add_parser("stats", help="Dashboard statistics for a shooter")
    p.add_argument("shooter_id", help='"Lastname|Firstname"')

    p = sub.add_parser("trend", help="Trend series for a shooter")
    p.add_argument("shooter_id")
    p.add_argument("--metric", default=config.get("trend_metric"),
                   choices=[m.value for m in TrendMetric])
    p.add_argument("--period", default=config.get("trend_period"),
                   choices=[period.value for period in Period])
    p.add_argument("--limit", type=int, default=config.get("trend_limit"),
                   help="Number of most recent periods (default: 12)")

    p = sub.add_parser("sessions", help="Recent sessions with analysis")
    p.add_argument("shooter_id")
    p.add_argument("--page", type=int, default=1)
    p.add_argument("--limit", type=int, default=DEFAULT_PAGE_SIZE)

    p = sub.add_parser("leaderboard", help="Ranked leaderboard of all members")
    p.add_argument("--sort-by", default=config.get("leaderboard_sort"),
                   choices=list(LEADERBOARD_SORT_KEYS))
    p.add_argument("--limit", type=int, default=config.get("leaderboard_limit"))

    return parser


def main(argv=None):
    config = Config()
    parser = build_parser(config)
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    data_file = args.data or Config.get_data_file()
    if not data_file:
        parser.error("no data file given (use --data or RINGSTAT_DATA_FILE)")

    try:
        source = JsonSessionSource(data_file)
    except SourceError as e:
        logger.error(str(e))
        sys.exit(1)

    result = COMMANDS[args.command](source, args, config)
    print(json.dumps(result, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
