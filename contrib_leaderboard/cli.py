"""
Command-line entry point for the contributor leaderboard.

Usage:
    contrib-leaderboard --top 10 --export
    OR
    python -m contrib_leaderboard --attendance data/attendance.csv
"""

import argparse
import logging
from pathlib import Path

from contrib_leaderboard.cache import LeaderboardCache
from contrib_leaderboard.config import (
    CACHE_FOLDER,
    HOMEPAGE_EVENT_ATTENDANCE_POINTS,
    OUTPUT_FOLDER,
    InclusionPolicy,
    LeaderboardSettings,
    LeagueScaleName,
)
from contrib_leaderboard.context import PipelineContext
from contrib_leaderboard.pipeline import DataSource, LeaderboardResult, build_leaderboard, export_leaderboard
from contrib_leaderboard.utils import setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)

SOURCE_NOTES = {
    DataSource.CACHE: "Showing cached data - live data unavailable",
    DataSource.STALE_CACHE: "Showing stale cached data - live data unavailable",
    DataSource.MOCK: "Demo Mode: displaying sample data (API limit reached or offline)",
}


def build_parser() -> argparse.ArgumentParser:
    defaults = LeaderboardSettings()
    parser = argparse.ArgumentParser(
        prog="contrib-leaderboard",
        description="Rank repository contributors by merged PRs and event attendance.",
    )
    parser.add_argument("--owner", default=defaults.repo_owner, help="Repository owner (excluded from rankings)")
    parser.add_argument("--repo", default=defaults.repo_name, help="Repository name")
    parser.add_argument("--attendance", default=defaults.attendance_source, help="Attendance CSV path or URL")
    parser.add_argument("--top", type=int, default=defaults.top_n, help="Number of contributors to keep")
    parser.add_argument("--all", action="store_true", help="Keep every ranked contributor")
    parser.add_argument("--max-pages", type=int, default=defaults.max_pages, help="Pull request pages to fetch")
    parser.add_argument("--event-points", type=int, default=defaults.event_points,
                        help=f"Points per distinct event attended (homepage uses {HOMEPAGE_EVENT_ATTENDANCE_POINTS})")
    parser.add_argument("--scale", choices=[s.value for s in LeagueScaleName], default=defaults.league_scale.value,
                        help="League threshold scale")
    parser.add_argument("--policy", choices=[p.value for p in InclusionPolicy], default=defaults.inclusion_policy.value,
                        help="'any': PRs or events, 'pr': at least one merged PR")
    parser.add_argument("--cache-dir", type=Path, default=CACHE_FOLDER, help="Folder for the cached leaderboard")
    parser.add_argument("--no-stale", action="store_true", help="Never fall back to an expired cache entry")
    parser.add_argument("--no-mock", action="store_true", help="Never fall back to sample data")
    parser.add_argument("--export", action="store_true", help=f"Write the leaderboard CSV to {OUTPUT_FOLDER}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def settings_from_args(args: argparse.Namespace) -> LeaderboardSettings:
    return LeaderboardSettings(
        repo_owner=args.owner,
        repo_name=args.repo,
        attendance_source=args.attendance,
        top_n=None if args.all else args.top,
        max_pages=args.max_pages,
        event_points=args.event_points,
        league_scale=LeagueScaleName(args.scale),
        inclusion_policy=InclusionPolicy(args.policy),
        allow_stale_cache=not args.no_stale,
        use_mock_fallback=not args.no_mock,
    )


def log_result(result: LeaderboardResult) -> None:
    if not result.available:
        logger.error("Data unavailable: could not load the leaderboard. Run the command again to retry.")
        for stage, message in result.errors.items():
            logger.error(f"  {stage}: {message}")
        return

    if result.source in SOURCE_NOTES:
        logger.warning(SOURCE_NOTES[result.source])

    if not result.contributors:
        logger.info("No active contributors found yet.")
        return

    logger.info(f"Top {len(result.contributors)} contributors ({result.source.value}):")
    logger.info("\n" + result.to_dataframe().to_string(index=False))

    summary = result.summary
    logger.info("Summary:")
    logger.info(f"  Contributors: {summary.contributors}")
    logger.info(f"  Merged PRs: {summary.total_pull_requests}")
    logger.info(f"  Total points: {summary.total_points}")
    if result.repository is not None:
        commits = result.repository.total_commits
        logger.info(f"  Stars: {result.repository.stars}, forks: {result.repository.forks}, "
                    f"commits: {commits if commits is not None else 'N/A'}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        for name in list(logging.root.manager.loggerDict):
            if name.startswith("contrib_leaderboard"):
                logging.getLogger(name).setLevel(logging.DEBUG)

    settings = settings_from_args(args)
    try:
        settings.validate()
    except ValueError as e:
        logger.error(str(e))
        return 2

    logger.info("=" * 60)
    logger.info(f"Contributor Leaderboard: {settings.repo_owner}/{settings.repo_name}")
    logger.info("=" * 60)

    context = PipelineContext(settings=settings, cache=LeaderboardCache(args.cache_dir))
    result = build_leaderboard(context)
    log_result(result)

    if not result.available:
        return 1

    if args.export:
        export_leaderboard(result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
