"""
Leaderboard Pipeline

Runs the ingestion stages concurrently, scores and ranks contributors, and
falls back through cached and mock data when live data is unavailable:

    live fetch -> fresh cache -> stale cache -> static mock -> unavailable

No failure in a stage propagates to the caller; every path ends in a
LeaderboardResult, possibly empty with source UNAVAILABLE.

Usage:
    from contrib_leaderboard.pipeline import build_leaderboard
    result = build_leaderboard(PipelineContext())
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable

import pandas as pd

from contrib_leaderboard.config import LEADERBOARD_PATTERN, OUTPUT_FOLDER
from contrib_leaderboard.context import PipelineContext
from contrib_leaderboard.ingestion.attendance import load_attendance
from contrib_leaderboard.ingestion.github_pulls import fetch_merged_pulls, fetch_repository_stats
from contrib_leaderboard.mock_data import mock_scores
from contrib_leaderboard.models import (
    EMPTY_ATTENDANCE,
    ContributorScore,
    ProjectSummary,
    RankedContributor,
    RepositoryStats,
)
from contrib_leaderboard.result import ErrorKind, StageResult
from contrib_leaderboard.scoring.calculator import (
    calculate_scores,
    rank_contributors,
    summarize,
    top_contributors,
)
from contrib_leaderboard.utils import atomic_write_csv, cleanup_old_files, now_ms, setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)

LEADERBOARD_COLUMNS = [
    'rank', 'login', 'total_score', 'pull_request_count',
    'events_attended', 'league', 'achievements',
]


class DataSource(str, Enum):
    LIVE = "live"
    CACHE = "cache"
    STALE_CACHE = "stale_cache"
    MOCK = "mock"
    UNAVAILABLE = "unavailable"


@dataclass
class LeaderboardResult:
    contributors: list[RankedContributor]
    source: DataSource
    errors: dict[str, str] = field(default_factory=dict)
    summary: ProjectSummary = field(default_factory=ProjectSummary)
    repository: RepositoryStats | None = None
    generated_at: int = field(default_factory=now_ms)

    @property
    def available(self) -> bool:
        return self.source != DataSource.UNAVAILABLE

    @property
    def is_fallback(self) -> bool:
        return self.source != DataSource.LIVE

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([c.to_dict() for c in self.contributors], columns=LEADERBOARD_COLUMNS)


@dataclass(frozen=True)
class Stage:
    name: str
    run: Callable[[PipelineContext], StageResult]
    empty_value: Any


def pipeline_stages(context: PipelineContext) -> list[Stage]:
    stages = [
        Stage("pulls", fetch_merged_pulls, []),
        Stage("attendance", load_attendance, EMPTY_ATTENDANCE),
    ]
    if context.settings.fetch_repository_stats:
        stages.append(Stage("repository", fetch_repository_stats, RepositoryStats()))
    return stages


def run_stages(context: PipelineContext, stages: list[Stage] | None = None) -> dict[str, StageResult]:
    """
    Run the ingestion stages concurrently and join their results.

    Each stage produces an independent result. A stage that raises is
    recorded as a failed result with its empty value, and the other
    stages still complete.

    Returns:
        Dict stage name -> StageResult
    """
    stages = stages if stages is not None else pipeline_stages(context)

    with ThreadPoolExecutor(max_workers=max(len(stages), 1), thread_name_prefix="leaderboard-fetch") as executor:
        futures = {stage.name: (stage, executor.submit(stage.run, context)) for stage in stages}

    results = {}
    for name, (stage, future) in futures.items():
        try:
            results[name] = future.result()
        except Exception as e:
            logger.exception(f"Stage '{name}' raised an unexpected error")
            results[name] = StageResult.failure(stage.empty_value, ErrorKind.DATA_SHAPE, f"{type(e).__name__}: {e}")
    return results


def decode_cached_scores(payload: Any) -> list[ContributorScore] | None:
    """
    Rebuild scores from a cached payload.

    Returns:
        List of ContributorScore, or None if the payload has the wrong shape
    """
    if not isinstance(payload, list):
        logger.warning("Cached leaderboard payload is not a list; ignoring it")
        return None
    scores = []
    try:
        for item in payload:
            if not isinstance(item, dict):
                raise ValueError(f"cached entry is not an object: {item!r}")
            scores.append(ContributorScore.from_dict(item))
    except ValueError as e:
        logger.warning(f"Cached leaderboard payload is invalid; ignoring it: {e}")
        return None
    return scores


def _ranked_result(
    scores: list[ContributorScore],
    source: DataSource,
    context: PipelineContext,
    errors: dict[str, str],
    repository: RepositoryStats | None,
    summary: ProjectSummary | None = None,
) -> LeaderboardResult:
    settings = context.settings
    return LeaderboardResult(
        contributors=rank_contributors(scores, settings, limit=settings.top_n),
        source=source,
        errors=errors,
        summary=summary or summarize(scores),
        repository=repository,
        generated_at=context.cache.clock(),
    )


def load_fallback(
    context: PipelineContext,
    errors: dict[str, str] | None = None,
    repository: RepositoryStats | None = None,
) -> LeaderboardResult:
    """
    Resolve the leaderboard when live computation failed.

    Tries the fresh cache, then the stale cache (if allowed), then the static
    mock data (if allowed). Returns an empty UNAVAILABLE result otherwise.
    """
    settings = context.settings
    errors = dict(errors or {})
    cache = context.cache

    payload = cache.load(settings.cache_key, settings.cache_max_age_ms)
    if payload is not None:
        scores = decode_cached_scores(payload)
        if scores is not None:
            logger.info(f"Using cached leaderboard ({len(scores)} contributors)")
            return _ranked_result(scores, DataSource.CACHE, context, errors, repository)

    if settings.allow_stale_cache:
        entry = cache.load_entry(settings.cache_key)
        if entry is not None:
            scores = decode_cached_scores(entry.payload)
            if scores is not None:
                age_hours = (cache.clock() - entry.timestamp) / 3_600_000
                logger.warning(f"Using stale cached leaderboard ({age_hours:.1f} hours old)")
                return _ranked_result(scores, DataSource.STALE_CACHE, context, errors, repository)

    if settings.use_mock_fallback:
        logger.warning("Switching to mock data mode")
        return _ranked_result(mock_scores(), DataSource.MOCK, context, errors, repository)

    logger.error("Leaderboard data unavailable")
    return LeaderboardResult(
        contributors=[],
        source=DataSource.UNAVAILABLE,
        errors=errors,
        repository=repository,
        generated_at=cache.clock(),
    )


def build_leaderboard(context: PipelineContext | None = None) -> LeaderboardResult:
    """
    Compute the contributor leaderboard with graceful degradation.

    Live computation counts as failed only when the pull request stage
    failed before receiving any page. Partial pagination (even with no
    merged PRs among the pages received) and a missing attendance CSV still
    produce a live leaderboard.

    Args:
        context: Per-run settings, cache and HTTP session factory

    Returns:
        LeaderboardResult (never raises for fetch, parse or storage failures)

    Raises:
        ValueError: If the settings are invalid
    """
    context = context or PipelineContext()
    settings = context.settings
    settings.validate()

    results = run_stages(context)
    errors = {name: r.describe() for name, r in results.items() if not r.ok}
    for name, message in errors.items():
        logger.warning(f"Stage '{name}' failed: {message}")

    repository = results["repository"].value if "repository" in results else None
    pulls = results["pulls"]

    if not pulls.ok and not pulls.partial:
        return load_fallback(context, errors, repository)

    scores = calculate_scores(pulls.value, results["attendance"].value, settings)
    top = top_contributors(scores, settings, settings.top_n)
    try:
        context.cache.save(settings.cache_key, [s.to_dict() for s in top])
    except TypeError as e:
        logger.warning(f"Could not cache leaderboard: {e}")
        errors["cache"] = f"{ErrorKind.STORAGE.value}: {e}"

    return _ranked_result(top, DataSource.LIVE, context, errors, repository, summary=summarize(scores))


def export_leaderboard(result: LeaderboardResult, folder: Path | None = None) -> Path | None:
    """
    Write the ranked leaderboard to leaderboard_<YYYYMMDD>.csv.

    Older exports in the folder are removed.

    Returns:
        Path of the written file, or None when there is nothing to export
    """
    if not result.contributors:
        logger.warning("No contributors to export")
        return None

    target_folder = folder or OUTPUT_FOLDER
    stamp = datetime.fromtimestamp(result.generated_at / 1000).strftime('%Y%m%d')
    path = target_folder / f"leaderboard_{stamp}.csv"

    atomic_write_csv(result.to_dataframe(), path, index=False)
    cleanup_old_files(LEADERBOARD_PATTERN, keep_file=path, folder=target_folder)
    logger.info(f"Exported leaderboard: {path}")
    return path
