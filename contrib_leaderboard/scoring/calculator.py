"""
Contribution Score Calculator

Folds merged pull requests and event attendance into one experience score
per contributor:

    score = sum(points per merged PR) + distinct events attended * event points

A PR is worth the points of the highest-priority complexity label present
on it (level 3 > level 2 > level 1), or the default when none match. Label
weights are never summed.

Usage:
    from contrib_leaderboard.scoring.calculator import calculate_scores, rank_contributors
    scores = calculate_scores(pulls, attendance, settings)
    leaderboard = rank_contributors(scores, settings, limit=5)
"""

from typing import Iterable, Sequence

from contrib_leaderboard.config import InclusionPolicy, LeaderboardSettings
from contrib_leaderboard.models import (
    AttendanceMap,
    ContributorScore,
    ProjectSummary,
    PullRequest,
    RankedContributor,
)
from contrib_leaderboard.scoring.achievements import unlocked_achievements
from contrib_leaderboard.scoring.leagues import classify, get_scale
from contrib_leaderboard.utils import setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)


def match_label_level(labels: Iterable[str], label_weights: Sequence) -> int | None:
    """
    Find the highest-priority label group matched by any label.

    Args:
        labels: Label names on one PR
        label_weights: Priority-ordered ((patterns...), points) groups

    Returns:
        Index into label_weights of the winning group, or None
    """
    lowered = [label.lower() for label in labels]
    for index, (patterns, _) in enumerate(label_weights):
        if any(pattern in name for name in lowered for pattern in patterns):
            return index
    return None


def pull_request_points(pr: PullRequest, label_weights: Sequence, default_points: int) -> int:
    """Points earned by one merged PR: exactly one weight, never a sum."""
    level = match_label_level(pr.labels, label_weights)
    if level is None:
        return default_points
    return label_weights[level][1]


def is_excluded(login: str, settings: LeaderboardSettings) -> bool:
    return login.lower() == settings.owner_login.lower()


def calculate_scores(
    pulls: Iterable[PullRequest],
    attendance: AttendanceMap,
    settings: LeaderboardSettings,
) -> dict[str, ContributorScore]:
    """
    Compute per-login scores from merged PRs and event attendance.

    Args:
        pulls: Validated pull requests (unmerged ones are ignored)
        attendance: username -> distinct events attended
        settings: Scoring weights, event points and excluded owner login

    Returns:
        Dict login -> ContributorScore, ordered by first appearance
        (PR authors in input order, then attendance-only users)
    """
    scores: dict[str, ContributorScore] = {}

    for pr in pulls:
        if not pr.is_merged:
            continue
        login = pr.author_login
        if is_excluded(login, settings):
            continue

        score = scores.setdefault(login, ContributorScore(login=login))
        score.experience_points += pull_request_points(pr, settings.label_weights, settings.default_pr_points)
        score.pull_request_count += 1
        # Group 0 is the top complexity level
        if match_label_level(pr.labels, settings.label_weights) == 0:
            score.high_complexity_count += 1

    for username, events in attendance.items():
        if not username.strip():
            logger.warning("Skipping attendance entry with empty username")
            continue
        if is_excluded(username, settings):
            continue

        score = scores.setdefault(username, ContributorScore(login=username))
        score.events_attended = len(events)
        score.experience_points += len(events) * settings.event_points

    logger.info(f"Scored {len(scores)} contributors")
    return scores


def is_included(score: ContributorScore, policy: InclusionPolicy) -> bool:
    if policy == InclusionPolicy.REQUIRE_PULL_REQUEST:
        return score.pull_request_count > 0
    return score.pull_request_count > 0 or score.events_attended > 0


def order_scores(scores: Iterable[ContributorScore], settings: LeaderboardSettings) -> list[ContributorScore]:
    """
    Filter and order scores for ranking.

    Applies the inclusion policy and owner exclusion, then sorts by
    descending score. The sort is stable, so ties keep first-seen order.
    """
    eligible = [
        s for s in scores
        if not is_excluded(s.login, settings) and is_included(s, settings.inclusion_policy)
    ]
    return sorted(eligible, key=lambda s: s.experience_points, reverse=True)


def top_contributors(
    scores: dict[str, ContributorScore] | Iterable[ContributorScore],
    settings: LeaderboardSettings,
    limit: int | None = None,
) -> list[ContributorScore]:
    """Ordered top-N scores (all when limit is None)."""
    values = scores.values() if isinstance(scores, dict) else scores
    ordered = order_scores(values, settings)
    return ordered[:limit] if limit is not None else ordered


def rank_contributors(
    scores: dict[str, ContributorScore] | Iterable[ContributorScore],
    settings: LeaderboardSettings,
    limit: int | None = None,
) -> list[RankedContributor]:
    """
    Build the ranked leaderboard rows with leagues and achievements.

    Args:
        scores: Scores keyed by login, or an already ordered sequence
        settings: Inclusion policy, excluded owner and league scale
        limit: Keep only the first N rows

    Returns:
        RankedContributor rows, rank 1 first
    """
    scale = get_scale(settings.league_scale)
    return [
        RankedContributor(
            rank=position,
            login=score.login,
            total_score=score.experience_points,
            pull_request_count=score.pull_request_count,
            events_attended=score.events_attended,
            league=classify(score.experience_points, scale),
            achievements=unlocked_achievements(score),
        )
        for position, score in enumerate(top_contributors(scores, settings, limit), start=1)
    ]


def summarize(scores: dict[str, ContributorScore] | Iterable[ContributorScore]) -> ProjectSummary:
    """Project-wide totals across all scored contributors."""
    values = list(scores.values() if isinstance(scores, dict) else scores)
    return ProjectSummary(
        contributors=len(values),
        total_pull_requests=sum(s.pull_request_count for s in values),
        total_points=sum(s.experience_points for s in values),
    )
