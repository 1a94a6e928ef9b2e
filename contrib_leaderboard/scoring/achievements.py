"""
Contributor achievements shown next to leaderboard entries.
"""

from dataclasses import dataclass
from typing import Callable

from contrib_leaderboard.config import PR_MASTER_THRESHOLD, TEAM_PLAYER_EVENTS
from contrib_leaderboard.models import ContributorScore


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    unlocked: Callable[[ContributorScore], bool]


ACHIEVEMENTS = (
    Achievement(
        "first_pr", "First PR", "Submitted your first pull request",
        lambda s: s.pull_request_count >= 1,
    ),
    Achievement(
        "ten_prs", "PR Master", f"Submitted {PR_MASTER_THRESHOLD} pull requests",
        lambda s: s.pull_request_count >= PR_MASTER_THRESHOLD,
    ),
    Achievement(
        "high_complexity", "Complex Solver", "Submitted a Level 3 PR",
        lambda s: s.high_complexity_count >= 1,
    ),
    Achievement(
        "team_player", "Team Player", f"Participated in {TEAM_PLAYER_EVENTS} events",
        lambda s: s.events_attended >= TEAM_PLAYER_EVENTS,
    ),
)


def unlocked_achievements(score: ContributorScore) -> tuple[str, ...]:
    """Names of the achievements the contributor has unlocked, in declaration order."""
    return tuple(a.name for a in ACHIEVEMENTS if a.unlocked(score))
