"""
Data records shared by the ingestion, scoring and caching modules.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

# Read-only mapping of username -> distinct event names attended.
AttendanceMap = Mapping[str, frozenset]


def freeze_attendance(events_by_user: dict[str, set[str]]) -> AttendanceMap:
    """Wrap a mutable attendance dict into an immutable AttendanceMap."""
    return MappingProxyType({user: frozenset(events) for user, events in events_by_user.items()})


EMPTY_ATTENDANCE: AttendanceMap = MappingProxyType({})


@dataclass(frozen=True)
class AttendanceRecord:
    username: str
    date: str
    event_name: str


@dataclass(frozen=True)
class PullRequest:
    """A pull request as validated at the ingestion boundary."""

    author_login: str
    merged_at: str | None
    labels: tuple[str, ...] = ()
    number: int | None = None

    @property
    def is_merged(self) -> bool:
        return bool(self.merged_at)


@dataclass
class ContributorScore:
    """Running score for one login during a single computation."""

    login: str
    experience_points: int = 0
    pull_request_count: int = 0
    events_attended: int = 0
    high_complexity_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContributorScore":
        """
        Rebuild a score from its cached dict form.

        Raises:
            ValueError: If the login is missing or a counter is not a non-negative integer
        """
        login = data.get("login")
        if not isinstance(login, str) or not login.strip():
            raise ValueError(f"Invalid cached contributor login: {login!r}")

        counters = {}
        for name in ("experience_points", "pull_request_count", "events_attended", "high_complexity_count"):
            value = data.get(name, 0)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"Invalid cached value for {name}: {value!r}")
            counters[name] = value

        return cls(login=login, **counters)


@dataclass(frozen=True)
class CacheEntry:
    payload: Any
    timestamp: int  # epoch milliseconds


class League(str, Enum):
    GOLD = "gold"
    SILVER = "silver"
    BRONZE = "bronze"
    ROOKIE = "rookie"

    @property
    def label(self) -> str:
        return _LEAGUE_LABELS[self]


_LEAGUE_LABELS = {
    League.GOLD: "Gold League",
    League.SILVER: "Silver League",
    League.BRONZE: "Bronze League",
    League.ROOKIE: "Contributor",
}


@dataclass(frozen=True)
class RankedContributor:
    """One row of the ranked leaderboard handed to a renderer."""

    rank: int
    login: str
    total_score: int
    pull_request_count: int
    events_attended: int
    league: League
    achievements: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        row = asdict(self)
        row["league"] = self.league.label
        row["achievements"] = ", ".join(self.achievements)
        return row


@dataclass(frozen=True)
class RepositoryStats:
    stars: int = 0
    forks: int = 0
    total_commits: int | None = None


@dataclass(frozen=True)
class ProjectSummary:
    contributors: int = 0
    total_pull_requests: int = 0
    total_points: int = 0
