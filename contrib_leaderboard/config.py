"""
Central configuration for the Contributor XP Leaderboard.

All shared constants and configuration values should be defined here
to avoid duplication and ensure consistency across modules.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

# --- Project Paths ---
PROJECT_ROOT = Path(__file__).parent.parent
DATA_FOLDER = PROJECT_ROOT / "data"
OUTPUT_FOLDER = DATA_FOLDER / "processed"
ATTENDANCE_CSV = DATA_FOLDER / "attendance.csv"
CACHE_DIR_ENV = "CONTRIB_LEADERBOARD_CACHE_DIR"


def default_cache_folder(project_root: Path = PROJECT_ROOT, environ=os.environ) -> Path:
    """
    Resolve the persistent cache folder.

    $CONTRIB_LEADERBOARD_CACHE_DIR wins. A source checkout keeps the cache
    under data/cache; an installed package uses ~/.cache/contrib-leaderboard.
    """
    override = environ.get(CACHE_DIR_ENV)
    if override:
        return Path(override).expanduser()
    if (project_root / "pyproject.toml").exists():
        return project_root / "data" / "cache"
    return Path.home() / ".cache" / "contrib-leaderboard"


CACHE_FOLDER = default_cache_folder()

# --- GitHub Repository ---
REPO_OWNER = "sayeeg-11"
REPO_NAME = "Pixel_Phantoms"
API_BASE = "https://api.github.com"
USER_AGENT = "contrib-leaderboard"
GITHUB_API_VERSION = "2022-11-28"

# --- Pull Request Pagination ---
PULLS_PER_PAGE = 100  # GitHub maximum
MAX_PULL_PAGES = 5
REQUEST_TIMEOUT = 30  # seconds, per request

# --- PR Scoring ---
# Ordered by priority: the first matching group decides the PR's points.
PR_LABEL_WEIGHTS = (
    (("level 3", "level-3"), 11),  # High complexity
    (("level 2", "level-2"), 5),   # Medium complexity
    (("level 1", "level-1"), 2),   # Low complexity
)
PR_DEFAULT_POINTS = 1  # Merged PR without a recognised level label

# --- Event Scoring ---
EVENT_ATTENDANCE_POINTS = 50
HOMEPAGE_EVENT_ATTENDANCE_POINTS = 250

# --- League Thresholds ---
# Points scale uses strict comparison, XP scale is inclusive.
POINTS_LEAGUE_THRESHOLDS = (150, 75, 30)
XP_LEAGUE_THRESHOLDS = (15000, 7500, 3000)

# --- Achievements ---
PR_MASTER_THRESHOLD = 10
TEAM_PLAYER_EVENTS = 3

# --- Leaderboard Output ---
TOP_N = 5
LEADERBOARD_PATTERN = "leaderboard_*.csv"

# --- Cache Configuration ---
CACHE_KEY = "leaderboardData"
CACHE_MAX_AGE_MS = 24 * 60 * 60 * 1000  # 24 hours

# --- Input Validation ---
MAX_INPUT_SIZE = 5_000_000  # Maximum attendance CSV size in bytes (~5MB)
MIN_ATTENDANCE_COLUMNS = 3


class InclusionPolicy(str, Enum):
    """Which scored users are allowed on the ranked list."""

    ANY_ACTIVITY = "any"  # Merged PRs or attended events
    REQUIRE_PULL_REQUEST = "pr"  # At least one merged PR


class LeagueScaleName(str, Enum):
    POINTS = "points"
    XP = "xp"


@dataclass(frozen=True)
class LeaderboardSettings:
    """
    Settings for one leaderboard computation.

    Defaults come from the module constants above. Product decisions that
    differ between the contributors page and the homepage widget (event
    points, league scale, inclusion policy) are fields here, not constants
    duplicated across modules.
    """

    repo_owner: str = REPO_OWNER
    repo_name: str = REPO_NAME
    api_base: str = API_BASE
    github_token: str | None = field(default_factory=lambda: os.environ.get("GITHUB_TOKEN") or None)
    attendance_source: str = str(ATTENDANCE_CSV)
    per_page: int = PULLS_PER_PAGE
    max_pages: int = MAX_PULL_PAGES
    request_timeout: float = REQUEST_TIMEOUT
    label_weights: tuple = PR_LABEL_WEIGHTS
    default_pr_points: int = PR_DEFAULT_POINTS
    event_points: int = EVENT_ATTENDANCE_POINTS
    league_scale: LeagueScaleName = LeagueScaleName.POINTS
    inclusion_policy: InclusionPolicy = InclusionPolicy.ANY_ACTIVITY
    excluded_login: str | None = None  # Defaults to repo_owner
    top_n: int | None = TOP_N
    cache_key: str = CACHE_KEY
    cache_max_age_ms: int = CACHE_MAX_AGE_MS
    allow_stale_cache: bool = True
    use_mock_fallback: bool = True
    fetch_repository_stats: bool = True

    @property
    def owner_login(self) -> str:
        """Login excluded from every ranking (case-insensitive)."""
        return self.excluded_login or self.repo_owner

    @property
    def repo_api_url(self) -> str:
        return f"{self.api_base.rstrip('/')}/repos/{self.repo_owner}/{self.repo_name}"

    def validate(self) -> None:
        """
        Validate settings values.

        Raises:
            ValueError: If any value is out of range
        """
        if not self.repo_owner or not self.repo_name:
            raise ValueError("Repository owner and name must be non-empty")
        if not 1 <= self.per_page <= 100:
            raise ValueError(f"Invalid per_page: {self.per_page}. Allowed range: 1-100")
        if self.max_pages < 1:
            raise ValueError(f"Invalid max_pages: {self.max_pages}. Must be at least 1")
        if self.event_points < 0 or self.default_pr_points < 0:
            raise ValueError("Point values must be non-negative")
        if any(points < 0 for _, points in self.label_weights):
            raise ValueError("Label weights must be non-negative")
        if self.top_n is not None and self.top_n < 1:
            raise ValueError(f"Invalid top_n: {self.top_n}. Must be at least 1 or None")
        if self.cache_max_age_ms <= 0:
            raise ValueError(f"Invalid cache_max_age_ms: {self.cache_max_age_ms}")
        if self.league_scale not in {s.value for s in LeagueScaleName}:
            raise ValueError(f"Invalid league scale: '{self.league_scale}'")
        if self.inclusion_policy not in {p.value for p in InclusionPolicy}:
            raise ValueError(f"Invalid inclusion policy: '{self.inclusion_policy}'")
