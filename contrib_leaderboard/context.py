"""
Per-run pipeline context.

Constructed by the caller for one leaderboard computation and passed to
each stage; the pipeline keeps no module-level mutable state.
"""

from dataclasses import dataclass, field
from typing import Callable

import requests

from contrib_leaderboard.cache import LeaderboardCache
from contrib_leaderboard.config import GITHUB_API_VERSION, USER_AGENT, LeaderboardSettings


def github_headers(token: str | None = None) -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
        "User-Agent": USER_AGENT,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


@dataclass
class PipelineContext:
    settings: LeaderboardSettings = field(default_factory=LeaderboardSettings)
    cache: LeaderboardCache = field(default_factory=LeaderboardCache)
    session_factory: Callable[[], requests.Session] = requests.Session

    def new_session(self) -> requests.Session:
        """Create an HTTP session carrying the GitHub headers for one stage."""
        session = self.session_factory()
        session.headers.update(github_headers(self.settings.github_token))
        return session
