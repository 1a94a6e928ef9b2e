"""
Shared fixtures: fake HTTP sessions, a controllable clock and temp caches.
"""

import json
from dataclasses import replace

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from contrib_leaderboard.cache import LeaderboardCache
from contrib_leaderboard.config import LeaderboardSettings
from contrib_leaderboard.context import PipelineContext


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code=200, json_data=None, text=None, headers=None, links=None):
        self.status_code = status_code
        self._json = json_data
        self.text = text if text is not None else (json.dumps(json_data) if json_data is not None else "")
        self.headers = CaseInsensitiveDict(headers or {})
        self.links = links or {}
        self.reason = "OK" if status_code < 400 else "Error"

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


class FakeSession:
    """
    Routes GET requests to a handler(url, params) -> FakeResponse.

    The handler may raise requests.RequestException to simulate a network error.
    """

    def __init__(self, handler):
        self.handler = handler
        self.headers = {}
        self.calls = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params or {})))
        return self.handler(url, params or {})

    def close(self):
        self.closed = True


class Clock:
    def __init__(self, now=1_700_000_000_000):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


def make_pr(login, merged=True, labels=(), number=None):
    return {
        "number": number,
        "user": {"login": login},
        "merged_at": "2025-01-10T12:00:00Z" if merged else None,
        "labels": [{"name": name} for name in labels],
    }


def network_down(url, params):
    raise requests.ConnectionError("network unreachable")


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def cache(tmp_path, clock):
    return LeaderboardCache(tmp_path / "cache", clock=clock)


@pytest.fixture
def settings(tmp_path):
    return LeaderboardSettings(
        repo_owner="sayeeg-11",
        repo_name="Pixel_Phantoms",
        github_token=None,
        attendance_source=str(tmp_path / "attendance.csv"),
        fetch_repository_stats=False,
    )


@pytest.fixture
def make_context(settings, cache):
    """Build a PipelineContext whose sessions all use the given handler."""
    sessions = []

    def factory(handler, **overrides):
        def session_factory():
            session = FakeSession(handler)
            sessions.append(session)
            return session

        run_settings = replace(settings, **overrides)
        return PipelineContext(settings=run_settings, cache=cache, session_factory=session_factory)

    factory.sessions = sessions
    return factory
