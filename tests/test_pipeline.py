"""
Tests for the end-to-end pipeline and its fallback chain.
"""

import pandas as pd
import pytest

from contrib_leaderboard.models import League, RepositoryStats
from contrib_leaderboard.pipeline import (
    DataSource,
    Stage,
    build_leaderboard,
    decode_cached_scores,
    export_leaderboard,
    run_stages,
)
from contrib_leaderboard.result import ErrorKind, StageResult

from conftest import FakeResponse, make_pr, network_down

DAY_MS = 24 * 60 * 60 * 1000

PULLS = [
    make_pr("alice", labels=["level 3"]),
    make_pr("sayeeg-11", labels=["level 3"]),
    make_pr("bob", labels=["level 1"]),
    make_pr("carol", merged=False, labels=["level 3"]),
    make_pr("bob"),
]

ATTENDANCE = (
    "username,date,event\n"
    "dave,2025-01-01,Hackathon\n"
    "dave,2025-02-01,Hackathon\n"
    "bob,2025-01-05,Workshop\n"
    "sayeeg-11,2025-01-05,Workshop\n"
)


def github(pulls=PULLS, status=200):
    def handler(url, params):
        if status != 200:
            return FakeResponse(status_code=status)
        if url.endswith("/pulls"):
            return FakeResponse(json_data=pulls if params["page"] == 1 else [])
        if url.endswith("/commits"):
            return FakeResponse(json_data=[{}], links={"last": {"url": "https://x/commits?per_page=1&page=310"}})
        return FakeResponse(json_data={"stargazers_count": 128, "forks_count": 45})

    return handler


@pytest.fixture
def attendance_file(settings):
    with open(settings.attendance_source, "w", encoding="utf-8") as f:
        f.write(ATTENDANCE)
    return settings.attendance_source


class TestLiveLeaderboard:
    """Tests for a successful live computation."""

    def test_ranks_prs_and_attendance(self, make_context, attendance_file):
        result = build_leaderboard(make_context(github()))

        assert result.source == DataSource.LIVE
        assert not result.is_fallback
        assert [(c.login, c.total_score) for c in result.contributors] == [
            ("bob", 2 + 1 + 50),
            ("dave", 50),
            ("alice", 11),
        ]
        assert result.contributors[0].pull_request_count == 2
        assert result.contributors[1].events_attended == 1

    def test_owner_never_in_output(self, make_context, attendance_file):
        result = build_leaderboard(make_context(github(), top_n=None))
        assert "sayeeg-11" not in {c.login for c in result.contributors}

    def test_caches_top_n_scores(self, make_context, attendance_file, cache):
        build_leaderboard(make_context(github(), top_n=2))

        payload = cache.load("leaderboardData", DAY_MS)

        assert [entry["login"] for entry in payload] == ["bob", "dave"]
        assert payload[0]["experience_points"] == 53

    def test_missing_attendance_still_live(self, make_context):
        result = build_leaderboard(make_context(github()))

        assert result.source == DataSource.LIVE
        assert "attendance" in result.errors
        assert [c.login for c in result.contributors] == ["alice", "bob"]

    def test_partial_pagination_is_live(self, make_context):
        def handler(url, params):
            if params.get("page") == 1:
                return FakeResponse(json_data=[make_pr("alice")])
            return FakeResponse(status_code=403)

        result = build_leaderboard(make_context(handler))

        assert result.source == DataSource.LIVE
        assert result.errors["pulls"].startswith("rate_limited")
        assert [c.login for c in result.contributors] == ["alice"]

    def test_partial_pagination_without_merged_pulls_is_live(self, make_context):
        def handler(url, params):
            if params.get("page") == 1:
                return FakeResponse(json_data=[make_pr("alice", merged=False)])
            return FakeResponse(status_code=500)

        result = build_leaderboard(make_context(handler, use_mock_fallback=False))

        assert result.source == DataSource.LIVE
        assert result.contributors == []
        assert result.errors["pulls"].startswith("transport")

    def test_empty_repository_is_valid_live_result(self, make_context):
        result = build_leaderboard(make_context(github(pulls=[])))

        assert result.source == DataSource.LIVE
        assert result.available
        assert result.contributors == []

    def test_summary_and_repository_stats(self, make_context, attendance_file):
        result = build_leaderboard(make_context(github(), fetch_repository_stats=True))

        assert result.repository == RepositoryStats(stars=128, forks=45, total_commits=310)
        assert result.summary.total_pull_requests == 3
        assert result.summary.contributors == 3

    def test_leagues_follow_event_points(self, make_context, attendance_file):
        result = build_leaderboard(make_context(github(), event_points=250))
        assert result.contributors[0].league == League.GOLD

    def test_invalid_settings_raise(self, make_context):
        with pytest.raises(ValueError):
            build_leaderboard(make_context(github(), per_page=0))


class TestFallbackChain:
    """live -> fresh cache -> stale cache -> mock -> unavailable."""

    def test_uses_fresh_cache_when_live_fails(self, make_context, attendance_file, clock):
        build_leaderboard(make_context(github()))
        clock.advance(DAY_MS - 1)

        result = build_leaderboard(make_context(network_down))

        assert result.source == DataSource.CACHE
        assert result.is_fallback
        assert [c.login for c in result.contributors] == ["bob", "dave", "alice"]
        assert result.errors["pulls"].startswith("transport")

    def test_rate_limit_falls_back_to_cache(self, make_context, attendance_file):
        build_leaderboard(make_context(github()))
        result = build_leaderboard(make_context(github(status=403)))
        assert result.source == DataSource.CACHE

    def test_leagues_recomputed_from_cache(self, make_context, attendance_file):
        build_leaderboard(make_context(github()))
        result = build_leaderboard(make_context(network_down, event_points=0, league_scale="xp"))
        assert {c.league for c in result.contributors} == {League.ROOKIE}

    def test_uses_stale_cache_when_expired(self, make_context, attendance_file, clock):
        build_leaderboard(make_context(github()))
        clock.advance(DAY_MS)

        result = build_leaderboard(make_context(network_down))

        assert result.source == DataSource.STALE_CACHE
        assert result.contributors[0].login == "bob"

    def test_mock_when_stale_not_allowed(self, make_context, attendance_file, clock):
        build_leaderboard(make_context(github()))
        clock.advance(DAY_MS)

        result = build_leaderboard(make_context(network_down, allow_stale_cache=False))

        assert result.source == DataSource.MOCK
        assert result.contributors[0].login == "Satoshi_Nakamoto"

    def test_mock_when_cache_empty(self, make_context):
        result = build_leaderboard(make_context(network_down))
        assert result.source == DataSource.MOCK
        assert len(result.contributors) == 5

    def test_unavailable_when_everything_fails(self, make_context):
        result = build_leaderboard(make_context(network_down, use_mock_fallback=False))

        assert result.source == DataSource.UNAVAILABLE
        assert not result.available
        assert result.contributors == []
        assert set(result.errors) == {"pulls", "attendance"}

    def test_corrupt_cache_payload_skipped(self, make_context, cache):
        cache.save("leaderboardData", {"not": "a list"})
        result = build_leaderboard(make_context(network_down))
        assert result.source == DataSource.MOCK

    @pytest.mark.parametrize("raw", [b"\xff\xfe garbage", b'{"payload": [], "timestamp": Infinity}'])
    def test_corrupt_cache_file_falls_back_to_mock(self, make_context, tmp_path, raw):
        folder = tmp_path / "cache"
        folder.mkdir(exist_ok=True)
        (folder / "leaderboardData.json").write_bytes(raw)

        result = build_leaderboard(make_context(network_down))

        assert result.source == DataSource.MOCK


class TestRunStages:
    """Tests for the concurrent, failure-tolerant join."""

    def test_raising_stage_does_not_block_others(self, make_context):
        def boom(context):
            raise RuntimeError("unexpected")

        stages = [
            Stage("broken", boom, []),
            Stage("fine", lambda context: StageResult.success(42), 0),
        ]

        results = run_stages(make_context(network_down), stages)

        assert results["fine"].value == 42
        assert results["broken"].error == ErrorKind.DATA_SHAPE
        assert results["broken"].value == []

    def test_repository_stage_optional(self, make_context):
        assert set(run_stages(make_context(github()))) == {"pulls", "attendance"}
        assert set(run_stages(make_context(github(), fetch_repository_stats=True))) == {
            "pulls", "attendance", "repository",
        }


class TestDecodeCachedScores:
    """Tests for decode_cached_scores function."""

    def test_valid_payload(self):
        scores = decode_cached_scores([{"login": "alice", "experience_points": 5, "pull_request_count": 1}])
        assert scores[0].login == "alice"
        assert scores[0].events_attended == 0

    @pytest.mark.parametrize("payload", [
        None,
        "alice",
        [1, 2],
        [{"experience_points": 5}],
        [{"login": "alice", "experience_points": -1}],
        [{"login": "alice", "experience_points": "many"}],
    ])
    def test_invalid_payload(self, payload):
        assert decode_cached_scores(payload) is None


class TestExportLeaderboard:
    """Tests for export_leaderboard function."""

    def test_writes_csv_and_removes_old_exports(self, make_context, attendance_file, tmp_path):
        out = tmp_path / "processed"
        out.mkdir()
        (out / "leaderboard_20000101.csv").write_text("old", encoding="utf-8")
        result = build_leaderboard(make_context(github()))

        path = export_leaderboard(result, out)

        assert path.exists()
        assert list(out.glob("leaderboard_*.csv")) == [path]
        df = pd.read_csv(path)
        assert list(df["login"]) == ["bob", "dave", "alice"]
        assert list(df["rank"]) == [1, 2, 3]
        assert df.loc[0, "league"] == "Bronze League"

    def test_nothing_to_export(self, make_context, tmp_path):
        result = build_leaderboard(make_context(network_down, use_mock_fallback=False))
        assert export_leaderboard(result, tmp_path) is None
