"""
Static sample contributors shown when neither live data nor a cached
leaderboard is available ("demo mode").
"""

from contrib_leaderboard.models import ContributorScore

MOCK_CONTRIBUTORS = (
    ContributorScore(login="Satoshi_Nakamoto", experience_points=250, pull_request_count=20),
    ContributorScore(login="Ada_Lovelace", experience_points=180, pull_request_count=15),
    ContributorScore(login="Alan_Turing", experience_points=120, pull_request_count=10),
    ContributorScore(login="Grace_Hopper", experience_points=90, pull_request_count=8),
    ContributorScore(login="Linus_Torvalds", experience_points=60, pull_request_count=5),
    ContributorScore(login="Margaret_Hamilton", experience_points=40, pull_request_count=3),
    ContributorScore(login="Tim_Berners_Lee", experience_points=20, pull_request_count=2),
    ContributorScore(login="Pixel_Admin", experience_points=10, pull_request_count=1),
)


def mock_scores() -> list[ContributorScore]:
    """Fresh copies of the sample scores, safe for the caller to mutate."""
    return [ContributorScore(**s.to_dict()) for s in MOCK_CONTRIBUTORS]
