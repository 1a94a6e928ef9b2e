"""
Contributor Scoring

Modules:
- calculator: PR label weights + event attendance -> per-user XP, ranking
- leagues: Score -> league tier classification
- achievements: Milestone badges derived from a contributor's score
"""


def __getattr__(name):
    """Lazy imports to avoid RuntimeWarning when running modules directly."""
    if name == "calculate_scores":
        from contrib_leaderboard.scoring.calculator import calculate_scores
        return calculate_scores
    if name == "rank_contributors":
        from contrib_leaderboard.scoring.calculator import rank_contributors
        return rank_contributors
    if name == "classify":
        from contrib_leaderboard.scoring.leagues import classify
        return classify
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
