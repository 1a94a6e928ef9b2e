"""
League classification.

Two threshold scales exist: the points scale used by the contributors page
(strictly above 150/75/30) and the XP scale used by the homepage widget
(at least 15000/7500/3000). A deployment picks one through
LeaderboardSettings.league_scale.
"""

from dataclasses import dataclass

from contrib_leaderboard.config import (
    POINTS_LEAGUE_THRESHOLDS,
    XP_LEAGUE_THRESHOLDS,
    LeagueScaleName,
)
from contrib_leaderboard.models import League


@dataclass(frozen=True)
class LeagueScale:
    gold: int
    silver: int
    bronze: int
    inclusive: bool = False  # True: score >= threshold, False: score > threshold

    def __post_init__(self):
        if not self.gold > self.silver > self.bronze >= 0:
            raise ValueError(
                f"League thresholds must be strictly descending and non-negative: "
                f"gold={self.gold}, silver={self.silver}, bronze={self.bronze}"
            )

    def reaches(self, score: int, threshold: int) -> bool:
        return score >= threshold if self.inclusive else score > threshold


POINTS_SCALE = LeagueScale(*POINTS_LEAGUE_THRESHOLDS, inclusive=False)
XP_SCALE = LeagueScale(*XP_LEAGUE_THRESHOLDS, inclusive=True)

SCALES = {
    LeagueScaleName.POINTS: POINTS_SCALE,
    LeagueScaleName.XP: XP_SCALE,
}


def get_scale(name: LeagueScaleName | str) -> LeagueScale:
    """
    Look up a named league scale.

    Raises:
        ValueError: If the name is not a known scale
    """
    try:
        return SCALES[LeagueScaleName(name)]
    except ValueError:
        raise ValueError(
            f"Invalid league scale: '{name}'. "
            f"Allowed values: {', '.join(s.value for s in LeagueScaleName)}"
        ) from None


def classify(score: int, scale: LeagueScale = POINTS_SCALE) -> League:
    """Map a score to exactly one league; anything below bronze is ROOKIE."""
    if scale.reaches(score, scale.gold):
        return League.GOLD
    if scale.reaches(score, scale.silver):
        return League.SILVER
    if scale.reaches(score, scale.bronze):
        return League.BRONZE
    return League.ROOKIE
