"""
Contributor XP Leaderboard - Core Package

This package contains the core modules for:
- Data ingestion: attendance CSV and GitHub pull requests (contrib_leaderboard.ingestion)
- Scoring, league classification and achievements (contrib_leaderboard.scoring)
- Result caching with graceful fallback (contrib_leaderboard.cache)
- Shared configuration and utilities
"""

from contrib_leaderboard.config import *

__version__ = "1.0.0"
