"""
Data Ingestion

Modules:
- csv_parser: Quote-aware CSV line tokenizer
- attendance: Event attendance CSV loading and aggregation
- github_pulls: GitHub pull request and repository stats fetching
"""


def __getattr__(name):
    """Lazy imports to avoid RuntimeWarning when running modules directly."""
    if name == "parse_csv_line":
        from contrib_leaderboard.ingestion.csv_parser import parse_csv_line
        return parse_csv_line
    if name == "parse_attendance_csv":
        from contrib_leaderboard.ingestion.attendance import parse_attendance_csv
        return parse_attendance_csv
    if name == "fetch_merged_pulls":
        from contrib_leaderboard.ingestion.github_pulls import fetch_merged_pulls
        return fetch_merged_pulls
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
