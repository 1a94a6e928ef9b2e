"""
Event Attendance Aggregator

Loads the attendance CSV (URL or local file) and folds it into an
AttendanceMap: username -> set of distinct event names attended.

CSV layout (header row always skipped, columns by position):
    [0] username, [1] date, [2] event name, extra columns ignored

Usage:
    from contrib_leaderboard.ingestion.attendance import parse_attendance_csv
    attendance = parse_attendance_csv(text)
"""

from pathlib import Path
from typing import Iterator

import requests

from contrib_leaderboard.config import MAX_INPUT_SIZE, MIN_ATTENDANCE_COLUMNS
from contrib_leaderboard.context import PipelineContext
from contrib_leaderboard.ingestion.csv_parser import parse_csv_line
from contrib_leaderboard.models import (
    EMPTY_ATTENDANCE,
    AttendanceMap,
    AttendanceRecord,
    freeze_attendance,
)
from contrib_leaderboard.result import ErrorKind, StageResult
from contrib_leaderboard.utils import is_valid_date, setup_logging, validate_input_size

# --- Module Logger ---
logger = setup_logging(__name__)


def iter_attendance_records(csv_text: str) -> Iterator[AttendanceRecord]:
    """
    Yield the valid attendance records in a CSV document.

    The first line is treated as a header and skipped without inspection.
    Rows with too few columns, empty fields or an unparseable date are
    skipped with a warning.

    Args:
        csv_text: Full CSV text including the header line

    Yields:
        AttendanceRecord for every accepted row, in file order
    """
    lines = csv_text.split("\n")

    for line_number, raw_line in enumerate(lines[1:], start=2):
        line = raw_line.strip()
        if not line:
            continue

        parts = parse_csv_line(line)
        if len(parts) < MIN_ATTENDANCE_COLUMNS:
            logger.warning(f"Skipping line {line_number}: expected {MIN_ATTENDANCE_COLUMNS} columns, found {len(parts)}")
            continue

        username, date, event_name = parts[0], parts[1], parts[2]
        if not username or not date or not event_name:
            logger.warning(f"Skipping line {line_number}: incomplete record {line!r}")
            continue

        if not is_valid_date(date):
            logger.warning(f"Skipping line {line_number}: invalid date {date!r}")
            continue

        yield AttendanceRecord(username=username, date=date, event_name=event_name)


def parse_attendance_csv(csv_text: str | None) -> AttendanceMap:
    """
    Build the per-user set of distinct events attended.

    Never raises: empty, oversize or unusable input yields an empty map.

    Args:
        csv_text: Full CSV text including the header line

    Returns:
        Immutable AttendanceMap
    """
    if not csv_text or not csv_text.strip():
        return EMPTY_ATTENDANCE

    try:
        validate_input_size(csv_text, MAX_INPUT_SIZE)
    except ValueError as e:
        logger.warning(f"Ignoring attendance CSV: {e}")
        return EMPTY_ATTENDANCE

    events_by_user: dict[str, set[str]] = {}
    for record in iter_attendance_records(csv_text):
        events_by_user.setdefault(record.username, set()).add(record.event_name)

    logger.info(f"Parsed attendance data for {len(events_by_user)} users")
    return freeze_attendance(events_by_user)


def fetch_attendance_csv(source: str, session=None, timeout: float = 30) -> StageResult[str]:
    """
    Read the attendance CSV from an http(s) URL or a local path.

    Args:
        source: URL or filesystem path of the CSV
        session: requests-compatible session for URL sources
        timeout: Request timeout in seconds

    Returns:
        StageResult holding the CSV text ("" on failure)
    """
    if source.startswith(("http://", "https://")):
        client = session or requests
        try:
            response = client.get(source, timeout=timeout)
        except requests.RequestException as e:
            logger.warning(f"Error fetching attendance CSV: {e}")
            return StageResult.failure("", ErrorKind.TRANSPORT, str(e))

        if not response.ok:
            logger.warning(f"Failed to fetch attendance CSV: {response.status_code} {response.reason}")
            return StageResult.failure("", ErrorKind.TRANSPORT, f"HTTP {response.status_code}")
        text = response.text
    else:
        try:
            text = Path(source).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read attendance CSV {source}: {e}")
            return StageResult.failure("", ErrorKind.TRANSPORT, str(e))

    if not text.strip():
        logger.warning("Fetched attendance CSV is empty")
        return StageResult.failure("", ErrorKind.DATA_SHAPE, "empty attendance CSV")

    return StageResult.success(text)


def load_attendance(context: PipelineContext) -> StageResult[AttendanceMap]:
    """
    Fetch and aggregate the attendance CSV for one pipeline run.

    Returns:
        StageResult holding the AttendanceMap (empty on failure)
    """
    settings = context.settings
    session = context.new_session() if settings.attendance_source.startswith(("http://", "https://")) else None
    try:
        fetched = fetch_attendance_csv(settings.attendance_source, session, settings.request_timeout)
    finally:
        if session is not None:
            session.close()

    if not fetched.ok:
        return StageResult.failure(EMPTY_ATTENDANCE, fetched.error, fetched.message)

    return StageResult.success(parse_attendance_csv(fetched.value))
