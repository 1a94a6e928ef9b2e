"""
Leaderboard Result Cache

Persists the last successful leaderboard as JSON {"payload", "timestamp"}
files, one per cache key. If the persistent store cannot be written
(missing permissions, disk full, read-only filesystem) the cache degrades to
an in-memory store for the rest of the process.

Usage:
    cache = LeaderboardCache(CACHE_FOLDER)
    cache.save("leaderboardData", payload)
    payload = cache.load("leaderboardData", max_age_ms=CACHE_MAX_AGE_MS)
"""

import hashlib
import json
import math
import re
from pathlib import Path
from typing import Any, Callable

from contrib_leaderboard.config import CACHE_FOLDER
from contrib_leaderboard.models import CacheEntry
from contrib_leaderboard.utils import atomic_write_text, now_ms, setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class LeaderboardCache:
    """Key/value store of timestamped JSON payloads with a memory fallback."""

    def __init__(self, cache_dir: Path | None = CACHE_FOLDER, clock: Callable[[], int] = now_ms):
        """
        Args:
            cache_dir: Folder for cache files; None starts memory-only
            clock: Returns the current time in epoch milliseconds
        """
        self.cache_dir = Path(cache_dir) if cache_dir is not None else None
        self.clock = clock
        self._memory: dict[str, str] = {}
        self._persistent = self.cache_dir is not None

    @property
    def is_persistent(self) -> bool:
        return self._persistent

    def _path_for(self, key: str) -> Path:
        """
        File for key. Keys with unsafe characters get a hash suffix so that
        e.g. "a/b" and "a_b" never share a file.
        """
        safe = _UNSAFE_KEY_CHARS.sub("_", key)
        if safe != key:
            digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:12]
            safe = f"{safe}-{digest}"
        return self.cache_dir / f"{safe}.json"

    def _degrade(self, reason: Exception) -> None:
        logger.warning(f"Persistent cache unavailable ({reason}); using in-memory cache for this session")
        self._persistent = False

    def save(self, key: str, payload: Any) -> CacheEntry:
        """
        Replace the entry for key with payload stamped at the current time.

        Args:
            key: Cache key
            payload: JSON-serialisable value

        Returns:
            The entry written

        Raises:
            TypeError: If payload is not JSON-serialisable
        """
        entry = CacheEntry(payload=payload, timestamp=self.clock())
        encoded = json.dumps({"payload": entry.payload, "timestamp": entry.timestamp})
        self._memory[key] = encoded

        if self._persistent:
            try:
                atomic_write_text(encoded, self._path_for(key), suffix=".json")
            except OSError as e:
                self._degrade(e)

        return entry

    def _read_encoded(self, key: str) -> str | None:
        if key in self._memory:
            return self._memory[key]
        if not self._persistent:
            return None

        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            logger.warning(f"Ignoring undecodable cache file {path}: {e}")
            return None
        except OSError as e:
            self._degrade(e)
            return None

    def load_entry(self, key: str) -> CacheEntry | None:
        """
        Return the entry for key regardless of its age.

        Returns:
            CacheEntry, or None if missing or unreadable
        """
        encoded = self._read_encoded(key)
        if encoded is None:
            return None

        try:
            data = json.loads(encoded)
            timestamp = data["timestamp"]
            payload = data["payload"]
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring corrupt cache entry '{key}': {e}")
            return None

        # json accepts Infinity and NaN
        if (
            isinstance(timestamp, bool)
            or not isinstance(timestamp, (int, float))
            or (isinstance(timestamp, float) and not math.isfinite(timestamp))
        ):
            logger.warning(f"Ignoring cache entry '{key}' with invalid timestamp {timestamp!r}")
            return None

        return CacheEntry(payload=payload, timestamp=int(timestamp))

    def load(self, key: str, max_age_ms: int) -> Any | None:
        """
        Return the cached payload only while it is younger than max_age_ms.

        An entry whose age equals max_age_ms is expired.

        Returns:
            The payload, or None on a miss
        """
        entry = self.load_entry(key)
        if entry is None:
            return None

        age = self.clock() - entry.timestamp
        if age < max_age_ms:
            return entry.payload

        logger.debug(f"Cache entry '{key}' expired ({age} ms old, max {max_age_ms} ms)")
        return None

    def clear(self, key: str) -> None:
        self._memory.pop(key, None)
        if self._persistent:
            try:
                self._path_for(key).unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not delete cache entry '{key}': {e}")
