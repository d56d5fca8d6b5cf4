"""Short-lived string cache in the OS temp directory.

Each entry is one owner-only file holding ``{"content": str, "timestamp": ms}``.
Entries older than the TTL, or that cannot be read, count as misses.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
import time
from pathlib import Path

from ..wallet.keystore import write_json_atomic

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


class TempFileCache:
    def __init__(self, namespace: str = "genlayer-cli", ttl: float = DEFAULT_TTL_SECONDS, directory: Path | None = None):
        self.ttl = ttl
        self.directory = Path(directory or tempfile.gettempdir()) / namespace

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode()).hexdigest()[:32]
        return self.directory / f"{digest}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            with open(path) as f:
                entry = json.load(f)
            content = entry["content"]
            timestamp = float(entry["timestamp"])
        except FileNotFoundError:
            return None
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.debug("Discarding unreadable cache entry %s: %s", path, e)
            return None
        if time.time() * 1000 - timestamp > self.ttl * 1000:
            return None
        return content if isinstance(content, str) else None

    def set(self, key: str, content: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True, mode=0o700)
        entry = {"content": content, "timestamp": int(time.time() * 1000)}
        write_json_atomic(self._path(key), entry, mode=0o600)

    def clear(self, key: str) -> None:
        try:
            os.remove(self._path(key))
        except FileNotFoundError:
            pass
