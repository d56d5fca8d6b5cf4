"""Temp-file string cache."""

import json
import os
import stat

from genlayer_cli.helpers.tmp_cache import TempFileCache


def test_set_then_get(tmp_path):
    cache = TempFileCache(directory=tmp_path)
    assert cache.get("code:x") is None
    cache.set("code:x", "0x6080")
    assert cache.get("code:x") == "0x6080"
    assert cache.get("code:y") is None


def test_entry_layout_and_permissions(tmp_path):
    cache = TempFileCache(namespace="ns", directory=tmp_path)
    cache.set("key", "value")
    files = list((tmp_path / "ns").iterdir())
    assert len(files) == 1
    entry = json.loads(files[0].read_text())
    assert entry["content"] == "value"
    assert isinstance(entry["timestamp"], int)
    if os.name == "posix":
        assert stat.S_IMODE(files[0].stat().st_mode) == 0o600


def test_expired_entry_is_a_miss(tmp_path):
    cache = TempFileCache(directory=tmp_path, ttl=0)
    cache.set("key", "value")
    path = cache._path("key")
    entry = json.loads(path.read_text())
    entry["timestamp"] -= 1000
    path.write_text(json.dumps(entry))
    assert cache.get("key") is None


def test_unreadable_entry_is_a_miss(tmp_path):
    cache = TempFileCache(directory=tmp_path)
    cache.set("key", "value")
    cache._path("key").write_text("garbage")
    assert cache.get("key") is None


def test_clear(tmp_path):
    cache = TempFileCache(directory=tmp_path)
    cache.set("key", "value")
    cache.clear("key")
    cache.clear("key")
    assert cache.get("key") is None
