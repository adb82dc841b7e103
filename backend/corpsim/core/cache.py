"""
cache.py — Sector Config Cache

Validated SectorConfig objects are expensive to rebuild (pydantic validation
plus cross-reference checks) and every job asks for the active one. They are
kept here keyed by version tag, e.g. "sector_config:v3f9a1c2e7b04".

- One process-wide dict guarded by a lock; each worker process has its own.
- Versions are immutable, so entries never go stale by themselves. An admin
  save clears the whole "sector_config" namespace so the next read picks up
  the new active version.
- No TTL and no size bound: the number of saved versions is small.
"""

import threading
from typing import Any, Dict, Optional

_entries: Dict[str, Any] = {}
_lock = threading.Lock()


def make_key(namespace: str, identifier: Any) -> str:
    """make_key("sector_config", "default") → "sector_config:default" """
    return f"{namespace}:{identifier}"


def cache_get(key: str) -> Any:
    """Cached object for `key`, or None."""
    with _lock:
        return _entries.get(key)


def cache_set(key: str, value: Any) -> None:
    with _lock:
        _entries[key] = value


def cache_clear(namespace: Optional[str] = None) -> None:
    """Drop every entry, or only those under `namespace`."""
    with _lock:
        if namespace is None:
            _entries.clear()
            return
        prefix = make_key(namespace, "")
        for key in [k for k in _entries if k.startswith(prefix)]:
            del _entries[key]
