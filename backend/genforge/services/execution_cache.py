"""
Execution Cache - in-memory store of validated prompt executions

Keyed by a fingerprint over (prompt id, canonicalized variables).
Entries never expire; growth is unbounded for the life of the process.
"""

import copy
import hashlib
import json
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from genforge.core.logging_config import logger
from genforge.schemas.job import utc_now


@dataclass
class CacheEntry:
    """A validated execution result"""
    fingerprint: str
    prompt_id: str
    output: Any
    quality: float
    created_at: datetime = field(default_factory=utc_now)
    hits: int = 0


def canonicalize(variables: Dict[str, Any]) -> str:
    """Stable text form of a variable mapping (sorted keys, compact separators)"""
    return json.dumps(variables or {}, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


def fingerprint(prompt_id: str, variables: Dict[str, Any]) -> str:
    """Deterministic cache key for a prompt execution"""
    raw = f"{prompt_id}\x00{canonicalize(variables)}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class ExecutionCache:
    """
    Thread-safe fingerprint -> CacheEntry map.

    Outputs are deep-copied on the way in and out so callers can never
    mutate what is stored.
    """

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                logger.debug(f"[ExecutionCache] MISS {key[:12]}")
                return None
            self._hits += 1
            entry.hits += 1
            logger.info(f"[ExecutionCache] HIT {key[:12]} ({entry.prompt_id})")
            return CacheEntry(
                fingerprint=entry.fingerprint,
                prompt_id=entry.prompt_id,
                output=copy.deepcopy(entry.output),
                quality=entry.quality,
                created_at=entry.created_at,
                hits=entry.hits,
            )

    def put(self, key: str, prompt_id: str, output: Any, quality: float) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(
                fingerprint=key,
                prompt_id=prompt_id,
                output=copy.deepcopy(output),
                quality=quality,
            )
            logger.debug(f"[ExecutionCache] Stored {key[:12]} ({prompt_id}), size={len(self._entries)}")

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
        logger.info("[ExecutionCache] Cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "hits": self._hits,
                "misses": self._misses,
                "size": len(self._entries),
                "hit_rate": round(self._hits / total, 3) if total else 0.0,
            }
