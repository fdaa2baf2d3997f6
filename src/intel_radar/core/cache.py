from __future__ import annotations

import datetime
import hashlib
import json
import threading
import time
from typing import Any, Callable

from intel_radar.core.config import CACHE_DEFAULT_TTL_SEC


class TTLCache:
    """키별 TTL을 갖는 프로세스 내 캐시.

    키 사이의 트랜잭션은 없고, 같은 키는 마지막 쓰기가 이긴다.
    만료된 항목은 조회 시점에 지운다.
    """

    def __init__(
        self,
        *,
        default_ttl_sec: int = CACHE_DEFAULT_TTL_SEC,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl_sec = default_ttl_sec
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def _live_entry(self, key: str) -> tuple[float, Any] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, _value = entry
        if expires_at <= self._clock():
            self._entries.pop(key, None)
            return None
        return entry

    def has(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._live_entry(key)
        return entry[1] if entry is not None else default

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        ttl = self._default_ttl_sec if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._entries[key] = (self._clock() + max(0, ttl), value)

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for key in list(self._entries) if self._live_entry(key) is not None)


def hash_inputs(payload: Any) -> str:
    # 정규화된 JSON의 sha1 앞 10자리 (키 길이 제한용)
    raw = json.dumps(payload, sort_keys=True, ensure_ascii=False, default=str)
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()[:10]


def day_key(now: datetime.datetime, tz: datetime.tzinfo) -> str:
    return now.astimezone(tz).date().isoformat()


def build_cache_key(namespace: str, day: str, payload: Any) -> str:
    """`intel:<namespace>:<day>:<hash>` 형태의 안정적인 캐시 키."""
    return f"intel:{namespace}:{day}:{hash_inputs(payload)}"
