from __future__ import annotations

import logging
from typing import Callable, Optional

from intel_radar.core.cache import TTLCache
from intel_radar.core.config import DEFAULT_INTEREST_PROFILE, INTERESTS, INTERESTS_TTL_SEC

logger = logging.getLogger(__name__)

_CACHE_KEY = "intel:interests"

InterestLoader = Callable[[], Optional[list[str]]]


def load_interests_from_env() -> list[str]:
    return list(INTERESTS)


class InterestProfileSource:
    """관심사 목록을 짧은 TTL로 캐시해 하나의 프로필 문자열로 돌려준다."""

    def __init__(
        self,
        *,
        cache: TTLCache,
        loader: InterestLoader = load_interests_from_env,
        ttl_sec: int = INTERESTS_TTL_SEC,
        default_profile: str = DEFAULT_INTEREST_PROFILE,
    ) -> None:
        self._cache = cache
        self._loader = loader
        self._ttl_sec = ttl_sec
        self._default_profile = default_profile

    def interests(self) -> list[str]:
        if self._cache.has(_CACHE_KEY):
            return self._cache.get(_CACHE_KEY)
        try:
            loaded = self._loader() or []
        except Exception as exc:
            # 관심사 저장소 장애는 기본 프로필로 대체
            logger.warning("interest loader failed: %s", exc)
            return []
        values = [str(x).strip() for x in loaded if str(x or "").strip()]
        self._cache.set(_CACHE_KEY, values, self._ttl_sec)
        return values

    def profile(self) -> str:
        values = self.interests()
        return ", ".join(values) if values else self._default_profile
