from __future__ import annotations

import datetime
import re
from typing import Callable, Optional

from intel_radar.core.cache import TTLCache, build_cache_key, day_key
from intel_radar.core.config import (
    LOCAL_TZ,
    REPAIR_TIMEOUT_SEC,
    SELECT_TIMEOUT_SEC,
    SELECTION_TTL_SEC,
)
from intel_radar.core.constants import SELECTION_SIZE
from intel_radar.processing.orchestrator import ProviderOrchestrator
from intel_radar.processing.prompts.intel_prompt import (
    SELECTION_PROMPT,
    SELECTION_REPAIR_PROMPT,
    bullet_list,
)
from intel_radar.processing.repair import validate_with_repair
from intel_radar.processing.types import Article, LogFunc, ProviderResult, SelectionOutcome, Success

_BULLET_RE = re.compile(r"^(?:[-*•·]\s*|\d+\s*[.)])")  # "- ", "* ", "1.", "2)" 등 목록 표기


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def split_lines(text: str) -> list[str]:
    return [line.strip() for line in str(text or "").splitlines() if line.strip()]


def parse_selection(result: ProviderResult, size: int = SELECTION_SIZE) -> Optional[list[str]]:
    """정확히 size줄이고 번호/불릿이 없을 때만 제목 목록을 돌려준다."""
    if not isinstance(result, Success):
        return None
    lines = split_lines(result.text)
    if len(lines) != size:
        return None
    if any(_BULLET_RE.match(line) for line in lines):
        return None
    return lines


def most_recent_titles(candidates: list[Article], size: int = SELECTION_SIZE) -> list[str]:
    dated = [c for c in candidates if c.published_at is not None]
    # 동률이면 입력 순서 유지 (sorted는 안정 정렬)
    ordered = sorted(dated, key=lambda c: c.published_at, reverse=True)
    return [c.title for c in ordered[:size]]


class SelectionLoop:
    def __init__(
        self,
        *,
        orchestrator: ProviderOrchestrator,
        cache: TTLCache,
        logger: LogFunc,
        size: int = SELECTION_SIZE,
        memo_ttl_sec: int = SELECTION_TTL_SEC,
        select_timeout_sec: float = SELECT_TIMEOUT_SEC,
        repair_timeout_sec: float = REPAIR_TIMEOUT_SEC,
        local_tz: datetime.tzinfo = LOCAL_TZ,
        now_provider: Callable[[], datetime.datetime] = _utc_now,
    ) -> None:
        self._orchestrator = orchestrator
        self._cache = cache
        self._log = logger
        self._size = size
        self._memo_ttl_sec = memo_ttl_sec
        self._select_timeout_sec = select_timeout_sec
        self._repair_timeout_sec = repair_timeout_sec
        self._local_tz = local_tz
        self._now = now_provider

    def memo_key(self, interests: str) -> str:
        return build_cache_key("selection", day_key(self._now(), self._local_tz), {"i": interests})

    def build_prompt(self, candidates: list[Article], interests: str) -> str:
        return SELECTION_PROMPT.format(
            count=self._size,
            interests=interests,
            headlines=bullet_list([c.title for c in candidates]),
        )

    async def select(self, candidates: list[Article], interests: str) -> SelectionOutcome:
        memo_key = self.memo_key(interests)
        if self._cache.has(memo_key):
            self._log("[intel] 오늘자 선택 memo 사용")
            return SelectionOutcome(titles=list(self._cache.get(memo_key)), source="memo")

        prompt = self.build_prompt(candidates, interests)

        async def _produce() -> ProviderResult:
            return await self._orchestrator.ask_within(
                prompt, 380, 0.2, timeout_sec=self._select_timeout_sec, label="intel-select"
            )

        async def _repair(draft: ProviderResult) -> ProviderResult:
            self._log("⚠️ 선택 결과 형식 오류, 교정 요청")
            repair_prompt = SELECTION_REPAIR_PROMPT.format(count=self._size, draft=draft.text)
            return await self._orchestrator.ask_within(
                repair_prompt, 200, 0.1, timeout_sec=self._repair_timeout_sec, label="intel-repair"
            )

        def _fallback(_draft: ProviderResult, _repaired: ProviderResult | None) -> list[str]:
            return most_recent_titles(candidates, self._size)

        outcome = await validate_with_repair(
            _produce,
            lambda res: parse_selection(res, self._size),
            _repair,
            _fallback,
        )
        reason = ""
        if outcome.source == "short_circuit":
            # 백엔드 장애로 만든 fallback은 하루 동안 고정하지 않는다
            reason = outcome.draft.reason
            self._log(f"⚠️ AI 선택 불가, 최신순 fallback: {reason}")
        else:
            if outcome.source == "fallback":
                self._log("⚠️ 교정 후에도 형식 오류, 최신순 fallback")
            self._cache.set(memo_key, list(outcome.value), self._memo_ttl_sec)
        return SelectionOutcome(titles=list(outcome.value), source=outcome.source, reason=reason)
