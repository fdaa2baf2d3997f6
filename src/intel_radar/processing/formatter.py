from __future__ import annotations

import re

from intel_radar.core.config import (
    DIGEST_LANGUAGE,
    FORMAT_FIX_TIMEOUT_SEC,
    FORMAT_TIMEOUT_SEC,
    TONE_TIMEOUT_SEC,
)
from intel_radar.core.constants import SELECTION_SIZE
from intel_radar.processing.orchestrator import ProviderOrchestrator, to_text
from intel_radar.processing.prompts.intel_prompt import (
    DIGEST_PROMPT,
    DIGEST_REPAIR_PROMPT,
    TONE_PROMPT,
    bullet_list,
    items_block,
)
from intel_radar.processing.repair import RepairOutcome, validate_with_repair
from intel_radar.processing.types import LogFunc, ProviderResult, RelinkedItem, Success

_BOLD_LINE_RE = re.compile(r"^\*", flags=re.MULTILINE)
_TONE_MAX_CHARS = 120


def count_bold_blocks(text: str) -> int:
    return len(_BOLD_LINE_RE.findall(str(text or "")))


class DigestFormatter:
    def __init__(
        self,
        *,
        orchestrator: ProviderOrchestrator,
        logger: LogFunc,
        size: int = SELECTION_SIZE,
        language: str = DIGEST_LANGUAGE,
        format_timeout_sec: float = FORMAT_TIMEOUT_SEC,
        fix_timeout_sec: float = FORMAT_FIX_TIMEOUT_SEC,
        tone_timeout_sec: float = TONE_TIMEOUT_SEC,
    ) -> None:
        self._orchestrator = orchestrator
        self._log = logger
        self._size = size
        self._language = language
        self._format_timeout_sec = format_timeout_sec
        self._fix_timeout_sec = fix_timeout_sec
        self._tone_timeout_sec = tone_timeout_sec

    def build_prompt(self, picked: list[RelinkedItem]) -> str:
        return DIGEST_PROMPT.format(
            language=self._language,
            items=items_block([(p.title, p.url) for p in picked]),
        )

    def _validate(self, result: ProviderResult) -> str | None:
        if isinstance(result, Success) and count_bold_blocks(result.text) >= self._size:
            return result.text
        return None

    async def format(self, picked: list[RelinkedItem]) -> RepairOutcome[str]:
        prompt = self.build_prompt(picked)
        items = items_block([(p.title, p.url) for p in picked])

        async def _produce() -> ProviderResult:
            return await self._orchestrator.ask_within(
                prompt, 780, 0.5, timeout_sec=self._format_timeout_sec, label="intel-translate"
            )

        async def _repair(draft: ProviderResult) -> ProviderResult:
            self._log(f"⚠️ 다이제스트 블록 부족({count_bold_blocks(draft.text)}/{self._size}), 형식 교정 요청")
            repair_prompt = DIGEST_REPAIR_PROMPT.format(
                count=self._size,
                language=self._language,
                items=items,
                draft=draft.text,
            )
            return await self._orchestrator.ask_within(
                repair_prompt, 400, 0.2, timeout_sec=self._fix_timeout_sec, label="intel-format-fix"
            )

        def _fallback(draft: ProviderResult, repaired: ProviderResult | None) -> str:
            # 교정 결과는 검증 없이 채택. 교정 호출 자체가 실패하면 첫 초안 유지
            if isinstance(repaired, Success):
                return repaired.text
            return to_text(draft)

        return await validate_with_repair(_produce, self._validate, _repair, _fallback)

    async def tone(self, titles: list[str]) -> str:
        if not titles:
            return ""
        prompt = TONE_PROMPT.format(count=len(titles), language=self._language, headlines=bullet_list(titles))
        result = await self._orchestrator.ask_within(
            prompt, 120, 0.2, timeout_sec=self._tone_timeout_sec, label="intel-tone"
        )
        if not isinstance(result, Success):
            self._log(f"⚠️ 톤 분류 실패: {result.reason}")
            return ""
        lines = result.text.splitlines()
        return lines[0].strip()[:_TONE_MAX_CHARS] if lines else ""
