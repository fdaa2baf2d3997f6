from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import Executor
from typing import Sequence

from intel_radar.core.config import AI_MODEL, PROVIDER_TIMEOUT_SEC, RECONCILE_TEMPERATURE
from intel_radar.core.constants import AI_ERROR_MARKER
from intel_radar.processing.llm_client import TextProvider
from intel_radar.processing.prompts.intel_prompt import RECONCILE_PROMPT, STATUS_PROMPT
from intel_radar.processing.types import Failure, ProviderAttempt, ProviderResult, Success

logger = logging.getLogger(__name__)


def to_text(result: ProviderResult) -> str:
    """직렬화 경계에서만 Failure를 마커 문자열로 바꾼다."""
    if isinstance(result, Success):
        return result.text
    return f"{AI_ERROR_MARKER} {result.reason}"


class ProviderOrchestrator:
    """두 생성 백엔드를 동시에 호출하고 폴백/조정 규칙으로 하나의 답을 만든다.

    - 둘 다 실패: 두 사유를 합친 Failure
    - 하나만 실패: 나머지 답을 그대로 반환 (조정 호출 없음)
    - 둘 다 성공: 선호 백엔드가 두 초안을 합친다. 합치기 실패 시 선호 백엔드의 원답
    """

    def __init__(
        self,
        providers: Sequence[TextProvider],
        *,
        preferred: str = AI_MODEL,
        timeout_sec: float = PROVIDER_TIMEOUT_SEC,
        reconcile_temperature: float = RECONCILE_TEMPERATURE,
        executor: Executor | None = None,
    ) -> None:
        if len(providers) != 2:
            raise ValueError("ProviderOrchestrator needs exactly two providers")
        self._providers = list(providers)
        ids = [p.provider_id for p in self._providers]
        self._preferred_id = preferred if preferred in ids else ids[0]
        self._timeout_sec = timeout_sec
        self._reconcile_temperature = reconcile_temperature
        self._executor = executor
        self.last_attempts: list[ProviderAttempt] = []

    @property
    def preferred_id(self) -> str:
        return self._preferred_id

    def _provider(self, provider_id: str) -> TextProvider:
        return next(p for p in self._providers if p.provider_id == provider_id)

    async def _attempt(
        self,
        provider: TextProvider,
        prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> ProviderAttempt:
        started = time.monotonic()
        loop = asyncio.get_running_loop()
        try:
            result = await asyncio.wait_for(
                loop.run_in_executor(self._executor, provider.generate, prompt, max_tokens, temperature),
                timeout=self._timeout_sec,
            )
        except asyncio.TimeoutError:
            result = Failure(f"{provider.provider_id} timeout after {int(self._timeout_sec * 1000)}ms")
        except Exception as exc:
            result = Failure(f"{provider.provider_id} error: {type(exc).__name__}: {exc}")
        if not isinstance(result, (Success, Failure)):
            result = Failure(f"{provider.provider_id} error: unexpected result {type(result).__name__}")
        latency = time.monotonic() - started
        logger.debug("%s %s in %.2fs", provider.provider_id, "ok" if result.ok else "failed", latency)
        return ProviderAttempt(provider_id=provider.provider_id, result=result, latency_sec=latency)

    async def _reconcile(
        self,
        first: ProviderAttempt,
        second: ProviderAttempt,
        max_tokens: int,
    ) -> ProviderResult:
        prompt = RECONCILE_PROMPT.format(
            first_id=first.provider_id,
            first_text=first.result.text,
            second_id=second.provider_id,
            second_text=second.result.text,
        )
        preferred = self._provider(self._preferred_id)
        attempt = await self._attempt(preferred, prompt, max_tokens, self._reconcile_temperature)
        self.last_attempts.append(attempt)
        if attempt.result.ok:
            return attempt.result
        logger.warning("reconciliation failed, using %s draft: %s", self._preferred_id, attempt.result.reason)
        raw = first if first.provider_id == self._preferred_id else second
        return raw.result

    async def ask(self, prompt: str, max_tokens: int = 300, temperature: float = 0.6) -> ProviderResult:
        try:
            # 한쪽 실패가 다른 쪽을 취소하지 않도록 둘 다 끝날 때까지 기다린다
            attempts = list(
                await asyncio.gather(
                    *(self._attempt(p, prompt, max_tokens, temperature) for p in self._providers)
                )
            )
            self.last_attempts = attempts
            first, second = attempts
            if not first.result.ok and not second.result.ok:
                return Failure(f"{first.result.reason} | {second.result.reason}")
            if not first.result.ok:
                return second.result
            if not second.result.ok:
                return first.result
            return await self._reconcile(first, second, max_tokens)
        except Exception as exc:
            logger.exception("orchestrator failure")
            return Failure(f"orchestrator error: {type(exc).__name__}: {exc}")

    async def ask_text(self, prompt: str, max_tokens: int = 300, temperature: float = 0.6) -> str:
        return to_text(await self.ask(prompt, max_tokens, temperature))

    async def ask_within(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        *,
        timeout_sec: float,
        label: str,
    ) -> ProviderResult:
        # 단계별 상한: 늦게 도착한 답은 버리고 Failure로 처리
        try:
            return await asyncio.wait_for(self.ask(prompt, max_tokens, temperature), timeout=timeout_sec)
        except asyncio.TimeoutError:
            logger.warning("%s timeout after %dms", label, int(timeout_sec * 1000))
            return Failure(f"{label} timeout after {int(timeout_sec * 1000)}ms")

    async def check_status(self) -> dict[str, str]:
        attempts = await asyncio.gather(
            *(self._attempt(p, STATUS_PROMPT, 1, 0.0) for p in self._providers)
        )
        return {
            a.provider_id: (f"✅ {a.provider_id}" if a.result.ok else f"❌ {a.provider_id} ({a.result.reason})")
            for a in attempts
        }
