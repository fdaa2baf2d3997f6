from __future__ import annotations

import datetime
import logging
import math
import time
from concurrent.futures import Executor
from typing import Callable, Sequence

from intel_radar.core.cache import TTLCache, build_cache_key, day_key
from intel_radar.core.config import (
    AI_MODEL,
    DIGEST_TTL_SEC,
    FEED_TIMEOUT_MS,
    LOCAL_TZ,
    PROVIDER_TIMEOUT_SEC,
    TONE_ENABLED,
)
from intel_radar.core.constants import FEED_SOURCES, NOT_ENOUGH_CONTENT, PROCESSING_FAILED
from intel_radar.core.profile import InterestProfileSource
from intel_radar.processing.filtering import CandidateFilter
from intel_radar.processing.formatter import DigestFormatter
from intel_radar.processing.llm_client import GeminiClient, OpenAIClient, TextProvider
from intel_radar.processing.orchestrator import ProviderOrchestrator, to_text
from intel_radar.processing.parsing import FeedNormalizer
from intel_radar.processing.relink import Relinker
from intel_radar.processing.selection import SelectionLoop
from intel_radar.processing.types import DigestRun, Failure, FeedSource, LogFunc
from intel_radar.scrapers.feed_fetcher import FeedFetcher

logger = logging.getLogger(__name__)


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class IntelPipeline:
    def __init__(
        self,
        *,
        sources: Sequence[FeedSource],
        fetcher: FeedFetcher,
        normalizer: FeedNormalizer,
        candidate_filter: CandidateFilter,
        selection_loop: SelectionLoop,
        relinker: Relinker,
        formatter: DigestFormatter,
        profile_source: InterestProfileSource,
        cache: TTLCache,
        logger: LogFunc,
        feed_timeout_ms: int = FEED_TIMEOUT_MS,
        digest_ttl_sec: int = DIGEST_TTL_SEC,
        tone_enabled: bool = TONE_ENABLED,
        local_tz: datetime.tzinfo = LOCAL_TZ,
        now_provider: Callable[[], datetime.datetime] = _utc_now,
    ) -> None:
        self._sources = list(sources)
        self._fetcher = fetcher
        self._normalizer = normalizer
        self._filter = candidate_filter
        self._selection = selection_loop
        self._relinker = relinker
        self._formatter = formatter
        self._profile_source = profile_source
        self._cache = cache
        self._log = logger
        self._feed_timeout_ms = feed_timeout_ms
        self._digest_ttl_sec = digest_ttl_sec
        self._tone_enabled = tone_enabled
        self._local_tz = local_tz
        self._now = now_provider

    def digest_key(self, interests: str) -> str:
        return build_cache_key("digest", day_key(self._now(), self._local_tz), {"i": interests})

    async def run(self) -> DigestRun:
        started = time.monotonic()
        interests = self._profile_source.profile()
        digest_key = self.digest_key(interests)
        if self._cache.has(digest_key):
            return DigestRun(text=self._cache.get(digest_key), cached=True)

        self._log("[intel] 피드 수집 시작")
        payloads = await self._fetcher.fetch_many([s.url for s in self._sources], self._feed_timeout_ms)
        fetched = sum(1 for p in payloads if p)
        self._log(f"피드 응답: {fetched}/{len(self._sources)}")

        articles = self._normalizer.normalize(zip(self._sources, payloads))
        result = self._filter.filter(articles)
        if not result.sufficient:
            self._log(f"⚠️ 후보 부족: {len(result.candidates)}개")
            return DigestRun(text=NOT_ENOUGH_CONTENT, candidates=result.candidates)

        candidates = result.candidates
        selection = await self._selection.select(candidates, interests)
        picked = self._relinker.relink(selection.titles, candidates)

        tone = ""
        if selection.source == "short_circuit":
            # 두 백엔드가 모두 죽었으면 포맷/톤 호출 없이 바로 마커 반환
            text = to_text(Failure(selection.reason))
            ai_down = True
        else:
            outcome = await self._formatter.format(picked)
            text = outcome.value
            ai_down = outcome.source == "short_circuit"
        if self._tone_enabled and not ai_down:
            tone = await self._formatter.tone(selection.titles)
            if tone:
                text = f"_{tone}_\n\n{text}"
        if ai_down:
            self._log("⚠️ AI 응답 실패, 다이제스트 캐시 생략")
        else:
            self._cache.set(digest_key, text, self._digest_ttl_sec)

        elapsed_ms = int((time.monotonic() - started) * 1000)
        prompt_chars = len(self._selection.build_prompt(candidates, interests)) + len(
            self._formatter.build_prompt(picked)
        )
        self._log(f"[intel] done in {elapsed_ms}ms, ~{math.ceil(prompt_chars / 4)} toks")
        return DigestRun(
            text=text,
            candidates=candidates,
            selection=selection,
            picked=picked,
            tone=tone,
            elapsed_ms=elapsed_ms,
        )


async def build_intel_digest(pipeline: IntelPipeline) -> str:
    """최상위 진입점: 예상 밖 오류만 여기서 잡아 일반 실패 문구로 바꾼다."""
    try:
        run = await pipeline.run()
    except Exception:
        logger.exception("intel digest failed")
        return PROCESSING_FAILED
    return run.text


def build_default_providers() -> list[TextProvider]:
    return [
        GeminiClient(timeout_sec=PROVIDER_TIMEOUT_SEC),
        OpenAIClient(timeout_sec=PROVIDER_TIMEOUT_SEC),
    ]


def build_default_orchestrator(
    providers: Sequence[TextProvider] | None = None,
    *,
    executor: Executor | None = None,
) -> ProviderOrchestrator:
    return ProviderOrchestrator(
        providers or build_default_providers(),
        preferred=AI_MODEL,
        timeout_sec=PROVIDER_TIMEOUT_SEC,
        executor=executor,
    )


def build_default_pipeline(
    *,
    logger: LogFunc,
    cache: TTLCache | None = None,
    orchestrator: ProviderOrchestrator | None = None,
    executor: Executor | None = None,
) -> IntelPipeline:
    cache = cache if cache is not None else TTLCache()
    orchestrator = orchestrator or build_default_orchestrator(executor=executor)
    return IntelPipeline(
        sources=FEED_SOURCES,
        fetcher=FeedFetcher(executor=executor),
        normalizer=FeedNormalizer(),
        candidate_filter=CandidateFilter(logger=logger),
        selection_loop=SelectionLoop(orchestrator=orchestrator, cache=cache, logger=logger),
        relinker=Relinker(),
        formatter=DigestFormatter(orchestrator=orchestrator, logger=logger),
        profile_source=InterestProfileSource(cache=cache),
        cache=cache,
        logger=logger,
    )
