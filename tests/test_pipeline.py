from __future__ import annotations

import asyncio
import datetime
import time
from concurrent.futures import Executor, ThreadPoolExecutor

import pytest
import requests

from intel_radar.core.cache import TTLCache
from intel_radar.core.constants import CATEGORY_POLICY, NOT_ENOUGH_CONTENT, PROCESSING_FAILED
from intel_radar.core.profile import InterestProfileSource
from intel_radar.processing.filtering import CandidateFilter
from intel_radar.processing.formatter import DigestFormatter, count_bold_blocks
from intel_radar.processing.orchestrator import ProviderOrchestrator
from intel_radar.processing.parsing import FeedNormalizer
from intel_radar.processing.pipeline import IntelPipeline, build_intel_digest
from intel_radar.processing.relink import Relinker
from intel_radar.processing.selection import SelectionLoop
from intel_radar.processing.types import Failure, FeedSource, Success
from intel_radar.scrapers.feed_fetcher import FeedFetcher

UTC = datetime.timezone.utc
_NOW = datetime.datetime(2024, 5, 10, 12, 0, tzinfo=UTC)


def _rss(items: list[tuple[str, str, str]]) -> str:
    body = "".join(
        f"<item><title>{title}</title><link>{link}</link><pubDate>{date}</pubDate></item>"
        for title, link, date in items
    )
    return f'<?xml version="1.0"?><rss version="2.0"><channel><title>t</title>{body}</channel></rss>'


FEEDS = {
    "https://a.example/feed": _rss(
        [
            ("China expands export controls on rare earths", "https://a.example/china", "Fri, 10 May 2024 08:00:00 GMT"),
            ("NATO summit ends with new defense pledges", "https://a.example/nato", "Fri, 10 May 2024 07:00:00 GMT"),
        ]
    ),
    "https://b.example/feed": _rss(
        [
            ("EU passes landmark AI act", "https://b.example/eu-ai", "Fri, 10 May 2024 06:00:00 GMT"),
            ("NATO summit ends with new defense pledges", "https://b.example/nato", "Fri, 10 May 2024 05:00:00 GMT"),
        ]
    ),
    "https://c.example/feed": _rss(
        [
            ("Chip makers race to build new fabs", "https://c.example/fabs", "Fri, 10 May 2024 04:00:00 GMT"),
            ("Oil prices fall after OPEC meeting", "https://c.example/oil", "Fri, 10 May 2024 03:00:00 GMT"),
        ]
    ),
}
SLOW_FEED = "https://slow.example/feed"

SELECTION_REPLY = "\n".join(
    [
        "China widens rare earth export controls",
        "NATO summit closes with defense pledges",
        "EU adopts landmark AI act",
        "Chipmakers race to build new fabs",
    ]
)
EXPECTED_URLS = [
    "https://a.example/china",
    "https://a.example/nato",
    "https://b.example/eu-ai",
    "https://c.example/fabs",
]
DIGEST_REPLY = "\n\n".join(
    f"*브리핑 {i}*\n핵심 요약입니다. ([Read more]({url}))" for i, url in enumerate(EXPECTED_URLS, start=1)
)


class _Resp:
    def __init__(self, text: str) -> None:
        self.text = text

    def raise_for_status(self) -> None:
        return None


def _fake_get(url: str, headers=None, timeout=None):
    if url == SLOW_FEED:
        time.sleep(0.5)
        return _Resp(_rss([]))
    if url not in FEEDS:
        raise requests.ConnectionError(f"unreachable: {url}")
    return _Resp(FEEDS[url])


class _FakeProvider:
    def __init__(self, provider_id: str, replies: list, delay: float = 0.0) -> None:
        self.provider_id = provider_id
        self._replies = list(replies)
        self._delay = delay
        self.prompts: list[str] = []

    def generate(self, prompt: str, max_tokens: int, temperature: float):
        self.prompts.append(prompt)
        if self._delay:
            time.sleep(self._delay)
        return self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]


def _pipeline(
    replies: list,
    *,
    feeds: list[str] | None = None,
    cache: TTLCache | None = None,
    tone_enabled: bool = False,
    executor: Executor | None = None,
    provider_timeout_sec: float = 2.0,
    provider_delay: float = 0.0,
) -> tuple[IntelPipeline, _FakeProvider, list[str]]:
    lines: list[str] = []
    log = lines.append
    now = lambda: _NOW  # noqa: E731
    cache = cache if cache is not None else TTLCache()
    openai = _FakeProvider("openai", replies, delay=provider_delay)
    gemini = _FakeProvider("gemini", [Failure("gemini error: GEMINI_API_KEY missing")], delay=provider_delay)
    orchestrator = ProviderOrchestrator(
        [gemini, openai], preferred="gemini", timeout_sec=provider_timeout_sec, executor=executor
    )
    urls = feeds if feeds is not None else [*FEEDS, SLOW_FEED]
    pipeline = IntelPipeline(
        sources=[FeedSource(url, CATEGORY_POLICY) for url in urls],
        fetcher=FeedFetcher(http_get=_fake_get, executor=executor),
        normalizer=FeedNormalizer(host_classes={}, local_tz=UTC),
        candidate_filter=CandidateFilter(logger=log, local_tz=UTC, now_provider=now),
        selection_loop=SelectionLoop(
            orchestrator=orchestrator, cache=cache, logger=log, local_tz=UTC, now_provider=now
        ),
        relinker=Relinker(),
        formatter=DigestFormatter(orchestrator=orchestrator, logger=log),
        profile_source=InterestProfileSource(cache=cache, loader=lambda: ["geopolitics"]),
        cache=cache,
        logger=log,
        feed_timeout_ms=200,
        tone_enabled=tone_enabled,
        local_tz=UTC,
        now_provider=now,
    )
    return pipeline, openai, lines


def test_end_to_end_digest_with_one_slow_feed() -> None:
    pipeline, openai, lines = _pipeline([Success(SELECTION_REPLY), Success(DIGEST_REPLY)])
    run = asyncio.run(pipeline.run())

    assert len(run.candidates) == 5
    assert [c.link for c in run.candidates if "nato" in c.link] == ["https://a.example/nato"]
    assert run.selection.titles == SELECTION_REPLY.splitlines()
    assert [p.url for p in run.picked] == EXPECTED_URLS
    assert count_bold_blocks(run.text) == 4
    for url in EXPECTED_URLS:
        assert url in run.text
    assert run.tone == ""
    assert len(openai.prompts) == 2
    assert "geopolitics" in openai.prompts[0]
    assert any("3/4" in line for line in lines)


def test_second_run_same_day_is_served_from_cache() -> None:
    pipeline, openai, _ = _pipeline([Success(SELECTION_REPLY), Success(DIGEST_REPLY)])
    first = asyncio.run(pipeline.run())
    second = asyncio.run(pipeline.run())
    assert second.cached is True
    assert second.text == first.text
    assert len(openai.prompts) == 2


def test_tone_line_is_prefixed_when_enabled() -> None:
    pipeline, _, _ = _pipeline(
        [Success(SELECTION_REPLY), Success(DIGEST_REPLY), Success("긴장 고조")],
        tone_enabled=True,
    )
    run = asyncio.run(pipeline.run())
    assert run.text.startswith("_긴장 고조_\n\n")
    assert count_bold_blocks(run.text) == 4


def test_insufficient_candidates_skip_ai() -> None:
    pipeline, openai, _ = _pipeline([Success(SELECTION_REPLY)], feeds=["https://a.example/feed"])
    assert asyncio.run(build_intel_digest(pipeline)) == NOT_ENOUGH_CONTENT
    assert openai.prompts == []


def test_ai_outage_digest_is_not_cached() -> None:
    cache = TTLCache()
    pipeline, openai, _ = _pipeline([Failure("openai error: 401")], cache=cache)
    run = asyncio.run(pipeline.run())
    assert run.text.startswith("[AI error]")
    assert not cache.has(pipeline.digest_key("geopolitics"))


def test_ai_outage_skips_format_and_tone_calls() -> None:
    pipeline, openai, _ = _pipeline([Failure("openai error: 401")], tone_enabled=True)
    run = asyncio.run(pipeline.run())
    assert run.selection.source == "short_circuit"
    assert run.text == "[AI error] gemini error: GEMINI_API_KEY missing | openai error: 401"
    assert run.tone == ""
    # 선택 호출 1회뿐, 포맷/톤 프롬프트는 보내지 않는다
    assert len(openai.prompts) == 1


def test_format_outage_skips_tone_line() -> None:
    cache = TTLCache()
    pipeline, openai, _ = _pipeline(
        [Success(SELECTION_REPLY), Failure("openai error: 500")],
        cache=cache,
        tone_enabled=True,
    )
    run = asyncio.run(pipeline.run())
    assert run.text.startswith("[AI error]")
    assert run.tone == ""
    assert len(openai.prompts) == 2
    assert not cache.has(pipeline.digest_key("geopolitics"))


def test_hung_backends_do_not_hold_the_run_past_its_timeouts() -> None:
    executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="intel-io-test")
    pipeline, _, _ = _pipeline(
        [Success(SELECTION_REPLY)],
        executor=executor,
        provider_timeout_sec=0.1,
        provider_delay=2.0,
    )
    started = time.monotonic()
    try:
        text = asyncio.run(build_intel_digest(pipeline))
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
    elapsed = time.monotonic() - started

    assert text.startswith("[AI error] gemini timeout after 100ms")
    assert elapsed < 1.5


class _BrokenCache(TTLCache):
    def has(self, key: str) -> bool:
        raise RuntimeError("cache backend down")


def test_unexpected_error_becomes_generic_message() -> None:
    pipeline, _, _ = _pipeline([Success(SELECTION_REPLY)], cache=_BrokenCache())
    assert asyncio.run(build_intel_digest(pipeline)) == PROCESSING_FAILED


@pytest.mark.parametrize("interest", ["geopolitics", "semiconductors"])
def test_digest_key_is_scoped_by_profile(interest: str) -> None:
    pipeline, _, _ = _pipeline([Success("")])
    assert pipeline.digest_key(interest) != pipeline.digest_key("other")
