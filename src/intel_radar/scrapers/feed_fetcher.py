from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import requests

from intel_radar.core.config import FEED_TIMEOUT_MS, USER_AGENT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedFetcherConfig:
    default_timeout_ms: int = FEED_TIMEOUT_MS
    user_agent: str = USER_AGENT


HttpGet = Callable[..., requests.Response]


class FeedFetcher:
    """원격 피드 1건을 제한 시간 안에 가져온다. 실패는 None으로만 알린다."""

    def __init__(
        self,
        config: FeedFetcherConfig | None = None,
        *,
        http_get: HttpGet = requests.get,
        executor: Executor | None = None,
    ) -> None:
        self._config = config or FeedFetcherConfig()
        self._http_get = http_get
        # None이면 루프 기본 executor (asyncio.run 종료 시 join됨)
        self._executor = executor

    def _get_blocking(self, url: str, timeout_sec: float) -> Optional[str]:
        resp = self._http_get(
            url,
            headers={"User-Agent": self._config.user_agent},
            timeout=timeout_sec,
        )
        resp.raise_for_status()
        return resp.text

    async def fetch_text(self, url: str, timeout_ms: int | None = None) -> Optional[str]:
        timeout_ms = timeout_ms if timeout_ms is not None else self._config.default_timeout_ms
        timeout_sec = max(0.001, timeout_ms / 1000)
        loop = asyncio.get_running_loop()
        try:
            # 타이머가 먼저 끝나면 스레드의 늦은 결과는 버려진다 (전송 계층 취소 없음)
            return await asyncio.wait_for(
                loop.run_in_executor(self._executor, self._get_blocking, url, timeout_sec),
                timeout=timeout_sec,
            )
        except asyncio.TimeoutError:
            logger.warning("feed timeout after %sms: %s", timeout_ms, url)
        except requests.RequestException as exc:
            logger.warning("feed request failed: %s (%s)", url, exc)
        except Exception as exc:
            logger.warning("feed fetch error: %s (%s: %s)", url, type(exc).__name__, exc)
        return None

    async def fetch_many(
        self,
        urls: Sequence[str],
        timeout_ms: int | None = None,
    ) -> list[Optional[str]]:
        if not urls:
            return []
        # 모든 피드가 끝날 때까지(성공/소프트 실패) 기다린다. 결과는 입력 순서 유지
        results = await asyncio.gather(
            *(self.fetch_text(url, timeout_ms) for url in urls),
            return_exceptions=True,
        )
        payloads: list[Optional[str]] = []
        for url, res in zip(urls, results):
            if isinstance(res, BaseException):
                logger.warning("feed fetch crashed: %s (%s)", url, res)
                payloads.append(None)
            else:
                payloads.append(res)
        return payloads
