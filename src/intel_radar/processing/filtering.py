from __future__ import annotations

import datetime
from typing import Callable

from intel_radar.core.config import (
    DEFAULT_WINDOW_DAYS,
    LOCAL_TZ,
    MAX_CANDIDATES,
    POLICY_WINDOW_DAYS,
)
from intel_radar.core.constants import CATEGORY_POLICY, SELECTION_SIZE
from intel_radar.processing.types import Article, CandidateResult, LogFunc
from intel_radar.utils import normalize_title, start_of_day


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class CandidateFilter:
    def __init__(
        self,
        *,
        logger: LogFunc,
        max_candidates: int = MAX_CANDIDATES,
        min_candidates: int = SELECTION_SIZE,
        default_window_days: int = DEFAULT_WINDOW_DAYS,
        policy_window_days: int = POLICY_WINDOW_DAYS,
        local_tz: datetime.tzinfo = LOCAL_TZ,
        now_provider: Callable[[], datetime.datetime] = _utc_now,
    ) -> None:
        self._log = logger
        self._max_candidates = max_candidates
        self._min_candidates = min_candidates
        self._default_window_days = default_window_days
        self._policy_window_days = policy_window_days
        self._local_tz = local_tz
        self._now = now_provider

    @staticmethod
    def dedupe(articles: list[Article]) -> list[Article]:
        # 정규화 제목 기준 first-seen-wins
        seen: set[str] = set()
        unique: list[Article] = []
        for article in articles:
            key = normalize_title(article.title)
            if not key or key in seen:
                continue
            seen.add(key)
            unique.append(article)
        return unique

    def _cutoff(self, days: int) -> datetime.datetime:
        return start_of_day(self._now() - datetime.timedelta(days=days), self._local_tz)

    @staticmethod
    def _is_valid(article: Article) -> bool:
        return bool(article.link and article.title and article.published_at)

    def _select(self, articles: list[Article], keep: Callable[[Article], bool]) -> list[Article]:
        picked = [a for a in articles if self._is_valid(a) and keep(a)]
        picked.sort(key=lambda a: a.published_at, reverse=True)
        return picked[: self._max_candidates]

    def filter(self, articles: list[Article]) -> CandidateResult:
        unique = self.dedupe(articles)
        default_cutoff = self._cutoff(self._default_window_days)

        candidates = self._select(unique, lambda a: a.published_at >= default_cutoff)
        self._log(f"RSS 기사 {len(unique)}개, 최근 {self._default_window_days}일 후보 {len(candidates)}개")
        if len(candidates) >= self._min_candidates:
            return CandidateResult(
                candidates=candidates,
                total_articles=len(unique),
                phases=1,
                widened=False,
                sufficient=True,
            )

        # watchdog: 전체 목록을 다른 조건으로 다시 한 번만 계산한다 (기존 후보를 거르는 것이 아님)
        policy_cutoff = self._cutoff(self._policy_window_days)
        candidates = self._select(
            unique,
            lambda a: a.published_at >= default_cutoff
            or (a.category == CATEGORY_POLICY and a.published_at >= policy_cutoff),
        )
        self._log(f"⚠️ 후보 부족으로 policy 소스 {self._policy_window_days}일까지 확장: {len(candidates)}개")
        return CandidateResult(
            candidates=candidates,
            total_articles=len(unique),
            phases=2,
            widened=True,
            sufficient=len(candidates) >= self._min_candidates,
        )
