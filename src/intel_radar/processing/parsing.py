from __future__ import annotations

import datetime
import logging
from typing import Any, Callable, Iterable, Optional
from urllib.parse import urlparse

import feedparser

from intel_radar.core.config import LOCAL_TZ
from intel_radar.core.constants import FEED_CLASS, MAX_TITLE_CHARS
from intel_radar.processing.types import Article, FeedSource
from intel_radar.utils import clean_text, parse_feed_datetime

logger = logging.getLogger(__name__)

_DATE_FIELDS = ("pubDate", "published", "updated", "dc_date", "date")


class FeedNormalizer:
    def __init__(
        self,
        *,
        feed_parser: Callable[[str], Any] = feedparser.parse,
        host_classes: dict[str, str] | None = None,
        local_tz: datetime.tzinfo = LOCAL_TZ,
    ) -> None:
        self._feed_parser = feed_parser
        self._host_classes = FEED_CLASS if host_classes is None else host_classes
        self._local_tz = local_tz

    @staticmethod
    def detect_schema(parsed: Any) -> str | None:
        # RSS 루트(channel/item)인지 Atom 루트(feed/entry)인지 판별
        version = str(parsed.get("version") or "").lower()
        if version.startswith("rss"):
            return "rss"
        if version.startswith("atom"):
            return "atom"
        return None

    def classify(self, link: str, fallback: str) -> str:
        # 기사 호스트가 분류표에 있으면 우선, 없으면 피드 소스 분류
        try:
            host = (urlparse(link).hostname or "").lower()
        except ValueError:
            return fallback
        if host.startswith("www."):
            host = host[4:]
        return self._host_classes.get(host, fallback)

    @staticmethod
    def _entry_link(entry: Any) -> str:
        link = entry.get("link") or ""
        if isinstance(link, str) and link.strip():
            return link.strip()
        # Atom: <link href="..."/> 가 여러 개일 때 alternate 우선
        for candidate in entry.get("links") or []:
            href = candidate.get("href") if isinstance(candidate, dict) else None
            if href and candidate.get("rel", "alternate") == "alternate":
                return str(href).strip()
        return ""

    @staticmethod
    def _entry_date_raw(entry: Any) -> str:
        for name in _DATE_FIELDS:
            value = entry.get(name)
            if isinstance(value, str) and value.strip():
                return value
        return ""

    def parse_entry(self, entry: Any, source: FeedSource) -> Optional[Article]:
        title = clean_text(str(entry.get("title") or ""))[:MAX_TITLE_CHARS]
        if not title:
            return None
        link = self._entry_link(entry)
        published_at = parse_feed_datetime(self._entry_date_raw(entry), default_tz=self._local_tz)
        return Article(
            title=title,
            link=link,
            published_at=published_at,
            category=self.classify(link, source.category),
        )

    def parse_payload(self, payload: Optional[str], source: FeedSource) -> list[Article]:
        if not payload:
            return []
        try:
            parsed = self._feed_parser(payload)
        except Exception as exc:
            logger.debug("feed parse failed: %s (%s)", source.url, exc)
            return []
        if self.detect_schema(parsed) is None:
            logger.debug("unknown feed schema: %s", source.url)
            return []
        articles: list[Article] = []
        for entry in parsed.get("entries") or []:
            article = self.parse_entry(entry, source)
            if article is not None:
                articles.append(article)
        return articles

    def normalize(
        self,
        payloads: Iterable[tuple[FeedSource, Optional[str]]],
    ) -> list[Article]:
        """피드 순서를 유지한 채 모든 기사를 펼친다. 빈/깨진 피드는 조용히 건너뛴다."""
        articles: list[Article] = []
        for source, payload in payloads:
            articles.extend(self.parse_payload(payload, source))
        return articles
