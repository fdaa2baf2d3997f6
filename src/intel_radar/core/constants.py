from __future__ import annotations

from intel_radar.processing.types import FeedSource

# ==========================================
# 피드 소스 (category는 watchdog 확장 규칙에서만 사용)
# ==========================================

CATEGORY_POLICY = "policy"
CATEGORY_TECH = "tech"
CATEGORY_OTHER = "other"
CATEGORIES = frozenset({CATEGORY_POLICY, CATEGORY_TECH, CATEGORY_OTHER})

FEED_SOURCES: tuple[FeedSource, ...] = (
    FeedSource("https://warontherocks.com/feed/", CATEGORY_POLICY),
    FeedSource("https://www.foreignaffairs.com/rss.xml", CATEGORY_POLICY),
    FeedSource("https://www.cfr.org/rss.xml", CATEGORY_POLICY),
    FeedSource("https://carnegieendowment.org/rss/all-publications", CATEGORY_POLICY),
    FeedSource("https://www.csis.org/rss/analysis", CATEGORY_POLICY),
    FeedSource("https://www.rand.org/pubs.rss", CATEGORY_POLICY),
    FeedSource("https://www.foreignpolicy.com/feed", CATEGORY_POLICY),
    FeedSource("https://www.wired.com/feed/rss", CATEGORY_TECH),
    FeedSource("https://feeds.arstechnica.com/arstechnica/index", CATEGORY_TECH),
    FeedSource("https://www.theverge.com/rss/index.xml", CATEGORY_TECH),
    FeedSource("http://feeds.feedburner.com/TechCrunch/", CATEGORY_TECH),
    FeedSource("https://www.technologyreview.com/feed/", CATEGORY_TECH),
    FeedSource("https://restofworld.org/feed/latest/", CATEGORY_TECH),
    FeedSource("https://hbr.org/rss", CATEGORY_POLICY),
    FeedSource("https://www.economist.com/rss", CATEGORY_POLICY),
)

# 기사 링크의 호스트 기준 분류 (피드 URL과 기사 호스트가 다를 때 우선 적용)
FEED_CLASS: dict[str, str] = {
    "warontherocks.com": CATEGORY_POLICY,
    "foreignaffairs.com": CATEGORY_POLICY,
    "cfr.org": CATEGORY_POLICY,
    "carnegieendowment.org": CATEGORY_POLICY,
    "csis.org": CATEGORY_POLICY,
    "rand.org": CATEGORY_POLICY,
    "foreignpolicy.com": CATEGORY_POLICY,
    "wired.com": CATEGORY_TECH,
    "arstechnica.com": CATEGORY_TECH,
    "theverge.com": CATEGORY_TECH,
    "techcrunch.com": CATEGORY_TECH,
    "technologyreview.com": CATEGORY_TECH,
    "restofworld.org": CATEGORY_TECH,
    "hbr.org": CATEGORY_POLICY,
    "economist.com": CATEGORY_POLICY,
}

# ==========================================
# 선택/포맷 계약
# ==========================================

SELECTION_SIZE = 4
MAX_TITLE_CHARS = 200

# ==========================================
# 사용자에게 그대로 노출되는 문구
# ==========================================

NOT_ENOUGH_CONTENT = "_(최근 관련 뉴스가 충분하지 않습니다)_"
PROCESSING_FAILED = "_(뉴스 처리 중 오류가 발생했습니다)_"
AI_ERROR_MARKER = "[AI error]"
