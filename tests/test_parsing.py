import datetime

from intel_radar.processing.parsing import FeedNormalizer
from intel_radar.processing.types import FeedSource

_UTC = datetime.timezone.utc

RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>Policy</title>
<item><title>Sanctions &amp; the  Grid</title><link>https://www.cfr.org/a</link>
<pubDate>Fri, 10 May 2024 08:00:00 GMT</pubDate></item>
<item><title>No date here</title><link>https://www.cfr.org/b</link></item>
<item><title></title><link>https://www.cfr.org/c</link></item>
</channel></rss>"""

ATOM = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom"><title>Tech</title>
<entry><title>Chips and Export Controls</title>
<link rel="alternate" href="https://www.wired.com/story/chips"/>
<updated>2024-05-10T06:30:00Z</updated></entry>
</feed>"""


def _normalizer() -> FeedNormalizer:
    return FeedNormalizer(local_tz=_UTC)


def test_parse_rss_items() -> None:
    articles = _normalizer().parse_payload(RSS, FeedSource("https://www.cfr.org/rss.xml", "policy"))
    assert [a.title for a in articles] == ["Sanctions & the Grid", "No date here"]
    first = articles[0]
    assert first.link == "https://www.cfr.org/a"
    assert first.published_at == datetime.datetime(2024, 5, 10, 8, 0, tzinfo=_UTC)
    assert first.category == "policy"
    assert articles[1].published_at is None


def test_parse_atom_entries() -> None:
    articles = _normalizer().parse_payload(ATOM, FeedSource("https://www.wired.com/feed/rss", "other"))
    assert len(articles) == 1
    article = articles[0]
    assert article.link == "https://www.wired.com/story/chips"
    assert article.published_at == datetime.datetime(2024, 5, 10, 6, 30, tzinfo=_UTC)
    # 호스트 분류표가 소스 분류보다 우선
    assert article.category == "tech"


def test_absent_and_garbage_payloads_are_skipped() -> None:
    normalizer = _normalizer()
    source = FeedSource("https://example.com/rss", "other")
    assert normalizer.parse_payload(None, source) == []
    assert normalizer.parse_payload("", source) == []
    assert normalizer.parse_payload("this is not xml at all", source) == []


def test_normalize_flattens_in_feed_order() -> None:
    articles = _normalizer().normalize(
        [
            (FeedSource("https://www.wired.com/feed/rss", "tech"), ATOM),
            (FeedSource("https://down.example/rss", "tech"), None),
            (FeedSource("https://www.cfr.org/rss.xml", "policy"), RSS),
        ]
    )
    assert [a.title for a in articles] == ["Chips and Export Controls", "Sanctions & the Grid", "No date here"]


def test_classify_falls_back_to_source_category() -> None:
    normalizer = _normalizer()
    assert normalizer.classify("https://unknown.example/x", "other") == "other"
    assert normalizer.classify("https://www.rand.org/pubs/1", "tech") == "policy"


def test_long_titles_are_truncated() -> None:
    rss = RSS.replace("Sanctions &amp; the  Grid", "x" * 300)
    articles = _normalizer().parse_payload(rss, FeedSource("https://www.cfr.org/rss.xml", "policy"))
    assert len(articles[0].title) == 200
