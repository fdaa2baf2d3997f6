import datetime

from intel_radar.utils import (
    clean_text,
    clean_text_ws,
    jaccard_tokens,
    normalize_title,
    parse_feed_datetime,
    start_of_day,
)

_UTC = datetime.timezone.utc


def test_clean_text_strips_html_and_ws() -> None:
    assert clean_text("  hello&nbsp;<b>world</b>\n") == "hello world"


def test_clean_text_ws_collapses() -> None:
    assert clean_text_ws("  hello   world \n") == "hello world"


def test_normalize_title_lowercases_and_collapses() -> None:
    assert normalize_title("  China   Tariffs\tRise ") == "china tariffs rise"


def test_jaccard_tokens_basic() -> None:
    assert jaccard_tokens("a b c", "b c d") == 2 / 4
    assert jaccard_tokens("Same Title", "same   title") == 1.0
    assert jaccard_tokens("", "anything") == 0.0


def test_parse_feed_datetime_rfc2822() -> None:
    dt = parse_feed_datetime("Fri, 10 May 2024 08:00:00 GMT")
    assert dt == datetime.datetime(2024, 5, 10, 8, 0, tzinfo=_UTC)


def test_parse_feed_datetime_iso8601_with_z() -> None:
    dt = parse_feed_datetime("2024-05-10T08:00:00Z")
    assert dt == datetime.datetime(2024, 5, 10, 8, 0, tzinfo=_UTC)


def test_parse_feed_datetime_naive_uses_default_tz() -> None:
    kst = datetime.timezone(datetime.timedelta(hours=9))
    dt = parse_feed_datetime("2024-05-10T09:00:00", default_tz=kst)
    assert dt == datetime.datetime(2024, 5, 10, 0, 0, tzinfo=_UTC)


def test_parse_feed_datetime_rejects_garbage() -> None:
    assert parse_feed_datetime("yesterday-ish") is None
    assert parse_feed_datetime("") is None
    assert parse_feed_datetime(None) is None


def test_start_of_day_uses_local_midnight() -> None:
    kst = datetime.timezone(datetime.timedelta(hours=9))
    moment = datetime.datetime(2024, 5, 10, 20, 0, tzinfo=_UTC)  # KST 5/11 05:00
    assert start_of_day(moment, kst) == datetime.datetime(2024, 5, 10, 15, 0, tzinfo=_UTC)
