from __future__ import annotations

import datetime
import email.utils
import html
import re

_WS_RE = re.compile(r"\s+")  # 공백 정리 시 연속 공백을 단일 공백으로 축약
_TAG_RE = re.compile(r"<[^>]+>")  # 피드 제목에 섞여 들어온 HTML 태그 제거용
_UTC = datetime.timezone.utc


def clean_text(s: str) -> str:
    """HTML 엔티티/태그를 제거하고 공백을 정리한 깔끔한 텍스트로 정규화."""
    if not s:
        return ""
    # 1) &amp; 같은 HTML 엔티티를 문자로 변환
    s = html.unescape(s)

    # 2) NBSP(유니코드) -> 일반 스페이스로
    s = s.replace("\u00a0", " ")

    # 3) 혹시 섞여 들어온 HTML 태그 제거
    s = _TAG_RE.sub("", s)

    # 4) 공백 정리
    return _WS_RE.sub(" ", s).strip()


def clean_text_ws(text: str) -> str:
    return _WS_RE.sub(" ", (text or "").strip())


def normalize_title(title: str) -> str:
    """중복 판정용 제목 키: 소문자 + 공백 축약 + 양끝 trim."""
    return clean_text_ws(str(title or "")).lower()


def title_tokens(title: str) -> set[str]:
    normalized = normalize_title(title)
    if not normalized:
        return set()
    return set(normalized.split(" "))


def jaccard(a: set[str], b: set[str]) -> float:
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def jaccard_tokens(a: str, b: str) -> float:
    return jaccard(title_tokens(a), title_tokens(b))


def _parse_rfc2822(value: str) -> datetime.datetime | None:
    try:
        return email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None


def _parse_iso8601(value: str) -> datetime.datetime | None:
    raw = value.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.datetime.fromisoformat(raw)
    except ValueError:
        return None


def parse_feed_datetime(
    value: str | None,
    *,
    default_tz: datetime.tzinfo | None = None,
) -> datetime.datetime | None:
    # RFC-2822(RSS pubDate) 우선, 실패하면 ISO-8601(Atom) 순으로 시도
    if not value or not str(value).strip():
        return None
    text = str(value).strip()
    dt = _parse_rfc2822(text) or _parse_iso8601(text)
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=default_tz or _UTC)
    return dt.astimezone(_UTC)


def start_of_day(moment: datetime.datetime, tz: datetime.tzinfo) -> datetime.datetime:
    """moment를 tz 기준 자정으로 내린 뒤 UTC로 반환."""
    local = moment.astimezone(tz)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(_UTC)
