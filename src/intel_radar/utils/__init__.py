from .common import (
    clean_text,
    clean_text_ws,
    jaccard,
    jaccard_tokens,
    normalize_title,
    parse_feed_datetime,
    start_of_day,
    title_tokens,
)

__all__ = [
    "clean_text",
    "clean_text_ws",
    "jaccard",
    "jaccard_tokens",
    "normalize_title",
    "parse_feed_datetime",
    "start_of_day",
    "title_tokens",
]
