"""Bounded-time retrieval of remote feeds."""

__all__ = ["feed_fetcher"]
