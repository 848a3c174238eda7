"""核心业务逻辑."""

from rss_shell.core.rss import feed_url_for, render_feed, ttl_minutes

__all__ = [
    "feed_url_for",
    "render_feed",
    "ttl_minutes",
]
