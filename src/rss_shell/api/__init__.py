"""HTTP 路由."""

from rss_shell.api import articles, health, rss

__all__ = [
    "articles",
    "health",
    "rss",
]
