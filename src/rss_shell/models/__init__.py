"""数据模型与存储访问."""

from rss_shell.models.article import Article
from rss_shell.models.database import Database, get_database
from rss_shell.models.dialect import (
    DatabaseConfigError,
    InvalidIdentifierError,
    PostgresDialect,
    SqliteDialect,
    StorageDialect,
)
from rss_shell.models.feed import Feed

__all__ = [
    "Article",
    "Database",
    "DatabaseConfigError",
    "Feed",
    "InvalidIdentifierError",
    "PostgresDialect",
    "SqliteDialect",
    "StorageDialect",
    "get_database",
]
