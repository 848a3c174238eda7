"""数据库访问：建表、Feed 和文章查询."""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from rss_shell.config import Settings
from rss_shell.models.article import Article
from rss_shell.models.dialect import (
    DatabaseConfigError,
    StorageDialect,
    build_database_url,
    create_dialect,
)
from rss_shell.models.feed import Feed

logger = logging.getLogger(__name__)

FEED_COLUMNS = (
    "id, external_id, title, description, link, outlet_name, "
    "is_active, created_at, updated_at"
)
ARTICLE_COLUMNS = (
    "id, feed_id, url, title, outlet_name, note, pub_date, expose, created_at"
)


def _parse_timestamp(value: Any) -> datetime | None:
    """解析时间列（SQLite 返回字符串，PostgreSQL 返回 datetime），统一为 UTC 时区."""
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip())
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _row_to_feed(row: Mapping[str, Any]) -> Feed:
    now = datetime.now(timezone.utc)
    return Feed(
        id=row["id"],
        external_id=str(row["external_id"]),
        title=row["title"],
        description=row["description"],
        link=row["link"],
        outlet_name=row["outlet_name"],
        is_active=bool(row["is_active"]),
        created_at=_parse_timestamp(row["created_at"]) or now,
        updated_at=_parse_timestamp(row["updated_at"]) or now,
    )


def _row_to_article(row: Mapping[str, Any]) -> Article:
    return Article(
        id=row["id"],
        feed_id=row["feed_id"],
        url=row["url"],
        title=row["title"],
        outlet_name=row["outlet_name"],
        note=row["note"],
        pub_date=_parse_timestamp(row["pub_date"]),
        expose=bool(row["expose"]),
        created_at=_parse_timestamp(row["created_at"]) or datetime.now(timezone.utc),
    )


class Database:
    """Feed/文章只读访问."""

    def __init__(self, settings: Settings) -> None:
        self.tables = settings.tables
        self.url = build_database_url(settings.db)
        self.dialect: StorageDialect = create_dialect(self.url)

        try:
            # 每次调用独立打开/关闭连接
            self._engine = create_async_engine(self.url, echo=False, poolclass=NullPool)
        except ImportError as exc:
            msg = f"数据库驱动未安装: {self.url.drivername}"
            raise DatabaseConfigError(msg) from exc

        self.dialect.configure_engine(self._engine)

    @property
    def engine(self) -> AsyncEngine:
        """底层异步引擎."""
        return self._engine

    async def ensure_schema(self) -> None:
        """创建 Feed 和文章表（已存在则跳过）."""
        async with self._engine.begin() as conn:
            for statement in self.dialect.create_table_statements(self.tables):
                await conn.execute(text(statement))
        logger.info(
            f"已确认数据表 ({self.dialect.name}): "
            f"{self.tables.feeds}, {self.tables.articles}"
        )

    async def find_active_feed(self, external_id: str) -> Feed | None:
        """按外部标识符查找启用中的 Feed."""
        stmt = text(
            f"SELECT {FEED_COLUMNS} FROM {self.tables.feeds} "
            f"WHERE external_id = :external_id AND is_active = {self.dialect.true_literal}"
        )
        params = {"external_id": self.dialect.bind_external_id(external_id)}

        async with self._engine.connect() as conn:
            result = await conn.execute(stmt, params)
            row = result.mappings().first()

        return _row_to_feed(row) if row is not None else None

    async def find_articles_for_feed(self, feed_id: int) -> list[Article]:
        """获取 Feed 下所有公开文章，按发布时间（缺省为创建时间）倒序."""
        stmt = text(
            f"SELECT {ARTICLE_COLUMNS} FROM {self.tables.articles} "
            f"WHERE feed_id = :feed_id AND expose = {self.dialect.true_literal} "
            f"ORDER BY {self.dialect.effective_date_sql()} DESC"
        )

        async with self._engine.connect() as conn:
            result = await conn.execute(stmt, {"feed_id": feed_id})
            rows = result.mappings().all()

        return [_row_to_article(row) for row in rows]

    async def find_article_url(self, article_id: int) -> str | None:
        """获取文章原文链接."""
        stmt = text(f"SELECT url FROM {self.tables.articles} WHERE id = :article_id")

        async with self._engine.connect() as conn:
            result = await conn.execute(stmt, {"article_id": article_id})
            return result.scalar_one_or_none()

    async def dispose(self) -> None:
        """释放引擎."""
        await self._engine.dispose()


def get_database(request: Request) -> Database:
    """获取数据库访问对象（用于依赖注入）."""
    return request.app.state.database
