"""测试配置和 fixtures."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text

from rss_shell.config import Settings
from rss_shell.main import create_app
from rss_shell.models.database import Database

FeedFactory = Callable[..., Awaitable[int]]
ArticleFactory = Callable[..., Awaitable[int]]


def build_settings(tmp_path: Path, **overrides: dict) -> Settings:
    """创建测试用配置（临时 SQLite 文件）."""
    values: dict = {
        "app": {"name": "rss-shell", "version": "1.0.0"},
        "server": {"host": "localhost", "port": 8080},
        "db": {"url": f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"},
        "tables": {"feeds": "direct_feeds", "articles": "direct_articles"},
        "feed_defaults": {"ttl_seconds": 3600, "language": "en"},
        "logging": {"level": "INFO", "log_dir": str(tmp_path / "logs")},
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """测试用配置."""
    return build_settings(tmp_path)


@pytest.fixture
def settings_factory(tmp_path: Path) -> Callable[..., Settings]:
    """按需覆盖部分配置节."""

    def _factory(**overrides: dict) -> Settings:
        return build_settings(tmp_path, **overrides)

    return _factory


@pytest_asyncio.fixture
async def database(settings: Settings) -> AsyncGenerator[Database, None]:
    """已建表的测试数据库."""
    db = Database(settings)
    await db.ensure_schema()
    yield db
    await db.dispose()


@pytest.fixture
def make_feed(database: Database) -> FeedFactory:
    """插入 Feed 行，返回主键."""

    async def _make_feed(
        external_id: str,
        title: str = "Test Feed",
        description: str | None = None,
        link: str | None = None,
        is_active: int = 1,
    ) -> int:
        stmt = text(
            f"INSERT INTO {database.tables.feeds}"
            "(external_id, title, description, link, is_active) "
            "VALUES (:external_id, :title, :description, :link, :is_active)"
        )
        async with database.engine.begin() as conn:
            result = await conn.execute(
                stmt,
                {
                    "external_id": external_id,
                    "title": title,
                    "description": description,
                    "link": link,
                    "is_active": is_active,
                },
            )
            return result.lastrowid

    return _make_feed


@pytest.fixture
def make_article(database: Database) -> ArticleFactory:
    """插入文章行，返回主键；created_at 为空时使用数据库默认值."""

    async def _make_article(
        feed_id: int,
        url: str,
        title: str | None = None,
        expose: int = 1,
        pub_date: str | None = None,
        created_at: str | None = None,
        outlet_name: str | None = None,
        note: str | None = None,
    ) -> int:
        columns = ["feed_id", "url", "title", "expose", "pub_date", "outlet_name", "note"]
        params = {
            "feed_id": feed_id,
            "url": url,
            "title": title,
            "expose": expose,
            "pub_date": pub_date,
            "outlet_name": outlet_name,
            "note": note,
        }
        if created_at is not None:
            columns.append("created_at")
            params["created_at"] = created_at

        stmt = text(
            f"INSERT INTO {database.tables.articles}({', '.join(columns)}) "
            f"VALUES ({', '.join(':' + c for c in columns)})"
        )
        async with database.engine.begin() as conn:
            result = await conn.execute(stmt, params)
            return result.lastrowid

    return _make_article


@pytest_asyncio.fixture
async def client(
    settings: Settings, database: Database
) -> AsyncGenerator[AsyncClient, None]:
    """创建测试用的 HTTP 客户端（不跟随跳转）."""
    app = create_app(settings, database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
