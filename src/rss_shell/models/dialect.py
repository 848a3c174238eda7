"""数据库方言：标识符绑定、布尔字面量、建表语句."""

import uuid
from abc import ABC, abstractmethod
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import AsyncEngine

from rss_shell.config import DbConfig, TableConfig

# 各后端默认使用的异步驱动
ASYNC_DRIVERS = {
    "sqlite": "aiosqlite",
    "postgresql": "asyncpg",
}


class DatabaseConfigError(Exception):
    """数据库配置错误（不支持的连接串、缺少驱动）."""


class InvalidIdentifierError(ValueError):
    """外部标识符格式与后端要求不符."""


class StorageDialect(ABC):
    """存储方言抽象基类."""

    name: str
    true_literal: str

    @abstractmethod
    def bind_external_id(self, external_id: str) -> Any:
        """把外部标识符转换为可绑定的查询参数."""
        ...

    @abstractmethod
    def create_table_statements(self, tables: TableConfig) -> list[str]:
        """返回建表语句（按执行顺序）."""
        ...

    def effective_date_sql(self) -> str:
        """文章排序用的时间表达式（发布时间优先）."""
        return "COALESCE(pub_date, created_at)"

    def configure_engine(self, engine: AsyncEngine) -> None:
        """创建引擎后的额外设置."""


class SqliteDialect(StorageDialect):
    """SQLite：外部标识符为 TEXT，布尔值为 0/1."""

    name = "sqlite"
    true_literal = "1"

    def bind_external_id(self, external_id: str) -> str:
        return external_id

    def effective_date_sql(self) -> str:
        # TEXT 时间可能带 T 分隔符或时区偏移，先规范为 UTC 再比较
        return "datetime(COALESCE(pub_date, created_at))"

    def create_table_statements(self, tables: TableConfig) -> list[str]:
        return [
            f"""
            CREATE TABLE IF NOT EXISTS {tables.feeds} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                external_id TEXT NOT NULL UNIQUE,
                title TEXT NOT NULL,
                description TEXT,
                link TEXT,
                outlet_name TEXT,
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
            """,
            f"""
            CREATE TABLE IF NOT EXISTS {tables.articles} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                feed_id INTEGER NOT NULL,
                url TEXT NOT NULL,
                title TEXT,
                outlet_name TEXT,
                note TEXT,
                pub_date TEXT,
                expose INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL DEFAULT (datetime('now')),
                FOREIGN KEY(feed_id) REFERENCES {tables.feeds}(id) ON DELETE CASCADE
            )
            """,
        ]

    def configure_engine(self, engine: AsyncEngine) -> None:
        # SQLite 默认不执行外键约束，级联删除需要逐连接开启
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()


class PostgresDialect(StorageDialect):
    """PostgreSQL：外部标识符为 UUID，布尔值为 TRUE/FALSE."""

    name = "postgresql"
    true_literal = "TRUE"

    def bind_external_id(self, external_id: str) -> uuid.UUID:
        try:
            return uuid.UUID(external_id)
        except ValueError as exc:
            msg = f"外部标识符不是合法的 UUID: {external_id!r}"
            raise InvalidIdentifierError(msg) from exc

    def create_table_statements(self, tables: TableConfig) -> list[str]:
        return [
            f"""
            CREATE TABLE IF NOT EXISTS {tables.feeds} (
                id BIGINT PRIMARY KEY GENERATED ALWAYS AS IDENTITY,
                external_id UUID NOT NULL UNIQUE,
                title TEXT NOT NULL,
                description TEXT,
                link TEXT,
                outlet_name TEXT,
                is_active BOOLEAN NOT NULL DEFAULT TRUE,
                created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
                updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
            """,
            f"""
            CREATE TABLE IF NOT EXISTS {tables.articles} (
                id BIGINT PRIMARY KEY GENERATED ALWAYS AS IDENTITY,
                feed_id BIGINT NOT NULL REFERENCES {tables.feeds}(id) ON DELETE CASCADE,
                url TEXT NOT NULL,
                title TEXT,
                outlet_name TEXT,
                note TEXT,
                pub_date TIMESTAMPTZ,
                expose BOOLEAN NOT NULL DEFAULT TRUE,
                created_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
            """,
        ]


def _translate_jdbc(raw: str) -> str:
    """把旧部署中的 JDBC 连接串转换为 SQLAlchemy URL."""
    if raw.startswith("jdbc:sqlite:"):
        path = raw.removeprefix("jdbc:sqlite:")
        return f"sqlite:///{path}"
    if raw.startswith("jdbc:postgresql:"):
        return "postgresql:" + raw.removeprefix("jdbc:postgresql:")
    return raw


def build_database_url(db: DbConfig) -> URL:
    """
    规范化数据库连接串.

    Args:
        db: 数据库配置

    Returns:
        带异步驱动和凭据的 SQLAlchemy URL
    """
    raw = _translate_jdbc(db.url.strip())
    try:
        url = make_url(raw)
    except ArgumentError as exc:
        msg = f"无法解析数据库连接串: {db.url}"
        raise DatabaseConfigError(msg) from exc

    backend = url.get_backend_name()
    if backend not in ASYNC_DRIVERS:
        msg = f"不支持的数据库: {db.url}"
        raise DatabaseConfigError(msg)

    if "+" not in url.drivername:
        url = url.set(drivername=f"{backend}+{ASYNC_DRIVERS[backend]}")

    if backend != "sqlite" and db.user is not None:
        url = url.set(username=db.user, password=db.password)

    return url


def create_dialect(url: URL) -> StorageDialect:
    """根据连接串选择方言."""
    backend = url.get_backend_name()
    if backend == "sqlite":
        return SqliteDialect()
    if backend == "postgresql":
        return PostgresDialect()
    msg = f"不支持的数据库: {url.render_as_string(hide_password=True)}"
    raise DatabaseConfigError(msg)
