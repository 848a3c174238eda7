"""测试数据库方言选择和连接串规范化."""

import uuid

import pytest

from rss_shell.config import DbConfig, TableConfig
from rss_shell.models.database import Database
from rss_shell.models.dialect import (
    DatabaseConfigError,
    InvalidIdentifierError,
    PostgresDialect,
    SqliteDialect,
    build_database_url,
    create_dialect,
)


class TestBuildDatabaseUrl:
    """测试连接串规范化."""

    def test_sqlite_gets_async_driver(self) -> None:
        url = build_database_url(DbConfig(url="sqlite:///./data.db"))
        assert url.drivername == "sqlite+aiosqlite"
        assert url.database == "./data.db"

    def test_explicit_driver_is_kept(self) -> None:
        url = build_database_url(DbConfig(url="sqlite+aiosqlite:///:memory:"))
        assert url.drivername == "sqlite+aiosqlite"

    def test_postgres_gets_async_driver(self) -> None:
        url = build_database_url(DbConfig(url="postgresql://db.local:5432/rss"))
        assert url.drivername == "postgresql+asyncpg"
        assert url.host == "db.local"
        assert url.port == 5432
        assert url.database == "rss"

    def test_jdbc_sqlite_is_translated(self) -> None:
        url = build_database_url(DbConfig(url="jdbc:sqlite:/var/lib/rss/db.sqlite"))
        assert url.drivername == "sqlite+aiosqlite"
        assert url.database == "/var/lib/rss/db.sqlite"

    def test_jdbc_sqlite_memory(self) -> None:
        url = build_database_url(DbConfig(url="jdbc:sqlite::memory:"))
        assert url.database == ":memory:"

    def test_jdbc_postgres_is_translated(self) -> None:
        url = build_database_url(DbConfig(url="jdbc:postgresql://db.local/rss"))
        assert url.drivername == "postgresql+asyncpg"
        assert url.host == "db.local"

    def test_credentials_applied_to_postgres(self) -> None:
        url = build_database_url(
            DbConfig(url="postgresql://db.local/rss", user="reader", password="secret")
        )
        assert url.username == "reader"
        assert url.password == "secret"

    def test_credentials_ignored_for_sqlite(self) -> None:
        url = build_database_url(
            DbConfig(url="sqlite:///./data.db", user="reader", password="secret")
        )
        assert url.username is None

    @pytest.mark.parametrize(
        "raw",
        ["mysql://db.local/rss", "jdbc:mysql://db.local/rss", "not a url", ""],
    )
    def test_unsupported_url(self, raw: str) -> None:
        with pytest.raises(DatabaseConfigError):
            build_database_url(DbConfig(url=raw))

    def test_database_rejects_unsupported_url(self, settings_factory) -> None:
        """不支持的连接串在创建 Database 时即失败."""
        settings = settings_factory(db={"url": "oracle://db.local/rss"})
        with pytest.raises(DatabaseConfigError):
            Database(settings)


class TestCreateDialect:
    """测试方言选择."""

    def test_sqlite(self) -> None:
        url = build_database_url(DbConfig(url="sqlite:///./data.db"))
        dialect = create_dialect(url)
        assert isinstance(dialect, SqliteDialect)
        assert dialect.true_literal == "1"

    def test_postgres(self) -> None:
        url = build_database_url(DbConfig(url="postgresql://db.local/rss"))
        dialect = create_dialect(url)
        assert isinstance(dialect, PostgresDialect)
        assert dialect.true_literal == "TRUE"


class TestBindExternalId:
    """测试外部标识符绑定."""

    def test_sqlite_keeps_string(self) -> None:
        assert SqliteDialect().bind_external_id("feed-abc") == "feed-abc"

    def test_postgres_parses_uuid(self) -> None:
        value = "123e4567-e89b-12d3-a456-426614174000"
        assert PostgresDialect().bind_external_id(value) == uuid.UUID(value)

    def test_postgres_rejects_non_uuid(self) -> None:
        with pytest.raises(InvalidIdentifierError):
            PostgresDialect().bind_external_id("feed-abc")

    def test_invalid_identifier_is_value_error(self) -> None:
        assert issubclass(InvalidIdentifierError, ValueError)


class TestCreateTableStatements:
    """测试建表语句."""

    def test_sqlite_uses_configured_names(self) -> None:
        tables = TableConfig(feeds="direct_feeds", articles="direct_articles")
        feeds_sql, articles_sql = SqliteDialect().create_table_statements(tables)

        assert "CREATE TABLE IF NOT EXISTS direct_feeds" in feeds_sql
        assert "external_id TEXT NOT NULL UNIQUE" in feeds_sql
        assert "CREATE TABLE IF NOT EXISTS direct_articles" in articles_sql
        assert "REFERENCES direct_feeds(id) ON DELETE CASCADE" in articles_sql

    def test_postgres_uses_uuid_and_boolean(self) -> None:
        feeds_sql, articles_sql = PostgresDialect().create_table_statements(
            TableConfig()
        )

        assert "external_id UUID NOT NULL UNIQUE" in feeds_sql
        assert "is_active BOOLEAN NOT NULL DEFAULT TRUE" in feeds_sql
        assert "expose BOOLEAN NOT NULL DEFAULT TRUE" in articles_sql
        assert "REFERENCES feeds(id) ON DELETE CASCADE" in articles_sql


class TestEffectiveDateSql:
    """测试文章排序表达式."""

    def test_sqlite_normalizes_text_timestamps(self) -> None:
        assert (
            SqliteDialect().effective_date_sql()
            == "datetime(COALESCE(pub_date, created_at))"
        )

    def test_postgres_compares_timestamptz(self) -> None:
        assert PostgresDialect().effective_date_sql() == "COALESCE(pub_date, created_at)"


class TestDialectName:
    """测试方言名称."""

    def test_names(self) -> None:
        assert SqliteDialect().name == "sqlite"
        assert PostgresDialect().name == "postgresql"

    async def test_ensure_schema_logs_dialect(
        self, settings_factory, caplog: pytest.LogCaptureFixture
    ) -> None:
        database = Database(settings_factory())
        try:
            with caplog.at_level("INFO", logger="rss_shell.models.database"):
                await database.ensure_schema()
        finally:
            await database.dispose()

        assert "(sqlite)" in caplog.text
        assert "direct_feeds" in caplog.text
