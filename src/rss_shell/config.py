"""应用配置管理."""

import json
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Literal

from dotenv import dotenv_values
from fastapi import Request
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rss_shell import __version__

# 覆盖文件中可选的根节点
ROOT_KEYS = ("rss-shell", "rss_shell")

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_WILDCARD_HOSTS = {"0.0.0.0", "::", ""}


class ConfigError(Exception):
    """配置加载错误."""


class AppInfo(BaseModel):
    """应用信息."""

    model_config = ConfigDict(frozen=True)

    name: str = "rss-shell"
    version: str = __version__


class ServerConfig(BaseModel):
    """HTTP 监听配置."""

    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = 8080


class DbConfig(BaseModel):
    """数据库连接配置."""

    model_config = ConfigDict(frozen=True)

    url: str = "sqlite+aiosqlite:///./rss-shell.db"
    user: str | None = None
    password: str | None = None

    @field_validator("user", "password", mode="before")
    @classmethod
    def _blank_as_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class TableConfig(BaseModel):
    """表名配置."""

    model_config = ConfigDict(frozen=True)

    feeds: str = "feeds"
    articles: str = "articles"

    @field_validator("feeds", "articles")
    @classmethod
    def _plain_identifier(cls, value: str) -> str:
        # 表名会直接拼进 SQL
        if not _IDENTIFIER_RE.match(value):
            msg = f"非法表名: {value!r}"
            raise ValueError(msg)
        return value


class FeedDefaults(BaseModel):
    """生成 Feed 的默认值."""

    model_config = ConfigDict(frozen=True)

    ttl_seconds: int = 3600
    language: str = "en"


class LoggingConfig(BaseModel):
    """日志配置."""

    model_config = ConfigDict(frozen=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_dir: str = "logs"

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().upper()
            if value == "WARN":
                return "WARNING"
        return value


class Settings(BaseSettings):
    """应用配置（默认值 < .env < 环境变量 < 覆盖文件）."""

    model_config = SettingsConfigDict(
        env_prefix="RSS_SHELL_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app: AppInfo = AppInfo()
    server: ServerConfig = ServerConfig()
    db: DbConfig = DbConfig()
    tables: TableConfig = TableConfig()
    feed_defaults: FeedDefaults = FeedDefaults()
    logging: LoggingConfig = LoggingConfig()


def parse_config_path(argv: Sequence[str]) -> str | None:
    """
    从命令行参数中找出覆盖配置文件路径.

    支持 `-c value`、`--config value`、`--config=value`，从左到右第一个匹配生效。
    """
    args = list(argv)
    for idx, arg in enumerate(args):
        if arg in ("-c", "--config") and idx + 1 < len(args):
            return args[idx + 1]
        if arg.startswith("--config="):
            return arg.removeprefix("--config=")
    return None


def _expand_dotted(flat: dict[str, Any]) -> dict[str, Any]:
    """把 `server.port=9999` 形式的扁平键展开为嵌套字典."""
    nested: dict[str, Any] = {}
    for key, value in flat.items():
        if value is None:
            continue
        node = nested
        *parents, leaf = key.strip().split(".")
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = value
    return nested


def read_override_file(path: str | Path) -> dict[str, Any]:
    """
    读取覆盖配置文件.

    Args:
        path: 文件路径，`.json` 按 JSON 解析，其余按 `key.path=value` 解析

    Returns:
        嵌套配置字典
    """
    file_path = Path(path)
    if not file_path.is_file():
        msg = f"配置文件不存在: {file_path}"
        raise ConfigError(msg)

    if file_path.suffix.lower() == ".json":
        data = json.loads(file_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            msg = f"配置文件顶层必须是对象: {file_path}"
            raise ConfigError(msg)
    else:
        data = _expand_dotted(dotenv_values(file_path, encoding="utf-8"))

    for root in ROOT_KEYS:
        if isinstance(data.get(root), dict):
            return data[root]
    return data


def load_settings(argv: Sequence[str] | None = None) -> Settings:
    """加载配置，命令行指定的覆盖文件优先级最高."""
    overrides: dict[str, Any] = {}
    config_path = parse_config_path(argv or [])
    if config_path is not None:
        overrides = read_override_file(config_path)
    return Settings(**overrides)


def visible_host(host: str) -> str:
    """对外展示的主机名（通配地址替换为 localhost）."""
    if host in _WILDCARD_HOSTS:
        return "localhost"
    if ":" in host and not host.startswith("["):
        return f"[{host}]"
    return host


def base_url(settings: Settings) -> str:
    """服务对外的基础 URL."""
    return f"http://{visible_host(settings.server.host)}:{settings.server.port}"


def get_settings(request: Request) -> Settings:
    """获取应用配置（用于依赖注入）."""
    return request.app.state.settings
