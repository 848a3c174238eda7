"""rss-shell 主应用入口."""

import logging
import sys
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse, Response

from rss_shell.api import articles, health, rss
from rss_shell.config import LoggingConfig, Settings, load_settings
from rss_shell.models.database import Database

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "rss-shell.log"

logger = logging.getLogger(__name__)


def configure_logging(config: LoggingConfig) -> None:
    """配置日志（控制台 + 日志目录下的文件）."""
    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=config.level,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_dir / LOG_FILE, encoding="utf-8"),
        ],
        force=True,
    )


async def _http_exception_handler(_request: Request, exc: HTTPException) -> Response:
    """4xx 错误以纯文本返回."""
    return PlainTextResponse(
        str(exc.detail),
        status_code=exc.status_code,
        headers=exc.headers,
    )


def create_app(settings: Settings, database: Database) -> FastAPI:
    """创建应用，配置和数据库访问对象通过 app.state 注入."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """应用生命周期管理."""
        logger.info("正在初始化数据库...")
        await database.ensure_schema()

        logger.info(f"{settings.app.name} 启动完成！")
        yield

        logger.info("正在关闭...")
        await database.dispose()

    app = FastAPI(
        title=settings.app.name,
        description="基于数据库的 RSS 输出服务",
        version=settings.app.version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    app.add_exception_handler(HTTPException, _http_exception_handler)

    @app.middleware("http")
    async def log_requests(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} -> {response.status_code}")
        return response

    # 注册路由
    app.include_router(health.router)
    app.include_router(articles.router)
    app.include_router(rss.router)

    return app


def main(argv: Sequence[str] | None = None) -> None:
    """命令行入口：rss-shell [-c|--config 文件]."""
    import uvicorn

    args = sys.argv[1:] if argv is None else argv
    settings = load_settings(args)
    configure_logging(settings.logging)

    # 配置错误在此处直接抛出，不进入服务
    database = Database(settings)
    logger.info(
        f"{settings.app.name} v{settings.app.version} 正在启动 "
        f"{settings.server.host}:{settings.server.port} "
        f"(db={database.url.render_as_string(hide_password=True)})"
    )

    uvicorn.run(
        create_app(settings, database),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
