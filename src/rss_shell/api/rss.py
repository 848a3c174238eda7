"""RSS 输出 API."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from rss_shell.config import Settings, base_url, get_settings
from rss_shell.core.rss import feed_url_for, render_feed
from rss_shell.models.database import Database, get_database
from rss_shell.models.dialect import InvalidIdentifierError

router = APIRouter(prefix="/rss", tags=["rss"])

RSS_MEDIA_TYPE = "application/xml; charset=utf-8"


@router.get("/{external_id}")
async def get_rss(
    external_id: str,
    settings: Settings = Depends(get_settings),
    database: Database = Depends(get_database),
) -> Response:
    """输出 Feed 的 RSS 文档."""
    if not external_id.strip():
        raise HTTPException(status_code=400, detail="缺少 Feed 标识")

    try:
        feed = await database.find_active_feed(external_id)
    except InvalidIdentifierError as exc:
        raise HTTPException(status_code=400, detail="Feed 标识格式无效") from exc

    if feed is None:
        raise HTTPException(status_code=404, detail="Feed 不存在")

    articles = await database.find_articles_for_feed(feed.id)
    service_url = base_url(settings)
    xml = render_feed(
        settings,
        feed_url_for(service_url, feed.external_id),
        service_url,
        feed,
        articles,
    )
    return Response(content=xml, media_type=RSS_MEDIA_TYPE)
