"""文章跳转 API."""

import re

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse, Response

from rss_shell.models.database import Database, get_database

router = APIRouter(prefix="/articles", tags=["articles"])

_ARTICLE_ID_RE = re.compile(r"[+-]?[0-9]+")
# 与 BIGINT 主键范围一致
_MAX_ID = 2**63 - 1


def parse_article_id(raw: str) -> int | None:
    """解析路径中的文章 ID，非法时返回 None."""
    if not _ARTICLE_ID_RE.fullmatch(raw):
        return None
    value = int(raw)
    if not -_MAX_ID - 1 <= value <= _MAX_ID:
        return None
    return value


@router.get("/{article_id}")
async def redirect_to_article(
    article_id: str,
    database: Database = Depends(get_database),
) -> Response:
    """跳转到文章原文（302，不让客户端缓存）."""
    parsed_id = parse_article_id(article_id)
    if parsed_id is None:
        raise HTTPException(status_code=400, detail="文章 ID 无效")

    url = await database.find_article_url(parsed_id)
    if url is None:
        raise HTTPException(status_code=404, detail="文章不存在")

    try:
        url.encode("latin-1")
    except UnicodeEncodeError:
        # 无法直接放进响应头，交给 RedirectResponse 转义
        return RedirectResponse(url, status_code=302)

    return Response(status_code=302, headers={"location": url})
