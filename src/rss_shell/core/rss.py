"""RSS 2.0 文档生成."""

import logging
import math
from collections.abc import Sequence
from datetime import datetime, timezone
from email.utils import format_datetime

from lxml import etree

from rss_shell.config import Settings
from rss_shell.models.article import Article
from rss_shell.models.feed import Feed

logger = logging.getLogger(__name__)

UNTITLED = "Untitled"


def ttl_minutes(seconds: int) -> int:
    """
    把 TTL 秒数换算为分钟.

    向上取整，非正数返回 0。
    """
    if seconds <= 0:
        return 0
    return math.ceil(seconds / 60)


def feed_url_for(base_url: str, external_id: str) -> str:
    """Feed 自身的访问地址."""
    return f"{base_url}/rss/{external_id}"


def _rfc822(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


def _first_present(*values: str | None) -> str:
    """返回第一个不为 None 的值（空字符串也算存在）."""
    return next(value for value in values if value is not None)


def _sub(parent: etree._Element, tag: str, text: str | None = None) -> etree._Element:
    element = etree.SubElement(parent, tag)
    if text is not None:
        element.text = text
    return element


def _build_item(channel: etree._Element, article: Article, base_url: str) -> None:
    item = _sub(channel, "item")
    _sub(item, "title", _first_present(article.title, article.url, UNTITLED))
    _sub(item, "link", article.url)
    if article.note is not None:
        _sub(item, "description", article.note)
    _sub(item, "pubDate", _rfc822(article.effective_date))

    guid = _sub(item, "guid", f"{base_url}/articles/{article.id}")
    guid.set("isPermaLink", "true")

    if article.outlet_name is not None:
        source = _sub(item, "source", article.outlet_name)
        source.set("url", article.url)


def render_feed(
    settings: Settings,
    feed_url: str,
    base_url: str,
    feed: Feed,
    articles: Sequence[Article],
    now: datetime | None = None,
) -> str:
    """
    生成 Feed 的 RSS 2.0 XML.

    Args:
        settings: 应用配置（语言、TTL、generator）
        feed_url: Feed 自身地址，Feed 没有 link 时用作频道链接
        base_url: 服务基础 URL，用于生成文章 guid
        feed: 频道
        articles: 已排序的文章
        now: 生成时间，默认当前时间

    Returns:
        UTF-8 编码声明的 XML 字符串
    """
    build_time = now or datetime.now(timezone.utc)

    rss = etree.Element("rss", version="2.0")
    channel = _sub(rss, "channel")
    _sub(channel, "title", feed.title)
    _sub(channel, "link", _first_present(feed.link, feed_url))
    # RSS 2.0 要求 description 元素存在
    _sub(channel, "description", feed.description or "")
    _sub(channel, "language", settings.feed_defaults.language)
    _sub(channel, "generator", f"{settings.app.name} {settings.app.version}")
    _sub(channel, "ttl", str(ttl_minutes(settings.feed_defaults.ttl_seconds)))
    _sub(channel, "lastBuildDate", _rfc822(build_time))

    for article in articles:
        _build_item(channel, article, base_url)

    xml = etree.tostring(
        rss,
        xml_declaration=True,
        encoding="UTF-8",
        pretty_print=True,
    ).decode("utf-8")
    logger.debug(f"已生成 Feed {feed.external_id} 的 RSS，共 {len(articles)} 篇文章")
    return xml
