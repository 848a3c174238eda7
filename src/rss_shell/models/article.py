"""Article 文章记录."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Article(BaseModel):
    """Feed 中的一篇文章."""

    model_config = ConfigDict(frozen=True)

    id: int
    feed_id: int
    url: str
    title: str | None = None
    outlet_name: str | None = None
    note: str | None = None
    pub_date: datetime | None = None
    expose: bool
    created_at: datetime

    @property
    def effective_date(self) -> datetime:
        """排序和输出使用的时间（发布时间优先）."""
        return self.pub_date or self.created_at
