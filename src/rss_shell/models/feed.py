"""Feed 订阅源记录."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Feed(BaseModel):
    """对外输出的 RSS 频道."""

    model_config = ConfigDict(frozen=True)

    id: int
    external_id: str
    title: str
    description: str | None = None
    link: str | None = None
    outlet_name: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
