"""Records written by the v2 migration: contributors, activities, Slack EOD updates."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from .services.utils import to_utc


class Contributor(BaseModel):
    username: str
    name: Optional[str] = None
    role: Optional[str] = None
    title: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    social_profiles: Optional[dict[str, str]] = None
    joining_date: Optional[date] = None
    meta: Optional[dict[str, str]] = None

    @field_validator("joining_date", mode="before")
    @classmethod
    def _drop_time_of_day(cls, v):
        # 导出数据里 joining_date 是完整时间戳，只保留 UTC 日期
        if isinstance(v, str) and len(v) > 10:
            v = datetime.fromisoformat(v.replace("Z", "+00:00"))
        if isinstance(v, datetime):
            return to_utc(v).date()
        return v


class Activity(BaseModel):
    slug: str
    contributor: str
    activity_definition: Optional[str] = None
    title: Optional[str] = None
    occured_at: Optional[datetime] = None
    link: Optional[str] = None
    text: Optional[str] = None
    points: Optional[float] = None
    meta: Optional[dict[str, Any]] = None


class SlackEodMessage(BaseModel):
    id: int
    user_id: str
    timestamp: datetime
    text: str
