"""Insight schemas."""
from datetime import date, datetime

from pydantic import Field, JsonValue, field_validator

from moneytrail.models.insight import InsightImpact, InsightType
from moneytrail.schemas.common import CamelModel


class TimePeriod(CamelModel):
    start_date: date
    end_date: date


def _clean_title(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if len(value) < 5:
        raise ValueError("Insight title must be at least 5 characters long")
    return value


def _clean_description(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if len(value) < 10:
        raise ValueError("Insight description must be at least 10 characters long")
    return value


class InsightCreate(CamelModel):
    type: InsightType
    title: str = Field(..., max_length=200)
    description: str = Field(..., max_length=1000)
    confidence: int = Field(..., ge=0, le=100)
    impact: InsightImpact
    category_id: str | None = Field(None, max_length=64)
    time_period: TimePeriod | None = None
    data: dict[str, JsonValue] | None = None
    actions: list[JsonValue] | None = None

    title_length = field_validator("title")(_clean_title)
    description_length = field_validator("description")(_clean_description)


class InsightUpdate(CamelModel):
    """Partial patch. Only fields present in the request body are applied."""

    type: InsightType | None = None
    title: str | None = Field(None, max_length=200)
    description: str | None = Field(None, max_length=1000)
    confidence: int | None = Field(None, ge=0, le=100)
    impact: InsightImpact | None = None
    category_id: str | None = Field(None, max_length=64)
    time_period: TimePeriod | None = None
    data: dict[str, JsonValue] | None = None
    actions: list[JsonValue] | None = None
    is_read: bool | None = None
    is_archived: bool | None = None

    title_length = field_validator("title")(_clean_title)
    description_length = field_validator("description")(_clean_description)


class InsightListOptions(CamelModel):
    limit: int = 50
    offset: int = 0
    type: InsightType | None = None
    impact: InsightImpact | None = None
    is_read: bool | None = None
    is_archived: bool | None = None
    start_date: date | None = None
    end_date: date | None = None
    sort_by: str = "createdAt"
    sort_order: str = "desc"


class InsightResponse(CamelModel):
    id: int
    type: InsightType
    title: str
    description: str
    confidence: int
    impact: InsightImpact
    category_id: str | None = None
    time_period: dict[str, JsonValue] | None = None
    data: JsonValue = None
    actions: JsonValue = None
    is_read: bool
    is_archived: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class InsightListResponse(CamelModel):
    insights: list[InsightResponse]
    total: int
    has_more: bool


class InsightEnvelope(CamelModel):
    insight: InsightResponse
    message: str | None = None


class MarkAllReadResponse(CamelModel):
    count: int
    message: str


class InsightStats(CamelModel):
    total_insights: int
    unread_insights: int
    insights_by_type: dict[str, int]
    insights_by_impact: dict[str, int]
    average_confidence: float
    recent_insights: int
