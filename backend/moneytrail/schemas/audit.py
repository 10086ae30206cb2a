"""Audit schemas."""
from datetime import date, datetime

from pydantic import BaseModel, Field, JsonValue

from moneytrail.models.audit import USER_AGENT_MAX_LENGTH, AuditAction
from moneytrail.schemas.common import CamelModel


class AuditEntry(BaseModel):
    """What a caller hands to the audit trail. The trail stamps the time itself."""

    user_id: str = Field(..., min_length=1, max_length=64)
    entity_type: str = Field(..., min_length=1, max_length=50)
    entity_id: str = Field(..., min_length=1, max_length=64)
    action: AuditAction
    old_value: JsonValue = None
    new_value: JsonValue = None
    reason: str | None = Field(None, max_length=500)
    ip_address: str | None = Field(None, max_length=64)
    user_agent: str | None = Field(None, max_length=USER_AGENT_MAX_LENGTH)


class AuditQuery(CamelModel):
    limit: int = 50
    offset: int = 0
    entity_type: str | None = None
    entity_id: str | None = None
    action: AuditAction | None = None
    start_date: date | None = None
    end_date: date | None = None
    sort_by: str = "timestamp"
    sort_order: str = "desc"


class AuditRecordResponse(CamelModel):
    id: int
    user_id: str
    entity_type: str
    entity_id: str
    action: str
    old_value: JsonValue = None
    new_value: JsonValue = None
    reason: str | None
    ip_address: str | None
    user_agent: str | None
    timestamp: datetime


class AuditRecordList(CamelModel):
    logs: list[AuditRecordResponse]
    total: int
    has_more: bool
