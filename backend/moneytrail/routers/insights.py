"""Insight API routes."""
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from moneytrail.auth.deps import Audit, Client, CurrentUser, DbSession, get_app_settings, get_insight_repository
from moneytrail.config import Settings
from moneytrail.models.audit import AuditAction, AuditEntityType
from moneytrail.models.insight import Insight, InsightImpact, InsightType
from moneytrail.repositories.insights import InsightRepository
from moneytrail.schemas.audit import AuditEntry
from moneytrail.schemas.common import MessageResponse
from moneytrail.schemas.insight import (
    InsightCreate,
    InsightEnvelope,
    InsightListOptions,
    InsightListResponse,
    InsightResponse,
    InsightStats,
    InsightUpdate,
    MarkAllReadResponse,
)
from moneytrail.services.audit_trail import snapshot

router = APIRouter(prefix="/insights", tags=["insights"])

Insights = Annotated[InsightRepository, Depends(get_insight_repository)]


def _entry(user_id: int, action: AuditAction, entity_id, old=None, new=None, reason: str | None = None) -> AuditEntry:
    return AuditEntry(
        user_id=str(user_id),
        entity_type=AuditEntityType.INSIGHT.value,
        entity_id=str(entity_id),
        action=action,
        old_value=old,
        new_value=new,
        reason=reason,
    )


def _envelope(insight: Insight, message: str | None = None) -> InsightEnvelope:
    return InsightEnvelope(insight=InsightResponse.model_validate(insight), message=message)


@router.get("", response_model=InsightListResponse)
async def list_insights(
    insights: Insights,
    settings: Annotated[Settings, Depends(get_app_settings)],
    limit: int | None = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    type: InsightType | None = None,
    impact: InsightImpact | None = None,
    is_read: bool | None = Query(None, alias="isRead"),
    is_archived: bool | None = Query(None, alias="isArchived"),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
):
    options = InsightListOptions(
        limit=min(limit or settings.insights_default_page_size, settings.insights_max_page_size),
        offset=offset,
        type=type,
        impact=impact,
        is_read=is_read,
        is_archived=is_archived,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    page = await insights.find(options)
    return InsightListResponse(
        insights=[InsightResponse.model_validate(i) for i in page.items],
        total=page.total,
        has_more=page.has_more,
    )


@router.post("", response_model=InsightEnvelope, status_code=status.HTTP_201_CREATED)
async def create_insight(
    data: InsightCreate,
    db: DbSession,
    user: CurrentUser,
    insights: Insights,
    audit: Audit,
    client: Client,
):
    insight = await insights.create(data)
    await audit.record(
        db,
        _entry(user.id, AuditAction.CREATE, insight.id, new=snapshot(InsightResponse, insight)),
        client,
    )
    return _envelope(insight, "Insight created successfully")


@router.get("/stats", response_model=InsightStats)
async def insight_stats(insights: Insights):
    return InsightStats(**await insights.stats())


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(
    db: DbSession,
    user: CurrentUser,
    insights: Insights,
    audit: Audit,
    client: Client,
):
    count = await insights.mark_all_read()
    if count:
        await audit.record(
            db,
            _entry(user.id, AuditAction.UPDATE, "all", new={"isRead": True, "count": count}, reason="Marked all insights as read"),
            client,
        )
    return MarkAllReadResponse(count=count, message=f"Marked {count} insights as read")


@router.get("/{insight_id}", response_model=InsightEnvelope)
async def get_insight(insight_id: int, insights: Insights):
    return _envelope(await insights.get(insight_id))


@router.put("/{insight_id}", response_model=InsightEnvelope)
async def update_insight(
    insight_id: int,
    data: InsightUpdate,
    db: DbSession,
    user: CurrentUser,
    insights: Insights,
    audit: Audit,
    client: Client,
):
    before = snapshot(InsightResponse, await insights.get(insight_id))
    insight = await insights.update(insight_id, data)
    await audit.record(
        db,
        _entry(user.id, AuditAction.UPDATE, insight.id, old=before, new=snapshot(InsightResponse, insight)),
        client,
    )
    return _envelope(insight, "Insight updated successfully")


@router.post("/{insight_id}/read", response_model=InsightEnvelope)
async def mark_insight_read(
    insight_id: int,
    db: DbSession,
    user: CurrentUser,
    insights: Insights,
    audit: Audit,
    client: Client,
):
    insight = await insights.mark_read(insight_id)
    await audit.record(db, _entry(user.id, AuditAction.UPDATE, insight.id, new={"isRead": True}), client)
    return _envelope(insight, "Insight marked as read")


@router.delete("/{insight_id}", response_model=MessageResponse)
async def delete_insight(
    insight_id: int,
    db: DbSession,
    user: CurrentUser,
    insights: Insights,
    audit: Audit,
    client: Client,
):
    before = snapshot(InsightResponse, await insights.get(insight_id))
    await insights.delete(insight_id)
    await audit.record(db, _entry(user.id, AuditAction.DELETE, insight_id, old=before), client)
    return MessageResponse(message="Insight deleted successfully")
