"""Current user profile routes."""
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from moneytrail.auth.deps import Audit, Client, CurrentUser, DbSession, get_user_directory
from moneytrail.models.audit import AuditAction
from moneytrail.schemas.audit import AuditQuery, AuditRecordList, AuditRecordResponse
from moneytrail.schemas.auth import UserDelete, UserResponse, UserUpdate
from moneytrail.schemas.common import MessageResponse
from moneytrail.services.user_directory import UserDirectory

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_me(user: CurrentUser):
    return user


@router.patch("/me", response_model=UserResponse)
async def update_me(
    data: UserUpdate,
    db: DbSession,
    user: CurrentUser,
    client: Client,
    users: Annotated[UserDirectory, Depends(get_user_directory)],
):
    return await users.update(db, user, data, client)


@router.delete("/me", response_model=MessageResponse)
async def delete_me(
    db: DbSession,
    user: CurrentUser,
    client: Client,
    users: Annotated[UserDirectory, Depends(get_user_directory)],
    data: UserDelete | None = None,
):
    await users.soft_delete(db, user, data.reason if data else None, client)
    return MessageResponse(message="Account deleted")


@router.get("/me/activity", response_model=AuditRecordList)
async def my_activity(
    db: DbSession,
    user: CurrentUser,
    audit: Audit,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    entity_type: str | None = Query(None, alias="entityType"),
    entity_id: str | None = Query(None, alias="entityId"),
    action: AuditAction | None = None,
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    sort_by: str = Query("timestamp", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
):
    """Audit records attributed to the caller, newest first unless sorted otherwise."""
    query = AuditQuery(
        limit=limit,
        offset=offset,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    page = await audit.query_by_user(db, str(user.id), query)
    return AuditRecordList(
        logs=[AuditRecordResponse.model_validate(log) for log in page.items],
        total=page.total,
        has_more=page.has_more,
    )


@router.get("/me/logins", response_model=list[AuditRecordResponse])
async def my_logins(
    db: DbSession,
    user: CurrentUser,
    audit: Audit,
    limit: int = Query(20, ge=1, le=100),
):
    return await audit.login_history(db, str(user.id), limit=limit)
