"""Append-only audit trail."""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable

import structlog
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from moneytrail.models.audit import AuditAction, AuditLog
from moneytrail.schemas.audit import AuditEntry, AuditQuery

logger = structlog.get_logger(__name__)

_SORT_COLUMNS = {
    "timestamp": AuditLog.timestamp,
    "entityType": AuditLog.entity_type,
    "action": AuditLog.action,
}


@dataclass
class AuditPage:
    items: list[AuditLog]
    total: int
    has_more: bool


@dataclass(frozen=True)
class ClientInfo:
    """Request origin copied onto audit records."""

    ip_address: str | None = None
    user_agent: str | None = None


def snapshot(schema: type[BaseModel], obj: Any) -> dict:
    """JSON-safe view of an ORM object through its response schema."""
    return schema.model_validate(obj).model_dump(mode="json", by_alias=True)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _start_of(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


class AuditTrail:
    """Writes and reads audit records.

    Timestamps are issued by the trail and never go backwards within the
    process, so ``(timestamp, id)`` follows the order records were written.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None):
        self._clock = clock or _utcnow
        self._last: datetime | None = None

    def _next_timestamp(self) -> datetime:
        now = self._clock()
        if self._last is not None and now < self._last:
            now = self._last
        self._last = now
        return now

    async def record(self, db: AsyncSession, entry: AuditEntry, client: ClientInfo | None = None) -> int:
        """Persist one entry and return its id. Storage errors propagate."""
        log = AuditLog(
            user_id=entry.user_id,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            action=entry.action.value,
            old_value=entry.old_value,
            new_value=entry.new_value,
            reason=entry.reason,
            ip_address=entry.ip_address or (client.ip_address if client else None),
            user_agent=entry.user_agent or (client.user_agent if client else None),
            timestamp=self._next_timestamp(),
        )
        db.add(log)
        await db.flush()
        logger.info(
            "audit_recorded",
            audit_id=log.id,
            user_id=log.user_id,
            entity_type=log.entity_type,
            entity_id=log.entity_id,
            action=log.action,
        )
        return log.id

    def _order_by(self, query: AuditQuery) -> list:
        column = _SORT_COLUMNS.get(query.sort_by)
        if column is None or query.sort_order not in ("asc", "desc"):
            return [AuditLog.timestamp.desc(), AuditLog.id.desc()]
        if query.sort_order == "asc":
            return [column.asc(), AuditLog.timestamp.asc(), AuditLog.id.asc()]
        return [column.desc(), AuditLog.timestamp.desc(), AuditLog.id.desc()]

    async def query_by_user(self, db: AsyncSession, user_id: str, query: AuditQuery | None = None) -> AuditPage:
        """Filtered, sorted page of one user's records. Newest first by default."""
        query = query or AuditQuery()
        conditions = [AuditLog.user_id == str(user_id)]
        if query.entity_type:
            conditions.append(AuditLog.entity_type == query.entity_type)
        if query.entity_id:
            conditions.append(AuditLog.entity_id == query.entity_id)
        if query.action is not None:
            conditions.append(AuditLog.action == query.action.value)
        if query.start_date is not None:
            conditions.append(AuditLog.timestamp >= _start_of(query.start_date))
        if query.end_date is not None:
            # Whole end day included.
            conditions.append(AuditLog.timestamp < _start_of(query.end_date + timedelta(days=1)))

        total = (
            await db.execute(select(func.count()).select_from(AuditLog).where(*conditions))
        ).scalar_one()
        result = await db.execute(
            select(AuditLog)
            .where(*conditions)
            .order_by(*self._order_by(query))
            .limit(query.limit)
            .offset(query.offset)
        )
        items = list(result.scalars().all())
        return AuditPage(items=items, total=int(total), has_more=query.offset + len(items) < total)

    async def _latest(self, db: AsyncSession, *conditions, limit: int) -> list[AuditLog]:
        result = await db.execute(
            select(AuditLog)
            .where(*conditions)
            .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def query_by_entity(
        self, db: AsyncSession, entity_type: str, entity_id: str, limit: int = 50
    ) -> list[AuditLog]:
        return await self._latest(
            db, AuditLog.entity_type == entity_type, AuditLog.entity_id == str(entity_id), limit=limit
        )

    async def query_by_action(
        self, db: AsyncSession, user_id: str, action: AuditAction, limit: int = 50
    ) -> list[AuditLog]:
        return await self._latest(db, AuditLog.user_id == str(user_id), AuditLog.action == action.value, limit=limit)

    async def login_history(self, db: AsyncSession, user_id: str, limit: int = 20) -> list[AuditLog]:
        return await self._latest(
            db,
            AuditLog.user_id == str(user_id),
            AuditLog.action.in_([AuditAction.LOGIN.value, AuditAction.LOGOUT.value]),
            limit=limit,
        )
