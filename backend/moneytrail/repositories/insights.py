"""Insight storage and read/archive lifecycle for one user."""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import case, delete, func, select, update

from moneytrail.errors import NotFoundError, ValidationError
from moneytrail.models.insight import Insight, InsightImpact, InsightType
from moneytrail.repositories.scoped import UserScopedRepository
from moneytrail.schemas.insight import InsightCreate, InsightListOptions, InsightUpdate

NOT_FOUND = "Insight not found"
NON_NULLABLE_FIELDS = {"type", "title", "description", "confidence", "impact", "is_read", "is_archived"}

_IMPACT_RANK = case(
    (Insight.impact == InsightImpact.LOW, 1),
    (Insight.impact == InsightImpact.MEDIUM, 2),
    (Insight.impact == InsightImpact.HIGH, 3),
    else_=0,
)

_SORT_COLUMNS = {
    "createdAt": Insight.created_at,
    "confidence": Insight.confidence,
    "impact": _IMPACT_RANK,
}


@dataclass
class InsightPage:
    items: list[Insight]
    total: int
    has_more: bool


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _period_payload(time_period) -> dict | None:
    if time_period is None:
        return None
    return time_period.model_dump(mode="json", by_alias=True)


class InsightRepository(UserScopedRepository):
    """CRUD and read-state transitions for the bound user's insights."""

    def _by_id(self, insight_id: int):
        return (Insight.id == insight_id, self._owned(Insight))

    async def create(self, data: InsightCreate) -> Insight:
        insight = Insight(
            user_id=self.user_id,
            type=data.type,
            title=data.title,
            description=data.description,
            confidence=data.confidence,
            impact=data.impact,
            category_id=data.category_id,
            time_period=_period_payload(data.time_period),
            data=data.data or {},
            actions=data.actions or [],
            is_read=False,
            is_archived=False,
        )
        self.db.add(insight)
        await self.db.flush()
        await self.db.refresh(insight)
        return insight

    async def get(self, insight_id: int) -> Insight:
        result = await self.db.execute(
            select(Insight).where(*self._by_id(insight_id)).execution_options(populate_existing=True)
        )
        insight = result.scalar_one_or_none()
        if insight is None:
            raise NotFoundError(NOT_FOUND)
        return insight

    async def find(self, options: InsightListOptions) -> InsightPage:
        conditions = [self._owned(Insight)]
        if options.type is not None:
            conditions.append(Insight.type == options.type)
        if options.impact is not None:
            conditions.append(Insight.impact == options.impact)
        if options.is_read is not None:
            conditions.append(Insight.is_read.is_(options.is_read))
        if options.is_archived is not None:
            conditions.append(Insight.is_archived.is_(options.is_archived))
        if options.start_date is not None:
            conditions.append(Insight.created_at >= datetime.combine(options.start_date, datetime.min.time()))
        if options.end_date is not None:
            # End date is inclusive of the whole day.
            day_after = datetime.combine(options.end_date + timedelta(days=1), datetime.min.time())
            conditions.append(Insight.created_at < day_after)

        sort_column = _SORT_COLUMNS.get(options.sort_by)
        if sort_column is None or options.sort_order not in ("asc", "desc"):
            order_by = [Insight.created_at.desc(), Insight.id.desc()]
        elif options.sort_order == "asc":
            order_by = [sort_column.asc(), Insight.id.asc()]
        else:
            order_by = [sort_column.desc(), Insight.id.desc()]

        total = (
            await self.db.execute(select(func.count()).select_from(Insight).where(*conditions))
        ).scalar_one()
        result = await self.db.execute(
            select(Insight).where(*conditions).order_by(*order_by).limit(options.limit).offset(options.offset)
        )
        items = list(result.scalars().all())
        return InsightPage(items=items, total=int(total), has_more=options.offset + len(items) < total)

    async def update(self, insight_id: int, patch: InsightUpdate) -> Insight:
        insight = await self.get(insight_id)
        changes = patch.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if value is None and field in NON_NULLABLE_FIELDS:
                raise ValidationError(f"{field} cannot be null")
            if field == "time_period":
                value = _period_payload(patch.time_period)
            setattr(insight, field, value)
        insight.updated_at = _utcnow()
        await self.db.flush()
        await self.db.refresh(insight)
        return insight

    async def mark_read(self, insight_id: int) -> Insight:
        result = await self.db.execute(
            update(Insight)
            .where(*self._by_id(insight_id))
            .values(is_read=True, updated_at=_utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError(NOT_FOUND)
        return await self.get(insight_id)

    async def mark_all_read(self) -> int:
        """Flip every unread insight to read and return how many changed."""
        result = await self.db.execute(
            update(Insight)
            .where(self._owned(Insight), Insight.is_read.is_(False))
            .values(is_read=True, updated_at=_utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def delete(self, insight_id: int) -> None:
        result = await self.db.execute(
            delete(Insight).where(*self._by_id(insight_id)).execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError(NOT_FOUND)

    async def unread(self, limit: int) -> list[Insight]:
        result = await self.db.execute(
            self._select(Insight)
            .where(Insight.is_read.is_(False))
            .order_by(Insight.created_at.desc(), Insight.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def stats(self) -> dict:
        owned = self._owned(Insight)
        totals = (
            await self.db.execute(
                select(
                    func.count(Insight.id),
                    func.coalesce(func.sum(case((Insight.is_read.is_(False), 1), else_=0)), 0),
                    func.avg(Insight.confidence),
                    func.coalesce(
                        func.sum(case((Insight.created_at >= _utcnow() - timedelta(days=30), 1), else_=0)),
                        0,
                    ),
                ).where(owned)
            )
        ).one()
        by_type = {t.value: 0 for t in InsightType}
        for insight_type, count in (
            await self.db.execute(select(Insight.type, func.count()).where(owned).group_by(Insight.type))
        ).all():
            by_type[insight_type.value] = count
        by_impact = {i.value: 0 for i in InsightImpact}
        for impact, count in (
            await self.db.execute(select(Insight.impact, func.count()).where(owned).group_by(Insight.impact))
        ).all():
            by_impact[impact.value] = count

        total, unread, average, recent = totals
        return {
            "total_insights": int(total or 0),
            "unread_insights": int(unread or 0),
            "insights_by_type": by_type,
            "insights_by_impact": by_impact,
            "average_confidence": round(float(average or 0), 2),
            "recent_insights": int(recent or 0),
        }
