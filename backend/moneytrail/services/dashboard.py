"""Dashboard snapshot: concurrent reads over the ledger and insights."""
import asyncio
from collections.abc import Awaitable, Callable
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import TypeVar

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from moneytrail.config import Settings
from moneytrail.errors import InternalError
from moneytrail.models.finance import TransactionType
from moneytrail.repositories.insights import InsightRepository
from moneytrail.repositories.ledger import LedgerRepository, to_money
from moneytrail.schemas.dashboard import (
    AccountSummary,
    AssetSummary,
    DashboardSnapshot,
    DashboardWindow,
    MonthlyTrend,
    RecentAsset,
    UnreadInsight,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")
ZERO = Decimal("0.00")


def add_months(day: date, months: int) -> date:
    """First day of the month ``months`` away from ``day``'s month."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_keys(start: date, end: date) -> list[str]:
    keys = []
    cursor = date(start.year, start.month, 1)
    while cursor <= end:
        keys.append(f"{cursor.year:04d}-{cursor.month:02d}")
        cursor = add_months(cursor, 1)
    return keys


class DashboardAggregator:
    """Builds a DashboardSnapshot from independent reads run in parallel.

    Each read gets its own session; a session is never shared between tasks.
    The build is all or nothing: if any read fails or the deadline passes, the
    remaining reads are cancelled and no snapshot is returned.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession], settings: Settings):
        self.session_maker = session_maker
        self.settings = settings

    async def _read(self, user_id: int, fn: Callable[[LedgerRepository, InsightRepository], Awaitable[T]]) -> T:
        async with self.session_maker() as db:
            return await fn(LedgerRepository(db, user_id), InsightRepository(db, user_id))

    def _reads(self, start: date, end: date, trend_start: date) -> dict[str, Callable]:
        s = self.settings
        return {
            "income": lambda ledger, _: ledger.sum_by_type(TransactionType.INCOME, start, end),
            "expenses": lambda ledger, _: ledger.sum_by_type(TransactionType.EXPENSE, start, end),
            "net_worth": lambda ledger, _: ledger.net_worth(),
            "categories": lambda ledger, _: ledger.category_breakdown(start, end),
            "recent": lambda ledger, _: ledger.recent_transactions(s.dashboard_recent_transactions),
            "assets": lambda ledger, _: _asset_summary(ledger, s.dashboard_recent_assets),
            "unread": lambda _, insights: insights.unread(s.dashboard_unread_insights),
            "trend": lambda ledger, _: ledger.monthly_totals(trend_start, end),
            "accounts": lambda ledger, _: ledger.list_accounts(),
        }

    async def build_snapshot(self, user_id: int, window_days: int, today: date | None = None) -> DashboardSnapshot:
        """Run every read concurrently and assemble the snapshot.

        Raises InternalError if any read fails or the deadline passes.
        """
        end = today or datetime.now(timezone.utc).date()
        start = end - timedelta(days=window_days)
        trend_start = add_months(end, -self.settings.dashboard_trend_months)

        try:
            async with asyncio.timeout(self.settings.dashboard_timeout_seconds):
                async with asyncio.TaskGroup() as tg:
                    tasks = {
                        name: tg.create_task(self._read(user_id, fn))
                        for name, fn in self._reads(start, end, trend_start).items()
                    }
        except TimeoutError:
            logger.error("dashboard_failed", user_id=user_id, reason="timeout")
            raise InternalError("Dashboard data unavailable")
        except ExceptionGroup as group:
            logger.error("dashboard_failed", user_id=user_id, reason="read_failed", exc_info=group)
            raise InternalError("Dashboard data unavailable") from group

        results = {name: task.result() for name, task in tasks.items()}
        income = results["income"]
        expenses = results["expenses"]
        monthly = results["trend"]
        trend = []
        for key in month_keys(trend_start, end):
            month_income, month_expenses = monthly.get(key, (ZERO, ZERO))
            trend.append(MonthlyTrend(month=key, income=month_income, expenses=month_expenses))

        snapshot = DashboardSnapshot(
            window=DashboardWindow(start=start, end=end, days=window_days),
            total_income=income,
            total_expenses=expenses,
            cash_flow=income - expenses,
            net_worth=results["net_worth"],
            category_breakdown=results["categories"],
            recent_transactions=results["recent"],
            asset_summary=results["assets"],
            unread_insights=[UnreadInsight.model_validate(i) for i in results["unread"]],
            monthly_trend=trend,
            accounts_summary=[
                AccountSummary(id=a.id, name=a.name, type=a.type, balance=to_money(a.balance))
                for a in results["accounts"]
            ],
        )
        logger.info("dashboard_built", user_id=user_id, window_days=window_days)
        return snapshot


async def _asset_summary(ledger: LedgerRepository, limit: int) -> AssetSummary:
    count, total = await ledger.asset_totals()
    recent = await ledger.recent_assets(limit)
    return AssetSummary(count=count, total_value=total, recent=[RecentAsset.model_validate(a) for a in recent])
