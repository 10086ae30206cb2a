"""Dashboard snapshot schemas."""
from datetime import date, datetime
from decimal import Decimal

from moneytrail.models.insight import InsightImpact, InsightType
from moneytrail.schemas.common import CamelModel


class DashboardWindow(CamelModel):
    start: date
    end: date
    days: int


class CategoryTotal(CamelModel):
    category: str
    type: str
    total: Decimal


class RecentTransaction(CamelModel):
    id: int
    account_name: str | None
    type: str
    amount: Decimal
    description: str | None
    category: str
    transaction_date: date


class RecentAsset(CamelModel):
    id: int
    name: str
    type: str | None
    initial_value: Decimal
    current_value: Decimal | None
    acquisition_date: date


class AssetSummary(CamelModel):
    count: int
    total_value: Decimal
    recent: list[RecentAsset]


class UnreadInsight(CamelModel):
    id: int
    type: InsightType
    title: str
    description: str
    impact: InsightImpact
    confidence: int
    created_at: datetime | None


class MonthlyTrend(CamelModel):
    month: str
    income: Decimal
    expenses: Decimal


class AccountSummary(CamelModel):
    id: int
    name: str
    type: str
    balance: Decimal


class DashboardSnapshot(CamelModel):
    """Point-in-time view of one user's finances. Not persisted."""

    window: DashboardWindow
    total_income: Decimal
    total_expenses: Decimal
    cash_flow: Decimal
    net_worth: Decimal
    category_breakdown: list[CategoryTotal]
    recent_transactions: list[RecentTransaction]
    asset_summary: AssetSummary
    unread_insights: list[UnreadInsight]
    monthly_trend: list[MonthlyTrend]
    accounts_summary: list[AccountSummary]
