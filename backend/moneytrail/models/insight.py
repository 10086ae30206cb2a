"""Insight model."""
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from moneytrail.database import Base


class InsightType(str, PyEnum):
    SPENDING_TREND = "spending_trend"
    ANOMALY = "anomaly"
    CASH_FLOW = "cash_flow"
    RECOMMENDATION = "recommendation"
    BUDGET_ALERT = "budget_alert"
    GOAL_PROGRESS = "goal_progress"
    TAX_OPPORTUNITY = "tax_opportunity"


class InsightImpact(str, PyEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def _enum_values(enum_cls: type[PyEnum]) -> list[str]:
    return [member.value for member in enum_cls]


class Insight(Base):
    """Derived observation owned by one user. Deleted for real, no soft flag."""

    __tablename__ = "insights"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type: Mapped[InsightType] = mapped_column(
        Enum(InsightType, native_enum=False, length=32, values_callable=_enum_values),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    confidence: Mapped[int] = mapped_column(Integer, nullable=False)
    impact: Mapped[InsightImpact] = mapped_column(
        Enum(InsightImpact, native_enum=False, length=16, values_callable=_enum_values),
        nullable=False,
    )
    category_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    time_period: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    data: Mapped[Any] = mapped_column(JSON, nullable=True)
    actions: Mapped[list | None] = mapped_column(JSON, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
