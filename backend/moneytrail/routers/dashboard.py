"""Dashboard API route."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from moneytrail.auth.deps import CurrentUser, get_app_settings, get_dashboard_aggregator
from moneytrail.config import Settings
from moneytrail.errors import ValidationError
from moneytrail.schemas.dashboard import DashboardSnapshot
from moneytrail.services.dashboard import DashboardAggregator

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardSnapshot)
async def get_dashboard(
    user: CurrentUser,
    aggregator: Annotated[DashboardAggregator, Depends(get_dashboard_aggregator)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    range_days: int | None = Query(None, alias="range"),
):
    days = settings.dashboard_default_range_days if range_days is None else range_days
    if not 1 <= days <= settings.dashboard_max_range_days:
        raise ValidationError(f"range must be between 1 and {settings.dashboard_max_range_days} days")
    return await aggregator.build_snapshot(user.id, days)
