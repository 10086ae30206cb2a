"""Pydantic schemas."""
from moneytrail.schemas.audit import AuditEntry, AuditRecordResponse
from moneytrail.schemas.auth import Token, UserCreate, UserDelete, UserLogin, UserResponse, UserUpdate
from moneytrail.schemas.dashboard import DashboardSnapshot
from moneytrail.schemas.finance import (
    AccountCreate,
    AccountResponse,
    AssetCreate,
    AssetResponse,
    TransactionCreate,
    TransactionResponse,
)
from moneytrail.schemas.insight import (
    InsightCreate,
    InsightListOptions,
    InsightListResponse,
    InsightResponse,
    InsightStats,
    InsightUpdate,
)

__all__ = [
    "AuditEntry",
    "AuditRecordResponse",
    "Token",
    "UserCreate",
    "UserDelete",
    "UserLogin",
    "UserResponse",
    "UserUpdate",
    "DashboardSnapshot",
    "AccountCreate",
    "AccountResponse",
    "AssetCreate",
    "AssetResponse",
    "TransactionCreate",
    "TransactionResponse",
    "InsightCreate",
    "InsightListOptions",
    "InsightListResponse",
    "InsightResponse",
    "InsightStats",
    "InsightUpdate",
]
