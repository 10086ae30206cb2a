"""SQLAlchemy models."""
from moneytrail.models.audit import AuditLog
from moneytrail.models.finance import Account, Asset, Transaction
from moneytrail.models.insight import Insight
from moneytrail.models.user import User

__all__ = [
    "Account",
    "Asset",
    "AuditLog",
    "Insight",
    "Transaction",
    "User",
]
