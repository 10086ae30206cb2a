"""User-scoped data access."""
from moneytrail.repositories.insights import InsightPage, InsightRepository
from moneytrail.repositories.ledger import LedgerRepository
from moneytrail.repositories.scoped import UserScopedRepository

__all__ = ["InsightPage", "InsightRepository", "LedgerRepository", "UserScopedRepository"]
