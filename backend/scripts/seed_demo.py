"""Seed a demo user with an account, a month of transactions and one insight."""
import asyncio
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from moneytrail.config import Settings, get_settings
from moneytrail.database import create_engine, create_session_maker, init_db
from moneytrail.models.finance import AccountType
from moneytrail.repositories.insights import InsightRepository
from moneytrail.repositories.ledger import LedgerRepository
from moneytrail.schemas.auth import UserCreate
from moneytrail.schemas.finance import AccountCreate, TransactionCreate
from moneytrail.schemas.insight import InsightCreate
from moneytrail.services.audit_trail import AuditTrail
from moneytrail.services.user_directory import UserDirectory

DEMO_EMAIL = "demo@moneytrail.local"
DEMO_PASSWORD = "Demo12345"

TRANSACTIONS = [
    ("income", "4200.00", "Consulting", 28),
    ("expense", "1350.00", "Rent", 27),
    ("expense", "86.40", "Utilities", 20),
    ("expense", "212.75", "Software", 12),
    ("income", "900.00", "Consulting", 5),
    ("expense", "64.10", "Dining", 2),
]


async def seed(session_maker: async_sessionmaker[AsyncSession], settings: Settings, today: date | None = None) -> int | None:
    """Create the demo user and data. Returns the user id, or None if it already exists."""
    today = today or date.today()
    users = UserDirectory(AuditTrail(), bcrypt_rounds=settings.bcrypt_rounds)
    async with session_maker() as db:
        if await users.get_by_email(db, DEMO_EMAIL):
            return None
        user = await users.create(db, UserCreate(email=DEMO_EMAIL, password=DEMO_PASSWORD, name="Demo User"))

        ledger = LedgerRepository(db, user.id)
        account = await ledger.create_account(
            AccountCreate(name="Business Checking", type=AccountType.BANK_ACCOUNT, balance=Decimal("2500.00"))
        )
        for tx_type, amount, category, days_ago in TRANSACTIONS:
            await ledger.create_transaction(
                TransactionCreate(
                    account_id=account.id,
                    type=tx_type,
                    amount=Decimal(amount),
                    category=category,
                    transaction_date=today - timedelta(days=days_ago),
                )
            )

        await InsightRepository(db, user.id).create(
            InsightCreate(
                type="recommendation",
                title="Software spend is recurring",
                description="Three software subscriptions renew this month; review unused seats.",
                confidence=72,
                impact="medium",
                actions=["Review subscriptions"],
            )
        )
        await db.commit()
        return user.id


async def main():
    settings = get_settings()
    engine = create_engine(settings)
    await init_db(engine)
    try:
        user_id = await seed(create_session_maker(engine), settings)
    finally:
        await engine.dispose()
    if user_id is None:
        print(f"Demo user already exists ({DEMO_EMAIL})")
    else:
        print(f"Seeded demo user ({DEMO_EMAIL} / {DEMO_PASSWORD})")


if __name__ == "__main__":
    asyncio.run(main())
