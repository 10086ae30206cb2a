"""Accounts, transactions and assets for one user."""
from datetime import date
from decimal import Decimal

from sqlalchemy import and_, case, extract, func, select, update

from moneytrail.errors import NotFoundError, ValidationError
from moneytrail.models.finance import Account, Asset, Transaction, TransactionType
from moneytrail.repositories.scoped import UserScopedRepository
from moneytrail.schemas.finance import AccountCreate, AssetCreate, TransactionCreate, TransactionUpdate

CENT = Decimal("0.01")
REQUIRED_TRANSACTION_FIELDS = {"account_id", "type", "amount", "category", "transaction_date"}


def to_money(value) -> Decimal:
    """Normalize a driver value (Decimal, int, float or None) to a 2-place Decimal."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT)


class LedgerRepository(UserScopedRepository):
    """Point-in-time and windowed reads over the user's ledger, plus thin writes."""

    def _in_window(self, start: date, end: date):
        return and_(
            self._owned(Transaction),
            Transaction.transaction_date >= start,
            Transaction.transaction_date <= end,
        )

    # Aggregates

    async def sum_by_type(self, tx_type: TransactionType, start: date, end: date) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(Transaction.amount), 0))
            .where(self._in_window(start, end), Transaction.type == tx_type.value)
        )
        return to_money(result.scalar_one())

    async def net_worth(self) -> Decimal:
        """Current balances plus current asset values. Never windowed."""
        balances = select(func.coalesce(func.sum(Account.balance), 0)).where(self._owned(Account))
        assets = select(func.coalesce(func.sum(Asset.current_value), 0)).where(self._owned(Asset))
        result = await self.db.execute(select(balances.scalar_subquery(), assets.scalar_subquery()))
        balance_total, asset_total = result.one()
        return to_money(balance_total) + to_money(asset_total)

    async def category_breakdown(self, start: date, end: date) -> list[dict]:
        # Grouped by (category, type): one label can appear as both income and expense.
        total = func.sum(Transaction.amount)
        result = await self.db.execute(
            select(Transaction.category, Transaction.type, total.label("total"))
            .where(self._in_window(start, end))
            .group_by(Transaction.category, Transaction.type)
            .order_by(Transaction.type, total.desc(), Transaction.category)
        )
        return [
            {"category": row.category, "type": row.type, "total": to_money(row.total)}
            for row in result.all()
        ]

    async def monthly_totals(self, start: date, end: date) -> dict[str, tuple[Decimal, Decimal]]:
        """Income and expenses per ``YYYY-MM`` for months with activity in [start, end]."""
        year = extract("year", Transaction.transaction_date)
        month = extract("month", Transaction.transaction_date)
        income = func.sum(case((Transaction.type == TransactionType.INCOME.value, Transaction.amount), else_=0))
        expenses = func.sum(case((Transaction.type == TransactionType.EXPENSE.value, Transaction.amount), else_=0))
        result = await self.db.execute(
            select(year.label("year"), month.label("month"), income.label("income"), expenses.label("expenses"))
            .where(self._in_window(start, end))
            .group_by(year, month)
        )
        return {
            f"{int(row.year):04d}-{int(row.month):02d}": (to_money(row.income), to_money(row.expenses))
            for row in result.all()
        }

    async def asset_totals(self) -> tuple[int, Decimal]:
        result = await self.db.execute(
            select(func.count(Asset.id), func.coalesce(func.sum(Asset.current_value), 0))
            .where(self._owned(Asset))
        )
        count, total = result.one()
        return int(count or 0), to_money(total)

    async def recent_transactions(self, limit: int) -> list[dict]:
        result = await self.db.execute(
            select(Transaction, Account.name.label("account_name"))
            .outerjoin(Account, Transaction.account_id == Account.id)
            .where(self._owned(Transaction))
            .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
            .limit(limit)
        )
        return [_transaction_row(tx, account_name) for tx, account_name in result.all()]

    async def recent_assets(self, limit: int) -> list[Asset]:
        result = await self.db.execute(
            self._select(Asset).order_by(Asset.created_at.desc(), Asset.id.desc()).limit(limit)
        )
        return list(result.scalars().all())

    # Accounts

    async def list_accounts(self) -> list[Account]:
        result = await self.db.execute(self._select(Account).order_by(Account.created_at.desc(), Account.id.desc()))
        return list(result.scalars().all())

    async def get_account(self, account_id: int) -> Account:
        result = await self.db.execute(self._select(Account).where(Account.id == account_id))
        account = result.scalar_one_or_none()
        if not account:
            raise NotFoundError("Account not found")
        return account

    async def create_account(self, data: AccountCreate) -> Account:
        account = Account(
            user_id=self.user_id,
            name=data.name.strip(),
            type=data.type.value,
            balance=data.balance,
        )
        self.db.add(account)
        await self.db.flush()
        await self.db.refresh(account)
        return account

    # Transactions

    async def list_transactions(
        self,
        limit: int = 50,
        offset: int = 0,
        start: date | None = None,
        end: date | None = None,
        tx_type: TransactionType | None = None,
        category: str | None = None,
    ) -> tuple[list[dict], int]:
        conditions = [self._owned(Transaction)]
        if start:
            conditions.append(Transaction.transaction_date >= start)
        if end:
            conditions.append(Transaction.transaction_date <= end)
        if tx_type:
            conditions.append(Transaction.type == tx_type.value)
        if category:
            conditions.append(Transaction.category == category)

        total = (
            await self.db.execute(select(func.count()).select_from(Transaction).where(*conditions))
        ).scalar_one()
        result = await self.db.execute(
            select(Transaction, Account.name.label("account_name"))
            .outerjoin(Account, Transaction.account_id == Account.id)
            .where(*conditions)
            .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return [_transaction_row(tx, account_name) for tx, account_name in result.all()], int(total)

    async def create_transaction(self, data: TransactionCreate) -> tuple[Transaction, Account]:
        account = await self.get_account(data.account_id)
        transaction = Transaction(
            user_id=self.user_id,
            account_id=account.id,
            type=data.type,
            amount=data.amount,
            description=data.description.strip() if data.description else None,
            category=data.category.strip(),
            transaction_date=data.transaction_date,
        )
        self.db.add(transaction)
        await self._adjust_balance(account.id, _signed(data.type, data.amount))
        await self.db.flush()
        await self.db.refresh(transaction)
        await self.db.refresh(account)
        return transaction, account

    async def get_transaction(self, transaction_id: int) -> Transaction:
        result = await self.db.execute(self._select(Transaction).where(Transaction.id == transaction_id))
        transaction = result.scalar_one_or_none()
        if not transaction:
            raise NotFoundError("Transaction not found")
        return transaction

    async def update_transaction(self, transaction_id: int, patch: TransactionUpdate) -> tuple[Transaction, Account]:
        """Apply a partial patch and move the balance effect to match.

        The old signed amount is taken off the old account and the new one is
        booked on the (possibly different) new account.
        """
        transaction = await self.get_transaction(transaction_id)
        changes = patch.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if value is None and field in REQUIRED_TRANSACTION_FIELDS:
                raise ValidationError(f"{field} cannot be null")
        account = await self.get_account(changes.get("account_id", transaction.account_id))

        await self._adjust_balance(transaction.account_id, -_signed(transaction.type, transaction.amount))
        for field, value in changes.items():
            if field in ("description", "category") and value is not None:
                value = value.strip()
            setattr(transaction, field, value)
        await self._adjust_balance(account.id, _signed(transaction.type, transaction.amount))
        await self.db.flush()
        await self.db.refresh(transaction)
        await self.db.refresh(account)
        return transaction, account

    async def delete_transaction(self, transaction_id: int) -> Transaction:
        transaction = await self.get_transaction(transaction_id)
        await self._adjust_balance(transaction.account_id, -_signed(transaction.type, transaction.amount))
        await self.db.delete(transaction)
        await self.db.flush()
        return transaction

    async def _adjust_balance(self, account_id: int, delta: Decimal) -> None:
        # Single UPDATE so concurrent bookings against one account do not lose writes.
        await self.db.execute(
            update(Account)
            .where(Account.id == account_id, self._owned(Account))
            .values(balance=Account.balance + delta)
            .execution_options(synchronize_session=False)
        )

    # Assets

    async def list_assets(self) -> list[Asset]:
        result = await self.db.execute(self._select(Asset).order_by(Asset.created_at.desc(), Asset.id.desc()))
        return list(result.scalars().all())

    async def create_asset(self, data: AssetCreate) -> Asset:
        asset = Asset(
            user_id=self.user_id,
            name=data.name.strip(),
            type=data.type,
            initial_value=data.initial_value,
            current_value=data.current_value if data.current_value is not None else data.initial_value,
            acquisition_date=data.acquisition_date,
        )
        self.db.add(asset)
        await self.db.flush()
        await self.db.refresh(asset)
        return asset


def _signed(tx_type: str, amount: Decimal) -> Decimal:
    return amount if tx_type == TransactionType.INCOME.value else -amount


def _transaction_row(tx: Transaction, account_name: str | None) -> dict:
    return {
        "id": tx.id,
        "account_id": tx.account_id,
        "account_name": account_name,
        "type": tx.type,
        "amount": to_money(tx.amount),
        "description": tx.description,
        "category": tx.category,
        "transaction_date": tx.transaction_date,
    }
