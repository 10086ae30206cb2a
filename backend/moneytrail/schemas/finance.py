"""Account, transaction and asset schemas."""
from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import Field, field_validator

from moneytrail.models.finance import AccountType
from moneytrail.schemas.common import CamelModel

Money = Decimal


class AccountCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: AccountType
    balance: Money = Field(default=Decimal("0.00"), max_digits=15, decimal_places=2)


class AccountResponse(CamelModel):
    id: int
    name: str
    type: str
    balance: Money
    created_at: datetime | None = None


class TransactionCreate(CamelModel):
    account_id: int
    type: Literal["income", "expense"]
    amount: Money = Field(..., gt=0, max_digits=15, decimal_places=2)
    description: str | None = Field(None, max_length=1000)
    category: str = Field(default="Uncategorized", min_length=1, max_length=100)
    transaction_date: date = Field(default_factory=date.today)


class TransactionUpdate(CamelModel):
    """Partial patch. Only fields present in the request body are applied."""

    account_id: int | None = None
    type: Literal["income", "expense"] | None = None
    amount: Money | None = Field(None, gt=0, max_digits=15, decimal_places=2)
    description: str | None = Field(None, max_length=1000)
    category: str | None = Field(None, min_length=1, max_length=100)
    transaction_date: date | None = None


class TransactionResponse(CamelModel):
    id: int
    account_id: int
    account_name: str | None = None
    type: str
    amount: Money
    description: str | None
    category: str
    transaction_date: date


class AssetCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: str | None = Field(None, max_length=50)
    initial_value: Money = Field(..., gt=0, max_digits=15, decimal_places=2)
    current_value: Money | None = Field(None, ge=0, max_digits=15, decimal_places=2)
    acquisition_date: date

    @field_validator("acquisition_date")
    @classmethod
    def not_in_future(cls, value: date) -> date:
        if value > date.today():
            raise ValueError("Acquisition date cannot be in the future")
        return value


class AssetResponse(CamelModel):
    id: int
    name: str
    type: str | None
    initial_value: Money
    current_value: Money | None
    acquisition_date: date


class AccountList(CamelModel):
    accounts: list[AccountResponse]


class TransactionList(CamelModel):
    transactions: list[TransactionResponse]
    total: int
    has_more: bool


class AssetList(CamelModel):
    assets: list[AssetResponse]
