"""Auth and user schemas."""
import re
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, EmailStr, Field, JsonValue, field_validator

from moneytrail.schemas.common import CamelModel

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


def _check_currency(value: str) -> str:
    if not _CURRENCY_RE.match(value):
        raise ValueError("Base currency must be a valid 3-letter currency code")
    return value


CurrencyCode = Annotated[str, AfterValidator(_check_currency)]


class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    name: str = Field(..., max_length=255)
    business_name: str | None = Field(None, max_length=255)
    base_currency: CurrencyCode = "USD"
    timezone: str = Field("UTC", max_length=64)

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        if not (re.search(r"[a-z]", value) and re.search(r"[A-Z]", value) and re.search(r"\d", value)):
            raise ValueError("Password must contain uppercase, lowercase, and numbers")
        return value

    @field_validator("name")
    @classmethod
    def name_length(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Name must be at least 2 characters long")
        return value


class UserLogin(CamelModel):
    email: str  # str so a malformed address still reaches the audited failure path
    password: str


class UserUpdate(CamelModel):
    name: str | None = Field(None, min_length=2, max_length=255)
    business_name: str | None = Field(None, max_length=255)
    base_currency: CurrencyCode | None = None
    timezone: str | None = Field(None, max_length=64)
    preferences: dict[str, JsonValue] | None = None
    reason: str | None = Field(None, max_length=500)


class UserDelete(CamelModel):
    reason: str | None = Field(None, max_length=500)


class UserResponse(CamelModel):
    id: int
    email: str
    name: str
    business_name: str | None
    base_currency: str
    timezone: str
    preferences: dict[str, JsonValue] | None = None
    email_verified: bool
    created_at: datetime | None = None


class Token(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
    message: str | None = None
