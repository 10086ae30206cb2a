"""Auth API routes."""
from typing import Annotated

from fastapi import APIRouter, Depends, status

from moneytrail.auth.deps import Client, DbSession, get_app_settings, get_user_directory
from moneytrail.auth.jwt import create_access_token
from moneytrail.config import Settings
from moneytrail.models.user import User
from moneytrail.schemas.auth import Token, UserCreate, UserLogin, UserResponse
from moneytrail.services.user_directory import UserDirectory

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_for(user: User, settings: Settings, message: str) -> Token:
    token = create_access_token(data={"sub": str(user.id)}, settings=settings)
    return Token(access_token=token, user=UserResponse.model_validate(user), message=message)


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(
    data: UserCreate,
    db: DbSession,
    client: Client,
    users: Annotated[UserDirectory, Depends(get_user_directory)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    user = await users.create(db, data, client)
    await users.record_login(db, user, client, automatic=True)
    return _token_for(user, settings, "User registered successfully")


@router.post("/login", response_model=Token)
async def login(
    data: UserLogin,
    db: DbSession,
    client: Client,
    users: Annotated[UserDirectory, Depends(get_user_directory)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    user = await users.authenticate(db, data, client)
    return _token_for(user, settings, "Login successful")
