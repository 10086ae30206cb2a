"""Auth and component dependencies for FastAPI."""
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from moneytrail.auth.jwt import decode_token
from moneytrail.config import Settings
from moneytrail.database import get_db
from moneytrail.errors import AuthenticationError
from moneytrail.models.audit import USER_AGENT_MAX_LENGTH
from moneytrail.models.user import User
from moneytrail.repositories.insights import InsightRepository
from moneytrail.repositories.ledger import LedgerRepository
from moneytrail.services.audit_trail import AuditTrail, ClientInfo
from moneytrail.services.dashboard import DashboardAggregator
from moneytrail.services.user_directory import UserDirectory

security = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_audit_trail(request: Request) -> AuditTrail:
    return request.app.state.audit_trail


def get_user_directory(request: Request) -> UserDirectory:
    return request.app.state.user_directory


def get_dashboard_aggregator(request: Request) -> DashboardAggregator:
    return request.app.state.dashboard


def get_client_info(request: Request) -> ClientInfo:
    user_agent = request.headers.get("user-agent")
    return ClientInfo(
        ip_address=request.client.host if request.client else None,
        # Clipped to the audit column width.
        user_agent=user_agent[:USER_AGENT_MAX_LENGTH] if user_agent else None,
    )


async def validate_session(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    users: Annotated[UserDirectory, Depends(get_user_directory)],
) -> User | None:
    """Resolve the bearer token to an active user, or None."""
    if not credentials:
        return None
    payload = decode_token(credentials.credentials, settings)
    if not payload:
        return None
    subject = payload.get("sub")
    if not subject or not str(subject).isdigit():
        return None
    return await users.get_by_id(db, int(subject))


async def get_current_user(
    user: Annotated[User | None, Depends(validate_session)],
) -> User:
    # Missing, invalid, expired and deleted-user sessions look the same to the caller.
    if user is None:
        raise AuthenticationError()
    return user


def get_insight_repository(
    db: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
) -> InsightRepository:
    return InsightRepository(db, user.id)


def get_ledger_repository(
    db: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
) -> LedgerRepository:
    return LedgerRepository(db, user.id)


CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
Audit = Annotated[AuditTrail, Depends(get_audit_trail)]
Client = Annotated[ClientInfo, Depends(get_client_info)]
