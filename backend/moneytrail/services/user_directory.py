"""User identity: registration, login, profile changes and soft delete."""
from datetime import datetime, timezone

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from moneytrail.auth.jwt import get_password_hash, verify_password
from moneytrail.errors import AuthenticationError, ConflictError, ValidationError
from moneytrail.models.audit import ANONYMOUS_USER_ID, UNKNOWN_ENTITY_ID, AuditAction, AuditEntityType
from moneytrail.models.user import User
from moneytrail.schemas.audit import AuditEntry
from moneytrail.schemas.auth import UserCreate, UserLogin, UserResponse, UserUpdate
from moneytrail.services.audit_trail import AuditTrail, ClientInfo, snapshot

logger = structlog.get_logger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
EMAIL_TAKEN = "User with this email already exists"
REQUIRED_PROFILE_FIELDS = {"name", "base_currency", "timezone"}


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserDirectory:
    """Owns the users table. Every mutation goes through the audit trail."""

    def __init__(self, audit_trail: AuditTrail, bcrypt_rounds: int = 12):
        self.audit = audit_trail
        self.bcrypt_rounds = bcrypt_rounds

    async def get_by_email(self, db: AsyncSession, email: str) -> User | None:
        result = await db.execute(
            select(User).where(User.email == normalize_email(email), User.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, db: AsyncSession, user_id: int) -> User | None:
        result = await db.execute(select(User).where(User.id == user_id, User.deleted_at.is_(None)))
        return result.scalar_one_or_none()

    async def _email_taken(self, db: AsyncSession, email: str) -> bool:
        # Soft-deleted rows keep their address reserved.
        result = await db.execute(select(func.count()).select_from(User).where(User.email == email))
        return result.scalar_one() > 0

    async def _record_failure(
        self,
        db: AsyncSession,
        action: AuditAction,
        email: str,
        reason: str,
        message: str,
        client: ClientInfo | None,
        user_id: str = ANONYMOUS_USER_ID,
        entity_id: str = UNKNOWN_ENTITY_ID,
    ) -> None:
        """Audit a rejected attempt and commit it before the request fails."""
        await self.audit.record(
            db,
            AuditEntry(
                user_id=user_id,
                entity_type=AuditEntityType.USER.value,
                entity_id=entity_id,
                action=action,
                new_value={"email": email, "attempt": "failed", "reason": reason},
                reason=message,
            ),
            client,
        )
        await db.commit()

    async def create(self, db: AsyncSession, data: UserCreate, client: ClientInfo | None = None) -> User:
        email = normalize_email(data.email)
        if await self._email_taken(db, email):
            await self._record_failure(
                db, AuditAction.CREATE, email, "user_exists",
                "Failed registration attempt - user already exists", client,
            )
            raise ConflictError(EMAIL_TAKEN)

        user = User(
            email=email,
            hashed_password=get_password_hash(data.password, self.bcrypt_rounds),
            name=data.name,
            business_name=data.business_name.strip() if data.business_name else None,
            base_currency=data.base_currency,
            timezone=data.timezone,
            preferences={},
            email_verified=False,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same address.
            await db.rollback()
            await self._record_failure(
                db, AuditAction.CREATE, email, "user_exists",
                "Failed registration attempt - user already exists", client,
            )
            raise ConflictError(EMAIL_TAKEN)
        await db.refresh(user)

        await self.audit.record(
            db,
            AuditEntry(
                user_id=str(user.id),
                entity_type=AuditEntityType.USER.value,
                entity_id=str(user.id),
                action=AuditAction.CREATE,
                new_value={"email": user.email, "name": user.name, "businessName": user.business_name},
                reason="User registration successful",
            ),
            client,
        )
        return user

    async def record_login(
        self, db: AsyncSession, user: User, client: ClientInfo | None = None, automatic: bool = False
    ) -> None:
        new_value = {"email": user.email, "loginTime": _utcnow().isoformat()}
        if automatic:
            new_value["autoLoginAfterRegistration"] = True
        await self.audit.record(
            db,
            AuditEntry(
                user_id=str(user.id),
                entity_type=AuditEntityType.USER.value,
                entity_id=str(user.id),
                action=AuditAction.LOGIN,
                new_value=new_value,
                reason="Automatic login after registration" if automatic else "Successful login",
            ),
            client,
        )

    async def authenticate(self, db: AsyncSession, data: UserLogin, client: ClientInfo | None = None) -> User:
        """Check credentials and audit the outcome either way."""
        email = normalize_email(data.email)
        user = await self.get_by_email(db, email)
        if user is None:
            logger.warning("login_failed", reason="user_not_found")
            await self._record_failure(
                db, AuditAction.LOGIN, email, "user_not_found",
                "Failed login attempt - user not found", client,
            )
            raise AuthenticationError(INVALID_CREDENTIALS)
        if not verify_password(data.password, user.hashed_password):
            logger.warning("login_failed", reason="invalid_password", user_id=user.id)
            await self._record_failure(
                db, AuditAction.LOGIN, email, "invalid_password",
                "Failed login attempt - invalid password", client,
                user_id=str(user.id), entity_id=str(user.id),
            )
            raise AuthenticationError(INVALID_CREDENTIALS)

        await self.record_login(db, user, client)
        return user

    async def update(
        self, db: AsyncSession, user: User, patch: UserUpdate, client: ClientInfo | None = None
    ) -> User:
        changes = patch.model_dump(exclude_unset=True, exclude={"reason"})
        for field in REQUIRED_PROFILE_FIELDS & changes.keys():
            if changes[field] is None:
                raise ValidationError(f"{field} cannot be null")
        if not changes:
            return user

        before = snapshot(UserResponse, user)
        if "preferences" in changes and changes["preferences"] is not None:
            changes["preferences"] = {**(user.preferences or {}), **changes["preferences"]}
        for field, value in changes.items():
            setattr(user, field, value)
        user.updated_at = _utcnow()
        await db.flush()
        await db.refresh(user)
        after = snapshot(UserResponse, user)

        changed = {key: after[key] for key in after if before.get(key) != after[key] and key != "updatedAt"}
        await self.audit.record(
            db,
            AuditEntry(
                user_id=str(user.id),
                entity_type=AuditEntityType.USER.value,
                entity_id=str(user.id),
                action=AuditAction.UPDATE,
                old_value={key: before.get(key) for key in changed},
                new_value=changed,
                reason=patch.reason or "Profile updated",
            ),
            client,
        )
        return user

    async def soft_delete(
        self, db: AsyncSession, user: User, reason: str | None = None, client: ClientInfo | None = None
    ) -> None:
        deleted_at = _utcnow()
        user.deleted_at = deleted_at
        user.updated_at = deleted_at
        await db.flush()
        await self.audit.record(
            db,
            AuditEntry(
                user_id=str(user.id),
                entity_type=AuditEntityType.USER.value,
                entity_id=str(user.id),
                action=AuditAction.DELETE,
                old_value={"deletedAt": None},
                new_value={"deletedAt": deleted_at.isoformat()},
                reason=reason or "Account deleted by user",
            ),
            client,
        )
