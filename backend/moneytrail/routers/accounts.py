"""Account API routes."""
from typing import Annotated

from fastapi import APIRouter, Depends, status

from moneytrail.auth.deps import Audit, Client, CurrentUser, DbSession, get_ledger_repository
from moneytrail.models.audit import AuditAction, AuditEntityType
from moneytrail.repositories.ledger import LedgerRepository
from moneytrail.schemas.audit import AuditEntry
from moneytrail.schemas.finance import AccountCreate, AccountList, AccountResponse
from moneytrail.services.audit_trail import snapshot

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get("", response_model=AccountList)
async def list_accounts(ledger: Annotated[LedgerRepository, Depends(get_ledger_repository)]):
    accounts = await ledger.list_accounts()
    return AccountList(accounts=[AccountResponse.model_validate(a) for a in accounts])


@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    data: AccountCreate,
    db: DbSession,
    user: CurrentUser,
    audit: Audit,
    client: Client,
    ledger: Annotated[LedgerRepository, Depends(get_ledger_repository)],
):
    account = await ledger.create_account(data)
    await audit.record(
        db,
        AuditEntry(
            user_id=str(user.id),
            entity_type=AuditEntityType.ACCOUNT.value,
            entity_id=str(account.id),
            action=AuditAction.CREATE,
            new_value=snapshot(AccountResponse, account),
        ),
        client,
    )
    return account
