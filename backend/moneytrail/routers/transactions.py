"""Transaction API routes."""
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from moneytrail.auth.deps import Audit, Client, CurrentUser, DbSession, get_ledger_repository
from moneytrail.models.audit import AuditAction, AuditEntityType
from moneytrail.models.finance import TransactionType
from moneytrail.repositories.ledger import LedgerRepository, to_money
from moneytrail.schemas.audit import AuditEntry
from moneytrail.schemas.common import MessageResponse
from moneytrail.schemas.finance import TransactionCreate, TransactionList, TransactionResponse, TransactionUpdate
from moneytrail.services.audit_trail import snapshot

router = APIRouter(prefix="/transactions", tags=["transactions"])

Ledger = Annotated[LedgerRepository, Depends(get_ledger_repository)]


def _entry(user_id: int, action: AuditAction, transaction_id: int, old=None, new=None) -> AuditEntry:
    return AuditEntry(
        user_id=str(user_id),
        entity_type=AuditEntityType.TRANSACTION.value,
        entity_id=str(transaction_id),
        action=action,
        old_value=old,
        new_value=new,
    )


@router.get("", response_model=TransactionList)
async def list_transactions(
    ledger: Ledger,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    type: TransactionType | None = None,
    category: str | None = None,
):
    rows, total = await ledger.list_transactions(
        limit=limit, offset=offset, start=start_date, end=end_date, tx_type=type, category=category
    )
    return TransactionList(
        transactions=[TransactionResponse(**row) for row in rows],
        total=total,
        has_more=offset + len(rows) < total,
    )


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    data: TransactionCreate,
    db: DbSession,
    user: CurrentUser,
    audit: Audit,
    client: Client,
    ledger: Ledger,
):
    transaction, account = await ledger.create_transaction(data)
    response = TransactionResponse.model_validate(transaction).model_copy(update={"account_name": account.name})
    await audit.record(
        db,
        _entry(
            user.id,
            AuditAction.CREATE,
            transaction.id,
            new={**response.model_dump(mode="json", by_alias=True), "accountBalance": str(to_money(account.balance))},
        ),
        client,
    )
    return response


@router.put("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: int,
    data: TransactionUpdate,
    db: DbSession,
    user: CurrentUser,
    audit: Audit,
    client: Client,
    ledger: Ledger,
):
    before = snapshot(TransactionResponse, await ledger.get_transaction(transaction_id))
    transaction, account = await ledger.update_transaction(transaction_id, data)
    response = TransactionResponse.model_validate(transaction).model_copy(update={"account_name": account.name})
    await audit.record(
        db,
        _entry(
            user.id,
            AuditAction.UPDATE,
            transaction.id,
            old=before,
            new={**response.model_dump(mode="json", by_alias=True), "accountBalance": str(to_money(account.balance))},
        ),
        client,
    )
    return response


@router.delete("/{transaction_id}", response_model=MessageResponse)
async def delete_transaction(
    transaction_id: int,
    db: DbSession,
    user: CurrentUser,
    audit: Audit,
    client: Client,
    ledger: Ledger,
):
    transaction = await ledger.delete_transaction(transaction_id)
    old = snapshot(TransactionResponse, transaction)
    await audit.record(db, _entry(user.id, AuditAction.DELETE, transaction_id, old=old), client)
    return MessageResponse(message="Transaction deleted successfully")
