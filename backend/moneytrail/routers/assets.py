"""Asset API routes."""
from typing import Annotated

from fastapi import APIRouter, Depends, status

from moneytrail.auth.deps import Audit, Client, CurrentUser, DbSession, get_ledger_repository
from moneytrail.models.audit import AuditAction, AuditEntityType
from moneytrail.repositories.ledger import LedgerRepository
from moneytrail.schemas.audit import AuditEntry
from moneytrail.schemas.finance import AssetCreate, AssetList, AssetResponse
from moneytrail.services.audit_trail import snapshot

router = APIRouter(prefix="/assets", tags=["assets"])


@router.get("", response_model=AssetList)
async def list_assets(ledger: Annotated[LedgerRepository, Depends(get_ledger_repository)]):
    assets = await ledger.list_assets()
    return AssetList(assets=[AssetResponse.model_validate(a) for a in assets])


@router.post("", response_model=AssetResponse, status_code=status.HTTP_201_CREATED)
async def create_asset(
    data: AssetCreate,
    db: DbSession,
    user: CurrentUser,
    audit: Audit,
    client: Client,
    ledger: Annotated[LedgerRepository, Depends(get_ledger_repository)],
):
    asset = await ledger.create_asset(data)
    await audit.record(
        db,
        AuditEntry(
            user_id=str(user.id),
            entity_type=AuditEntityType.ASSET.value,
            entity_id=str(asset.id),
            action=AuditAction.CREATE,
            new_value=snapshot(AssetResponse, asset),
        ),
        client,
    )
    return asset
