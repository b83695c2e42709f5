"""
Ledger API Endpoints.

Records single-sided ledger lines. Lines are created PENDING and stay
editable only until they are posted; posted lines change only through
the unposting workflow.
"""

import secrets
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from ledger_backend.app.db.session import get_db
from ledger_backend.app.models.enums import LEDGER_WRITER_ROLES
from ledger_backend.app.models.ledger import Ledger
from ledger_backend.app.models.ledger_enums import LedgerType, PostingStatus, TransactionType
from ledger_backend.app.schemas.ledger import (
    LedgerBatchCreate,
    LedgerBatchResponse,
    LedgerUpdate,
    LedgerResponse,
    LedgerListResponse,
)
from ledger_backend.app.core.guards import require_role
from ledger_backend.app.core.dependencies import get_current_user
from ledger_backend.app.core.dates import as_ledger_datetime, utcnow
from ledger_backend.app.core.exceptions import BusinessRuleError, ResourceNotFoundError
from ledger_backend.app.core.money import to_amount
from ledger_backend.app.services.account_store import AccountStore
from ledger_backend.app.services.ledger_store import LedgerStore, LedgerFilter
from ledger_backend.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/ledgers", tags=["Ledgers"])


def generate_reference_number() -> str:
    """REF + yyyymmdd + 6 random hex digits, shared by one batch."""
    return f"REF{utcnow():%Y%m%d}{secrets.token_hex(3).upper()}"


async def _require_pending_ledger(store: LedgerStore, ledger_id: int) -> Ledger:
    ledger = await store.get_ledger(ledger_id)
    if not ledger:
        raise ResourceNotFoundError("Ledger", ledger_id)
    if ledger.posting_status != PostingStatus.PENDING:
        raise BusinessRuleError(
            f"Ledger {ledger_id} is posted and cannot be changed; unpost it first",
            error_code="LEDGER_POSTED",
            details={"ledger_id": ledger_id}
        )
    return ledger


@router.post("", response_model=LedgerBatchResponse, status_code=status.HTTP_201_CREATED)
async def create_ledgers(
    batch: LedgerBatchCreate,
    current_user: dict = Depends(require_role(LEDGER_WRITER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Record a batch of 1..100 ledger lines.

    Every referenced detail account must exist; the general account is
    taken from the detail account's parent.
    """
    accounts = AccountStore(db)
    parents = {}
    for line in batch.ledgers:
        number = line.account_detail_account_number
        if number not in parents:
            detail = await accounts.require_detail(number)
            parents[number] = detail.account_general_account_number

    reference_number = generate_reference_number()
    user_id = current_user["user_id"]
    ledgers = [
        Ledger(
            reference_number=reference_number,
            amount=to_amount(line.amount),
            description=line.description,
            ledger_type=line.ledger_type,
            transaction_type=line.transaction_type,
            ledger_date=as_ledger_datetime(batch.ledger_date),
            posting_status=PostingStatus.PENDING,
            account_detail_account_number=line.account_detail_account_number,
            account_general_account_number=parents[line.account_detail_account_number],
            created_by=user_id,
            updated_by=user_id
        )
        for line in batch.ledgers
    ]

    LedgerStore(db).add_ledgers(ledgers)
    await db.commit()
    for ledger in ledgers:
        await db.refresh(ledger)

    await log_user_action(
        db, current_user, AuditAction.LEDGERS_CREATED,
        metadata={
            "reference_number": reference_number,
            "ledger_date": batch.ledger_date.isoformat(),
            "entries": len(ledgers)
        }
    )

    return LedgerBatchResponse(
        reference_number=reference_number,
        ledgers=[LedgerResponse.model_validate(ledger) for ledger in ledgers]
    )


@router.get("", response_model=LedgerListResponse)
async def list_ledgers(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Match on reference number or description"),
    reference_number: Optional[str] = None,
    ledger_type: Optional[LedgerType] = None,
    transaction_type: Optional[TransactionType] = None,
    posting_status: Optional[PostingStatus] = None,
    account_detail_account_number: Optional[str] = None,
    account_general_account_number: Optional[str] = None,
    date_from: Optional[date] = Query(None, description="First business date (inclusive)"),
    date_to: Optional[date] = Query(None, description="Last business date (inclusive)"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List ledger lines, newest business date first."""
    filters = LedgerFilter(
        search=search,
        reference_number=reference_number,
        ledger_type=ledger_type,
        transaction_type=transaction_type,
        posting_status=posting_status,
        account_detail_account_number=account_detail_account_number,
        account_general_account_number=account_general_account_number,
        date_from=date_from,
        date_to=date_to
    )
    ledgers, total = await LedgerStore(db).find_ledger_page(filters, (page - 1) * page_size, page_size)

    return LedgerListResponse(
        ledgers=[LedgerResponse.model_validate(ledger) for ledger in ledgers],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{ledger_id}", response_model=LedgerResponse)
async def get_ledger(
    ledger_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    ledger = await LedgerStore(db).get_ledger(ledger_id)
    if not ledger:
        raise ResourceNotFoundError("Ledger", ledger_id)
    return LedgerResponse.model_validate(ledger)


@router.patch("/{ledger_id}", response_model=LedgerResponse)
async def update_ledger(
    ledger_id: int,
    ledger_data: LedgerUpdate,
    current_user: dict = Depends(require_role(LEDGER_WRITER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Update a PENDING ledger line."""
    ledger = await _require_pending_ledger(LedgerStore(db), ledger_id)

    update_data = ledger_data.model_dump(exclude_unset=True, exclude_none=True)
    if "account_detail_account_number" in update_data:
        detail = await AccountStore(db).require_detail(update_data["account_detail_account_number"])
        ledger.account_general_account_number = detail.account_general_account_number
    if "amount" in update_data:
        update_data["amount"] = to_amount(update_data["amount"])
    if "ledger_date" in update_data:
        update_data["ledger_date"] = as_ledger_datetime(update_data["ledger_date"])

    for field, value in update_data.items():
        setattr(ledger, field, value)
    ledger.updated_by = current_user["user_id"]
    ledger.updated_at = utcnow()

    await db.commit()
    await db.refresh(ledger)

    await log_user_action(
        db, current_user, AuditAction.LEDGER_UPDATED,
        metadata={"ledger_id": ledger.id, "updated_fields": list(update_data.keys())}
    )

    return LedgerResponse.model_validate(ledger)


@router.delete("/{ledger_id}", response_model=LedgerResponse)
async def delete_ledger(
    ledger_id: int,
    current_user: dict = Depends(require_role(LEDGER_WRITER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Soft delete a PENDING ledger line."""
    ledger = await _require_pending_ledger(LedgerStore(db), ledger_id)

    ledger.deleted_at = utcnow()
    ledger.updated_by = current_user["user_id"]
    await db.commit()
    await db.refresh(ledger)

    await log_user_action(
        db, current_user, AuditAction.LEDGER_DELETED,
        metadata={"ledger_id": ledger.id, "reference_number": ledger.reference_number}
    )

    return LedgerResponse.model_validate(ledger)
