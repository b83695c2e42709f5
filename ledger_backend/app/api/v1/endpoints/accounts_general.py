"""
General Account API Endpoints.

Chart-of-accounts maintenance for roll-up (general) accounts. Balances
are not writable here; they change only through the posting workflows.
"""

from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from ledger_backend.app.db.session import get_db
from ledger_backend.app.models.account import AccountGeneral
from ledger_backend.app.models.enums import ACCOUNTING_ROLES
from ledger_backend.app.models.ledger_enums import AccountCategory, ReportType, TransactionType
from ledger_backend.app.schemas.account import (
    AccountGeneralCreate,
    AccountGeneralUpdate,
    AccountGeneralResponse,
    AccountGeneralListResponse,
)
from ledger_backend.app.core.guards import require_role
from ledger_backend.app.core.dependencies import get_current_user
from ledger_backend.app.core.dates import utcnow
from ledger_backend.app.core.exceptions import BusinessRuleError
from ledger_backend.app.core.money import to_amount
from ledger_backend.app.services.account_store import AccountStore, AccountFilter
from ledger_backend.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/accounts/general", tags=["General Accounts"])


@router.post("", response_model=AccountGeneralResponse, status_code=status.HTTP_201_CREATED)
async def create_general_account(
    account_data: AccountGeneralCreate,
    current_user: dict = Depends(require_role(ACCOUNTING_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a general account.

    The opening balance becomes the running balance.
    """
    store = AccountStore(db)
    if await store.account_number_taken(account_data.account_number):
        raise BusinessRuleError(
            f"Account number {account_data.account_number} is already in use",
            error_code="ACCOUNT_NUMBER_TAKEN",
            details={"account_number": account_data.account_number}
        )

    initial_debit = to_amount(account_data.initial_amount_debit)
    initial_credit = to_amount(account_data.initial_amount_credit)
    account = AccountGeneral(
        account_number=account_data.account_number,
        account_name=account_data.account_name,
        account_category=account_data.account_category,
        report_type=account_data.report_type,
        transaction_type=account_data.transaction_type,
        initial_amount_debit=initial_debit,
        initial_amount_credit=initial_credit,
        amount_debit=initial_debit,
        amount_credit=initial_credit,
        created_by=current_user["user_id"],
        updated_by=current_user["user_id"]
    )

    db.add(account)
    await db.commit()
    await db.refresh(account)

    await log_user_action(
        db, current_user, AuditAction.ACCOUNT_GENERAL_CREATED,
        metadata={"account_number": account.account_number, "account_name": account.account_name}
    )

    return AccountGeneralResponse.model_validate(account)


@router.get("", response_model=AccountGeneralListResponse)
async def list_general_accounts(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Match on account number or name"),
    account_category: Optional[AccountCategory] = None,
    report_type: Optional[ReportType] = None,
    transaction_type: Optional[TransactionType] = None,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List general accounts ordered by account number."""
    filters = AccountFilter(
        search=search,
        account_category=account_category,
        report_type=report_type,
        transaction_type=transaction_type
    )
    accounts, total = await AccountStore(db).find_generals(filters, (page - 1) * page_size, page_size)

    return AccountGeneralListResponse(
        accounts=[AccountGeneralResponse.model_validate(account) for account in accounts],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{account_number}", response_model=AccountGeneralResponse)
async def get_general_account(
    account_number: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    account = await AccountStore(db).require_general(account_number)
    return AccountGeneralResponse.model_validate(account)


@router.patch("/{account_number}", response_model=AccountGeneralResponse)
async def update_general_account(
    account_number: str,
    account_data: AccountGeneralUpdate,
    current_user: dict = Depends(require_role(ACCOUNTING_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Update descriptive fields of a general account."""
    account = await AccountStore(db).require_general(account_number)

    update_data = account_data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(account, field, value)
    account.updated_by = current_user["user_id"]
    account.updated_at = utcnow()

    await db.commit()
    await db.refresh(account)

    await log_user_action(
        db, current_user, AuditAction.ACCOUNT_GENERAL_UPDATED,
        metadata={"account_number": account.account_number, "updated_fields": list(update_data.keys())}
    )

    return AccountGeneralResponse.model_validate(account)


@router.delete("/{account_number}", response_model=AccountGeneralResponse)
async def delete_general_account(
    account_number: str,
    current_user: dict = Depends(require_role(ACCOUNTING_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Soft delete a general account.

    Refused while any non-deleted detail account still references it.
    """
    store = AccountStore(db)
    account = await store.require_general(account_number)

    children = await store.count_active_details_of(account_number)
    if children:
        raise BusinessRuleError(
            f"General account {account_number} still has {children} detail account(s)",
            error_code="ACCOUNT_IN_USE",
            details={"account_number": account_number, "detail_accounts": children}
        )

    account.deleted_at = utcnow()
    account.updated_by = current_user["user_id"]
    await db.commit()
    await db.refresh(account)

    await log_user_action(
        db, current_user, AuditAction.ACCOUNT_GENERAL_DELETED,
        metadata={"account_number": account_number}
    )

    return AccountGeneralResponse.model_validate(account)
