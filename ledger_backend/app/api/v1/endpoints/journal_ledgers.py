"""
Journal Ledger API Endpoints (read-only).

Journal rows are written only by the posting workflows.
"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from ledger_backend.app.db.session import get_db
from ledger_backend.app.models.ledger_enums import PostingStatus
from ledger_backend.app.schemas.journal_ledger import JournalLedgerResponse, JournalLedgerListResponse
from ledger_backend.app.core.dependencies import get_current_user
from ledger_backend.app.core.exceptions import ResourceNotFoundError
from ledger_backend.app.services.ledger_store import LedgerStore, JournalFilter

router = APIRouter(prefix="/journal-ledgers", tags=["Journal Ledgers"])


@router.get("", response_model=JournalLedgerListResponse)
async def list_journal_ledgers(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Match on account numbers"),
    posting_status: Optional[PostingStatus] = None,
    account_detail_account_number: Optional[str] = None,
    account_general_account_number: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    filters = JournalFilter(
        search=search,
        posting_status=posting_status,
        account_detail_account_number=account_detail_account_number,
        account_general_account_number=account_general_account_number,
        date_from=date_from,
        date_to=date_to
    )
    journals, total = await LedgerStore(db).find_journal_page(filters, (page - 1) * page_size, page_size)

    return JournalLedgerListResponse(
        journal_ledgers=[JournalLedgerResponse.model_validate(journal) for journal in journals],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{journal_id}", response_model=JournalLedgerResponse)
async def get_journal_ledger(
    journal_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    journal = await LedgerStore(db).get_journal(journal_id)
    if not journal:
        raise ResourceNotFoundError("Journal ledger", journal_id)
    return JournalLedgerResponse.model_validate(journal)
