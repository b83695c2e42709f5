"""
Journal ledger Pydantic schemas (read-only).
"""

from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from ledger_backend.app.models.ledger_enums import PostingStatus


class JournalLedgerResponse(BaseModel):
    """Schema for journal ledger response."""
    id: int
    ledger_id: Optional[int] = None
    reference_number: str
    account_detail_account_number: str
    account_general_account_number: str
    debit: Decimal
    credit: Decimal
    ledger_date: datetime
    posting_status: PostingStatus
    posting_at: Optional[datetime] = None
    created_by: int
    created_at: datetime

    class Config:
        from_attributes = True


class JournalLedgerListResponse(BaseModel):
    """Schema for paginated journal ledger list."""
    journal_ledgers: List[JournalLedgerResponse]
    total: int
    page: int
    page_size: int
