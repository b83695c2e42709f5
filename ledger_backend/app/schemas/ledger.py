"""
Ledger Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from ledger_backend.app.models.ledger_enums import LedgerType, PostingStatus, TransactionType

MAX_LEDGER_LINES = 100


class LedgerLineCreate(BaseModel):
    """One line of a ledger batch."""
    amount: Decimal = Field(..., gt=0, description="Positive amount, two decimal places")
    description: str = Field(..., min_length=1, max_length=500)
    ledger_type: LedgerType
    transaction_type: TransactionType
    account_detail_account_number: str = Field(..., min_length=1, max_length=20)


class LedgerBatchCreate(BaseModel):
    """
    Schema for recording a batch of ledger lines.

    All lines share one generated reference number and one business date.
    """
    ledger_date: date = Field(..., description="Business date (YYYY-MM-DD)")
    ledgers: List[LedgerLineCreate] = Field(..., min_length=1, max_length=MAX_LEDGER_LINES)


class LedgerUpdate(BaseModel):
    """Schema for updating a PENDING ledger line."""
    amount: Optional[Decimal] = Field(None, gt=0)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    ledger_type: Optional[LedgerType] = None
    transaction_type: Optional[TransactionType] = None
    ledger_date: Optional[date] = None
    account_detail_account_number: Optional[str] = Field(None, min_length=1, max_length=20)


class LedgerResponse(BaseModel):
    """Schema for ledger response."""
    id: int
    reference_number: str
    amount: Decimal
    description: str
    ledger_type: LedgerType
    transaction_type: TransactionType
    ledger_date: datetime
    posting_status: PostingStatus
    posting_at: Optional[datetime] = None
    account_detail_account_number: str
    account_general_account_number: str
    created_by: int
    updated_by: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LedgerBatchResponse(BaseModel):
    """Schema for a created ledger batch."""
    reference_number: str
    ledgers: List[LedgerResponse]


class LedgerListResponse(BaseModel):
    """Schema for paginated ledger list."""
    ledgers: List[LedgerResponse]
    total: int
    page: int
    page_size: int
