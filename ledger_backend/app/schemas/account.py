"""
Chart of accounts Pydantic schemas.

Balances are read-only over the API; they change only through posting.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from ledger_backend.app.models.ledger_enums import AccountCategory, ReportType, TransactionType


class AccountGeneralCreate(BaseModel):
    """Schema for creating a general account."""
    account_number: str = Field(..., min_length=1, max_length=20, description="Unique account number")
    account_name: str = Field(..., min_length=1, max_length=100)
    account_category: AccountCategory
    report_type: ReportType
    transaction_type: TransactionType
    initial_amount_debit: Decimal = Field(Decimal("0"), ge=0, description="Opening debit balance")
    initial_amount_credit: Decimal = Field(Decimal("0"), ge=0, description="Opening credit balance")


class AccountGeneralUpdate(BaseModel):
    """Schema for updating a general account. Account numbers are immutable."""
    account_name: Optional[str] = Field(None, min_length=1, max_length=100)
    account_category: Optional[AccountCategory] = None
    report_type: Optional[ReportType] = None
    transaction_type: Optional[TransactionType] = None


class AccountDetailCreate(AccountGeneralCreate):
    """Schema for creating a detail account under an existing general account."""
    account_general_account_number: str = Field(..., min_length=1, max_length=20)


class AccountDetailUpdate(AccountGeneralUpdate):
    """Schema for updating a detail account."""
    account_general_account_number: Optional[str] = Field(None, min_length=1, max_length=20)


class AccountGeneralResponse(BaseModel):
    """Schema for general account response."""
    id: int
    account_number: str
    account_name: str
    account_category: AccountCategory
    report_type: ReportType
    transaction_type: TransactionType
    amount_debit: Decimal
    amount_credit: Decimal
    initial_amount_debit: Decimal
    initial_amount_credit: Decimal
    accumulation_amount_debit: Decimal
    accumulation_amount_credit: Decimal
    created_by: int
    updated_by: int
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AccountDetailResponse(AccountGeneralResponse):
    """Schema for detail account response."""
    account_general_account_number: str


class AccountGeneralListResponse(BaseModel):
    """Schema for paginated general account list."""
    accounts: List[AccountGeneralResponse]
    total: int
    page: int
    page_size: int


class AccountDetailListResponse(BaseModel):
    """Schema for paginated detail account list."""
    accounts: List[AccountDetailResponse]
    total: int
    page: int
    page_size: int
