"""
Posting workflow Pydantic schemas.

Dates arrive as strings and are parsed by the endpoints so a malformed
date is reported as INVALID_DATE: ledger posting takes YYYY-MM-DD,
everything else dd-mm-yyyy.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Union
from ledger_backend.app.schemas.ledger import LedgerResponse


# Requests

class LedgerPostingRequest(BaseModel):
    ledger_date: str = Field(..., description="Business date (YYYY-MM-DD)", examples=["2024-01-15"])


class BalancePostingRequest(BaseModel):
    date: str = Field(..., description="Cutoff date (dd-mm-yyyy)", examples=["15-01-2024"])


class NeracaBalancePostingRequest(BaseModel):
    date: str = Field(..., description="Any date in the fiscal year (dd-mm-yyyy)")
    amount: Optional[Union[Decimal, str]] = Field(
        None, description="Net income to record; defaults to the calculated figure"
    )


class NeracaAkhirRequest(BaseModel):
    date: str = Field(..., description="Closing date (dd-mm-yyyy), informational")


# Payloads

class LedgerPostingData(BaseModel):
    ledger_date: date
    posted_count: int
    journal_entries_created: int
    posting_timestamp: datetime
    ledgers: List[LedgerResponse]


class LedgerUnpostingData(BaseModel):
    ledger_date: date
    unposted_count: int
    journal_entries_deleted: int
    unposting_timestamp: datetime
    ledgers: List[LedgerResponse]


class AccountBalanceChangeResponse(BaseModel):
    account_number: str
    account_name: str
    amount_debit: Decimal
    amount_credit: Decimal
    delta_debit: Decimal
    delta_credit: Decimal
    entries: int

    class Config:
        from_attributes = True


class BalancePostingData(BaseModel):
    date: date
    posted_count: int
    posting_timestamp: datetime
    updated_accounts: List[AccountBalanceChangeResponse]


class BalanceUnpostingData(BaseModel):
    date: date
    unposted_count: int
    unposting_timestamp: datetime
    updated_accounts: List[AccountBalanceChangeResponse]


class SisaHasilUsahaResponse(BaseModel):
    id: int
    year: str
    amount: Decimal
    account_detail_account_number: str
    account_general_account_number: str
    accounting_close: bool
    closed_at: Optional[datetime] = None
    closed_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class NeracaBalanceCalculationData(BaseModel):
    year: str
    calculation_date: date
    total_revenue: Decimal
    total_expense: Decimal
    net_income: Decimal
    accounts_processed: int
    existing_record: Optional[SisaHasilUsahaResponse] = None
    is_closed: bool
    can_save: bool

    class Config:
        from_attributes = True


class NeracaBalancePostingData(BaseModel):
    year: str
    posting_date: date
    amount: Decimal
    operation: str
    shu_account_number: str
    accumulation_amount_debit: Decimal
    accumulation_amount_credit: Decimal
    posting_timestamp: datetime
    record: SisaHasilUsahaResponse

    class Config:
        from_attributes = True


class GeneralRollUpResponse(BaseModel):
    account_number: str
    account_name: str
    amount_debit: Decimal
    amount_credit: Decimal
    detail_accounts: List[str]

    class Config:
        from_attributes = True


class NeracaAkhirData(BaseModel):
    date: date
    general_accounts_updated: int
    detail_accounts_processed: int
    posting_timestamp: datetime
    updated_accounts: List[GeneralRollUpResponse]


# Envelopes

class LedgerPostingResponse(BaseModel):
    message: str
    data: LedgerPostingData


class LedgerUnpostingResponse(BaseModel):
    message: str
    data: LedgerUnpostingData


class BalancePostingResponse(BaseModel):
    message: str
    data: BalancePostingData


class BalanceUnpostingResponse(BaseModel):
    message: str
    data: BalanceUnpostingData


class NeracaBalanceCalculationResponse(BaseModel):
    message: str
    data: NeracaBalanceCalculationData


class NeracaBalancePostingResponse(BaseModel):
    message: str
    data: NeracaBalancePostingData


class AccountingYearCloseResponse(BaseModel):
    message: str
    data: SisaHasilUsahaResponse


class NeracaAkhirResponse(BaseModel):
    message: str
    data: NeracaAkhirData
