"""
Posting API Endpoints.

HTTP surface of the posting engine. Each call is one atomic engine
operation followed by an audit log entry. Requires an accounting role.
"""

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from ledger_backend.app.db.session import get_db, get_session_factory
from ledger_backend.app.models.enums import ACCOUNTING_ROLES, UserRole
from ledger_backend.app.schemas.ledger import LedgerResponse
from ledger_backend.app.schemas.posting import (
    LedgerPostingRequest,
    BalancePostingRequest,
    NeracaBalancePostingRequest,
    NeracaAkhirRequest,
    LedgerPostingData,
    LedgerPostingResponse,
    LedgerUnpostingData,
    LedgerUnpostingResponse,
    AccountBalanceChangeResponse,
    BalancePostingData,
    BalancePostingResponse,
    BalanceUnpostingData,
    BalanceUnpostingResponse,
    NeracaBalanceCalculationData,
    NeracaBalanceCalculationResponse,
    NeracaBalancePostingData,
    NeracaBalancePostingResponse,
    SisaHasilUsahaResponse,
    AccountingYearCloseResponse,
    GeneralRollUpResponse,
    NeracaAkhirData,
    NeracaAkhirResponse,
)
from ledger_backend.app.core.guards import require_role
from ledger_backend.app.core.dates import parse_iso_date, parse_dmy_date
from ledger_backend.app.domain.posting.posting_engine import PostingEngine
from ledger_backend.app.services.audit import log_committed_action, AuditAction

router = APIRouter(prefix="/posting", tags=["Posting"])

YEAR_CLOSE_ROLES = [UserRole.ADMIN, UserRole.MANAJER]


def get_posting_engine(session_factory: async_sessionmaker = Depends(get_session_factory)) -> PostingEngine:
    """Build a posting engine over the process-wide session factory."""
    return PostingEngine(session_factory)


@router.post("/ledger", response_model=LedgerPostingResponse)
async def post_ledgers(
    request: LedgerPostingRequest,
    current_user: dict = Depends(require_role(ACCOUNTING_ROLES)),
    engine: PostingEngine = Depends(get_posting_engine),
    db: AsyncSession = Depends(get_db)
):
    """Post every PENDING ledger of a day (YYYY-MM-DD) into the journal."""
    ledger_date = parse_iso_date(request.ledger_date)
    result = await engine.post_ledgers_by_date(ledger_date, current_user["user_id"])

    await log_committed_action(
        db, current_user, AuditAction.LEDGERS_POSTED,
        metadata={"ledger_date": ledger_date.isoformat(), "posted_count": result.posted_count}
    )

    return LedgerPostingResponse(
        message=f"Successfully posted {result.posted_count} ledger(s) for {ledger_date.isoformat()}",
        data=LedgerPostingData(
            ledger_date=result.ledger_date,
            posted_count=result.posted_count,
            journal_entries_created=result.journal_entries_created,
            posting_timestamp=result.posting_timestamp,
            ledgers=[LedgerResponse.model_validate(ledger) for ledger in result.ledgers]
        )
    )


@router.post("/unposting/ledger", response_model=LedgerUnpostingResponse)
async def unpost_ledgers(
    request: LedgerPostingRequest,
    current_user: dict = Depends(require_role(ACCOUNTING_ROLES)),
    engine: PostingEngine = Depends(get_posting_engine),
    db: AsyncSession = Depends(get_db)
):
    """Revert a day's POSTED ledgers (YYYY-MM-DD) while their balance is unposted."""
    ledger_date = parse_iso_date(request.ledger_date)
    result = await engine.unpost_ledgers_by_date(ledger_date, current_user["user_id"])

    await log_committed_action(
        db, current_user, AuditAction.LEDGERS_UNPOSTED,
        metadata={
            "ledger_date": ledger_date.isoformat(),
            "unposted_count": result.unposted_count,
            "journal_entries_deleted": result.journal_entries_deleted
        }
    )

    return LedgerUnpostingResponse(
        message=f"Successfully unposted {result.unposted_count} ledger(s) for {ledger_date.isoformat()}",
        data=LedgerUnpostingData(
            ledger_date=result.ledger_date,
            unposted_count=result.unposted_count,
            journal_entries_deleted=result.journal_entries_deleted,
            unposting_timestamp=result.unposting_timestamp,
            ledgers=[LedgerResponse.model_validate(ledger) for ledger in result.ledgers]
        )
    )


@router.post("/balance", response_model=BalancePostingResponse)
async def post_balance(
    request: BalancePostingRequest,
    current_user: dict = Depends(require_role(ACCOUNTING_ROLES)),
    engine: PostingEngine = Depends(get_posting_engine),
    db: AsyncSession = Depends(get_db)
):
    """Apply PENDING journal rows up to and including the date (dd-mm-yyyy) to detail balances."""
    cutoff = parse_dmy_date(request.date)
    result = await engine.post_balance_by_date(cutoff, current_user["user_id"])

    await log_committed_action(
        db, current_user, AuditAction.BALANCE_POSTED,
        metadata={
            "date": cutoff.isoformat(),
            "posted_count": result.affected_count,
            "accounts": [change.account_number for change in result.updated_accounts]
        }
    )

    return BalancePostingResponse(
        message=f"Successfully posted balance for {len(result.updated_accounts)} account(s) up to {request.date}",
        data=BalancePostingData(
            date=result.target_date,
            posted_count=result.affected_count,
            posting_timestamp=result.timestamp,
            updated_accounts=[
                AccountBalanceChangeResponse.model_validate(change) for change in result.updated_accounts
            ]
        )
    )


@router.post("/unposting/balance", response_model=BalanceUnpostingResponse)
async def unpost_balance(
    request: BalancePostingRequest,
    current_user: dict = Depends(require_role(ACCOUNTING_ROLES)),
    engine: PostingEngine = Depends(get_posting_engine),
    db: AsyncSession = Depends(get_db)
):
    """Reverse the balance effect of one day's (dd-mm-yyyy) posted journal rows."""
    day = parse_dmy_date(request.date)
    result = await engine.unpost_balance_by_date(day, current_user["user_id"])

    await log_committed_action(
        db, current_user, AuditAction.BALANCE_UNPOSTED,
        metadata={
            "date": day.isoformat(),
            "unposted_count": result.affected_count,
            "accounts": [change.account_number for change in result.updated_accounts]
        }
    )

    return BalanceUnpostingResponse(
        message=f"Successfully unposted balance for {len(result.updated_accounts)} account(s) on {request.date}",
        data=BalanceUnpostingData(
            date=result.target_date,
            unposted_count=result.affected_count,
            unposting_timestamp=result.timestamp,
            updated_accounts=[
                AccountBalanceChangeResponse.model_validate(change) for change in result.updated_accounts
            ]
        )
    )


@router.get("/neraca-balance", response_model=NeracaBalanceCalculationResponse)
async def calculate_neraca_balance(
    date: str = Query(..., description="Any date in the fiscal year (dd-mm-yyyy)"),
    current_user: dict = Depends(require_role(ACCOUNTING_ROLES)),
    engine: PostingEngine = Depends(get_posting_engine)
):
    """Calculate the fiscal year's net income (Sisa Hasil Usaha). Read-only."""
    day = parse_dmy_date(date)
    calculation = await engine.calculate_neraca_balance(day)

    return NeracaBalanceCalculationResponse(
        message=f"Net income calculated for {calculation.year}",
        data=NeracaBalanceCalculationData.model_validate(calculation)
    )


@router.post("/neraca-balance", response_model=NeracaBalancePostingResponse)
async def post_neraca_balance(
    request: NeracaBalancePostingRequest,
    current_user: dict = Depends(require_role(ACCOUNTING_ROLES)),
    engine: PostingEngine = Depends(get_posting_engine),
    db: AsyncSession = Depends(get_db)
):
    """
    Record the fiscal year's net income into the SHU account.

    Without an amount the freshly calculated net income is posted.
    """
    day = parse_dmy_date(request.date)
    amount = request.amount
    if amount is None:
        amount = (await engine.calculate_neraca_balance(day)).net_income

    result = await engine.post_neraca_balance(day, amount, current_user["user_id"])

    await log_committed_action(
        db, current_user, AuditAction.SHU_POSTED,
        metadata={"year": result.year, "amount": str(result.amount), "operation": result.operation}
    )

    return NeracaBalancePostingResponse(
        message=f"Sisa Hasil Usaha for {result.year} {result.operation}",
        data=NeracaBalancePostingData.model_validate(result)
    )


@router.post("/neraca-balance/{year}/close", response_model=AccountingYearCloseResponse)
async def close_accounting_year(
    year: str = Path(..., pattern=r"^\d{4}$", description="Fiscal year"),
    current_user: dict = Depends(require_role(YEAR_CLOSE_ROLES)),
    engine: PostingEngine = Depends(get_posting_engine),
    db: AsyncSession = Depends(get_db)
):
    """Close a fiscal year. Irreversible."""
    record = await engine.close_accounting_year(year, current_user["user_id"])

    await log_committed_action(
        db, current_user, AuditAction.ACCOUNTING_YEAR_CLOSED,
        metadata={"year": year, "amount": str(record.amount)}
    )

    return AccountingYearCloseResponse(
        message=f"Accounting year {year} closed",
        data=SisaHasilUsahaResponse.model_validate(record)
    )


@router.post("/neraca-akhir", response_model=NeracaAkhirResponse)
async def post_neraca_akhir(
    request: NeracaAkhirRequest,
    current_user: dict = Depends(require_role(ACCOUNTING_ROLES)),
    engine: PostingEngine = Depends(get_posting_engine),
    db: AsyncSession = Depends(get_db)
):
    """Roll detail balances up into their general accounts."""
    day = parse_dmy_date(request.date)
    result = await engine.post_neraca_akhir(day, current_user["user_id"])

    await log_committed_action(
        db, current_user, AuditAction.NERACA_AKHIR_POSTED,
        metadata={
            "date": day.isoformat(),
            "general_accounts_updated": result.general_accounts_updated,
            "detail_accounts_processed": result.detail_accounts_processed
        }
    )

    return NeracaAkhirResponse(
        message=f"Neraca akhir posted for {result.general_accounts_updated} general account(s)",
        data=NeracaAkhirData(
            date=result.target_date,
            general_accounts_updated=result.general_accounts_updated,
            detail_accounts_processed=result.detail_accounts_processed,
            posting_timestamp=result.posting_timestamp,
            updated_accounts=[GeneralRollUpResponse.model_validate(account) for account in result.updated_accounts]
        )
    )
