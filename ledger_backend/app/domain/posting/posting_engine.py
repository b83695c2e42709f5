"""
Posting Engine (Domain Logic).

Moves entries between PENDING and POSTED and keeps account balances in
step with them:

1. Post ledgers        -> one PENDING journal row per ledger line
2. Post balance        -> journal deltas added to detail account balances
3. Post neraca akhir   -> detail balances rolled up into general accounts
4. Post neraca balance -> fiscal-year net income (SHU) recorded

Steps 1 and 2 have exact inverses. Every operation runs as one atomic
transaction through the TransactionCoordinator and re-reads all state
inside it; preconditions are checked inside the same transaction.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ledger_backend.app.core.config import settings
from ledger_backend.app.core.dates import DateRange, utcnow
from ledger_backend.app.core.exceptions import (
    AccountNotFoundError,
    AlreadyPostedError,
    AppException,
    BalanceAlreadyPostedError,
    NothingToPostError,
    NothingToUnpostError,
    PeriodClosedError,
)
from ledger_backend.app.core.money import ZERO, to_money
from ledger_backend.app.db.transaction import TransactionCoordinator
from ledger_backend.app.domain.posting.aggregation import (
    NetIncome,
    accumulate_general_totals,
    accumulate_journal_deltas,
    compute_net_income,
    journal_sides,
    net_income_accumulation,
)
from ledger_backend.app.models.journal_ledger import JournalLedger
from ledger_backend.app.models.ledger import Ledger
from ledger_backend.app.models.ledger_enums import PostingStatus
from ledger_backend.app.models.sisa_hasil_usaha import SisaHasilUsaha
from ledger_backend.app.services.account_store import AccountStore
from ledger_backend.app.services.ledger_store import LedgerStore

logger = logging.getLogger("ledger.posting")


@dataclass
class PostLedgersResult:
    ledger_date: date
    posted_count: int
    journal_entries_created: int
    posting_timestamp: datetime
    ledgers: List[Ledger] = field(default_factory=list)


@dataclass
class UnpostLedgersResult:
    ledger_date: date
    unposted_count: int
    journal_entries_deleted: int
    unposting_timestamp: datetime
    ledgers: List[Ledger] = field(default_factory=list)


@dataclass
class AccountBalanceChange:
    account_number: str
    account_name: str
    amount_debit: Decimal
    amount_credit: Decimal
    delta_debit: Decimal
    delta_credit: Decimal
    entries: int


@dataclass
class BalanceResult:
    target_date: date
    affected_count: int
    timestamp: datetime
    updated_accounts: List[AccountBalanceChange] = field(default_factory=list)


@dataclass
class NetIncomeCalculation:
    year: str
    calculation_date: date
    total_revenue: Decimal
    total_expense: Decimal
    net_income: Decimal
    accounts_processed: int
    existing_record: Optional[SisaHasilUsaha]
    is_closed: bool

    @property
    def can_save(self) -> bool:
        return not self.is_closed


@dataclass
class NetIncomePostingResult:
    year: str
    posting_date: date
    amount: Decimal
    operation: str  # "created" | "updated"
    record: SisaHasilUsaha
    shu_account_number: str
    accumulation_amount_debit: Decimal
    accumulation_amount_credit: Decimal
    posting_timestamp: datetime


@dataclass
class GeneralRollUp:
    account_number: str
    account_name: str
    amount_debit: Decimal
    amount_credit: Decimal
    detail_accounts: List[str]


@dataclass
class NeracaAkhirResult:
    target_date: date
    general_accounts_updated: int
    detail_accounts_processed: int
    posting_timestamp: datetime
    updated_accounts: List[GeneralRollUp] = field(default_factory=list)


class PostingEngine:
    """
    Posting/unposting workflows.

    The engine holds no entity state between calls; it is built from an
    injected session factory (see ledger_backend.app.api.v1.endpoints.posting).
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        coordinator: Optional[TransactionCoordinator] = None,
        shu_account_number: Optional[str] = None
    ):
        self.coordinator = coordinator or TransactionCoordinator(session_factory)
        self.shu_account_number = shu_account_number or settings.shu_account_number

    async def _run(self, work, *args):
        try:
            return await self.coordinator.run(work, *args)
        except AppException as exc:
            logger.info(
                "Posting operation rejected",
                extra={"operation": work.__name__.lstrip("_"), "error_code": exc.error_code},
            )
            raise

    # 1. Ledgers

    async def post_ledgers_by_date(self, ledger_date: date, posted_by: int) -> PostLedgersResult:
        """Post every PENDING ledger of a calendar day and mirror each into a journal row."""
        result = await self._run(self._post_ledgers, ledger_date, posted_by)
        logger.info(
            "Ledgers posted",
            extra={"ledger_date": ledger_date.isoformat(), "posted": result.posted_count, "actor": posted_by},
        )
        return result

    async def _post_ledgers(self, db: AsyncSession, ledger_date: date, posted_by: int) -> PostLedgersResult:
        ledgers = LedgerStore(db)
        scope = DateRange.day(ledger_date)

        if await ledgers.has_ledgers(scope, PostingStatus.POSTED):
            raise AlreadyPostedError(
                f"Ledgers for {ledger_date.isoformat()} have already been posted",
                details={"ledger_date": ledger_date.isoformat()}
            )

        pending = await ledgers.find_ledgers(scope, PostingStatus.PENDING, for_update=True)
        if not pending:
            # A concurrent posting may have committed while we waited on the row locks
            if await ledgers.has_ledgers(scope, PostingStatus.POSTED):
                raise AlreadyPostedError(
                    f"Ledgers for {ledger_date.isoformat()} were posted concurrently",
                    details={"ledger_date": ledger_date.isoformat()}
                )
            raise NothingToPostError(
                f"No pending ledgers found for {ledger_date.isoformat()}",
                details={"ledger_date": ledger_date.isoformat()}
            )

        now = utcnow()
        moved = await ledgers.transition_ledgers(
            [ledger.id for ledger in pending],
            PostingStatus.PENDING,
            PostingStatus.POSTED,
            posting_at=now,
            updated_by=posted_by,
            updated_at=now
        )
        if moved != len(pending):
            # Another transaction posted some of these rows after we read them
            raise AlreadyPostedError(
                f"Ledgers for {ledger_date.isoformat()} were posted concurrently",
                details={"ledger_date": ledger_date.isoformat(), "expected": len(pending), "moved": moved}
            )

        journals = []
        for ledger in pending:
            debit, credit = journal_sides(ledger.transaction_type, ledger.amount)
            journals.append(JournalLedger(
                ledger_id=ledger.id,
                reference_number=ledger.reference_number,
                account_detail_account_number=ledger.account_detail_account_number,
                account_general_account_number=ledger.account_general_account_number,
                debit=debit,
                credit=credit,
                ledger_date=ledger.ledger_date,
                posting_status=PostingStatus.PENDING,
                created_by=posted_by
            ))
        ledgers.add_journals(journals)
        await db.flush()

        posted = await ledgers.reload_ledgers([ledger.id for ledger in pending])

        return PostLedgersResult(
            ledger_date=ledger_date,
            posted_count=moved,
            journal_entries_created=len(journals),
            posting_timestamp=now,
            ledgers=posted
        )

    async def unpost_ledgers_by_date(self, ledger_date: date, unposted_by: int) -> UnpostLedgersResult:
        """Revert a day's POSTED ledgers to PENDING and drop their unbalanced journal rows."""
        result = await self._run(self._unpost_ledgers, ledger_date, unposted_by)
        logger.info(
            "Ledgers unposted",
            extra={"ledger_date": ledger_date.isoformat(), "unposted": result.unposted_count, "actor": unposted_by},
        )
        return result

    async def _unpost_ledgers(self, db: AsyncSession, ledger_date: date, unposted_by: int) -> UnpostLedgersResult:
        ledgers = LedgerStore(db)
        scope = DateRange.day(ledger_date)

        # Locking the day's journals blocks a concurrent balance posting until we finish
        journals = await ledgers.lock_journals(scope)
        if any(journal.posting_status == PostingStatus.POSTED for journal in journals):
            raise _balance_posted_error(ledger_date)

        posted = await ledgers.find_ledgers(scope, PostingStatus.POSTED, for_update=True)
        if not posted:
            raise NothingToUnpostError(
                f"No posted ledgers found for {ledger_date.isoformat()}",
                details={"ledger_date": ledger_date.isoformat()}
            )

        now = utcnow()
        moved = await ledgers.transition_ledgers(
            [ledger.id for ledger in posted],
            PostingStatus.POSTED,
            PostingStatus.PENDING,
            posting_at=None,
            updated_by=unposted_by,
            updated_at=now
        )
        if moved != len(posted):
            raise NothingToUnpostError(
                f"Ledgers for {ledger_date.isoformat()} were unposted concurrently",
                details={"ledger_date": ledger_date.isoformat(), "expected": len(posted), "moved": moved}
            )

        deleted = await ledgers.delete_journals(scope, PostingStatus.PENDING)
        if deleted != moved:
            # Journals missing from the PENDING set were applied to balances
            raise _balance_posted_error(
                ledger_date, {"unposted": moved, "journal_entries_deleted": deleted}
            )

        reverted = await ledgers.reload_ledgers([ledger.id for ledger in posted])

        return UnpostLedgersResult(
            ledger_date=ledger_date,
            unposted_count=moved,
            journal_entries_deleted=deleted,
            unposting_timestamp=now,
            ledgers=reverted
        )

    # 2. Balance

    async def post_balance_by_date(self, cutoff: date, posted_by: int) -> BalanceResult:
        """
        Apply every PENDING journal row dated up to and including ``cutoff``
        to detail account balances.
        """
        result = await self._run(self._post_balance, cutoff, posted_by)
        logger.info(
            "Balance posted",
            extra={"cutoff": cutoff.isoformat(), "journals": result.affected_count,
                   "accounts": len(result.updated_accounts), "actor": posted_by},
        )
        return result

    async def _post_balance(self, db: AsyncSession, cutoff: date, posted_by: int) -> BalanceResult:
        ledgers = LedgerStore(db)
        accounts = AccountStore(db)
        scope = DateRange.up_to(cutoff)

        if await ledgers.has_journals(scope, PostingStatus.POSTED):
            raise AlreadyPostedError(
                f"Balance up to {cutoff.isoformat()} has already been posted",
                details={"date": cutoff.isoformat()}
            )

        pending = await ledgers.find_journals(scope, PostingStatus.PENDING, for_update=True)
        if not pending:
            if await ledgers.has_journals(scope, PostingStatus.POSTED):
                raise AlreadyPostedError(
                    f"Balance up to {cutoff.isoformat()} was posted concurrently",
                    details={"date": cutoff.isoformat()}
                )
            raise NothingToPostError(
                f"No pending journal entries found up to {cutoff.isoformat()}",
                details={"date": cutoff.isoformat()}
            )

        deltas = accumulate_journal_deltas(pending)
        changes = []
        for delta in deltas.values():
            account = await accounts.increment_detail_balance(
                delta.account_number, delta.debit, delta.credit, posted_by
            )
            changes.append(_balance_change(account, delta.debit, delta.credit, delta.entries))

        now = utcnow()
        moved = await ledgers.transition_journals(
            [journal.id for journal in pending], PostingStatus.PENDING, PostingStatus.POSTED, posting_at=now
        )
        if moved != len(pending):
            raise AlreadyPostedError(
                f"Balance up to {cutoff.isoformat()} was posted concurrently",
                details={"date": cutoff.isoformat(), "expected": len(pending), "moved": moved}
            )

        return BalanceResult(target_date=cutoff, affected_count=moved, timestamp=now, updated_accounts=changes)

    async def unpost_balance_by_date(self, day: date, unposted_by: int) -> BalanceResult:
        """
        Reverse the balance effect of journal rows dated exactly ``day``.

        Only one calendar day is unwound per call, while posting is
        cumulative up to the cutoff. Older posted days stay in place.
        """
        result = await self._run(self._unpost_balance, day, unposted_by)
        logger.info(
            "Balance unposted",
            extra={"date": day.isoformat(), "journals": result.affected_count,
                   "accounts": len(result.updated_accounts), "actor": unposted_by},
        )
        return result

    async def _unpost_balance(self, db: AsyncSession, day: date, unposted_by: int) -> BalanceResult:
        ledgers = LedgerStore(db)
        accounts = AccountStore(db)
        scope = DateRange.day(day)

        posted = await ledgers.find_journals(scope, PostingStatus.POSTED, for_update=True)
        if not posted:
            raise NothingToUnpostError(
                f"No posted balance entries found for {day.isoformat()}",
                details={"date": day.isoformat()}
            )

        deltas = accumulate_journal_deltas(posted)
        changes = []
        for delta in deltas.values():
            account = await accounts.increment_detail_balance(
                delta.account_number, -delta.debit, -delta.credit, unposted_by
            )
            changes.append(_balance_change(account, -delta.debit, -delta.credit, delta.entries))

        now = utcnow()
        moved = await ledgers.transition_journals(
            [journal.id for journal in posted], PostingStatus.POSTED, PostingStatus.PENDING, posting_at=None
        )
        if moved != len(posted):
            raise NothingToUnpostError(
                f"Balance for {day.isoformat()} was unposted concurrently",
                details={"date": day.isoformat(), "expected": len(posted), "moved": moved}
            )

        return BalanceResult(target_date=day, affected_count=moved, timestamp=now, updated_accounts=changes)

    # 3. Net income (Sisa Hasil Usaha)

    async def calculate_neraca_balance(self, day: date) -> NetIncomeCalculation:
        """Compute the year's net income from profit-and-loss accounts. Writes nothing."""
        return await self._run(self._calculate_net_income, day)

    async def _calculate_net_income(self, db: AsyncSession, day: date) -> NetIncomeCalculation:
        accounts = AccountStore(db)
        year = str(day.year)

        profit_and_loss = await accounts.list_profit_and_loss_details()
        if not profit_and_loss:
            raise AccountNotFoundError("Detail", message="No profit-and-loss detail accounts found")

        income: NetIncome = compute_net_income(profit_and_loss)
        existing = await _find_net_income_record(db, year)

        return NetIncomeCalculation(
            year=year,
            calculation_date=day,
            total_revenue=income.revenue,
            total_expense=income.expense,
            net_income=income.net,
            accounts_processed=income.accounts_processed,
            existing_record=existing,
            is_closed=bool(existing and existing.accounting_close)
        )

    async def post_neraca_balance(self, day: date, amount, posted_by: int) -> NetIncomePostingResult:
        """
        Record the year's net income and carry it into the SHU account.

        ``amount`` is caller supplied (normally the figure just calculated).
        Positive income accumulates on the credit side, a loss on the debit
        side. Re-posting an open year replaces the earlier contribution.
        """
        amount = to_money(amount)
        result = await self._run(self._post_net_income, day, amount, posted_by)
        logger.info(
            "Net income posted",
            extra={"year": result.year, "amount": str(result.amount), "operation": result.operation, "actor": posted_by},
        )
        return result

    async def _post_net_income(self, db: AsyncSession, day: date, amount: Decimal, posted_by: int) -> NetIncomePostingResult:
        accounts = AccountStore(db)
        year = str(day.year)

        existing = await _find_net_income_record(db, year, for_update=True)
        if existing and existing.accounting_close:
            raise PeriodClosedError(year)

        shu_account = await accounts.require_detail(self.shu_account_number, for_update=True)

        previous_debit, previous_credit = net_income_accumulation(existing.amount) if existing else (ZERO, ZERO)
        new_debit, new_credit = net_income_accumulation(amount)

        shu_account = await accounts.increment_detail_accumulation(
            shu_account.account_number,
            new_debit - previous_debit,
            new_credit - previous_credit,
            posted_by
        )

        now = utcnow()
        if existing:
            record = existing
            record.amount = amount
            record.account_detail_account_number = shu_account.account_number
            record.account_general_account_number = shu_account.account_general_account_number
            record.updated_at = now
            operation = "updated"
        else:
            record = SisaHasilUsaha(
                year=year,
                amount=amount,
                account_detail_account_number=shu_account.account_number,
                account_general_account_number=shu_account.account_general_account_number,
                accounting_close=False
            )
            db.add(record)
            operation = "created"
        await db.flush()
        await db.refresh(record)

        return NetIncomePostingResult(
            year=year,
            posting_date=day,
            amount=amount,
            operation=operation,
            record=record,
            shu_account_number=shu_account.account_number,
            accumulation_amount_debit=shu_account.accumulation_amount_debit,
            accumulation_amount_credit=shu_account.accumulation_amount_credit,
            posting_timestamp=now
        )

    async def close_accounting_year(self, year: str, closed_by: int) -> SisaHasilUsaha:
        """Close a fiscal year. One-way: the year's record becomes immutable."""
        record = await self._run(self._close_year, year, closed_by)
        logger.info("Accounting year closed", extra={"year": year, "actor": closed_by})
        return record

    async def _close_year(self, db: AsyncSession, year: str, closed_by: int) -> SisaHasilUsaha:
        record = await _find_net_income_record(db, year, for_update=True)
        if record is None:
            raise NothingToPostError(
                f"No Sisa Hasil Usaha has been posted for year {year}",
                details={"year": year}
            )
        if record.accounting_close:
            raise PeriodClosedError(year)

        record.accounting_close = True
        record.closed_at = utcnow()
        record.closed_by = closed_by
        await db.flush()
        await db.refresh(record)
        return record

    # 4. Neraca akhir

    async def post_neraca_akhir(self, day: date, posted_by: int) -> NeracaAkhirResult:
        """
        Overwrite every general account's balance with the sum of its
        detail accounts. ``day`` is informational only. Idempotent.
        """
        result = await self._run(self._post_neraca_akhir, day, posted_by)
        logger.info(
            "Neraca akhir posted",
            extra={"date": day.isoformat(), "general_accounts": result.general_accounts_updated,
                   "detail_accounts": result.detail_accounts_processed, "actor": posted_by},
        )
        return result

    async def _post_neraca_akhir(self, db: AsyncSession, day: date, posted_by: int) -> NeracaAkhirResult:
        accounts = AccountStore(db)

        details = await accounts.list_active_details()
        if not details:
            raise NothingToPostError("No detail accounts found", details={"date": day.isoformat()})

        totals = accumulate_general_totals(details)
        rolled_up = []
        for total in totals.values():
            general = await accounts.overwrite_general_balance(
                total.account_number, total.amount_debit, total.amount_credit, posted_by
            )
            rolled_up.append(GeneralRollUp(
                account_number=general.account_number,
                account_name=general.account_name,
                amount_debit=general.amount_debit,
                amount_credit=general.amount_credit,
                detail_accounts=total.detail_accounts
            ))

        return NeracaAkhirResult(
            target_date=day,
            general_accounts_updated=len(rolled_up),
            detail_accounts_processed=len(details),
            posting_timestamp=utcnow(),
            updated_accounts=rolled_up
        )


async def _find_net_income_record(db: AsyncSession, year: str, for_update: bool = False) -> Optional[SisaHasilUsaha]:
    query = select(SisaHasilUsaha).where(SisaHasilUsaha.year == year)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


def _balance_posted_error(ledger_date: date, extra_details: Optional[dict] = None) -> BalanceAlreadyPostedError:
    details = {"ledger_date": ledger_date.isoformat()}
    details.update(extra_details or {})
    return BalanceAlreadyPostedError(
        f"Cannot unpost ledgers for {ledger_date.isoformat()}: the balance for this date "
        "has already been posted. Unpost the balance first.",
        details=details
    )


def _balance_change(account, delta_debit: Decimal, delta_credit: Decimal, entries: int) -> AccountBalanceChange:
    return AccountBalanceChange(
        account_number=account.account_number,
        account_name=account.account_name,
        amount_debit=account.amount_debit,
        amount_credit=account.amount_credit,
        delta_debit=delta_debit,
        delta_credit=delta_credit,
        entries=entries
    )
