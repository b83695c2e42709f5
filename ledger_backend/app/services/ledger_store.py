"""
Ledger store.

Repository over ledgers and journal ledgers. Date-scoped queries take a
DateRange; status transitions are guarded by the expected current status
so a concurrent transition shows up as a short row count.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_backend.app.core.dates import DateRange, as_ledger_datetime
from ledger_backend.app.models.ledger import Ledger
from ledger_backend.app.models.journal_ledger import JournalLedger
from ledger_backend.app.models.ledger_enums import LedgerType, PostingStatus, TransactionType


@dataclass(frozen=True)
class LedgerFilter:
    search: Optional[str] = None
    reference_number: Optional[str] = None
    ledger_type: Optional[LedgerType] = None
    transaction_type: Optional[TransactionType] = None
    posting_status: Optional[PostingStatus] = None
    account_detail_account_number: Optional[str] = None
    account_general_account_number: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None


@dataclass(frozen=True)
class JournalFilter:
    search: Optional[str] = None
    posting_status: Optional[PostingStatus] = None
    account_detail_account_number: Optional[str] = None
    account_general_account_number: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None


def _in_range(column, scope: DateRange) -> list:
    conditions = [column < scope.end]
    if scope.start is not None:
        conditions.append(column >= scope.start)
    return conditions


def _between_days(column, date_from: Optional[date], date_to: Optional[date]) -> list:
    conditions = []
    if date_from:
        conditions.append(column >= as_ledger_datetime(date_from))
    if date_to:
        conditions.append(column < DateRange.day(date_to).end)
    return conditions


class LedgerStore:
    """Ledger/journal repository bound to one session (and its transaction)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # Ledgers

    def _ledger_scope(self, scope: DateRange, status: PostingStatus) -> list:
        return [
            *_in_range(Ledger.ledger_date, scope),
            Ledger.posting_status == status,
            Ledger.deleted_at.is_(None),
        ]

    async def has_ledgers(self, scope: DateRange, status: PostingStatus) -> bool:
        result = await self.db.execute(
            select(Ledger.id).where(*self._ledger_scope(scope, status)).limit(1)
        )
        return result.first() is not None

    async def find_ledgers(self, scope: DateRange, status: PostingStatus, for_update: bool = False) -> List[Ledger]:
        query = select(Ledger).where(*self._ledger_scope(scope, status)).order_by(Ledger.id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def transition_ledgers(
        self,
        ledger_ids: Sequence[int],
        from_status: PostingStatus,
        to_status: PostingStatus,
        posting_at: Optional[datetime],
        updated_by: int,
        updated_at: datetime
    ) -> int:
        """Move ledgers between statuses; returns how many rows actually moved."""
        if not ledger_ids:
            return 0
        result = await self.db.execute(
            update(Ledger)
            .where(
                Ledger.id.in_(ledger_ids),
                Ledger.posting_status == from_status,
                Ledger.deleted_at.is_(None)
            )
            .values(
                posting_status=to_status,
                posting_at=posting_at,
                updated_by=updated_by,
                updated_at=updated_at
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def reload_ledgers(self, ledger_ids: Sequence[int]) -> List[Ledger]:
        """Re-read rows after a bulk transition so loaded instances match the database."""
        if not ledger_ids:
            return []
        result = await self.db.execute(
            select(Ledger)
            .where(Ledger.id.in_(ledger_ids))
            .order_by(Ledger.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_ledger(self, ledger_id: int) -> Optional[Ledger]:
        result = await self.db.execute(
            select(Ledger).where(Ledger.id == ledger_id, Ledger.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def find_ledger_page(self, filters: LedgerFilter, offset: int, limit: int) -> Tuple[List[Ledger], int]:
        conditions = [Ledger.deleted_at.is_(None)]
        if filters.search:
            pattern = f"%{filters.search}%"
            conditions.append(or_(Ledger.reference_number.ilike(pattern), Ledger.description.ilike(pattern)))
        if filters.reference_number:
            conditions.append(Ledger.reference_number == filters.reference_number)
        if filters.ledger_type:
            conditions.append(Ledger.ledger_type == filters.ledger_type)
        if filters.transaction_type:
            conditions.append(Ledger.transaction_type == filters.transaction_type)
        if filters.posting_status:
            conditions.append(Ledger.posting_status == filters.posting_status)
        if filters.account_detail_account_number:
            conditions.append(Ledger.account_detail_account_number == filters.account_detail_account_number)
        if filters.account_general_account_number:
            conditions.append(Ledger.account_general_account_number == filters.account_general_account_number)
        conditions.extend(_between_days(Ledger.ledger_date, filters.date_from, filters.date_to))

        total_result = await self.db.execute(select(func.count(Ledger.id)).where(*conditions))
        result = await self.db.execute(
            select(Ledger).where(*conditions)
            .order_by(Ledger.ledger_date.desc(), Ledger.id.desc())
            .offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total_result.scalar()

    async def count_active_ledgers_for_detail(self, account_number: str) -> int:
        result = await self.db.execute(
            select(func.count(Ledger.id)).where(
                Ledger.account_detail_account_number == account_number,
                Ledger.deleted_at.is_(None)
            )
        )
        return result.scalar()

    def add_ledgers(self, ledgers: Iterable[Ledger]) -> None:
        self.db.add_all(list(ledgers))

    # Journal ledgers

    def _journal_scope(self, scope: DateRange, status: PostingStatus) -> list:
        return [*_in_range(JournalLedger.ledger_date, scope), JournalLedger.posting_status == status]

    async def has_journals(self, scope: DateRange, status: PostingStatus) -> bool:
        result = await self.db.execute(
            select(JournalLedger.id).where(*self._journal_scope(scope, status)).limit(1)
        )
        return result.first() is not None

    async def find_journals(self, scope: DateRange, status: PostingStatus, for_update: bool = False) -> List[JournalLedger]:
        """Journals in scope, ordered by detail account number then id."""
        query = (
            select(JournalLedger)
            .where(*self._journal_scope(scope, status))
            .order_by(JournalLedger.account_detail_account_number, JournalLedger.id)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def lock_journals(self, scope: DateRange) -> List[JournalLedger]:
        """Every journal row in scope, any status, read FOR UPDATE."""
        result = await self.db.execute(
            select(JournalLedger)
            .where(*_in_range(JournalLedger.ledger_date, scope))
            .order_by(JournalLedger.id)
            .with_for_update()
        )
        return list(result.scalars().all())

    def add_journals(self, journals: Iterable[JournalLedger]) -> None:
        self.db.add_all(list(journals))

    async def transition_journals(
        self,
        journal_ids: Sequence[int],
        from_status: PostingStatus,
        to_status: PostingStatus,
        posting_at: Optional[datetime]
    ) -> int:
        if not journal_ids:
            return 0
        result = await self.db.execute(
            update(JournalLedger)
            .where(JournalLedger.id.in_(journal_ids), JournalLedger.posting_status == from_status)
            .values(posting_status=to_status, posting_at=posting_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete_journals(self, scope: DateRange, status: PostingStatus) -> int:
        result = await self.db.execute(
            delete(JournalLedger)
            .where(*self._journal_scope(scope, status))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def get_journal(self, journal_id: int) -> Optional[JournalLedger]:
        return await self.db.get(JournalLedger, journal_id)

    async def find_journal_page(self, filters: JournalFilter, offset: int, limit: int) -> Tuple[List[JournalLedger], int]:
        conditions = []
        if filters.search:
            pattern = f"%{filters.search}%"
            conditions.append(or_(
                JournalLedger.account_detail_account_number.ilike(pattern),
                JournalLedger.account_general_account_number.ilike(pattern)
            ))
        if filters.posting_status:
            conditions.append(JournalLedger.posting_status == filters.posting_status)
        if filters.account_detail_account_number:
            conditions.append(JournalLedger.account_detail_account_number == filters.account_detail_account_number)
        if filters.account_general_account_number:
            conditions.append(JournalLedger.account_general_account_number == filters.account_general_account_number)
        conditions.extend(_between_days(JournalLedger.ledger_date, filters.date_from, filters.date_to))

        total_result = await self.db.execute(select(func.count(JournalLedger.id)).where(*conditions))
        result = await self.db.execute(
            select(JournalLedger).where(*conditions)
            .order_by(JournalLedger.ledger_date.desc(), JournalLedger.id.desc())
            .offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total_result.scalar()
