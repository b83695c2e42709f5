"""
Account store.

Repository over general and detail accounts, keyed by account number.
Balance mutations are SQL-level increments on rows read FOR UPDATE.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_backend.app.core.dates import utcnow
from ledger_backend.app.core.exceptions import AccountNotFoundError
from ledger_backend.app.models.account import AccountGeneral, AccountDetail
from ledger_backend.app.models.ledger_enums import AccountCategory, ReportType, TransactionType


@dataclass(frozen=True)
class AccountFilter:
    """List filters shared by general and detail accounts."""
    search: Optional[str] = None
    account_category: Optional[AccountCategory] = None
    report_type: Optional[ReportType] = None
    transaction_type: Optional[TransactionType] = None
    account_general_account_number: Optional[str] = None  # detail accounts only
    include_deleted: bool = False


class AccountStore:
    """Account repository bound to one session (and its transaction)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # Lookups

    async def get_general(
        self,
        account_number: str,
        include_deleted: bool = False,
        for_update: bool = False
    ) -> Optional[AccountGeneral]:
        query = select(AccountGeneral).where(AccountGeneral.account_number == account_number)
        if not include_deleted:
            query = query.where(AccountGeneral.deleted_at.is_(None))
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_detail(
        self,
        account_number: str,
        include_deleted: bool = False,
        for_update: bool = False
    ) -> Optional[AccountDetail]:
        query = select(AccountDetail).where(AccountDetail.account_number == account_number)
        if not include_deleted:
            query = query.where(AccountDetail.deleted_at.is_(None))
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def require_general(self, account_number: str, for_update: bool = False) -> AccountGeneral:
        account = await self.get_general(account_number, for_update=for_update)
        if account is None:
            raise AccountNotFoundError("General", account_number)
        return account

    async def require_detail(
        self,
        account_number: str,
        include_deleted: bool = False,
        for_update: bool = False
    ) -> AccountDetail:
        account = await self.get_detail(account_number, include_deleted=include_deleted, for_update=for_update)
        if account is None:
            raise AccountNotFoundError("Detail", account_number)
        return account

    async def list_active_details(self) -> List[AccountDetail]:
        """All non-deleted detail accounts, ordered by account number."""
        result = await self.db.execute(
            select(AccountDetail)
            .where(AccountDetail.deleted_at.is_(None))
            .order_by(AccountDetail.account_number)
        )
        return list(result.scalars().all())

    async def list_profit_and_loss_details(self) -> List[AccountDetail]:
        result = await self.db.execute(
            select(AccountDetail)
            .where(
                AccountDetail.report_type == ReportType.LABA_RUGI,
                AccountDetail.deleted_at.is_(None)
            )
            .order_by(AccountDetail.account_number)
        )
        return list(result.scalars().all())

    async def find_generals(self, filters: AccountFilter, offset: int, limit: int) -> Tuple[List[AccountGeneral], int]:
        conditions = _account_conditions(AccountGeneral, filters)
        return await self._page(AccountGeneral, conditions, offset, limit)

    async def find_details(self, filters: AccountFilter, offset: int, limit: int) -> Tuple[List[AccountDetail], int]:
        conditions = _account_conditions(AccountDetail, filters)
        if filters.account_general_account_number:
            conditions.append(
                AccountDetail.account_general_account_number == filters.account_general_account_number
            )
        return await self._page(AccountDetail, conditions, offset, limit)

    async def _page(self, model, conditions, offset: int, limit: int):
        total_result = await self.db.execute(select(func.count(model.id)).where(*conditions))
        total = total_result.scalar()

        result = await self.db.execute(
            select(model).where(*conditions).order_by(model.account_number).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def count_active_details_of(self, general_account_number: str) -> int:
        result = await self.db.execute(
            select(func.count(AccountDetail.id)).where(
                AccountDetail.account_general_account_number == general_account_number,
                AccountDetail.deleted_at.is_(None)
            )
        )
        return result.scalar()

    async def account_number_taken(self, account_number: str) -> bool:
        """Account numbers are unique across both tables, deleted rows included."""
        for model in (AccountGeneral, AccountDetail):
            result = await self.db.execute(
                select(func.count(model.id)).where(model.account_number == account_number)
            )
            if result.scalar():
                return True
        return False

    # Balance mutations

    async def increment_detail_balance(
        self,
        account_number: str,
        debit: Decimal,
        credit: Decimal,
        updated_by: int
    ) -> AccountDetail:
        """
        Add debit/credit deltas to a detail account's running balance.

        Negative deltas decrement. Raises AccountNotFoundError if the
        account row does not exist.
        """
        await self.require_detail(account_number, include_deleted=True, for_update=True)
        await self.db.execute(
            update(AccountDetail)
            .where(AccountDetail.account_number == account_number)
            .values(
                amount_debit=AccountDetail.amount_debit + debit,
                amount_credit=AccountDetail.amount_credit + credit,
                updated_by=updated_by,
                updated_at=utcnow()
            )
            .execution_options(synchronize_session=False)
        )
        return await self._reload_detail(account_number)

    async def increment_detail_accumulation(
        self,
        account_number: str,
        debit: Decimal,
        credit: Decimal,
        updated_by: int
    ) -> AccountDetail:
        """Add deltas to a detail account's accumulation (carried-forward) totals."""
        await self.require_detail(account_number, include_deleted=True, for_update=True)
        await self.db.execute(
            update(AccountDetail)
            .where(AccountDetail.account_number == account_number)
            .values(
                accumulation_amount_debit=AccountDetail.accumulation_amount_debit + debit,
                accumulation_amount_credit=AccountDetail.accumulation_amount_credit + credit,
                updated_by=updated_by,
                updated_at=utcnow()
            )
            .execution_options(synchronize_session=False)
        )
        return await self._reload_detail(account_number)

    async def overwrite_general_balance(
        self,
        account_number: str,
        debit: Decimal,
        credit: Decimal,
        updated_by: int
    ) -> AccountGeneral:
        """Replace a general account's running balance (neraca akhir roll-up)."""
        account = await self.require_general(account_number, for_update=True)
        account.amount_debit = debit
        account.amount_credit = credit
        account.updated_by = updated_by
        account.updated_at = utcnow()
        await self.db.flush()
        return account

    async def _reload_detail(self, account_number: str) -> AccountDetail:
        result = await self.db.execute(
            select(AccountDetail)
            .where(AccountDetail.account_number == account_number)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()


def _account_conditions(model, filters: AccountFilter) -> list:
    conditions = []
    if not filters.include_deleted:
        conditions.append(model.deleted_at.is_(None))
    if filters.search:
        pattern = f"%{filters.search}%"
        conditions.append(or_(model.account_number.ilike(pattern), model.account_name.ilike(pattern)))
    if filters.account_category:
        conditions.append(model.account_category == filters.account_category)
    if filters.report_type:
        conditions.append(model.report_type == filters.report_type)
    if filters.transaction_type:
        conditions.append(model.transaction_type == filters.transaction_type)
    return conditions
