"""
Chart of accounts database models.

Two-level chart: general (roll-up) accounts and detail (leaf) accounts.
Both are keyed by a unique human-readable account number.
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
from ledger_backend.app.db.session import Base
from ledger_backend.app.core.money import MoneyType, ZERO
from ledger_backend.app.models.ledger_enums import AccountCategory, ReportType, TransactionType


class _AccountColumns:
    """Columns shared by general and detail accounts."""

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    account_number = Column(String(20), unique=True, index=True, nullable=False)
    account_name = Column(String(100), nullable=False)

    account_category = Column(Enum(AccountCategory), nullable=False)
    report_type = Column(Enum(ReportType), nullable=False, index=True)
    # Side that increases the balance
    transaction_type = Column(Enum(TransactionType), nullable=False)

    # Running balances
    amount_debit = Column(MoneyType(), default=ZERO, nullable=False)
    amount_credit = Column(MoneyType(), default=ZERO, nullable=False)
    # Opening balances
    initial_amount_debit = Column(MoneyType(), default=ZERO, nullable=False)
    initial_amount_credit = Column(MoneyType(), default=ZERO, nullable=False)
    # Carried-forward totals
    accumulation_amount_debit = Column(MoneyType(), default=ZERO, nullable=False)
    accumulation_amount_credit = Column(MoneyType(), default=ZERO, nullable=False)

    created_by = Column(Integer, nullable=False)
    updated_by = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Soft delete
    deleted_at = Column(DateTime(timezone=True), nullable=True)


class AccountGeneral(_AccountColumns, Base):
    """
    General account model.

    Parent of one or more detail accounts. Balances are overwritten by the
    neraca akhir roll-up and are only guaranteed to equal the sum of the
    detail balances right after one.
    """
    __tablename__ = "accounts_general"

    def __repr__(self):
        return f"<AccountGeneral(number='{self.account_number}', debit={self.amount_debit}, credit={self.amount_credit})>"


class AccountDetail(_AccountColumns, Base):
    """
    Detail account model.

    Leaf account. Balances change only through balance posting/unposting
    (and accumulation fields through SHU posting).
    """
    __tablename__ = "accounts_detail"

    account_general_account_number = Column(
        String(20),
        ForeignKey("accounts_general.account_number"),
        nullable=False,
        index=True
    )

    def __repr__(self):
        return f"<AccountDetail(number='{self.account_number}', debit={self.amount_debit}, credit={self.amount_credit})>"
