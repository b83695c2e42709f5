"""
Journal Ledger database model.

Internal double-entry mirror of posted ledger rows.
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
from ledger_backend.app.db.session import Base
from ledger_backend.app.core.money import MoneyType, ZERO
from ledger_backend.app.models.ledger_enums import PostingStatus


class JournalLedger(Base):
    """
    Journal Ledger model.

    Exactly one of debit/credit is non-zero. Created only by posting
    ledgers, deleted only by unposting them while still PENDING.
    PENDING -> POSTED via balance posting and back via balance unposting.
    Accounts are referenced by account number.
    """
    __tablename__ = "journal_ledgers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Source ledger line
    ledger_id = Column(Integer, ForeignKey("ledgers.id"), nullable=True, index=True)
    reference_number = Column(String(50), nullable=False)

    account_detail_account_number = Column(String(20), nullable=False, index=True)
    account_general_account_number = Column(String(20), nullable=False, index=True)

    debit = Column(MoneyType(), default=ZERO, nullable=False)
    credit = Column(MoneyType(), default=ZERO, nullable=False)

    ledger_date = Column(DateTime(timezone=False), nullable=False, index=True)
    posting_status = Column(Enum(PostingStatus), default=PostingStatus.PENDING, nullable=False, index=True)
    posting_at = Column(DateTime(timezone=True), nullable=True)

    created_by = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<JournalLedger(id={self.id}, account='{self.account_detail_account_number}', debit={self.debit}, credit={self.credit})>"
