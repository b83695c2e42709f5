"""
Ledger database model.

User-facing single-sided transaction lines awaiting double-entry posting.
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
from ledger_backend.app.db.session import Base
from ledger_backend.app.core.money import MoneyType
from ledger_backend.app.models.ledger_enums import LedgerType, PostingStatus, TransactionType


class Ledger(Base):
    """
    Ledger model.

    Lifecycle: created PENDING -> POSTED only via post-ledgers-by-date ->
    back to PENDING only via unposting. POSTED rows are never edited or
    deleted directly; deletion is always soft.
    """
    __tablename__ = "ledgers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    reference_number = Column(String(50), nullable=False, index=True)

    amount = Column(MoneyType(), nullable=False)
    description = Column(String(500), nullable=False)
    ledger_type = Column(Enum(LedgerType), nullable=False)
    transaction_type = Column(Enum(TransactionType), nullable=False)

    # Business date (midnight of the day)
    ledger_date = Column(DateTime(timezone=False), nullable=False, index=True)

    posting_status = Column(Enum(PostingStatus), default=PostingStatus.PENDING, nullable=False, index=True)
    posting_at = Column(DateTime(timezone=True), nullable=True)

    account_detail_account_number = Column(
        String(20), ForeignKey("accounts_detail.account_number"), nullable=False, index=True
    )
    account_general_account_number = Column(
        String(20), ForeignKey("accounts_general.account_number"), nullable=False, index=True
    )

    created_by = Column(Integer, nullable=False)
    updated_by = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Ledger(id={self.id}, ref='{self.reference_number}', status='{self.posting_status.value}', amount={self.amount})>"
