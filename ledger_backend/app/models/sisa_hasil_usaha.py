"""
Sisa Hasil Usaha (net income) database model.

One row per fiscal year.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from ledger_backend.app.db.session import Base
from ledger_backend.app.core.money import MoneyType


class SisaHasilUsaha(Base):
    """
    Net-income record.

    Created by the first SHU posting of a year and updated by later ones.
    Once accounting_close is set the row and its year are immutable.
    """
    __tablename__ = "sisa_hasil_usaha"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    year = Column(String(4), unique=True, index=True, nullable=False)

    # Signed: negative is a loss
    amount = Column(MoneyType(), nullable=False)

    # Designated net-income account
    account_detail_account_number = Column(String(20), nullable=False)
    account_general_account_number = Column(String(20), nullable=False)

    accounting_close = Column(Boolean, default=False, nullable=False)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    closed_by = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<SisaHasilUsaha(year='{self.year}', amount={self.amount}, closed={self.accounting_close})>"
