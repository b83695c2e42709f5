"""
Bookkeeping enumerations.
"""

import enum


class PostingStatus(str, enum.Enum):
    """Posting status shared by ledgers and journal ledgers."""
    PENDING = "PENDING"  # Recorded, not yet applied
    POSTED = "POSTED"  # Applied


class TransactionType(str, enum.Enum):
    """Entry side, and for accounts the side that increases the balance."""
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class ReportType(str, enum.Enum):
    """Report an account belongs to."""
    NERACA = "NERACA"  # Balance sheet
    LABA_RUGI = "LABA_RUGI"  # Profit and loss


class LedgerType(str, enum.Enum):
    """Ledger entry type."""
    KAS_MASUK = "KAS_MASUK"  # Cash in
    KAS_KELUAR = "KAS_KELUAR"  # Cash out


class AccountCategory(str, enum.Enum):
    """Chart of accounts category."""
    AKTIVA = "AKTIVA"  # Assets
    PASIVA = "PASIVA"  # Liabilities and equity
    PENJUALAN = "PENJUALAN"  # Revenue
    BEBAN_DAN_BIAYA = "BEBAN_DAN_BIAYA"  # Expenses
