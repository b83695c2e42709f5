"""
User roles enumeration.

Defines the role types for the ledger system.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Supreme user with system-level access
        MANAJER: Manager, may close accounting years
        AKUNTAN: Accountant, runs posting workflows
        KASIR: Cashier, records ledger entries
        KOLEKTOR: Collector, records ledger entries
        NASABAH: Member, read-only (default role)
    """
    ADMIN = "ADMIN"
    MANAJER = "MANAJER"
    AKUNTAN = "AKUNTAN"
    KASIR = "KASIR"
    KOLEKTOR = "KOLEKTOR"
    NASABAH = "NASABAH"


# Roles allowed to run posting workflows
ACCOUNTING_ROLES = [UserRole.ADMIN, UserRole.MANAJER, UserRole.AKUNTAN]

# Roles allowed to record ledger entries
LEDGER_WRITER_ROLES = ACCOUNTING_ROLES + [UserRole.KASIR, UserRole.KOLEKTOR]
