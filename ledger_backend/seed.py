"""
Database seeding script for users and a starter chart of accounts.

Creates one user per role plus the general/detail accounts the posting
workflows expect (including the Sisa Hasil Usaha account 3203).
Run this script after the database is set up but before first use.
"""

import asyncio

from sqlalchemy import select

from ledger_backend.app.db.session import AsyncSessionLocal, engine, Base
from ledger_backend.app.models.user import User
from ledger_backend.app.models.account import AccountGeneral, AccountDetail
from ledger_backend.app.models.enums import UserRole
from ledger_backend.app.models.ledger_enums import AccountCategory, ReportType, TransactionType
from ledger_backend.app.core.security import get_password_hash
from ledger_backend.app.core.config import settings

SEED_USERS = [
    ("admin", "admin123456", "System Administrator", UserRole.ADMIN),
    ("akuntan", "akuntan123456", "Kepala Akuntan", UserRole.AKUNTAN),
    ("manager", "manager123456", "Manajer Keuangan", UserRole.MANAJER),
    ("kasir1", "kasir123456", "Kasir Utama", UserRole.KASIR),
    ("kolektor1", "kolektor123456", "Kolektor Area 1", UserRole.KOLEKTOR),
    ("nasabah1", "nasabah123456", "Ahmad Nasabah", UserRole.NASABAH),
]

# (number, name, category, report type, polarity)
SEED_GENERAL_ACCOUNTS = [
    ("1100", "KAS DAN SETARA KAS", AccountCategory.AKTIVA, ReportType.NERACA, TransactionType.DEBIT),
    ("1200", "PIUTANG", AccountCategory.AKTIVA, ReportType.NERACA, TransactionType.DEBIT),
    ("2100", "SIMPANAN ANGGOTA", AccountCategory.PASIVA, ReportType.NERACA, TransactionType.CREDIT),
    ("3200", "EKUITAS", AccountCategory.PASIVA, ReportType.NERACA, TransactionType.CREDIT),
    ("4100", "PENDAPATAN USAHA", AccountCategory.PENJUALAN, ReportType.LABA_RUGI, TransactionType.CREDIT),
    ("5100", "BEBAN OPERASIONAL", AccountCategory.BEBAN_DAN_BIAYA, ReportType.LABA_RUGI, TransactionType.DEBIT),
]

# (number, name, parent general number); other attributes follow the parent
SEED_DETAIL_ACCOUNTS = [
    ("1101", "KAS BESAR", "1100"),
    ("1102", "BANK", "1100"),
    ("1201", "PIUTANG PINJAMAN ANGGOTA", "1200"),
    ("2101", "SIMPANAN POKOK", "2100"),
    ("2102", "SIMPANAN WAJIB", "2100"),
    (settings.shu_account_number, "SISA HASIL USAHA TAHUN BERJALAN", "3200"),
    ("4101", "PENDAPATAN JASA PINJAMAN", "4100"),
    ("4102", "PENDAPATAN ADMINISTRASI", "4100"),
    ("5101", "BEBAN GAJI", "5100"),
    ("5102", "BEBAN LISTRIK DAN AIR", "5100"),
]


async def seed():
    """Seed users and chart of accounts. Skips if the admin user exists."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting seeding...")

        result = await db.execute(select(User).where(User.username == "admin"))
        if result.scalar_one_or_none():
            print("ℹ️  Database already seeded, skipping")
            return

        users = []
        for username, password, name, role in SEED_USERS:
            user = User(
                username=username,
                name=name,
                hashed_password=get_password_hash(password),
                role=role,
                is_active=True
            )
            users.append(user)
            print(f"✅ Created {role.value} user (username: {username}, password: {password})")
        db.add_all(users)
        await db.flush()

        admin_id = users[0].id
        generals = {}
        for number, name, category, report_type, polarity in SEED_GENERAL_ACCOUNTS:
            generals[number] = AccountGeneral(
                account_number=number,
                account_name=name,
                account_category=category,
                report_type=report_type,
                transaction_type=polarity,
                created_by=admin_id,
                updated_by=admin_id
            )
        db.add_all(generals.values())
        await db.flush()
        print(f"✅ Created {len(generals)} general accounts")

        for number, name, parent in SEED_DETAIL_ACCOUNTS:
            general = generals[parent]
            db.add(AccountDetail(
                account_number=number,
                account_name=name,
                account_category=general.account_category,
                report_type=general.report_type,
                transaction_type=general.transaction_type,
                account_general_account_number=parent,
                created_by=admin_id,
                updated_by=admin_id
            ))
        print(f"✅ Created {len(SEED_DETAIL_ACCOUNTS)} detail accounts")

        await db.commit()
        print("\n🎉 Seeding completed successfully!")


if __name__ == "__main__":
    asyncio.run(seed())
