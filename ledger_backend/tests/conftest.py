"""
Centralized Test Configuration.
"""

import pytest
from decimal import Decimal
from datetime import date
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from ledger_backend.app.main import app
from ledger_backend.app.db.session import get_db, get_session_factory, Base
from ledger_backend.app.core.jwt import create_access_token
from ledger_backend.app.core.security import get_password_hash
from ledger_backend.app.core.dates import as_ledger_datetime
from ledger_backend.app.models.user import User
from ledger_backend.app.models.account import AccountGeneral, AccountDetail
from ledger_backend.app.models.ledger import Ledger
from ledger_backend.app.models.journal_ledger import JournalLedger
from ledger_backend.app.models.sisa_hasil_usaha import SisaHasilUsaha
from ledger_backend.app.models.enums import UserRole
from ledger_backend.app.models.ledger_enums import (
    AccountCategory,
    LedgerType,
    PostingStatus,
    ReportType,
    TransactionType,
)

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


@pytest.fixture(scope="session", autouse=True)
def apply_overrides():
    """Point the app's session dependencies at the test database."""
    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    yield
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def session_factory():
    return TestingSessionLocal


# Users

async def _create_user(db: AsyncSession, username: str, role: UserRole, password: str = "secret123", is_active: bool = True) -> User:
    user = User(
        username=username,
        name=username.title(),
        hashed_password=get_password_hash(password),
        role=role,
        is_active=is_active
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": user.username, "user_id": user.id, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin_user(db_session):
    return await _create_user(db_session, "admin", UserRole.ADMIN)


@pytest.fixture
async def akuntan_user(db_session):
    return await _create_user(db_session, "akuntan", UserRole.AKUNTAN)


@pytest.fixture
async def kasir_user(db_session):
    return await _create_user(db_session, "kasir", UserRole.KASIR)


@pytest.fixture
async def nasabah_user(db_session):
    return await _create_user(db_session, "nasabah", UserRole.NASABAH)


@pytest.fixture
def akuntan_headers(akuntan_user):
    return auth_headers(akuntan_user)


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture
def kasir_headers(kasir_user):
    return auth_headers(kasir_user)


@pytest.fixture
def nasabah_headers(nasabah_user):
    return auth_headers(nasabah_user)


# Chart of accounts

CHART_GENERAL = [
    ("1100", "KAS", AccountCategory.AKTIVA, ReportType.NERACA, TransactionType.DEBIT),
    ("3200", "EKUITAS", AccountCategory.PASIVA, ReportType.NERACA, TransactionType.CREDIT),
    ("4100", "PENDAPATAN", AccountCategory.PENJUALAN, ReportType.LABA_RUGI, TransactionType.CREDIT),
    ("5100", "BEBAN", AccountCategory.BEBAN_DAN_BIAYA, ReportType.LABA_RUGI, TransactionType.DEBIT),
]

CHART_DETAIL = [
    ("1101", "KAS BESAR", "1100"),
    ("1102", "BANK", "1100"),
    ("3203", "SISA HASIL USAHA", "3200"),
    ("4101", "PENDAPATAN JASA", "4100"),
    ("5101", "BEBAN GAJI", "5100"),
]


@pytest.fixture
async def chart(db_session):
    """Two-level chart of accounts with zero balances, including the SHU account 3203."""
    generals = {}
    for number, name, category, report_type, polarity in CHART_GENERAL:
        generals[number] = AccountGeneral(
            account_number=number,
            account_name=name,
            account_category=category,
            report_type=report_type,
            transaction_type=polarity,
            created_by=1,
            updated_by=1
        )
    db_session.add_all(generals.values())
    await db_session.flush()

    details = {}
    for number, name, parent in CHART_DETAIL:
        general = generals[parent]
        details[number] = AccountDetail(
            account_number=number,
            account_name=name,
            account_category=general.account_category,
            report_type=general.report_type,
            transaction_type=general.transaction_type,
            account_general_account_number=parent,
            created_by=1,
            updated_by=1
        )
    db_session.add_all(details.values())
    await db_session.commit()
    return {"general": generals, "detail": details}


@pytest.fixture
def add_ledgers(db_session):
    """
    Insert PENDING ledger lines directly.

    Each line is (detail account number, transaction type, amount).
    """
    async def _add(ledger_date: date, lines, reference_number: str = "REF-TEST") -> list:
        parents = dict((number, parent) for number, _, parent in CHART_DETAIL)
        ledgers = [
            Ledger(
                reference_number=reference_number,
                amount=Decimal(str(amount)),
                description=f"{transaction_type.value} {account_number}",
                ledger_type=LedgerType.KAS_MASUK if transaction_type == TransactionType.DEBIT else LedgerType.KAS_KELUAR,
                transaction_type=transaction_type,
                ledger_date=as_ledger_datetime(ledger_date),
                posting_status=PostingStatus.PENDING,
                account_detail_account_number=account_number,
                account_general_account_number=parents[account_number],
                created_by=1,
                updated_by=1
            )
            for account_number, transaction_type, amount in lines
        ]
        db_session.add_all(ledgers)
        await db_session.commit()
        return ledgers

    return _add


# Fresh-session readers (never served from a test session's identity map)

async def fetch_detail(account_number: str) -> AccountDetail:
    async with TestingSessionLocal() as session:
        result = await session.execute(
            select(AccountDetail).where(AccountDetail.account_number == account_number)
        )
        return result.scalar_one()


async def fetch_general(account_number: str) -> AccountGeneral:
    async with TestingSessionLocal() as session:
        result = await session.execute(
            select(AccountGeneral).where(AccountGeneral.account_number == account_number)
        )
        return result.scalar_one()


async def fetch_ledgers() -> list:
    async with TestingSessionLocal() as session:
        result = await session.execute(select(Ledger).order_by(Ledger.id))
        return list(result.scalars().all())


async def fetch_journals() -> list:
    async with TestingSessionLocal() as session:
        result = await session.execute(select(JournalLedger).order_by(JournalLedger.id))
        return list(result.scalars().all())


async def fetch_shu(year: str):
    async with TestingSessionLocal() as session:
        result = await session.execute(select(SisaHasilUsaha).where(SisaHasilUsaha.year == year))
        return result.scalar_one_or_none()


async def set_detail_balance(account_number: str, debit, credit) -> None:
    async with TestingSessionLocal() as session:
        result = await session.execute(
            select(AccountDetail).where(AccountDetail.account_number == account_number)
        )
        account = result.scalar_one()
        account.amount_debit = Decimal(str(debit))
        account.amount_credit = Decimal(str(credit))
        await session.commit()
