"""
Net income (Sisa Hasil Usaha) and neraca akhir tests.
"""

import pytest
from decimal import Decimal
from datetime import date

from ledger_backend.app.core.dates import utcnow
from ledger_backend.app.core.exceptions import (
    AccountNotFoundError,
    InvalidAmountError,
    NothingToPostError,
    PeriodClosedError,
)
from ledger_backend.app.domain.posting.posting_engine import PostingEngine

from conftest import fetch_detail, fetch_general, fetch_shu, set_detail_balance

YEAR_END = date(2024, 12, 31)
USER_ID = 3


@pytest.fixture
def engine(session_factory):
    return PostingEngine(session_factory)


@pytest.fixture
async def profitable_year(chart):
    await set_detail_balance("4101", "0.00", "1000.00")
    await set_detail_balance("5101", "400.00", "0.00")


async def test_calculate_net_income(engine, profitable_year):
    calculation = await engine.calculate_neraca_balance(YEAR_END)

    assert calculation.year == "2024"
    assert calculation.total_revenue == Decimal("1000.00")
    assert calculation.total_expense == Decimal("400.00")
    assert calculation.net_income == Decimal("600.00")
    assert calculation.accounts_processed == 2
    assert calculation.existing_record is None
    assert calculation.is_closed is False
    assert calculation.can_save is True


async def test_calculate_does_not_write(engine, profitable_year):
    await engine.calculate_neraca_balance(YEAR_END)
    assert await fetch_shu("2024") is None


async def test_calculate_without_profit_and_loss_accounts(engine):
    with pytest.raises(AccountNotFoundError):
        await engine.calculate_neraca_balance(YEAR_END)


async def test_post_net_income_creates_record_and_accumulates(engine, profitable_year):
    result = await engine.post_neraca_balance(YEAR_END, "600.00", USER_ID)

    assert result.operation == "created"
    assert result.amount == Decimal("600.00")
    assert result.accumulation_amount_credit == Decimal("600.00")
    assert result.accumulation_amount_debit == Decimal("0.00")

    record = await fetch_shu("2024")
    assert record.amount == Decimal("600.00")
    assert record.account_detail_account_number == "3203"
    assert record.account_general_account_number == "3200"
    assert record.accounting_close is False

    shu_account = await fetch_detail("3203")
    assert shu_account.accumulation_amount_credit == Decimal("600.00")
    assert shu_account.updated_by == USER_ID


async def test_reposting_replaces_previous_contribution(engine, profitable_year):
    await engine.post_neraca_balance(YEAR_END, "600.00", USER_ID)
    result = await engine.post_neraca_balance(date(2024, 6, 30), "450.00", USER_ID)

    assert result.operation == "updated"
    shu_account = await fetch_detail("3203")
    assert shu_account.accumulation_amount_credit == Decimal("450.00")
    assert shu_account.accumulation_amount_debit == Decimal("0.00")
    assert (await fetch_shu("2024")).amount == Decimal("450.00")


async def test_loss_accumulates_on_debit_side(engine, profitable_year):
    await engine.post_neraca_balance(YEAR_END, "600.00", USER_ID)
    await engine.post_neraca_balance(YEAR_END, "-200.00", USER_ID)

    shu_account = await fetch_detail("3203")
    assert shu_account.accumulation_amount_credit == Decimal("0.00")
    assert shu_account.accumulation_amount_debit == Decimal("200.00")


async def test_separate_years_accumulate_independently(engine, profitable_year):
    await engine.post_neraca_balance(date(2023, 12, 31), "100.00", USER_ID)
    await engine.post_neraca_balance(YEAR_END, "600.00", USER_ID)

    assert (await fetch_detail("3203")).accumulation_amount_credit == Decimal("700.00")


async def test_invalid_amount_rejected_before_any_write(engine, profitable_year):
    with pytest.raises(InvalidAmountError):
        await engine.post_neraca_balance(YEAR_END, "six hundred", USER_ID)
    assert await fetch_shu("2024") is None


async def test_missing_shu_account(session_factory, profitable_year):
    engine = PostingEngine(session_factory, shu_account_number="9999")

    with pytest.raises(AccountNotFoundError):
        await engine.post_neraca_balance(YEAR_END, "600.00", USER_ID)
    assert await fetch_shu("2024") is None


async def test_closed_year_rejects_any_posting(engine, profitable_year):
    await engine.post_neraca_balance(YEAR_END, "600.00", USER_ID)
    closed = await engine.close_accounting_year("2024", USER_ID)
    assert closed.accounting_close is True
    assert closed.closed_by == USER_ID

    for amount in ("600.00", "0", "-1"):
        with pytest.raises(PeriodClosedError) as exc_info:
            await engine.post_neraca_balance(YEAR_END, amount, USER_ID)
        assert exc_info.value.error_code == "PERIOD_CLOSED"

    assert (await fetch_shu("2024")).amount == Decimal("600.00")
    assert (await fetch_detail("3203")).accumulation_amount_credit == Decimal("600.00")

    calculation = await engine.calculate_neraca_balance(YEAR_END)
    assert calculation.is_closed is True
    assert calculation.can_save is False


async def test_close_is_one_way(engine, profitable_year):
    await engine.post_neraca_balance(YEAR_END, "600.00", USER_ID)
    await engine.close_accounting_year("2024", USER_ID)

    with pytest.raises(PeriodClosedError):
        await engine.close_accounting_year("2024", USER_ID)


async def test_close_without_record(engine, chart):
    with pytest.raises(NothingToPostError):
        await engine.close_accounting_year("2024", USER_ID)


# Neraca akhir

async def test_neraca_akhir_rolls_up_detail_balances(engine, chart):
    await set_detail_balance("1101", "500.00", "100.00")
    await set_detail_balance("1102", "250.50", "0.00")
    await set_detail_balance("4101", "0.00", "900.00")

    result = await engine.post_neraca_akhir(YEAR_END, USER_ID)

    assert result.detail_accounts_processed == 5
    assert result.general_accounts_updated == 4
    cash = await fetch_general("1100")
    assert (cash.amount_debit, cash.amount_credit) == (Decimal("750.50"), Decimal("100.00"))
    revenue = await fetch_general("4100")
    assert (revenue.amount_debit, revenue.amount_credit) == (Decimal("0.00"), Decimal("900.00"))


async def test_neraca_akhir_is_idempotent(engine, chart):
    await set_detail_balance("1101", "500.00", "100.00")

    await engine.post_neraca_akhir(YEAR_END, USER_ID)
    first = await fetch_general("1100")
    await engine.post_neraca_akhir(YEAR_END, USER_ID)
    second = await fetch_general("1100")

    assert (first.amount_debit, first.amount_credit) == (second.amount_debit, second.amount_credit)
    assert second.amount_debit == Decimal("500.00")


async def test_neraca_akhir_overwrites_stale_general_balance(engine, chart, db_session):
    chart["general"]["1100"].amount_debit = Decimal("99999.00")
    await db_session.commit()
    await set_detail_balance("1101", "10.00", "0.00")

    await engine.post_neraca_akhir(YEAR_END, USER_ID)

    assert (await fetch_general("1100")).amount_debit == Decimal("10.00")


async def test_neraca_akhir_skips_deleted_detail_accounts(engine, chart, db_session):
    await set_detail_balance("1101", "500.00", "0.00")
    await set_detail_balance("1102", "300.00", "0.00")
    chart["detail"]["1102"].deleted_at = utcnow()
    await db_session.commit()

    await engine.post_neraca_akhir(YEAR_END, USER_ID)

    assert (await fetch_general("1100")).amount_debit == Decimal("500.00")


async def test_neraca_akhir_missing_general_account_aborts(engine, chart, db_session):
    await set_detail_balance("1101", "500.00", "0.00")
    chart["general"]["4100"].deleted_at = utcnow()
    await db_session.commit()

    with pytest.raises(AccountNotFoundError):
        await engine.post_neraca_akhir(YEAR_END, USER_ID)

    # 1100 sorts before 4100 and was rolled back with the rest
    assert (await fetch_general("1100")).amount_debit == Decimal("0.00")


async def test_neraca_akhir_without_detail_accounts(engine):
    with pytest.raises(NothingToPostError):
        await engine.post_neraca_akhir(YEAR_END, USER_ID)
