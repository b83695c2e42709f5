"""
Accumulation pass tests (no database).
"""

from decimal import Decimal
from types import SimpleNamespace

from ledger_backend.app.domain.posting.aggregation import (
    accumulate_general_totals,
    accumulate_journal_deltas,
    compute_net_income,
    journal_sides,
    net_income_accumulation,
)
from ledger_backend.app.models.ledger_enums import TransactionType


def journal(account, debit="0", credit="0"):
    return SimpleNamespace(account_detail_account_number=account, debit=Decimal(debit), credit=Decimal(credit))


def detail(number, general, debit="0", credit="0", polarity=TransactionType.DEBIT):
    return SimpleNamespace(
        account_number=number,
        account_general_account_number=general,
        amount_debit=Decimal(debit),
        amount_credit=Decimal(credit),
        transaction_type=polarity
    )


def test_journal_sides_put_amount_on_one_side():
    assert journal_sides(TransactionType.DEBIT, "100") == (Decimal("100.00"), Decimal("0.00"))
    assert journal_sides(TransactionType.CREDIT, 55.5) == (Decimal("0.00"), Decimal("55.50"))


def test_journal_deltas_grouped_by_account_in_input_order():
    deltas = accumulate_journal_deltas([
        journal("1101", debit="100"),
        journal("1101", credit="40"),
        journal("4101", credit="100"),
        journal("1101", debit="0.10"),
    ])

    assert list(deltas) == ["1101", "4101"]
    assert deltas["1101"].debit == Decimal("100.10")
    assert deltas["1101"].credit == Decimal("40.00")
    assert deltas["1101"].entries == 3
    assert deltas["4101"].credit == Decimal("100.00")


def test_journal_deltas_empty():
    assert accumulate_journal_deltas([]) == {}


def test_general_totals_sum_children():
    totals = accumulate_general_totals([
        detail("1101", "1100", debit="500", credit="100"),
        detail("1102", "1100", debit="250.25"),
        detail("4101", "4100", credit="900"),
    ])

    assert totals["1100"].amount_debit == Decimal("750.25")
    assert totals["1100"].amount_credit == Decimal("100.00")
    assert totals["1100"].detail_accounts == ["1101", "1102"]
    assert totals["4100"].amount_credit == Decimal("900.00")


def test_net_income_from_profit_and_loss_accounts():
    income = compute_net_income([
        detail("4101", "4100", credit="1000", polarity=TransactionType.CREDIT),
        detail("5101", "5100", debit="400", polarity=TransactionType.DEBIT),
        # Opposite sides are ignored
        detail("4102", "4100", debit="70", polarity=TransactionType.CREDIT),
    ])

    assert income.revenue == Decimal("1000.00")
    assert income.expense == Decimal("400.00")
    assert income.net == Decimal("600.00")
    assert income.accounts_processed == 3


def test_net_income_accumulation_sides():
    assert net_income_accumulation("600") == (Decimal("0.00"), Decimal("600.00"))
    assert net_income_accumulation("-250.5") == (Decimal("250.50"), Decimal("0.00"))
    assert net_income_accumulation(0) == (Decimal("0.00"), Decimal("0.00"))
