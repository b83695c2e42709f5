"""
Accumulation passes for the posting engine.

Pure functions: they compute deltas and totals from rows already loaded
and never touch the session. The engine applies the results afterwards.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from ledger_backend.app.core.money import ZERO, to_money
from ledger_backend.app.models.ledger_enums import TransactionType


@dataclass
class AccountDelta:
    """Summed journal debit/credit for one detail account."""
    account_number: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    entries: int = 0


@dataclass
class GeneralTotals:
    """Summed detail balances under one general account."""
    account_number: str
    amount_debit: Decimal = ZERO
    amount_credit: Decimal = ZERO
    detail_accounts: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class NetIncome:
    revenue: Decimal
    expense: Decimal
    net: Decimal
    accounts_processed: int


def journal_sides(transaction_type: TransactionType, amount) -> Tuple[Decimal, Decimal]:
    """(debit, credit) for a journal row mirroring a ledger line."""
    amount = to_money(amount)
    if transaction_type == TransactionType.DEBIT:
        return amount, ZERO
    return ZERO, amount


def accumulate_journal_deltas(journals: Iterable) -> Dict[str, AccountDelta]:
    """
    Group journal rows by detail account number and sum both sides.

    Keys keep first-appearance order, so rows sorted by account number
    produce deltas in account number order.
    """
    deltas: Dict[str, AccountDelta] = {}
    for journal in journals:
        key = journal.account_detail_account_number
        delta = deltas.get(key)
        if delta is None:
            delta = deltas[key] = AccountDelta(account_number=key)
        delta.debit += to_money(journal.debit)
        delta.credit += to_money(journal.credit)
        delta.entries += 1
    return deltas


def accumulate_general_totals(details: Iterable) -> Dict[str, GeneralTotals]:
    """Group detail accounts by parent general account and sum their balances."""
    totals: Dict[str, GeneralTotals] = {}
    for detail in details:
        key = detail.account_general_account_number
        total = totals.get(key)
        if total is None:
            total = totals[key] = GeneralTotals(account_number=key)
        total.amount_debit += to_money(detail.amount_debit)
        total.amount_credit += to_money(detail.amount_credit)
        total.detail_accounts.append(detail.account_number)
    return totals


def compute_net_income(accounts: Iterable) -> NetIncome:
    """
    Net income from profit-and-loss detail accounts.

    CREDIT-polarity accounts are revenue (amount_credit), DEBIT-polarity
    accounts are expense (amount_debit).
    """
    revenue = ZERO
    expense = ZERO
    processed = 0
    for account in accounts:
        processed += 1
        if account.transaction_type == TransactionType.CREDIT:
            revenue += to_money(account.amount_credit)
        elif account.transaction_type == TransactionType.DEBIT:
            expense += to_money(account.amount_debit)
    return NetIncome(revenue=revenue, expense=expense, net=revenue - expense, accounts_processed=processed)


def net_income_accumulation(amount) -> Tuple[Decimal, Decimal]:
    """(debit, credit) contribution of a net-income figure to the SHU account."""
    amount = to_money(amount)
    if amount > ZERO:
        return ZERO, amount
    if amount < ZERO:
        return -amount, ZERO
    return ZERO, ZERO
