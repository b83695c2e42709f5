"""
Money and date helper tests.
"""

import pytest
from decimal import Decimal
from datetime import date, datetime

from ledger_backend.app.core.money import to_money, to_amount, sum_money, ZERO
from ledger_backend.app.core.dates import DateRange, parse_iso_date, parse_dmy_date
from ledger_backend.app.core.exceptions import InvalidAmountError, InvalidDateError


@pytest.mark.parametrize("raw, expected", [
    (100, Decimal("100.00")),
    ("250.5", Decimal("250.50")),
    (" 12.345 ", Decimal("12.35")),
    ("1.005", Decimal("1.01")),
    (Decimal("-3.335"), Decimal("-3.34")),
    (0.1, Decimal("0.10")),
])
def test_to_money_quantizes_half_up(raw, expected):
    assert to_money(raw) == expected


def test_float_sum_is_exact_after_normalization():
    assert to_money(0.1) + to_money(0.2) == Decimal("0.30")


@pytest.mark.parametrize("raw", ["abc", "", None, True, "NaN", "Infinity", float("inf"), Decimal("NaN")])
def test_to_money_rejects_non_finite_input(raw):
    with pytest.raises(InvalidAmountError) as exc_info:
        to_money(raw)
    assert exc_info.value.error_code == "INVALID_AMOUNT"
    assert exc_info.value.status_code == 400


def test_to_amount_rejects_negative():
    assert to_amount("0") == ZERO
    with pytest.raises(InvalidAmountError):
        to_amount("-0.01")


def test_sum_money():
    assert sum_money(["100.10", 200, Decimal("0.005")]) == Decimal("300.11")
    assert sum_money([]) == ZERO


def test_parse_iso_and_dmy_dates():
    assert parse_iso_date("2024-01-15") == date(2024, 1, 15)
    assert parse_dmy_date("15-01-2024") == date(2024, 1, 15)
    assert parse_dmy_date(datetime(2024, 1, 15, 13, 30)) == date(2024, 1, 15)


@pytest.mark.parametrize("parser, raw", [
    (parse_iso_date, "15-01-2024"),
    (parse_iso_date, "2024-02-30"),
    (parse_dmy_date, "2024-01-15"),
    (parse_dmy_date, "not a date"),
    (parse_dmy_date, 20240115),
])
def test_invalid_dates_rejected(parser, raw):
    with pytest.raises(InvalidDateError) as exc_info:
        parser(raw)
    assert exc_info.value.error_code == "INVALID_DATE"


def test_date_range_day_is_half_open():
    scope = DateRange.day(date(2024, 1, 15))
    assert scope.start == datetime(2024, 1, 15)
    assert scope.end == datetime(2024, 1, 16)


def test_date_range_up_to_includes_whole_cutoff_day():
    scope = DateRange.up_to(date(2024, 1, 15))
    assert scope.start is None
    assert scope.end == datetime(2024, 1, 16)
