"""
Money helper.

All monetary fields are ``Decimal`` values quantized to two places with
ROUND_HALF_UP. Binary floats are only accepted at the boundary and are
converted through their string form, never compared directly.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable

from sqlalchemy import Numeric
from sqlalchemy.types import TypeDecorator

from ledger_backend.app.core.exceptions import InvalidAmountError

MONEY_DECIMAL_PLACES = 2
MONEY_PRECISION = 14
CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """
    Normalize a numeric or string input to a two-place Decimal.

    Raises:
        InvalidAmountError: If the value is not a finite number
    """
    if isinstance(value, bool) or value is None:
        raise InvalidAmountError(value)

    if isinstance(value, Decimal):
        candidate = value
    else:
        try:
            candidate = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise InvalidAmountError(value)

    if not candidate.is_finite():
        raise InvalidAmountError(value)

    return candidate.quantize(CENT, rounding=ROUND_HALF_UP)


def to_amount(value: Any) -> Decimal:
    """Like ``to_money`` but rejects negative amounts (ledger lines, balances)."""
    amount = to_money(value)
    if amount < ZERO:
        raise InvalidAmountError(value, reason="must not be negative")
    return amount


def sum_money(values: Iterable[Any]) -> Decimal:
    """Sum monetary values exactly, returning a quantized Decimal."""
    total = ZERO
    for value in values:
        total += to_money(value)
    return to_money(total)


class MoneyType(TypeDecorator):
    """
    Fixed-point money column.

    Stored as NUMERIC(14, 2); values are quantized on bind and on load so
    backends without a native decimal type (SQLite) still round-trip exact
    two-place amounts.
    """

    impl = Numeric(MONEY_PRECISION, MONEY_DECIMAL_PLACES, asdecimal=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return to_money(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return to_money(value)
