"""Fixed-point helpers for monetary values."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Coerce ``value`` to a Decimal rounded half-up to cents.

    ``None`` maps to ``0.00``. Floats go through ``str`` so the binary
    representation never leaks into the ledger.
    """
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_value(unit_price: Decimal, quantity: int) -> Decimal:
    return to_money(to_money(unit_price) * int(quantity))
