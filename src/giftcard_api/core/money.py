"""Money conversion between decimal amounts and stored minor units.

Amounts are persisted as integers in the currency's minor unit (paise for
INR) so that balance arithmetic in SQL stays exact.
"""

from decimal import ROUND_HALF_UP, Decimal

from giftcard_api.config import settings

MAX_AMOUNT = Decimal("999999.99")


def _quantum() -> Decimal:
    return Decimal(1).scaleb(-settings.currency_minor_unit)


def to_minor_units(amount: Decimal | int | float | str) -> int:
    """Convert a decimal amount (``50.00``) to minor units (``5000``)."""
    value = Decimal(str(amount)).quantize(_quantum(), rounding=ROUND_HALF_UP)
    return int(value.scaleb(settings.currency_minor_unit))


def from_minor_units(minor: int) -> Decimal:
    """Convert minor units back to a fixed-point ``Decimal``."""
    return Decimal(minor).scaleb(-settings.currency_minor_unit).quantize(_quantum())


def format_amount(minor: int | None) -> str | None:
    """Render minor units as a fixed-point string, e.g. ``5000`` -> ``"50.00"``."""
    if minor is None:
        return None
    return str(from_minor_units(minor))
