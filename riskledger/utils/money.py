"""Decimal money helpers shared by the projector and the analyzer."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

MoneyLike = Union[Decimal, int, float, str]

DEFAULT_PLACES = 2

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_money(value: MoneyLike) -> Decimal:
    """Convert a value to a finite Decimal.

    Floats go through ``str`` so that ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.

    Args:
        value: Amount as Decimal, int, float or numeric string.

    Returns:
        The amount as a Decimal.

    Raises:
        ValueError: If the value is not numeric, NaN or infinite.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a money amount: {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Not a money amount: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Money amount must be finite: {value!r}")
    return amount


def quantize(value: MoneyLike, places: int = DEFAULT_PLACES) -> Decimal:
    """Round a value half-up to ``places`` decimal places."""
    exponent = Decimal(1).scaleb(-places)
    return to_money(value).quantize(exponent, rounding=ROUND_HALF_UP)


def percent_of(base: MoneyLike, percent: MoneyLike, places: int = DEFAULT_PLACES) -> Decimal:
    """Return ``percent`` % of ``base``, rounded to money places.

    >>> percent_of(10000, 5)
    Decimal('500.00')
    """
    return quantize(to_money(base) * to_money(percent) / HUNDRED, places)


def ratio_percent(part: MoneyLike, whole: MoneyLike, places: int = DEFAULT_PLACES) -> Decimal:
    """Return ``part`` as a percentage of ``whole`` (zero when whole is zero)."""
    whole = to_money(whole)
    if whole == ZERO:
        return quantize(ZERO, places)
    return quantize(to_money(part) / whole * HUNDRED, places)
