"""
Retail pricing for distributor items.

Storefront price is the distributor net price plus a tiered markup, always
rounded up to the cent. The compare-at price is the distributor's suggested
retail price.
"""

from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Tuple, Union


CENT = Decimal("0.01")

# (highest net price in tier, markup percent); upper bounds are inclusive
MARKUP_TIERS = (
    (Decimal("24.99"), Decimal("30")),
    (Decimal("50.00"), Decimal("25")),
)
DEFAULT_MARKUP = Decimal("20")

PriceInput = Union[str, int, float, Decimal]


def to_decimal(value: PriceInput) -> Decimal:
    """
    Convert a price to Decimal.

    Floats go through str() so 10.0 becomes Decimal("10.0"), not its binary
    approximation.

    Raises:
        ValueError: If the value is not a number
    """
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Invalid price: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Invalid price: {value!r}")
    return result


def markup_percent(net_price: PriceInput) -> Decimal:
    """Markup percentage for a net price."""
    net = to_decimal(net_price)
    for ceiling, markup in MARKUP_TIERS:
        if net <= ceiling:
            return markup
    return DEFAULT_MARKUP


def compute_price(
    net_price: PriceInput, retail_price: PriceInput
) -> Tuple[Decimal, Decimal]:
    """
    Calculate the storefront price and compare-at price.

    Args:
        net_price: Distributor net (wholesale) price
        retail_price: Distributor suggested retail price

    Returns:
        (final_price, compare_at_price), both with two decimal places

    Raises:
        ValueError: If either price is negative or not a number
    """
    net = to_decimal(net_price)
    retail = to_decimal(retail_price)
    if net < 0 or retail < 0:
        raise ValueError(f"Prices must be non-negative: net={net}, retail={retail}")

    multiplier = 1 + markup_percent(net) / 100
    final_price = (net * multiplier).quantize(CENT, rounding=ROUND_CEILING)
    compare_at_price = retail.quantize(CENT, rounding=ROUND_HALF_UP)
    return final_price, compare_at_price


def format_price(value: Optional[PriceInput]) -> Optional[str]:
    """
    Format a price to standard format (2 decimal places).

    Args:
        value: Price as string, number or Decimal

    Returns:
        Formatted price or None
    """
    if value is None:
        return None

    try:
        decimal_value = to_decimal(value)
    except ValueError:
        return None
    return str(decimal_value.quantize(CENT, rounding=ROUND_HALF_UP))
