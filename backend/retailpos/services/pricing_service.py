# Overview: Service-layer operations for tiered product prices.

"""
Tiered Price Service

Products carry buying and selling prices for piece, pack and dozen. A price
is always entered for one unit; the other two tiers are derived from it with
the pieces-per-unit table in Config.UNIT_RATIOS:

    tier_price = entered_price * ratio(tier) / ratio(entered_unit)

The entered tier is stored as given. Derived tiers are computed from the
unrounded per-piece value and rounded once, half-up, to 2 decimal places.

Used by stock receipts, purchase order receipts and product price edits, so
every price-changing write goes through the same table.
"""

from __future__ import annotations

from decimal import Decimal

from ..models import Product
from ..money import quantize_money
from ..units import UnitType, parse_unit_type, per_piece, unit_ratio
from ..validation import check_price, to_decimal


def price_field(unit: UnitType, side: str) -> str:
    """Column name for a unit tier, e.g. ("pack", "buying") -> "pack_buying_price"."""
    return f"{unit.value}_{side}_price"


def _tier_values(unit: UnitType, price: Decimal) -> dict[UnitType, Decimal]:
    piece_price = per_piece(price, unit)
    values = {}
    for tier in UnitType:
        if tier is unit:
            values[tier] = quantize_money(price)
        else:
            values[tier] = quantize_money(piece_price * unit_ratio(tier))
    return values


def derive_tier_prices(unit, buying_price, selling_price) -> dict[str, Decimal]:
    """
    Compute all six price fields from a buying/selling pair entered for `unit`.

    Args:
        unit: UnitType or its string value
        buying_price: Buying price of one `unit`
        selling_price: Selling price of one `unit`

    Returns:
        Dict keyed by Product price column name

    Raises:
        ValidationError: unknown unit, non-numeric or negative prices, or any
            tier (entered or derived) above MAX_PRICE
    """
    unit = parse_unit_type(unit)
    buying = check_price(to_decimal(buying_price, "buying_price"), "buying_price")
    selling = check_price(to_decimal(selling_price, "selling_price"), "selling_price")

    prices: dict[str, Decimal] = {}
    for side, entered in (("buying", buying), ("selling", selling)):
        for tier, value in _tier_values(unit, entered).items():
            field = price_field(tier, side)
            # a derived tier can be up to 12x the entered one
            prices[field] = check_price(value, field)
    return prices


def apply_tier_prices(product: Product, unit, buying_price, selling_price) -> dict[str, Decimal]:
    """
    Write all six price fields onto `product`.

    Does not flush or commit; the caller's transaction persists the change.
    """
    prices = derive_tier_prices(unit, buying_price, selling_price)
    for field, value in prices.items():
        setattr(product, field, value)
    return prices


def current_price(product: Product, unit, side: str) -> Decimal:
    """The product's stored price for one tier, e.g. current_price(p, "pack", "selling")."""
    unit = parse_unit_type(unit)
    value = getattr(product, price_field(unit, side))
    return Decimal(value) if value is not None else Decimal("0")
