# Overview: Unit types and conversions between entered units and base pieces.

"""
Units of measure for stock and prices.

Product.quantity is always counted in pieces. Quantities and prices may be
entered per piece, pack or dozen; the pieces-per-unit table lives in
Config.UNIT_RATIOS and nowhere else.
"""

from __future__ import annotations

import enum
from decimal import Decimal
from typing import Mapping

from flask import current_app, has_app_context

from .validation import ValidationError


DEFAULT_UNIT_RATIOS = {"piece": 1, "pack": 3, "dozen": 12}


class UnitType(str, enum.Enum):
    PIECE = "piece"
    PACK = "pack"
    DOZEN = "dozen"


UNIT_TYPES = tuple(u.value for u in UnitType)


def parse_unit_type(value) -> UnitType:
    """Resolve a client-supplied unit. Unknown units are rejected, never defaulted."""
    if isinstance(value, UnitType):
        return value
    if isinstance(value, str):
        try:
            return UnitType(value.strip().lower())
        except ValueError:
            pass
    raise ValidationError(f"Invalid unit_type. Must be one of: {', '.join(UNIT_TYPES)}")


def unit_ratios() -> Mapping[str, int]:
    if has_app_context():
        return current_app.config.get("UNIT_RATIOS", DEFAULT_UNIT_RATIOS)
    return DEFAULT_UNIT_RATIOS


def unit_ratio(unit: UnitType | str, ratios: Mapping[str, int] | None = None) -> int:
    """Pieces per one `unit`."""
    table = ratios if ratios is not None else unit_ratios()
    return int(table[parse_unit_type(unit).value])


def to_pieces(quantity, unit: UnitType | str, ratios: Mapping[str, int] | None = None):
    """
    Express `quantity` of `unit` in base pieces.

    Callers validate quantity (positive, numeric) first; the result keeps the
    numeric type of `quantity`.
    """
    return quantity * unit_ratio(unit, ratios)


def per_piece(amount: Decimal, unit: UnitType | str, ratios: Mapping[str, int] | None = None) -> Decimal:
    """Price of one piece given the price of one `unit` (unrounded)."""
    return Decimal(amount) / unit_ratio(unit, ratios)
