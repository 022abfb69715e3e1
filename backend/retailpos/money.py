# Overview: Decimal money helpers shared by pricing, stock and reporting.

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from flask import current_app, has_app_context


def _places() -> int:
    if has_app_context():
        return int(current_app.config.get("PRICE_DECIMAL_PLACES", 2))
    return 2


def quantize_money(value) -> Decimal:
    """Round half-up to the configured number of decimal places (2 by default)."""
    exponent = Decimal(1).scaleb(-_places())
    return Decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def money_json(value) -> float | None:
    """JSON-friendly rendering of a Numeric column."""
    if value is None:
        return None
    return float(value)
