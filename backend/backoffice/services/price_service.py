# Overview: Current unit prices per product category, sourced from configuration.

from __future__ import annotations

from flask import current_app


def get_current_prices() -> dict[str, int]:
    """Unit price in cents for every priced category."""
    prices = current_app.config.get("CATEGORY_PRICES_CENTS") or {}
    return {category: int(price) for category, price in prices.items()}


def unit_price(prices: dict[str, int], category: str) -> int:
    """
    Price for one category, 0 when it is not priced.

    An unpriced category drops out of any amount computed from it, so the
    gap is logged every time it is hit.
    """
    price = prices.get(category)
    if price is None:
        current_app.logger.warning("No unit price configured for category %r; valuing it at 0", category)
        return 0
    return price
