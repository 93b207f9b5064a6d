"""Service layer for the inventory app."""

from . import (
    item_service,
    quantities,
    recipe_service,
    sale_service,
    stock_service,
)

__all__ = [
    "item_service",
    "quantities",
    "recipe_service",
    "sale_service",
    "stock_service",
]
