"""Services for recording sales transactions.

A sale consumes every ingredient of one recipe. The read, the availability
check and the decrements all run inside one ``transaction.atomic()`` block
with the ingredient rows locked (``SELECT ... FOR UPDATE``; on SQLite the
transaction starts ``IMMEDIATE`` instead), so two sales that share a scarce
ingredient are serialised: the second one blocks until the first commits or
rolls back, then sees the committed quantity. Any failure raises and leaves
every quantity exactly as it was.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List

from django.conf import settings
from django.db import DatabaseError, connection, transaction

from inventory.exceptions import (
    EmptyComposition,
    InsufficientStock,
    InternalError,
    InventoryError,
    ItemNotFound,
    RecipeNotFound,
)
from inventory.models import Recipe, RecipeComponent
from inventory_app.logging import get_logger

from . import stock_service

logger = get_logger(__name__)

SALE_OK_MESSAGE = "Sale recorded and stock updated."


@dataclass
class SaleLine:
    item_id: int
    item_name: str
    quantity: Decimal
    remaining: Decimal


@dataclass
class SaleResult:
    recipe_id: int
    recipe_name: str
    message: str = SALE_OK_MESSAGE
    lines: List[SaleLine] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recipe_id": self.recipe_id,
            "recipe_name": self.recipe_name,
            "message": self.message,
            "consumed": [
                {
                    "item_id": line.item_id,
                    "item_name": line.item_name,
                    "quantity": str(line.quantity),
                    "remaining": str(line.remaining),
                }
                for line in self.lines
            ],
        }


def _apply_lock_timeout() -> None:
    """Bound how long a sale waits on row locks (PostgreSQL only)."""

    timeout = getattr(settings, "INVENTORY_LOCK_TIMEOUT_MS", None)
    if timeout and connection.vendor == "postgresql":
        with connection.cursor() as cursor:
            cursor.execute("SET LOCAL lock_timeout = %s", [f"{int(timeout)}ms"])


def _sell(recipe_id: int) -> SaleResult:
    recipe = Recipe.objects.filter(pk=recipe_id).values("recipe_id", "name").first()
    if recipe is None:
        raise RecipeNotFound(recipe_id)

    requirements = list(
        RecipeComponent.objects.filter(parent_recipe_id=recipe_id)
        .order_by("id")
        .values_list("item_id", "quantity")
    )
    if not requirements:
        raise EmptyComposition(recipe_id)

    stock = stock_service.lock_items(item_id for item_id, _ in requirements)

    # Check every ingredient before touching any of them.
    for item_id, required in requirements:
        item = stock.get(item_id)
        if item is None:
            raise ItemNotFound(item_id)
        if item.current_stock < required:
            raise InsufficientStock(item.name, required, item.current_stock)

    lines = []
    for item_id, required in requirements:
        remaining = stock_service.decrement_stock(item_id, required)
        lines.append(SaleLine(item_id, stock[item_id].name, required, remaining))
    return SaleResult(recipe["recipe_id"], recipe["name"], lines=lines)


def sell_recipe(recipe_id: int) -> SaleResult:
    """Sell one unit of ``recipe_id`` and decrement its ingredients.

    Raises :class:`RecipeNotFound`, :class:`EmptyComposition`,
    :class:`ItemNotFound` or :class:`InsufficientStock` (naming the first
    short ingredient in composition order) without changing any stock.
    Storage failures are rolled back and raised as :class:`InternalError`;
    they are not retried here.
    """

    try:
        with transaction.atomic():
            _apply_lock_timeout()
            result = _sell(recipe_id)
    except InventoryError as exc:
        logger.warning("Sale of recipe %s rejected: %s", recipe_id, exc.detail)
        raise
    except DatabaseError as exc:
        logger.error("DB error recording sale of recipe %s: %s", recipe_id, exc)
        raise InternalError("A database error occurred during sale recording.")
    logger.info(
        "Recipe %s (%s) sold; %s ingredient(s) decremented.",
        recipe_id,
        result.recipe_name,
        len(result.lines),
    )
    return result
