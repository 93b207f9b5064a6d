"""Stock ledger primitives: reading, locking and decrementing quantities.

``lock_items`` and ``decrement_stock`` must run inside ``transaction.atomic()``
owned by the caller; they never open a transaction of their own so that a
multi-item sale commits or rolls back as a single unit.
"""

from decimal import Decimal
from typing import Any, Dict, Iterable

from django.db import transaction

from inventory.exceptions import (
    InsufficientStock,
    InternalError,
    InvalidInput,
    ItemNotFound,
)
from inventory.models import Item
from inventory_app.logging import get_logger

from .quantities import to_decimal

logger = get_logger(__name__)

DECREMENT_ATTEMPTS = 3


def get_stock(item_id: int) -> Dict[str, Any]:
    """Return the quantity on hand, name and unit for ``item_id``."""

    row = (
        Item.objects.filter(pk=item_id)
        .values("item_id", "name", "unit", "current_stock")
        .first()
    )
    if row is None:
        raise ItemNotFound(item_id)
    return row


def lock_items(item_ids: Iterable[int]) -> Dict[int, Item]:
    """Lock the rows for ``item_ids`` and return them keyed by primary key.

    Rows are locked in primary key order so two sales touching overlapping
    ingredients always acquire their locks in the same sequence. Missing ids
    are simply absent from the result.
    """

    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("lock_items() must be called inside transaction.atomic()")
    ids = sorted(set(item_ids))
    rows = Item.objects.select_for_update().filter(pk__in=ids).order_by("pk")
    return {item.pk: item for item in rows}


def decrement_stock(item_id: int, amount: Decimal) -> Decimal:
    """Subtract ``amount`` from an item's stock and return the new quantity.

    The new quantity is computed with ``Decimal`` arithmetic and written with
    a compare-and-swap on the quantity that was read, so the stored value is
    always exact and a concurrent change is never overwritten.
    """

    amount = to_decimal(amount, "amount")
    if amount <= 0:
        raise InvalidInput("amount must be greater than 0.")
    for _ in range(DECREMENT_ATTEMPTS):
        row = Item.objects.filter(pk=item_id).values("name", "current_stock").first()
        if row is None:
            logger.warning("Item %s not found", item_id)
            raise ItemNotFound(item_id)
        current = row["current_stock"]
        if current < amount:
            raise InsufficientStock(row["name"], amount, current)
        remaining = current - amount
        updated = Item.objects.filter(pk=item_id, current_stock=current).update(
            current_stock=remaining
        )
        if updated:
            return remaining
        logger.warning("Stock of item %s changed while decrementing; retrying", item_id)
    raise InternalError(f"Stock of item {item_id} kept changing during the update.")
