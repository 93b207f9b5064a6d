"""Directory operations for stock items (ingredients).

Validation happens before any write. Storage-level uniqueness and integrity
failures are translated into :mod:`inventory.exceptions` errors so callers
never see driver messages.
"""

from __future__ import annotations

import traceback
from typing import Any, Dict, List, Optional, Tuple

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction

from inventory.exceptions import Conflict, InternalError, InvalidInput, ItemNotFound
from inventory.models import Item, RecipeComponent
from inventory_app.logging import get_logger

from .quantities import non_negative_quantity

logger = get_logger(__name__)

ITEM_FIELDS = ("item_id", "name", "current_stock", "unit", "created_at", "updated_at")
UPDATABLE_FIELDS = ("name", "current_stock", "unit")


def _validate_required(
    details: Dict[str, Any], required: List[str]
) -> Tuple[bool, List[str]]:
    missing = [
        k
        for k in required
        if details.get(k) is None or not str(details.get(k)).strip()
    ]
    return (not missing, missing)


def _clean_unit(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value.strip() or None
    return None


def _clean_name(value: Any) -> str:
    name = str(value).strip() if value is not None else ""
    if not name:
        raise InvalidInput("Item name cannot be empty.")
    return name


def _as_dict(item: Item) -> Dict[str, Any]:
    return {field: getattr(item, field) for field in ITEM_FIELDS}


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def list_items(name: Optional[str] = None) -> List[Dict[str, Any]]:
    """Return all items, optionally filtered by a name substring."""

    qs = Item.objects.all()
    if name:
        qs = qs.filter(name__icontains=name)
    return list(qs.values(*ITEM_FIELDS))


def get_item_details(item_id: int) -> Dict[str, Any]:
    row = Item.objects.filter(pk=item_id).values(*ITEM_FIELDS).first()
    if row is None:
        raise ItemNotFound(item_id)
    return row


# ---------------------------------------------------------------------------
# Mutating helpers
# ---------------------------------------------------------------------------


def add_new_item(details: Dict[str, Any]) -> Dict[str, Any]:
    """Insert a single item and return its stored representation."""

    valid, missing = _validate_required(details, ["name", "current_stock"])
    if not valid:
        raise InvalidInput(f"Missing or empty required fields: {', '.join(missing)}")
    params = dict(
        name=_clean_name(details["name"]),
        current_stock=non_negative_quantity(details["current_stock"], "current_stock"),
        unit=_clean_unit(details.get("unit")),
    )
    try:
        with transaction.atomic():
            item = Item.objects.create(**params)
    except IntegrityError:
        raise Conflict(
            f"Item '{params['name']}' already exists. Choose a unique name."
        )
    except DatabaseError as e:
        logger.error(
            "ERROR [item_service.add_new_item]: Database error adding item: %s\n%s",
            e,
            traceback.format_exc(),
        )
        raise InternalError("A database error occurred while adding the item.")
    logger.info("Item '%s' added with ID %s.", item.name, item.pk)
    return _as_dict(item)


def update_item(item_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
    """Update an existing item.

    Only ``name``, ``current_stock`` and ``unit`` are recognised; a payload
    that supplies none of them is rejected. The row is locked for the
    duration of the update so a stock correction cannot interleave with a
    sale's read-then-decrement on the same item.
    """

    if not updates or not any(k in UPDATABLE_FIELDS for k in updates):
        raise InvalidInput("No valid fields provided for update.")

    cleaned: Dict[str, Any] = {}
    if "name" in updates:
        cleaned["name"] = _clean_name(updates["name"])
    if "current_stock" in updates:
        cleaned["current_stock"] = non_negative_quantity(
            updates["current_stock"], "current_stock"
        )
    if "unit" in updates:
        cleaned["unit"] = _clean_unit(updates["unit"])

    try:
        with transaction.atomic():
            item = Item.objects.select_for_update().filter(pk=item_id).first()
            if item is None:
                raise ItemNotFound(item_id)
            for field, val in cleaned.items():
                setattr(item, field, val)
            item.save()
    except IntegrityError:
        raise Conflict(
            f"Update failed: Potential duplicate name '{updates.get('name')}'."
        )
    except DatabaseError as exc:
        logger.error(
            "ERROR [item_service.update_item]: Database error updating item %s: %s\n%s",
            item_id,
            exc,
            traceback.format_exc(),
        )
        raise InternalError("A database error occurred while updating the item.")
    logger.info("Item ID %s updated: %s", item_id, ", ".join(sorted(cleaned)))
    return _as_dict(item)


def delete_item(item_id: int) -> None:
    """Delete an item.

    An item referenced by any recipe composition is only removed when
    ``INVENTORY_CASCADE_ITEM_DELETE`` is enabled; its composition rows are
    then deleted explicitly before the item. Otherwise :class:`Conflict`.
    """

    cascade = getattr(settings, "INVENTORY_CASCADE_ITEM_DELETE", False)
    try:
        with transaction.atomic():
            item = Item.objects.select_for_update().filter(pk=item_id).first()
            if item is None:
                raise ItemNotFound(item_id)
            refs = RecipeComponent.objects.filter(item_id=item_id)
            if refs.exists():
                if not cascade:
                    names = sorted(
                        set(refs.values_list("parent_recipe__name", flat=True))
                    )
                    raise Conflict(
                        f"Item '{item.name}' is used by recipes: {', '.join(names)}."
                    )
                removed, _ = refs.delete()
                logger.info(
                    "Removed %s recipe component(s) referencing item %s",
                    removed,
                    item_id,
                )
            item.delete()
    except DatabaseError as exc:
        logger.error(
            "ERROR [item_service.delete_item]: Database error deleting item %s: %s\n%s",
            item_id,
            exc,
            traceback.format_exc(),
        )
        raise InternalError("A database error occurred while deleting the item.")
    logger.info("Item ID %s deleted.", item_id)
