from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from django.db import DatabaseError, IntegrityError, transaction

from inventory.exceptions import (
    Conflict,
    InternalError,
    InvalidInput,
    ItemNotFound,
    RecipeNotFound,
)
from inventory.models import Item, Recipe, RecipeComponent
from inventory_app.logging import get_logger

from .quantities import positive_quantity, price

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Helper utilities
# ---------------------------------------------------------------------------


def _clean_recipe_data(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """Validate recipe header fields and return them normalised."""

    fields: Dict[str, Any] = {}
    if not partial or "name" in data:
        name = data.get("name")
        name = name.strip() if isinstance(name, str) else ""
        if not name:
            raise InvalidInput("Recipe name cannot be empty.")
        fields["name"] = name
    if not partial or "sale_price" in data:
        if data.get("sale_price") is None:
            raise InvalidInput("sale_price is required.")
        fields["sale_price"] = price(data["sale_price"])
    return fields


def _clean_components(components: Iterable[Dict[str, Any]]) -> List[Tuple[int, Decimal]]:
    """Return ``(item_id, quantity)`` pairs, rejecting the batch on any bad entry."""

    cleaned: List[Tuple[int, Decimal]] = []
    seen = set()
    for idx, comp in enumerate(components or []):
        item_id = comp.get("item_id")
        if item_id is None or isinstance(item_id, bool):
            raise InvalidInput(f"Component {idx} is missing item_id.")
        try:
            item_id = int(item_id)
        except (TypeError, ValueError):
            raise InvalidInput(f"Component {idx} has an invalid item_id: {item_id!r}")
        if item_id in seen:
            raise InvalidInput(f"Item {item_id} appears more than once in the recipe.")
        seen.add(item_id)
        qty = positive_quantity(comp.get("quantity"), f"Component {idx} quantity")
        cleaned.append((item_id, qty))
    if not cleaned:
        raise InvalidInput("A recipe needs at least one ingredient.")
    return cleaned


def _first_missing_item(
    components: List[Tuple[int, Decimal]], lock: bool = False
) -> Optional[int]:
    ids = [item_id for item_id, _ in components]
    rows = Item.objects.filter(pk__in=ids)
    if lock:
        rows = rows.select_for_update().order_by("pk")
    existing = set(rows.values_list("pk", flat=True))
    return next((item_id for item_id in ids if item_id not in existing), None)


def _insert_components(recipe: Recipe, components: List[Tuple[int, Decimal]]) -> None:
    # referenced items stay locked until the caller's transaction ends
    missing = _first_missing_item(components, lock=True)
    if missing is not None:
        raise ItemNotFound(missing)
    RecipeComponent.objects.bulk_create(
        [
            RecipeComponent(parent_recipe=recipe, item_id=item_id, quantity=qty)
            for item_id, qty in components
        ]
    )


# ---------------------------------------------------------------------------
# Composition reads
# ---------------------------------------------------------------------------


def get_recipe_components(recipe_id: int) -> List[Dict[str, Any]]:
    """Return the composition of a recipe in insertion order.

    Each row holds ``item_id``, ``item_name``, ``unit`` and the required
    ``quantity``. A recipe without components, or an unknown recipe id,
    yields an empty list.
    """

    rows = (
        RecipeComponent.objects.filter(parent_recipe_id=recipe_id)
        .order_by("id")
        .values("item_id", "item__name", "item__unit", "quantity")
    )
    return [
        {
            "item_id": row["item_id"],
            "item_name": row["item__name"],
            "unit": row["item__unit"],
            "quantity": row["quantity"],
        }
        for row in rows
    ]


def get_recipe_details(recipe_id: int) -> Dict[str, Any]:
    row = (
        Recipe.objects.filter(pk=recipe_id)
        .values("recipe_id", "name", "sale_price", "created_at", "updated_at")
        .first()
    )
    if row is None:
        raise RecipeNotFound(recipe_id)
    row["components"] = get_recipe_components(recipe_id)
    return row


def list_recipes() -> List[Dict[str, Any]]:
    return list(
        Recipe.objects.values(
            "recipe_id", "name", "sale_price", "created_at", "updated_at"
        )
    )


# ---------------------------------------------------------------------------
# CRUD operations
# ---------------------------------------------------------------------------


def create_recipe(data: Dict[str, Any], components: List[Dict[str, Any]]) -> Recipe:
    """Create a recipe and its full composition in one transaction.

    Any invalid component rejects the whole batch; the recipe row is only
    kept when every component was stored.
    """

    fields = _clean_recipe_data(data)
    cleaned = _clean_components(components)
    try:
        with transaction.atomic():
            recipe = Recipe.objects.create(**fields)
            _insert_components(recipe, cleaned)
    except IntegrityError as exc:
        logger.error("Error creating recipe: %s", exc)
        missing = _first_missing_item(cleaned)
        if missing is not None:
            raise ItemNotFound(missing)
        raise Conflict(f"Recipe '{fields['name']}' already exists.")
    except DatabaseError as exc:
        logger.error("DB error creating recipe: %s", exc)
        raise InternalError("A database error occurred while creating the recipe.")
    logger.info(
        "Recipe '%s' created with ID %s and %s component(s).",
        recipe.name,
        recipe.pk,
        len(cleaned),
    )
    return recipe


def update_recipe(
    recipe_id: int, data: Dict[str, Any], components: List[Dict[str, Any]]
) -> Recipe:
    """Update a recipe and replace its components."""

    fields = _clean_recipe_data(data, partial=True)
    cleaned = _clean_components(components)
    recipe = None
    try:
        with transaction.atomic():
            recipe = Recipe.objects.select_for_update().filter(pk=recipe_id).first()
            if recipe is None:
                raise RecipeNotFound(recipe_id)
            for k, v in fields.items():
                setattr(recipe, k, v)
            recipe.save()
            delete_components_for_recipe(recipe_id)
            _insert_components(recipe, cleaned)
    except IntegrityError as exc:
        logger.error("Error updating recipe: %s", exc)
        missing = _first_missing_item(cleaned)
        if missing is not None:
            raise ItemNotFound(missing)
        name = fields.get("name") or (recipe.name if recipe else recipe_id)
        raise Conflict(f"Recipe '{name}' already exists.")
    except DatabaseError as exc:
        logger.error("DB error updating recipe: %s", exc)
        raise InternalError("A database error occurred while updating the recipe.")
    logger.info("Recipe ID %s updated.", recipe_id)
    return recipe


def delete_components_for_recipe(recipe_id: int) -> int:
    """Remove every composition row owned by ``recipe_id``; items are untouched."""

    deleted, _ = RecipeComponent.objects.filter(parent_recipe_id=recipe_id).delete()
    return deleted


def delete_recipe(recipe_id: int) -> None:
    """Delete a recipe and its components."""

    try:
        with transaction.atomic():
            recipe = Recipe.objects.filter(pk=recipe_id).first()
            if recipe is None:
                raise RecipeNotFound(recipe_id)
            removed = delete_components_for_recipe(recipe_id)
            recipe.delete()
    except DatabaseError as exc:
        logger.error("DB error deleting recipe: %s", exc)
        raise InternalError("A database error occurred.")
    logger.info("Recipe ID %s deleted with %s component(s).", recipe_id, removed)
