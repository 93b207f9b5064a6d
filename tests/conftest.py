import os
import sys
from decimal import Decimal

import django
import pytest

# Ensure project root is on sys.path
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "inventory_app.settings")
django.setup()

from inventory.models import Item, Recipe, RecipeComponent  # noqa: E402


@pytest.fixture(scope="session")
def django_db_modify_db_settings(
    django_db_modify_db_settings_parallel_suffix, tmp_path_factory
):
    """Put the SQLite test database in a file so threaded tests wait on its lock."""
    from django.conf import settings

    db = settings.DATABASES["default"]
    if db["ENGINE"] == "django.db.backends.sqlite3":
        db.setdefault("TEST", {})["NAME"] = str(
            tmp_path_factory.mktemp("db") / "test_inventory.sqlite3"
        )


@pytest.fixture
def item_factory(db):
    def create_item(**kwargs):
        defaults = {
            "name": "Item",
            "current_stock": Decimal("10"),
            "unit": "kg",
        }
        defaults.update(kwargs)
        return Item.objects.create(**defaults)

    return create_item


@pytest.fixture
def recipe_factory(db):
    """Create a recipe from ``(item, quantity)`` pairs, bypassing the service."""

    def create_recipe(name="Recipe", sale_price=Decimal("10.00"), components=()):
        recipe = Recipe.objects.create(name=name, sale_price=sale_price)
        for item, qty in components:
            RecipeComponent.objects.create(
                parent_recipe=recipe, item=item, quantity=Decimal(str(qty))
            )
        return recipe

    return create_recipe


@pytest.fixture
def api_client():
    from rest_framework.test import APIClient

    return APIClient()
