"""Tests for the sale transaction engine."""

import threading
import time
from decimal import Decimal

import pytest
from django.db import DatabaseError, connection

from inventory.exceptions import (
    EmptyComposition,
    InsufficientStock,
    InternalError,
    ItemNotFound,
    RecipeNotFound,
)
from inventory.models import Item, Recipe
from inventory.services import sale_service, stock_service
from inventory.services.sale_service import sell_recipe


def _stock(item):
    return Item.objects.get(pk=item.pk).current_stock


@pytest.mark.django_db
def test_flour_and_bread_example(item_factory, recipe_factory):
    flour = item_factory(name="Flour", current_stock=Decimal("2.500"), unit="kg")
    bread = recipe_factory(name="Bread", components=[(flour, "1.200")])

    result = sell_recipe(bread.pk)
    assert result.recipe_name == "Bread"
    assert _stock(flour) == Decimal("1.300")

    sell_recipe(bread.pk)
    assert _stock(flour) == Decimal("0.100")

    with pytest.raises(InsufficientStock) as excinfo:
        sell_recipe(bread.pk)
    assert excinfo.value.item_name == "Flour"
    assert excinfo.value.required == Decimal("1.2")
    assert excinfo.value.available == Decimal("0.1")
    assert _stock(flour) == Decimal("0.100")


@pytest.mark.django_db
def test_sale_decrements_each_ingredient_and_nothing_else(item_factory, recipe_factory):
    flour = item_factory(name="Flour", current_stock=Decimal("5"))
    water = item_factory(name="Water", current_stock=Decimal("3.3"))
    salt = item_factory(name="Salt", current_stock=Decimal("1"))
    bread = recipe_factory(name="Bread", components=[(flour, "1.25"), (water, "1.1")])

    result = sell_recipe(bread.pk)

    assert _stock(flour) == Decimal("3.75")
    assert _stock(water) == Decimal("2.2")
    assert _stock(salt) == Decimal("1")
    assert [(line.item_name, line.quantity, line.remaining) for line in result.lines] == [
        ("Flour", Decimal("1.25"), Decimal("3.75")),
        ("Water", Decimal("1.1"), Decimal("2.2")),
    ]
    assert result.to_dict()["consumed"][0]["remaining"] == "3.750"


@pytest.mark.django_db
def test_insufficient_stock_rolls_back_every_ingredient(item_factory, recipe_factory):
    flour = item_factory(name="Flour", current_stock=Decimal("5"))
    cheese = item_factory(name="Cheese", current_stock=Decimal("0.2"))
    tomato = item_factory(name="Tomato", current_stock=Decimal("0.1"))
    pizza = recipe_factory(
        name="Pizza", components=[(flour, "0.5"), (cheese, "0.3"), (tomato, "0.2")]
    )

    with pytest.raises(InsufficientStock) as excinfo:
        sell_recipe(pizza.pk)

    # the first short ingredient in composition order is reported
    assert excinfo.value.item_name == "Cheese"
    assert _stock(flour) == Decimal("5")
    assert _stock(cheese) == Decimal("0.2")
    assert _stock(tomato) == Decimal("0.1")


@pytest.mark.django_db
def test_repeated_failed_sale_is_idempotent(item_factory, recipe_factory):
    flour = item_factory(name="Flour", current_stock=Decimal("1"))
    oil = item_factory(name="Oil", current_stock=Decimal("0.05"))
    cake = recipe_factory(name="Cake", components=[(flour, "0.5"), (oil, "0.1")])

    messages = set()
    for _ in range(5):
        with pytest.raises(InsufficientStock) as excinfo:
            sell_recipe(cake.pk)
        messages.add(str(excinfo.value))

    assert len(messages) == 1
    assert _stock(flour) == Decimal("1")
    assert _stock(oil) == Decimal("0.05")


@pytest.mark.django_db
def test_unknown_recipe(item_factory):
    flour = item_factory(name="Flour", current_stock=Decimal("1"))
    with pytest.raises(RecipeNotFound):
        sell_recipe(999)
    assert _stock(flour) == Decimal("1")


@pytest.mark.django_db
def test_recipe_without_components():
    recipe = Recipe.objects.create(name="Air", sale_price=Decimal("1.00"))
    with pytest.raises(EmptyComposition):
        sell_recipe(recipe.pk)


@pytest.mark.django_db
def test_missing_ingredient_row_aborts_before_any_decrement(
    item_factory, recipe_factory, monkeypatch
):
    flour = item_factory(name="Flour", current_stock=Decimal("5"))
    water = item_factory(name="Water", current_stock=Decimal("5"))
    bread = recipe_factory(name="Bread", components=[(flour, "1"), (water, "1")])

    real_lock = stock_service.lock_items

    def lock_without_water(item_ids):
        rows = real_lock(item_ids)
        rows.pop(water.pk)
        return rows

    monkeypatch.setattr(stock_service, "lock_items", lock_without_water)

    with pytest.raises(ItemNotFound) as excinfo:
        sell_recipe(bread.pk)
    assert excinfo.value.item_id == water.pk
    assert _stock(flour) == Decimal("5")


@pytest.mark.django_db
def test_stale_read_cannot_drive_stock_negative(item_factory, recipe_factory, monkeypatch):
    """A stale locked read is caught when the decrement re-reads the stored quantity."""

    flour = item_factory(name="Flour", current_stock=Decimal("5"))
    yeast = item_factory(name="Yeast", current_stock=Decimal("0.010"))
    bread = recipe_factory(name="Bread", components=[(flour, "1"), (yeast, "0.020")])

    real_lock = stock_service.lock_items

    def stale_lock(item_ids):
        rows = real_lock(item_ids)
        for item in rows.values():
            item.current_stock = Decimal("100")
        return rows

    monkeypatch.setattr(stock_service, "lock_items", stale_lock)

    with pytest.raises(InsufficientStock) as excinfo:
        sell_recipe(bread.pk)
    assert excinfo.value.item_name == "Yeast"
    # flour had already been decremented inside the transaction; it must be undone
    assert _stock(flour) == Decimal("5")
    assert _stock(yeast) == Decimal("0.010")


@pytest.mark.django_db
def test_storage_failure_is_internal_error(item_factory, recipe_factory, monkeypatch):
    flour = item_factory(name="Flour", current_stock=Decimal("5"))
    bread = recipe_factory(name="Bread", components=[(flour, "1")])

    def broken_lock(item_ids):
        raise DatabaseError("could not obtain lock on row in relation \"items\"")

    monkeypatch.setattr(stock_service, "lock_items", broken_lock)

    with pytest.raises(InternalError) as excinfo:
        sell_recipe(bread.pk)
    assert "relation" not in excinfo.value.detail
    assert _stock(flour) == Decimal("5")


@pytest.mark.django_db
def test_serial_sales_stop_at_available_stock(item_factory, recipe_factory):
    salt = item_factory(name="Salt", current_stock=Decimal("10"))
    soup = recipe_factory(name="Soup", components=[(salt, "3")])
    outcomes = []
    for _ in range(4):
        try:
            sell_recipe(soup.pk)
            outcomes.append("ok")
        except InsufficientStock:
            outcomes.append("short")
    assert outcomes == ["ok", "ok", "ok", "short"]
    assert _stock(salt) == Decimal("1")


@pytest.mark.django_db
def test_fractional_sales_consume_stock_exactly(item_factory, recipe_factory):
    salt = item_factory(name="Salt", current_stock=Decimal("0.300"))
    brine = recipe_factory(name="Brine", components=[(salt, "0.100")])

    remaining = [sell_recipe(brine.pk).lines[0].remaining for _ in range(3)]

    assert remaining == [Decimal("0.2"), Decimal("0.1"), Decimal("0")]
    assert _stock(salt) == Decimal("0")
    with pytest.raises(InsufficientStock) as excinfo:
        sell_recipe(brine.pk)
    assert excinfo.value.available == Decimal("0")


@pytest.mark.django_db(transaction=True)
def test_concurrent_sales_on_scarce_ingredient(
    item_factory, recipe_factory, monkeypatch
):
    saffron = item_factory(name="Saffron", current_stock=Decimal("5"))
    flour = item_factory(name="Flour", current_stock=Decimal("10"))
    rice = item_factory(name="Rice", current_stock=Decimal("10"))
    paella = recipe_factory(name="Paella", components=[(rice, "1"), (saffron, "3")])
    risotto = recipe_factory(name="Risotto", components=[(saffron, "3"), (flour, "1")])

    real_lock = stock_service.lock_items

    def slow_lock(item_ids):
        # hold the locks long enough for the other sale to queue behind them
        rows = real_lock(item_ids)
        time.sleep(0.2)
        return rows

    monkeypatch.setattr(stock_service, "lock_items", slow_lock)

    barrier = threading.Barrier(2)
    outcomes = {}

    def sell(recipe_id):
        try:
            barrier.wait()
            sell_recipe(recipe_id)
            outcomes[recipe_id] = "ok"
        except InsufficientStock:
            outcomes[recipe_id] = "short"
        except InternalError:
            outcomes[recipe_id] = "error"
        finally:
            connection.close()

    threads = [
        threading.Thread(target=sell, args=(paella.pk,)),
        threading.Thread(target=sell, args=(risotto.pk,)),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes.values()) == ["ok", "short"]
    assert _stock(saffron) == Decimal("2")
    winner = paella if outcomes[paella.pk] == "ok" else risotto
    if winner == paella:
        assert (_stock(rice), _stock(flour)) == (Decimal("9"), Decimal("10"))
    else:
        assert (_stock(rice), _stock(flour)) == (Decimal("10"), Decimal("9"))


def test_lock_timeout_only_applies_to_postgres(settings, monkeypatch):
    settings.INVENTORY_LOCK_TIMEOUT_MS = 500
    monkeypatch.setattr(sale_service.connection, "vendor", "sqlite")
    # no cursor is opened for other backends
    monkeypatch.setattr(
        sale_service.connection,
        "cursor",
        lambda: pytest.fail("cursor should not be used"),
    )
    sale_service._apply_lock_timeout()
