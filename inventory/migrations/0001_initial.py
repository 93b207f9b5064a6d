from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models

import inventory.models.fields


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Item",
            fields=[
                ("item_id", models.AutoField(primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255, unique=True)),
                (
                    "current_stock",
                    inventory.models.fields.QuantityField(
                        decimal_places=3, default=Decimal("0"), max_digits=12
                    ),
                ),
                ("unit", models.CharField(blank=True, max_length=50, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "items",
                "ordering": ["name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("current_stock__gte", 0)),
                        name="items_current_stock_non_negative",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Recipe",
            fields=[
                ("recipe_id", models.AutoField(primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255, unique=True)),
                (
                    "sale_price",
                    models.DecimalField(
                        decimal_places=2, default=Decimal("0"), max_digits=8
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "recipes",
                "ordering": ["name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("sale_price__gte", 0)),
                        name="recipes_sale_price_non_negative",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="RecipeComponent",
            fields=[
                ("id", models.AutoField(primary_key=True, serialize=False)),
                (
                    "quantity",
                    inventory.models.fields.QuantityField(
                        decimal_places=3, max_digits=12
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        db_column="item_id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="recipe_components",
                        to="inventory.item",
                    ),
                ),
                (
                    "parent_recipe",
                    models.ForeignKey(
                        db_column="recipe_id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="components",
                        to="inventory.recipe",
                    ),
                ),
            ],
            options={
                "db_table": "recipe_components",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("parent_recipe", "item"),
                        name="recipe_components_unique_item",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gt", 0)),
                        name="recipe_components_quantity_positive",
                    ),
                ],
            },
        ),
    ]
