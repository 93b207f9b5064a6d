from decimal import Decimal

from django.db import models
from django.db.models import Q

from .fields import QuantityField
from .items import Item


class Recipe(models.Model):
    recipe_id = models.AutoField(primary_key=True)
    name = models.CharField(max_length=255, unique=True, null=False, blank=False)
    sale_price = models.DecimalField(
        max_digits=8, decimal_places=2, default=Decimal("0")
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name or f"Recipe {self.pk}"

    class Meta:
        db_table = "recipes"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=Q(sale_price__gte=0),
                name="recipes_sale_price_non_negative",
            ),
        ]


class RecipeComponent(models.Model):
    """Quantity of one item required to make a recipe."""

    id = models.AutoField(primary_key=True)
    parent_recipe = models.ForeignKey(
        Recipe,
        models.CASCADE,
        db_column="recipe_id",
        related_name="components",
    )
    item = models.ForeignKey(
        Item,
        models.CASCADE,
        db_column="item_id",
        related_name="recipe_components",
    )
    quantity = QuantityField()

    def __str__(self):
        return f"{self.parent_recipe} component #{self.pk}"

    class Meta:
        db_table = "recipe_components"
        constraints = [
            models.UniqueConstraint(
                fields=["parent_recipe", "item"],
                name="recipe_components_unique_item",
            ),
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="recipe_components_quantity_positive",
            ),
        ]
