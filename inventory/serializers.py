from decimal import Decimal

from rest_framework import serializers

from .models import Item, Recipe, RecipeComponent


class ItemSerializer(serializers.ModelSerializer):
    """Expose basic item details and stock levels."""

    class Meta:
        model = Item
        fields = [
            "item_id",
            "name",
            "current_stock",
            "unit",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ItemWriteSerializer(serializers.Serializer):
    """Shape check for item create/update payloads.

    Uniqueness is left to the database so duplicates surface as a conflict.
    """

    name = serializers.CharField(max_length=255)
    current_stock = serializers.DecimalField(
        max_digits=12, decimal_places=3, min_value=Decimal("0")
    )
    unit = serializers.CharField(
        max_length=50, required=False, allow_blank=True, allow_null=True
    )


class RecipeComponentSerializer(serializers.Serializer):
    """Serialize one composition row as returned by ``get_recipe_components``."""

    item_id = serializers.IntegerField()
    item_name = serializers.CharField()
    unit = serializers.CharField(allow_null=True)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3)


class RecipeSerializer(serializers.ModelSerializer):
    """Represent a recipe and, on detail reads, its component breakdown."""

    components = RecipeComponentSerializer(many=True, read_only=True, required=False)

    class Meta:
        model = Recipe
        fields = [
            "recipe_id",
            "name",
            "sale_price",
            "created_at",
            "updated_at",
            "components",
        ]
        read_only_fields = fields


class ComponentInputSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    quantity = serializers.DecimalField(
        max_digits=12, decimal_places=3, min_value=Decimal("0.001")
    )


class RecipeWriteSerializer(serializers.Serializer):
    """Validate a recipe with its full list of ingredients."""

    name = serializers.CharField(max_length=255)
    sale_price = serializers.DecimalField(
        max_digits=8, decimal_places=2, min_value=Decimal("0")
    )
    components = ComponentInputSerializer(many=True, allow_empty=False)


class SaleResultSerializer(serializers.Serializer):
    recipe_id = serializers.IntegerField()
    recipe_name = serializers.CharField()
    message = serializers.CharField()
    consumed = serializers.ListField(child=serializers.DictField())
