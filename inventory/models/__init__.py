from .fields import QuantityField
from .items import Item
from .recipes import Recipe, RecipeComponent

__all__ = [
    "QuantityField",
    "Item",
    "Recipe",
    "RecipeComponent",
]
