from .api import ItemViewSet, RecipeViewSet

__all__ = [
    "ItemViewSet",
    "RecipeViewSet",
]
