"""API routes for the inventory app."""

from django.urls import path
from rest_framework.routers import SimpleRouter

from core.views import api_root

from .views import ItemViewSet, RecipeViewSet

router = SimpleRouter()
router.register(r"items", ItemViewSet, basename="item")
router.register(r"recipes", RecipeViewSet, basename="recipe")

urlpatterns = [
    path("", api_root, name="api-root"),
] + router.urls
