from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from ..exceptions import InvalidInput
from ..serializers import (
    ItemSerializer,
    ItemWriteSerializer,
    RecipeComponentSerializer,
    RecipeSerializer,
    RecipeWriteSerializer,
    SaleResultSerializer,
)
from ..services import item_service, recipe_service, sale_service


class ItemViewSet(viewsets.ViewSet):
    """API endpoint for CRUD operations on items.

    Query params:
        name: optional substring to filter item names.
    """

    permission_classes = [permissions.AllowAny]
    lookup_value_regex = r"\d+"

    def list(self, request):
        items = item_service.list_items(name=request.query_params.get("name"))
        return Response(ItemSerializer(items, many=True).data)

    def retrieve(self, request, pk=None):
        item = item_service.get_item_details(int(pk))
        return Response(ItemSerializer(item).data)

    def create(self, request):
        serializer = ItemWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = item_service.add_new_item(serializer.validated_data)
        return Response(ItemSerializer(item).data, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None, partial=False):
        if not request.data:
            raise InvalidInput("No data provided for update.")
        serializer = ItemWriteSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        item = item_service.update_item(int(pk), serializer.validated_data)
        return Response(ItemSerializer(item).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        item_service.delete_item(int(pk))
        return Response(status=status.HTTP_204_NO_CONTENT)


class RecipeViewSet(viewsets.ViewSet):
    """Manage recipes with their compositions and record sales."""

    permission_classes = [permissions.AllowAny]
    lookup_value_regex = r"\d+"

    def list(self, request):
        return Response(RecipeSerializer(recipe_service.list_recipes(), many=True).data)

    def retrieve(self, request, pk=None):
        recipe = recipe_service.get_recipe_details(int(pk))
        return Response(RecipeSerializer(recipe).data)

    def create(self, request):
        serializer = RecipeWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        components = data.pop("components")
        recipe = recipe_service.create_recipe(data, components)
        detail = recipe_service.get_recipe_details(recipe.pk)
        return Response(RecipeSerializer(detail).data, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None):
        serializer = RecipeWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        components = data.pop("components")
        recipe_service.update_recipe(int(pk), data, components)
        detail = recipe_service.get_recipe_details(int(pk))
        return Response(RecipeSerializer(detail).data)

    def destroy(self, request, pk=None):
        recipe_service.delete_recipe(int(pk))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get"])
    def components(self, request, pk=None):
        rows = recipe_service.get_recipe_components(int(pk))
        return Response(RecipeComponentSerializer(rows, many=True).data)

    @action(detail=True, methods=["post"])
    def sell(self, request, pk=None):
        result = sale_service.sell_recipe(int(pk))
        return Response(SaleResultSerializer(result.to_dict()).data)
