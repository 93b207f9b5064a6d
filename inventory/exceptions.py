"""Domain errors for the inventory core and the REST API's exception handler.

Services raise the :class:`InventoryError` subclasses below. Raising inside a
``transaction.atomic()`` block rolls back every write made in that block, so
callers observe either the full effect of an operation or none of it.
"""

from decimal import Decimal
from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler


class InventoryError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    default_code = "error"
    default_detail = "An inventory error occurred."

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.detail, "code": self.default_code}


class NotFound(InventoryError):
    status_code = 404
    default_code = "not_found"
    default_detail = "Not found."


class Conflict(InventoryError):
    status_code = 409
    default_code = "conflict"
    default_detail = "The request conflicts with the current state."


class InvalidInput(InventoryError):
    status_code = 400
    default_code = "invalid"
    default_detail = "Invalid input."


class InternalError(InventoryError):
    """Storage or transport failure. The message never carries driver text."""

    status_code = 500
    default_code = "internal"
    default_detail = "A database error occurred."


class ItemNotFound(NotFound):
    default_code = "item_not_found"

    def __init__(self, item_id: Any):
        self.item_id = item_id
        super().__init__(f"Item (ID: {item_id}) not found.")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["item_id"] = self.item_id
        return data


class RecipeNotFound(NotFound):
    default_code = "recipe_not_found"

    def __init__(self, recipe_id: Any):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe (ID: {recipe_id}) not found.")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["recipe_id"] = self.recipe_id
        return data


class EmptyComposition(InvalidInput):
    default_code = "empty_composition"

    def __init__(self, recipe_id: Any):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe (ID: {recipe_id}) has no ingredients.")


class InsufficientStock(Conflict):
    """Raised when an ingredient cannot cover the quantity a sale requires."""

    default_code = "insufficient_stock"

    def __init__(self, item_name: str, required: Decimal, available: Decimal):
        self.item_name = item_name
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient stock of {item_name}. "
            f"Required: {required}, Available: {available}"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "item": self.item_name,
                "required": str(self.required),
                "available": str(self.available),
            }
        )
        return data


def custom_exception_handler(exc, context):
    """Translate domain and Django errors into REST responses.

    Django ``ValidationError`` is handled as a REST framework validation error
    and :class:`InventoryError` maps onto its ``status_code``. For other
    exceptions, follow DRF's default behavior.
    """
    if isinstance(exc, InventoryError):
        data = exc.to_dict()
        data["status_code"] = exc.status_code
        return Response(data, status=exc.status_code)

    if isinstance(exc, DjangoValidationError):
        exc = DRFValidationError(detail=exc.messages)

    if isinstance(exc, Http404):
        return Response({"detail": "Not found.", "status_code": 404}, status=404)

    # Call REST framework's default exception handler to get the standard error response.
    response = exception_handler(exc, context)

    # If DRF handled the exception, return its response. Otherwise, return None
    # for a 500 server error.
    if response is not None and isinstance(response.data, dict):
        response.data["status_code"] = response.status_code

    return response
