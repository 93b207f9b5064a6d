from decimal import Decimal

from django.db import models
from django.db.models import Q

from .fields import QuantityField


class Item(models.Model):
    """A raw ingredient and its quantity on hand."""

    item_id = models.AutoField(primary_key=True)
    name = models.CharField(max_length=255, unique=True, blank=False, null=False)
    current_stock = QuantityField(default=Decimal("0"))
    unit = models.CharField(max_length=50, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:  # pragma: no cover - simple representation
        return self.name or f"Item {self.pk}"

    class Meta:
        db_table = "items"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=Q(current_stock__gte=0),
                name="items_current_stock_non_negative",
            ),
        ]
