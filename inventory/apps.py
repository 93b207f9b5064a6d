from django.apps import AppConfig


class InventoryConfig(AppConfig):
    """Stock items, recipes and the sale engine."""

    default_auto_field = "django.db.models.AutoField"
    name = "inventory"
