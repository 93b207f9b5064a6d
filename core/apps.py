"""Core application configuration."""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Project-level endpoints that sit outside the inventory API."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "core"
