"""
URL configuration for inventory_app project.

The REST API lives under ``/api/v1/``; ``/healthz`` is a liveness probe.
"""

from django.urls import include, path

from core.views import health_check

urlpatterns = [
    path("healthz", health_check, name="health-check"),
    path("api/v1/", include("inventory.urls")),
]
