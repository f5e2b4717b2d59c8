"""Django app configuration for catalog."""

from django.apps import AppConfig


class CatalogConfig(AppConfig):
    """Seller products referenced by warehouse stock."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "catalog"
