"""Django app configuration for the warehouse app."""

from django.apps import AppConfig


class WarehouseConfig(AppConfig):
    """Warehouse registry, operation log, stock and running-balance ledger."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "warehouse"
