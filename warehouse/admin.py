"""Admin registrations for warehouse app.

Operations and ledger entries are insert-only, so their admins are read-only.
"""

from django.contrib import admin

from .models import Warehouse, WarehouseLedger, WarehouseOperation, WarehouseStock


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "seller", "is_default", "created_at")
    list_filter = ("is_default",)
    search_fields = ("name", "seller__email")
    raw_id_fields = ("seller",)


@admin.register(WarehouseStock)
class WarehouseStockAdmin(ReadOnlyAdmin):
    list_display = ("id", "warehouse", "product", "quantity", "updated_at")
    search_fields = ("product__name", "product__barcode", "warehouse__name")


@admin.register(WarehouseOperation)
class WarehouseOperationAdmin(ReadOnlyAdmin):
    list_display = ("id", "warehouse", "product", "type", "quantity", "performed_by", "reference_id", "created_at")
    list_filter = ("type",)
    search_fields = ("product__name", "reference_id", "transfer_id")


@admin.register(WarehouseLedger)
class WarehouseLedgerAdmin(ReadOnlyAdmin):
    list_display = (
        "id",
        "date",
        "warehouse",
        "product",
        "type",
        "direction",
        "quantity",
        "total_value",
        "balance_qty",
        "balance_value",
    )
    list_filter = ("type", "direction")
    search_fields = ("product__name", "warehouse__name")
    date_hierarchy = "date"
