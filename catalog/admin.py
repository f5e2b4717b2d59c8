"""Admin registrations for catalog app."""

from django.contrib import admin

from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "seller", "barcode", "price", "purchase_price", "updated_at")
    search_fields = ("name", "barcode", "seller__email")
    raw_id_fields = ("seller",)
