"""Warehouse URL routes (v1)."""

from django.urls import path

from .views import LedgerView, OperationListCreateView, WarehouseDetailView, WarehouseListCreateView

app_name = "warehouse"

urlpatterns = [
    path("", WarehouseListCreateView.as_view(), name="warehouse-list"),
    path("<int:warehouse_id>/", WarehouseDetailView.as_view(), name="warehouse-detail"),
    path("operations/", OperationListCreateView.as_view(), name="operation-list"),
    path("ledger/", LedgerView.as_view(), name="ledger"),
]
