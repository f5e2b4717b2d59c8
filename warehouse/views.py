"""Warehouse API views: registry, operations and ledger."""

from common.pagination import SellerPagination
from django_filters import rest_framework as filters
from drf_spectacular.utils import OpenApiExample, extend_schema, inline_serializer
from rest_framework import generics
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.permissions import SAFE_METHODS, IsAuthenticated
from rest_framework.response import Response
from users.permissions import CanCreateWarehouse, CanManageWarehouse
from users.services import resolve_seller_context

from .filters import LedgerFilterSet, OperationFilterSet
from .models import WarehouseLedger, WarehouseOperation
from .selectors import ledger_queryset, ledger_summary, list_warehouses, operations_queryset, warehouse_choices
from .serializers import (
    LedgerSummarySerializer,
    OperationCreateSerializer,
    WarehouseLedgerSerializer,
    WarehouseOperationSerializer,
    WarehouseRefSerializer,
    WarehouseSerializer,
    WarehouseWriteSerializer,
)
from .services import delete_warehouse, get_owned_warehouse

ErrorResponse = inline_serializer(
    name="WarehouseErrorResponse",
    fields={
        "success": rf_serializers.BooleanField(),
        "code": rf_serializers.CharField(),
        "error": rf_serializers.CharField(),
    },
)


class OperationPagination(SellerPagination):
    page_size_setting = "OPERATIONS_PAGE_SIZE"
    results_key = "operations"


class LedgerPagination(SellerPagination):
    page_size_setting = "LEDGER_PAGE_SIZE"
    results_key = "ledgerEntries"


class WarehouseScopedView(generics.GenericAPIView):
    """Authenticated seller views with read/write throttle scopes."""

    permission_classes = [IsAuthenticated]
    filter_backends = [filters.DjangoFilterBackend]
    throttle_scope = "warehouse"

    def get_throttles(self):
        self.throttle_scope = "warehouse" if self.request.method in SAFE_METHODS else "warehouse_write"
        return super().get_throttles()

    def get_seller_context(self):
        if not hasattr(self, "_seller_context"):
            self._seller_context = resolve_seller_context(self.request.user)
        return self._seller_context


class WarehouseListCreateView(WarehouseScopedView):
    permission_classes = [IsAuthenticated, CanCreateWarehouse]

    @extend_schema(
        tags=["Warehouse Endpoints"],
        summary="List warehouses",
        description="Warehouses of the caller's seller account with current stock and activity counts.",
    )
    def get(self, request):
        seller = self.get_seller_context()
        warehouses = list_warehouses(seller_id=seller.actual_seller_id)
        return Response({"success": True, "warehouses": WarehouseSerializer(warehouses, many=True).data})

    @extend_schema(
        tags=["Warehouse Endpoints"],
        summary="Create warehouse",
        description="Super sellers and admins only. Setting isDefault clears the flag on other warehouses.",
        request=WarehouseWriteSerializer,
        responses={201: WarehouseSerializer, 400: ErrorResponse, 403: ErrorResponse},
    )
    def post(self, request):
        seller = self.get_seller_context()
        serializer = WarehouseWriteSerializer(data=request.data, context={"request": request, "seller": seller})
        serializer.is_valid(raise_exception=True)
        warehouse = serializer.save()
        return Response(
            {
                "success": True,
                "message": "Warehouse created successfully.",
                "warehouse": WarehouseRefSerializer(warehouse).data,
            },
            status=status.HTTP_201_CREATED,
        )


class WarehouseDetailView(WarehouseScopedView):
    permission_classes = [IsAuthenticated, CanCreateWarehouse]

    @extend_schema(
        tags=["Warehouse Endpoints"],
        summary="Update warehouse",
        request=WarehouseWriteSerializer,
        responses={200: WarehouseSerializer, 400: ErrorResponse, 404: ErrorResponse},
    )
    def put(self, request, warehouse_id: int):
        seller = self.get_seller_context()
        warehouse = get_owned_warehouse(context=seller, warehouse_id=warehouse_id)
        serializer = WarehouseWriteSerializer(
            instance=warehouse, data=request.data, context={"request": request, "seller": seller}
        )
        serializer.is_valid(raise_exception=True)
        warehouse = serializer.save()
        return Response(
            {
                "success": True,
                "message": "Warehouse updated successfully.",
                "warehouse": WarehouseRefSerializer(warehouse).data,
            }
        )

    @extend_schema(
        tags=["Warehouse Endpoints"],
        summary="Delete warehouse",
        description="Refused with 409 once the warehouse has operation history.",
        responses={200: None, 404: ErrorResponse, 409: ErrorResponse},
    )
    def delete(self, request, warehouse_id: int):
        seller = self.get_seller_context()
        delete_warehouse(context=seller, warehouse_id=warehouse_id)
        return Response({"success": True, "message": "Warehouse deleted successfully."})


class OperationListCreateView(WarehouseScopedView):
    permission_classes = [IsAuthenticated, CanManageWarehouse]
    serializer_class = WarehouseOperationSerializer
    queryset = WarehouseOperation.objects.none()
    filterset_class = OperationFilterSet
    pagination_class = OperationPagination

    def get_queryset(self):
        return operations_queryset(seller_id=self.get_seller_context().actual_seller_id)

    @extend_schema(
        tags=["Warehouse Endpoints"],
        summary="List warehouse operations",
        description="Operation history, newest first. Filters: warehouseId, productId, type, page, limit.",
    )
    def get(self, request):
        operations = self.paginate_queryset(self.filter_queryset(self.get_queryset()))
        return self.get_paginated_response(self.get_serializer(operations, many=True).data)

    @extend_schema(
        tags=["Warehouse Endpoints"],
        summary="Create warehouse operation",
        description=(
            "Records an INCOMING, OUTGOING, ADJUSTMENT or TRANSFER operation, updates stock and appends "
            "the running-balance ledger entry in one transaction. TRANSFER requires destinationWarehouseId."
        ),
        request=OperationCreateSerializer,
        responses={
            201: WarehouseOperationSerializer,
            400: ErrorResponse,
            404: ErrorResponse,
            409: ErrorResponse,
            500: ErrorResponse,
        },
        examples=[
            OpenApiExample(
                "Incoming",
                request_only=True,
                value={"warehouseId": 1, "productId": 10, "type": "INCOMING", "quantity": 100, "reason": "PO-17"},
            )
        ],
    )
    def post(self, request):
        serializer = OperationCreateSerializer(
            data=request.data, context={"request": request, "seller": self.get_seller_context()}
        )
        serializer.is_valid(raise_exception=True)
        operation = serializer.save()
        return Response(
            {
                "success": True,
                "message": "Warehouse operation created successfully.",
                "operation": WarehouseOperationSerializer(operation).data,
            },
            status=status.HTTP_201_CREATED,
        )


class LedgerView(WarehouseScopedView):
    serializer_class = WarehouseLedgerSerializer
    queryset = WarehouseLedger.objects.none()
    filterset_class = LedgerFilterSet
    pagination_class = LedgerPagination

    def get_queryset(self):
        return ledger_queryset(seller_id=self.get_seller_context().actual_seller_id)

    @extend_schema(
        tags=["Warehouse Endpoints"],
        summary="Warehouse ledger",
        description=(
            "Ledger entries (newest first) with a summary over the full filtered set: incoming/outgoing value, "
            "net, and the latest balances per (warehouse, product). Dates accept YYYY-MM-DD or ISO-8601."
        ),
        examples=[
            OpenApiExample(
                "Summary",
                response_only=True,
                value={
                    "success": True,
                    "ledgerEntries": [],
                    "pagination": {"page": 1, "limit": 100, "total": 2, "pages": 1},
                    "summary": {
                        "incoming": "500.00",
                        "outgoing": "150.00",
                        "net": "350.00",
                        "totalBalanceQty": 70,
                        "totalBalanceValue": "350.00",
                    },
                    "warehouses": [{"id": 1, "name": "Main"}],
                },
            )
        ],
    )
    def get(self, request):
        entries = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(entries.select_related("warehouse", "product", "operation", "performed_by"))
        response = self.get_paginated_response(self.get_serializer(page, many=True).data)
        seller_id = self.get_seller_context().actual_seller_id
        response.data["summary"] = LedgerSummarySerializer(ledger_summary(entries)).data
        response.data["warehouses"] = WarehouseRefSerializer(warehouse_choices(seller_id=seller_id), many=True).data
        return response
