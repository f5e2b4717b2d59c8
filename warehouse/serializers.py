"""Serializers for the warehouse API.

Field names are camelCase on the wire. Write serializers delegate to
``warehouse.services``. List filters live in ``warehouse.filters``.
"""

from common.choices import OperationType
from rest_framework import serializers

from .models import MAX_QUANTITY, Warehouse, WarehouseLedger, WarehouseOperation, WarehouseStock
from .services import create_operation, create_warehouse, update_warehouse


class WarehouseRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Warehouse
        fields = ["id", "name"]


class ProductRefSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    barcode = serializers.CharField()


class WarehouseStockSerializer(serializers.ModelSerializer):
    productId = serializers.IntegerField(source="product_id", read_only=True)
    product = serializers.SerializerMethodField()
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = WarehouseStock
        fields = ["id", "productId", "quantity", "product", "updatedAt"]
        read_only_fields = fields

    def get_product(self, obj) -> dict:
        p = obj.product
        return {"id": p.id, "name": p.name, "barcode": p.barcode, "price": str(p.price) if p.price is not None else None}


class WarehouseSerializer(serializers.ModelSerializer):
    """Warehouse with current stock and activity counts."""

    isDefault = serializers.BooleanField(source="is_default", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)
    stockItems = WarehouseStockSerializer(source="stock_items", many=True, read_only=True)
    counts = serializers.SerializerMethodField()

    class Meta:
        model = Warehouse
        fields = ["id", "name", "address", "isDefault", "createdAt", "updatedAt", "stockItems", "counts"]
        read_only_fields = fields

    def get_counts(self, obj) -> dict:
        return {
            "operations": getattr(obj, "operations_count", None),
            "stockItems": getattr(obj, "stock_items_count", None),
        }


class WarehouseWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120, allow_blank=False)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    isDefault = serializers.BooleanField(required=False, default=False)

    def create(self, validated_data):  # type: ignore[override]
        return create_warehouse(
            context=self.context["seller"],
            name=validated_data["name"],
            address=validated_data.get("address", ""),
            is_default=validated_data.get("isDefault", False),
        )

    def update(self, instance, validated_data):  # type: ignore[override]
        return update_warehouse(
            context=self.context["seller"],
            warehouse_id=instance.id,
            name=validated_data["name"],
            address=validated_data.get("address", ""),
            is_default=validated_data.get("isDefault", False),
        )


class WarehouseOperationSerializer(serializers.ModelSerializer):
    """Read-only operation log entry."""

    warehouseId = serializers.IntegerField(source="warehouse_id", read_only=True)
    productId = serializers.IntegerField(source="product_id", read_only=True)
    referenceId = serializers.CharField(source="reference_id", read_only=True)
    transferId = serializers.UUIDField(source="transfer_id", read_only=True, allow_null=True)
    destinationWarehouseId = serializers.IntegerField(source="destination_warehouse_id", read_only=True, allow_null=True)
    performedBy = serializers.IntegerField(source="performed_by_id", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    warehouse = WarehouseRefSerializer(read_only=True)
    product = ProductRefSerializer(read_only=True)

    class Meta:
        model = WarehouseOperation
        fields = [
            "id",
            "warehouseId",
            "productId",
            "type",
            "quantity",
            "reason",
            "referenceId",
            "transferId",
            "destinationWarehouseId",
            "performedBy",
            "createdAt",
            "warehouse",
            "product",
        ]
        read_only_fields = fields


class OperationCreateSerializer(serializers.Serializer):
    """Request body for POST /operations/."""

    warehouseId = serializers.IntegerField(min_value=1)
    productId = serializers.IntegerField(min_value=1)
    type = serializers.ChoiceField(choices=OperationType.choices)
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_QUANTITY)
    reason = serializers.CharField(required=False, allow_blank=True, default="")
    referenceId = serializers.CharField(required=False, allow_blank=True, max_length=120, default="")
    destinationWarehouseId = serializers.IntegerField(required=False, allow_null=True, min_value=1, default=None)

    def validate(self, attrs):
        if attrs["type"] == OperationType.TRANSFER:
            if not attrs.get("destinationWarehouseId"):
                raise serializers.ValidationError(
                    {"destinationWarehouseId": "Destination warehouse is required for transfers."}
                )
            if attrs["destinationWarehouseId"] == attrs["warehouseId"]:
                raise serializers.ValidationError(
                    {"destinationWarehouseId": "Destination must differ from the source warehouse."}
                )
        return attrs

    def create(self, validated_data):  # type: ignore[override]
        return create_operation(
            context=self.context["seller"],
            warehouse_id=validated_data["warehouseId"],
            product_id=validated_data["productId"],
            type=validated_data["type"],
            quantity=validated_data["quantity"],
            reason=validated_data.get("reason", ""),
            reference_id=validated_data.get("referenceId", ""),
            destination_warehouse_id=validated_data.get("destinationWarehouseId"),
        )


class WarehouseLedgerSerializer(serializers.ModelSerializer):
    """Read-only ledger entry with warehouse/product display fields."""

    warehouseId = serializers.IntegerField(source="warehouse_id", read_only=True)
    productId = serializers.IntegerField(source="product_id", read_only=True)
    operationId = serializers.IntegerField(source="operation_id", read_only=True)
    transferId = serializers.UUIDField(source="transfer_id", read_only=True, allow_null=True)
    unitPrice = serializers.DecimalField(source="unit_price", max_digits=14, decimal_places=2, read_only=True)
    totalValue = serializers.DecimalField(source="total_value", max_digits=14, decimal_places=2, read_only=True)
    balanceQty = serializers.IntegerField(source="balance_qty", read_only=True)
    balanceValue = serializers.DecimalField(source="balance_value", max_digits=16, decimal_places=2, read_only=True)
    performedBy = serializers.IntegerField(source="performed_by_id", read_only=True)
    warehouse = WarehouseRefSerializer(read_only=True)
    product = ProductRefSerializer(read_only=True)
    operation = serializers.SerializerMethodField()

    class Meta:
        model = WarehouseLedger
        fields = [
            "id",
            "warehouseId",
            "productId",
            "operationId",
            "date",
            "type",
            "direction",
            "transferId",
            "quantity",
            "unitPrice",
            "totalValue",
            "balanceQty",
            "balanceValue",
            "performedBy",
            "notes",
            "warehouse",
            "product",
            "operation",
        ]
        read_only_fields = fields

    def get_operation(self, obj) -> dict:
        op = obj.operation
        return {"id": op.id, "type": op.type, "reason": op.reason}


class LedgerSummarySerializer(serializers.Serializer):
    incoming = serializers.DecimalField(max_digits=16, decimal_places=2)
    outgoing = serializers.DecimalField(max_digits=16, decimal_places=2)
    net = serializers.DecimalField(max_digits=16, decimal_places=2)
    totalBalanceQty = serializers.IntegerField(source="total_balance_qty")
    totalBalanceValue = serializers.DecimalField(source="total_balance_value", max_digits=16, decimal_places=2)

