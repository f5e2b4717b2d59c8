"""Warehouse models: registry, operation log, stock snapshot and ledger.

Operations and ledger entries are insert-only. Stock rows hold the current
quantity per (warehouse, product) and are only written by
``warehouse.services`` while the row is locked.
"""

import uuid
from decimal import Decimal

from common.choices import LedgerDirection, OperationType
from common.exceptions import ImmutableRecord
from common.models import TimeStampedModel
from django.conf import settings
from django.db import models

# Largest values the quantity and money columns below can store
MAX_QUANTITY = 2147483647
MAX_LINE_VALUE = Decimal("999999999999.99")
MAX_BALANCE_VALUE = Decimal("99999999999999.99")


class InsertOnlyModel(models.Model):
    """Rows can be created but never updated or deleted through the ORM."""

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecord(f"{type(self).__name__} is insert-only; updates are not allowed.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecord(f"{type(self).__name__} records cannot be deleted.")


class Warehouse(TimeStampedModel):
    seller = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="warehouses", on_delete=models.CASCADE)
    name = models.CharField(max_length=120)
    address = models.CharField(max_length=255, blank=True)
    is_default = models.BooleanField(default=False)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["seller"],
                condition=models.Q(is_default=True),
                name="one_default_warehouse_per_seller",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class WarehouseOperation(InsertOnlyModel):
    TYPE_INCOMING = OperationType.INCOMING
    TYPE_OUTGOING = OperationType.OUTGOING
    TYPE_TRANSFER = OperationType.TRANSFER
    TYPE_ADJUSTMENT = OperationType.ADJUSTMENT
    TYPE_CHOICES = OperationType.choices

    warehouse = models.ForeignKey(Warehouse, related_name="operations", on_delete=models.PROTECT)
    product = models.ForeignKey("catalog.Product", related_name="warehouse_operations", on_delete=models.PROTECT)
    type = models.CharField(max_length=16, choices=TYPE_CHOICES, db_index=True)
    quantity = models.PositiveIntegerField()
    reason = models.TextField(blank=True)
    reference_id = models.CharField(max_length=120, blank=True)
    # Set on both legs of a transfer
    transfer_id = models.UUIDField(null=True, blank=True, db_index=True)
    destination_warehouse = models.ForeignKey(
        Warehouse,
        null=True,
        blank=True,
        related_name="incoming_transfers",
        on_delete=models.PROTECT,
    )
    performed_by = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="+", on_delete=models.PROTECT)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.CheckConstraint(name="operation_positive_qty", condition=models.Q(quantity__gt=0)),
        ]
        indexes = [
            models.Index(fields=["warehouse", "product", "created_at"], name="operation_wh_product_created"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.type} {self.quantity} w={self.warehouse_id} p={self.product_id}"


class WarehouseStock(TimeStampedModel):
    warehouse = models.ForeignKey(Warehouse, related_name="stock_items", on_delete=models.CASCADE)
    product = models.ForeignKey("catalog.Product", related_name="warehouse_stock", on_delete=models.CASCADE)
    quantity = models.IntegerField(default=0)

    class Meta:
        ordering = ["-updated_at", "id"]
        constraints = [
            models.UniqueConstraint(fields=["warehouse", "product"], name="unique_stock_per_warehouse_product"),
            models.CheckConstraint(name="warehouse_stock_non_negative", condition=models.Q(quantity__gte=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Stock<{self.warehouse_id}:{self.product_id}> q={self.quantity}"


class WarehouseLedger(InsertOnlyModel):
    TYPE_CHOICES = OperationType.choices
    DIRECTION_IN = LedgerDirection.IN
    DIRECTION_OUT = LedgerDirection.OUT

    warehouse = models.ForeignKey(Warehouse, related_name="ledger_entries", on_delete=models.PROTECT)
    product = models.ForeignKey("catalog.Product", related_name="ledger_entries", on_delete=models.PROTECT)
    operation = models.ForeignKey(WarehouseOperation, related_name="ledger_entries", on_delete=models.PROTECT)
    date = models.DateTimeField(db_index=True)
    type = models.CharField(max_length=16, choices=TYPE_CHOICES, db_index=True)
    direction = models.CharField(max_length=3, choices=LedgerDirection.choices, blank=True)
    transfer_id = models.UUIDField(null=True, blank=True)
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=14, decimal_places=2)
    total_value = models.DecimalField(max_digits=14, decimal_places=2)
    balance_qty = models.IntegerField()
    balance_value = models.DecimalField(max_digits=16, decimal_places=2)
    performed_by = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="+", on_delete=models.PROTECT)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-date", "-id"]
        verbose_name_plural = "warehouse ledger"
        constraints = [
            models.CheckConstraint(name="ledger_balance_qty_non_negative", condition=models.Q(balance_qty__gte=0)),
            models.CheckConstraint(
                name="ledger_balance_value_non_negative", condition=models.Q(balance_value__gte=0)
            ),
        ]
        indexes = [
            models.Index(fields=["warehouse", "product", "date"], name="ledger_wh_product_date"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Ledger<{self.warehouse_id}:{self.product_id}> {self.type} bal={self.balance_qty}"


def new_transfer_id() -> uuid.UUID:
    return uuid.uuid4()
