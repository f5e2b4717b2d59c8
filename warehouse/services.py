"""Warehouse services: ledger engine and warehouse registry mutations.

Every stock-changing call writes one operation, one stock update and one
ledger entry per affected (warehouse, product) pair inside a single
transaction. The pair's stock row is locked (``stock_lock``) for the whole
read-compute-write sequence, so concurrent writers on the same pair queue up
and each new ledger entry follows the one committed before it.
"""

import logging
from contextlib import ExitStack, contextmanager
from decimal import Decimal

from catalog.models import Product
from common.choices import LedgerDirection, OperationType
from common.db import retry_on_transient
from common.exceptions import InsufficientStock, NotFoundOrAccessDenied, ValidationFailed, WarehouseInUse
from common.money import ZERO, line_value, to_money
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from users.services import SellerContext

from .models import (
    MAX_BALANCE_VALUE,
    MAX_LINE_VALUE,
    MAX_QUANTITY,
    Warehouse,
    WarehouseLedger,
    WarehouseOperation,
    WarehouseStock,
    new_transfer_id,
)

logger = logging.getLogger("sellerportal.warehouse")


# Balance rules


def next_stock_quantity(op_type: str, existing: int, quantity: int) -> int:
    """Stock quantity after applying a single-sided operation."""
    if op_type == OperationType.INCOMING:
        return int(existing) + int(quantity)
    if op_type == OperationType.OUTGOING:
        return max(0, int(existing) - int(quantity))
    if op_type == OperationType.ADJUSTMENT:
        return int(quantity)
    raise ValueError(f"No single-sided stock rule for {op_type}")


def next_balance(
    op_type: str,
    prior: WarehouseLedger | None,
    *,
    quantity: int,
    unit_price: Decimal,
    new_quantity: int,
) -> tuple[int, Decimal]:
    """Running (balance_qty, balance_value) for the next ledger entry.

    Without a prior entry the balance is seeded from the post-operation
    stock quantity. ADJUSTMENT is an absolute reset, OUTGOING clamps at zero.
    """
    unit_price = to_money(unit_price)
    total_value = line_value(unit_price, quantity)
    if prior is None:
        return int(new_quantity), line_value(unit_price, new_quantity)
    if op_type == OperationType.INCOMING:
        return int(prior.balance_qty) + int(quantity), to_money(prior.balance_value) + total_value
    if op_type == OperationType.OUTGOING:
        return (
            max(0, int(prior.balance_qty) - int(quantity)),
            max(ZERO, to_money(prior.balance_value) - total_value),
        )
    if op_type == OperationType.ADJUSTMENT:
        return int(quantity), total_value
    raise ValueError(f"No single-sided balance rule for {op_type}")


# Locking


@contextmanager
def stock_lock(*, warehouse_id: int, product_id: int):
    """Yield the (warehouse, product) stock row, created at zero if missing, under a row lock.

    Must run inside ``transaction.atomic``; the lock is held until the
    enclosing transaction ends.
    """
    if not transaction.get_connection().in_atomic_block:
        raise transaction.TransactionManagementError("stock_lock requires an atomic block")
    stock, created = WarehouseStock.objects.select_for_update().get_or_create(
        warehouse_id=warehouse_id,
        product_id=product_id,
        defaults={"quantity": 0},
    )
    if created:
        logger.debug(
            "warehouse.stock_materialized",
            extra={"event": "warehouse.stock_materialized", "warehouse_id": warehouse_id, "product_id": product_id},
        )
    yield stock


# Validation and ownership


def _validate_request(*, op_type, quantity) -> None:
    errors = {}
    if op_type not in OperationType.values:
        errors["type"] = [f"Must be one of: {', '.join(OperationType.values)}."]
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        errors["quantity"] = ["Quantity must be a positive integer."]
    elif quantity > MAX_QUANTITY:
        errors["quantity"] = [f"Quantity must not exceed {MAX_QUANTITY}."]
    if errors:
        raise ValidationFailed(errors)


def get_owned_warehouse(*, context: SellerContext, warehouse_id: int) -> Warehouse:
    warehouse = Warehouse.objects.filter(id=warehouse_id, seller_id=context.actual_seller_id).first()
    if warehouse is None:
        raise NotFoundOrAccessDenied("Warehouse not found or access denied.")
    return warehouse


def get_owned_product(*, context: SellerContext, product_id: int) -> Product:
    product = Product.objects.filter(id=product_id, seller_id=context.actual_seller_id).first()
    if product is None:
        raise NotFoundOrAccessDenied("Product not found or access denied.")
    return product


def _append_ledger(
    *,
    operation: WarehouseOperation,
    effect: str,
    quantity: int,
    unit_price: Decimal,
    new_quantity: int,
    direction: str = "",
) -> WarehouseLedger:
    # Ids are assigned while the stock row is locked, so they give the posting order
    prior = (
        WarehouseLedger.objects.filter(warehouse_id=operation.warehouse_id, product_id=operation.product_id)
        .order_by("-id")
        .only("balance_qty", "balance_value")
        .first()
    )
    balance_qty, balance_value = next_balance(
        effect, prior, quantity=quantity, unit_price=unit_price, new_quantity=new_quantity
    )
    total_value = line_value(unit_price, quantity)
    if (
        max(new_quantity, balance_qty) > MAX_QUANTITY
        or total_value > MAX_LINE_VALUE
        or balance_value > MAX_BALANCE_VALUE
    ):
        raise ValidationFailed({"quantity": ["Resulting stock or ledger value exceeds the supported range."]})
    return WarehouseLedger.objects.create(
        warehouse_id=operation.warehouse_id,
        product_id=operation.product_id,
        operation=operation,
        date=timezone.now(),
        type=operation.type,
        direction=direction,
        transfer_id=operation.transfer_id,
        quantity=quantity,
        unit_price=unit_price,
        total_value=total_value,
        balance_qty=balance_qty,
        balance_value=balance_value,
        performed_by=operation.performed_by,
        notes=operation.reason,
    )


# Ledger engine


@retry_on_transient
def create_operation(
    *,
    context: SellerContext,
    warehouse_id: int,
    product_id: int,
    type: str,
    quantity: int,
    reason: str = "",
    reference_id: str = "",
    destination_warehouse_id: int | None = None,
) -> WarehouseOperation:
    """Record a warehouse operation and post it to stock and the ledger.

    Returns the created operation (the source leg for transfers). Ownership
    and input errors are raised before anything is written.
    """
    _validate_request(op_type=type, quantity=quantity)
    if type == OperationType.TRANSFER:
        return _create_transfer(
            context=context,
            warehouse_id=warehouse_id,
            destination_warehouse_id=destination_warehouse_id,
            product_id=product_id,
            quantity=quantity,
            reason=reason,
            reference_id=reference_id,
        )

    warehouse = get_owned_warehouse(context=context, warehouse_id=warehouse_id)
    product = get_owned_product(context=context, product_id=product_id)
    unit_price = to_money(product.purchase_price)

    with transaction.atomic():
        operation = WarehouseOperation.objects.create(
            warehouse=warehouse,
            product=product,
            type=type,
            quantity=quantity,
            reason=reason or "",
            reference_id=reference_id or "",
            performed_by=context.user,
        )
        with stock_lock(warehouse_id=warehouse.id, product_id=product.id) as stock:
            new_quantity = next_stock_quantity(type, stock.quantity, quantity)
            entry = _append_ledger(
                operation=operation,
                effect=type,
                quantity=quantity,
                unit_price=unit_price,
                new_quantity=new_quantity,
            )
            stock.quantity = new_quantity
            stock.save(update_fields=["quantity", "updated_at"])

    logger.info(
        "warehouse.operation_created",
        extra={
            "event": "warehouse.operation_created",
            "operation_id": operation.id,
            "warehouse_id": warehouse.id,
            "product_id": product.id,
            "type": type,
            "quantity": quantity,
            "balance_qty": entry.balance_qty,
            "performed_by": context.user.id,
            "seller_id": context.actual_seller_id,
        },
    )
    return operation


@retry_on_transient
def create_transfer(
    *,
    context: SellerContext,
    warehouse_id: int,
    destination_warehouse_id: int,
    product_id: int,
    quantity: int,
    reason: str = "",
    reference_id: str = "",
) -> WarehouseOperation:
    """Move stock between two warehouses of the same seller."""
    _validate_request(op_type=OperationType.TRANSFER, quantity=quantity)
    return _create_transfer(
        context=context,
        warehouse_id=warehouse_id,
        destination_warehouse_id=destination_warehouse_id,
        product_id=product_id,
        quantity=quantity,
        reason=reason,
        reference_id=reference_id,
    )


def _create_transfer(
    *,
    context: SellerContext,
    warehouse_id: int,
    destination_warehouse_id: int | None,
    product_id: int,
    quantity: int,
    reason: str,
    reference_id: str,
) -> WarehouseOperation:
    if not destination_warehouse_id:
        raise ValidationFailed({"destinationWarehouseId": ["Destination warehouse is required for transfers."]})
    if int(destination_warehouse_id) == int(warehouse_id):
        raise ValidationFailed({"destinationWarehouseId": ["Destination must differ from the source warehouse."]})

    source = get_owned_warehouse(context=context, warehouse_id=warehouse_id)
    destination = get_owned_warehouse(context=context, warehouse_id=destination_warehouse_id)
    product = get_owned_product(context=context, product_id=product_id)
    unit_price = to_money(product.purchase_price)
    transfer_id = new_transfer_id()

    with transaction.atomic(), ExitStack() as locks:
        # Lock in ascending warehouse order so opposite transfers cannot deadlock
        locked = {
            wid: locks.enter_context(stock_lock(warehouse_id=wid, product_id=product.id))
            for wid in sorted((source.id, destination.id))
        }
        source_stock = locked[source.id]
        destination_stock = locked[destination.id]

        if source_stock.quantity < quantity:
            raise InsufficientStock(
                f"Only {source_stock.quantity} unit(s) available in the source warehouse.",
            )

        outgoing = WarehouseOperation.objects.create(
            warehouse=source,
            product=product,
            type=OperationType.TRANSFER,
            quantity=quantity,
            reason=reason or "",
            reference_id=reference_id or "",
            transfer_id=transfer_id,
            destination_warehouse=destination,
            performed_by=context.user,
        )
        incoming = WarehouseOperation.objects.create(
            warehouse=destination,
            product=product,
            type=OperationType.TRANSFER,
            quantity=quantity,
            reason=reason or "",
            reference_id=reference_id or "",
            transfer_id=transfer_id,
            performed_by=context.user,
        )

        new_source_qty = next_stock_quantity(OperationType.OUTGOING, source_stock.quantity, quantity)
        _append_ledger(
            operation=outgoing,
            effect=OperationType.OUTGOING,
            quantity=quantity,
            unit_price=unit_price,
            new_quantity=new_source_qty,
            direction=LedgerDirection.OUT,
        )
        source_stock.quantity = new_source_qty
        source_stock.save(update_fields=["quantity", "updated_at"])

        new_destination_qty = next_stock_quantity(OperationType.INCOMING, destination_stock.quantity, quantity)
        _append_ledger(
            operation=incoming,
            effect=OperationType.INCOMING,
            quantity=quantity,
            unit_price=unit_price,
            new_quantity=new_destination_qty,
            direction=LedgerDirection.IN,
        )
        destination_stock.quantity = new_destination_qty
        destination_stock.save(update_fields=["quantity", "updated_at"])

    logger.info(
        "warehouse.transfer_created",
        extra={
            "event": "warehouse.transfer_created",
            "transfer_id": str(transfer_id),
            "source_warehouse_id": source.id,
            "destination_warehouse_id": destination.id,
            "product_id": product.id,
            "quantity": quantity,
            "performed_by": context.user.id,
            "seller_id": context.actual_seller_id,
        },
    )
    return outgoing


# Warehouse registry


def _clear_other_defaults(*, seller_id: int, keep_id: int | None = None) -> None:
    qs = Warehouse.objects.filter(seller_id=seller_id, is_default=True)
    if keep_id is not None:
        qs = qs.exclude(id=keep_id)
    qs.update(is_default=False, updated_at=timezone.now())


@transaction.atomic
def create_warehouse(*, context: SellerContext, name: str, address: str = "", is_default: bool = False) -> Warehouse:
    if is_default:
        _clear_other_defaults(seller_id=context.actual_seller_id)
    warehouse = Warehouse.objects.create(
        seller_id=context.actual_seller_id,
        name=name,
        address=address or "",
        is_default=bool(is_default),
    )
    logger.info(
        "warehouse.created",
        extra={"event": "warehouse.created", "warehouse_id": warehouse.id, "seller_id": context.actual_seller_id},
    )
    return warehouse


@transaction.atomic
def update_warehouse(
    *, context: SellerContext, warehouse_id: int, name: str, address: str = "", is_default: bool = False
) -> Warehouse:
    warehouse = get_owned_warehouse(context=context, warehouse_id=warehouse_id)
    if is_default:
        _clear_other_defaults(seller_id=context.actual_seller_id, keep_id=warehouse.id)
    warehouse.name = name
    warehouse.address = address or ""
    warehouse.is_default = bool(is_default)
    warehouse.save(update_fields=["name", "address", "is_default", "updated_at"])
    return warehouse


@transaction.atomic
def delete_warehouse(*, context: SellerContext, warehouse_id: int) -> None:
    """Delete a warehouse that has never been posted to.

    Warehouses with operations keep their ledger history and are refused.
    """
    warehouse = get_owned_warehouse(context=context, warehouse_id=warehouse_id)
    has_history = WarehouseOperation.objects.filter(Q(warehouse=warehouse) | Q(destination_warehouse=warehouse)).exists()
    if has_history:
        raise WarehouseInUse()
    warehouse.delete()
    logger.info(
        "warehouse.deleted",
        extra={"event": "warehouse.deleted", "warehouse_id": warehouse_id, "seller_id": context.actual_seller_id},
    )
