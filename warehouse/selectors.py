"""Read-only queries over warehouses, operations and the ledger.

Every query is scoped to the warehouses of one seller account. List filters
and pagination are applied by the views (``warehouse.filters``).
"""

from common.choices import OperationType
from common.money import ZERO, to_money
from django.db.models import Count, DecimalField, F, OuterRef, Prefetch, Q, Subquery, Sum, Value
from django.db.models.functions import Coalesce

from .models import Warehouse, WarehouseLedger, WarehouseOperation, WarehouseStock


def list_warehouses(*, seller_id: int):
    """Warehouses with their stock rows and operation/stock counts, newest first."""
    return (
        Warehouse.objects.filter(seller_id=seller_id)
        .annotate(
            operations_count=Count("operations", distinct=True),
            stock_items_count=Count("stock_items", distinct=True),
        )
        .prefetch_related(
            Prefetch("stock_items", queryset=WarehouseStock.objects.select_related("product").order_by("product__name"))
        )
        .order_by("-created_at", "-id")
    )


def operations_queryset(*, seller_id: int):
    return (
        WarehouseOperation.objects.filter(warehouse__seller_id=seller_id)
        .select_related("warehouse", "product")
        .order_by("-created_at", "-id")
    )


def ledger_queryset(*, seller_id: int):
    """Ledger entries of the seller's warehouses, newest first."""
    return WarehouseLedger.objects.filter(warehouse__seller_id=seller_id).order_by("-date", "-id")


def ledger_summary(queryset) -> dict:
    """Totals over a filtered ledger queryset.

    incoming/outgoing sum ``total_value`` by type. Balances add up the latest
    entry of each (warehouse, product) pair present in the filtered set.
    """
    money = DecimalField(max_digits=16, decimal_places=2)
    base = queryset.select_related(None).order_by()
    totals = base.aggregate(
        incoming=Coalesce(Sum("total_value", filter=Q(type=OperationType.INCOMING)), Value(ZERO), output_field=money),
        outgoing=Coalesce(Sum("total_value", filter=Q(type=OperationType.OUTGOING)), Value(ZERO), output_field=money),
    )

    latest_for_pair = (
        base.filter(warehouse_id=OuterRef("warehouse_id"), product_id=OuterRef("product_id"))
        .order_by("-id")
        .values("id")[:1]
    )
    latest_ids = base.annotate(latest_id=Subquery(latest_for_pair)).filter(id=F("latest_id")).values("id")
    balances = WarehouseLedger.objects.filter(id__in=latest_ids).aggregate(
        qty=Coalesce(Sum("balance_qty"), Value(0)),
        value=Coalesce(Sum("balance_value"), Value(ZERO), output_field=money),
    )

    incoming = to_money(totals["incoming"])
    outgoing = to_money(totals["outgoing"])
    return {
        "incoming": incoming,
        "outgoing": outgoing,
        "net": incoming - outgoing,
        "total_balance_qty": int(balances["qty"] or 0),
        "total_balance_value": to_money(balances["value"]),
    }


def stock_drift(*, seller_id=None):
    """Yield ``(stock, latest_balance_qty)`` for stock rows that disagree with their ledger."""
    latest_balance = (
        WarehouseLedger.objects.filter(warehouse_id=OuterRef("warehouse_id"), product_id=OuterRef("product_id"))
        .order_by("-id")
        .values("balance_qty")[:1]
    )
    qs = WarehouseStock.objects.select_related("warehouse", "product").annotate(
        ledger_qty=Coalesce(Subquery(latest_balance), Value(0))
    )
    if seller_id is not None:
        qs = qs.filter(warehouse__seller_id=seller_id)
    for stock in qs.exclude(quantity=F("ledger_qty")).order_by("warehouse_id", "product_id"):
        yield stock, stock.ledger_qty


def warehouse_choices(*, seller_id: int):
    """Lightweight (id, name) rows for filter dropdowns."""
    return Warehouse.objects.filter(seller_id=seller_id).only("id", "name").order_by("name", "id")
