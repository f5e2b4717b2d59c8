from datetime import timedelta
from decimal import Decimal

import pytest
from catalog.tests.factories import ProductFactory
from common.choices import LedgerDirection, OperationType
from common.exceptions import ImmutableRecord, InsufficientStock, NotFoundOrAccessDenied, ValidationFailed
from django.db import transaction
from users.services import resolve_seller_context
from users.tests.factories import SellerFactory, UserSellerFactory
from warehouse import services
from warehouse.models import MAX_QUANTITY, WarehouseLedger, WarehouseOperation, WarehouseStock
from warehouse.services import create_operation, create_transfer, stock_lock
from warehouse.tests.factories import WarehouseFactory


def _setup(purchase_price="5.00"):
    seller = SellerFactory()
    warehouse = WarehouseFactory(seller=seller)
    product = ProductFactory(seller=seller, purchase_price=Decimal(purchase_price))
    return resolve_seller_context(seller), warehouse, product


def _post(ctx, warehouse, product, op_type, quantity, **kwargs):
    return create_operation(
        context=ctx,
        warehouse_id=warehouse.id,
        product_id=product.id,
        type=op_type,
        quantity=quantity,
        **kwargs,
    )


def _latest(warehouse, product) -> WarehouseLedger:
    return WarehouseLedger.objects.filter(warehouse=warehouse, product=product).order_by("-id").first()


def _stock(warehouse, product) -> int:
    return WarehouseStock.objects.get(warehouse=warehouse, product=product).quantity


@pytest.mark.django_db
def test_incoming_then_outgoing_running_balance():
    ctx, wh, product = _setup()

    _post(ctx, wh, product, OperationType.INCOMING, 100)
    assert _stock(wh, product) == 100
    entry = _latest(wh, product)
    assert entry.balance_qty == 100
    assert entry.balance_value == Decimal("500.00")
    assert entry.unit_price == Decimal("5.00")
    assert entry.total_value == Decimal("500.00")

    _post(ctx, wh, product, OperationType.OUTGOING, 30)
    assert _stock(wh, product) == 70
    entry = _latest(wh, product)
    assert entry.balance_qty == 70
    assert entry.balance_value == Decimal("350.00")


@pytest.mark.django_db
def test_outgoing_beyond_balance_clamps_to_zero():
    ctx, wh, product = _setup()
    _post(ctx, wh, product, OperationType.INCOMING, 100)
    _post(ctx, wh, product, OperationType.OUTGOING, 30)

    op = _post(ctx, wh, product, OperationType.OUTGOING, 1000)

    assert op.quantity == 1000
    assert _stock(wh, product) == 0
    entry = _latest(wh, product)
    assert entry.balance_qty == 0
    assert entry.balance_value == Decimal("0.00")


@pytest.mark.django_db
def test_adjustment_sets_absolute_balance():
    ctx, wh, product = _setup()
    _post(ctx, wh, product, OperationType.INCOMING, 100)
    _post(ctx, wh, product, OperationType.OUTGOING, 30)

    _post(ctx, wh, product, OperationType.ADJUSTMENT, 500, reason="Stocktake")

    assert _stock(wh, product) == 500
    entry = _latest(wh, product)
    assert entry.balance_qty == 500
    assert entry.balance_value == Decimal("2500.00")
    assert entry.notes == "Stocktake"


@pytest.mark.django_db
def test_outgoing_on_empty_pair_materializes_stock_row():
    ctx, wh, product = _setup()

    _post(ctx, wh, product, OperationType.OUTGOING, 5)

    assert _stock(wh, product) == 0
    entry = _latest(wh, product)
    assert entry.balance_qty == 0
    assert entry.balance_value == Decimal("0.00")


@pytest.mark.django_db
def test_balance_continuity_over_mixed_sequence():
    ctx, wh, product = _setup(purchase_price="2.00")
    sequence = [
        (OperationType.INCOMING, 10),
        (OperationType.INCOMING, 5),
        (OperationType.OUTGOING, 3),
        (OperationType.ADJUSTMENT, 20),
        (OperationType.OUTGOING, 50),
        (OperationType.INCOMING, 7),
    ]
    for op_type, qty in sequence:
        _post(ctx, wh, product, op_type, qty)

    entries = list(WarehouseLedger.objects.filter(warehouse=wh, product=product).order_by("date", "id"))
    assert [e.balance_qty for e in entries] == [10, 15, 12, 20, 0, 7]
    previous = None
    for entry in entries:
        assert entry.balance_qty >= 0
        assert entry.balance_value >= 0
        if previous is not None and entry.type == OperationType.INCOMING:
            assert entry.balance_qty == previous.balance_qty + entry.quantity
            assert entry.balance_value == previous.balance_value + entry.total_value
        previous = entry
    # Stock snapshot agrees with the ledger
    assert _stock(wh, product) == entries[-1].balance_qty


@pytest.mark.django_db
def test_missing_purchase_price_values_at_zero():
    seller = SellerFactory()
    wh = WarehouseFactory(seller=seller)
    product = ProductFactory(seller=seller, purchase_price=None)

    _post(resolve_seller_context(seller), wh, product, OperationType.INCOMING, 4)

    entry = _latest(wh, product)
    assert entry.unit_price == Decimal("0.00")
    assert entry.balance_value == Decimal("0.00")
    assert entry.balance_qty == 4


@pytest.mark.django_db
def test_failed_ledger_write_rolls_back_everything(monkeypatch):
    ctx, wh, product = _setup()

    def boom(**kwargs):
        raise RuntimeError("ledger unavailable")

    monkeypatch.setattr(services, "_append_ledger", boom)

    with pytest.raises(RuntimeError):
        _post(ctx, wh, product, OperationType.INCOMING, 10)

    assert WarehouseOperation.objects.count() == 0
    assert WarehouseStock.objects.count() == 0
    assert WarehouseLedger.objects.count() == 0


@pytest.mark.django_db
def test_foreign_warehouse_is_not_found():
    ctx, _, product = _setup()
    foreign = WarehouseFactory()

    with pytest.raises(NotFoundOrAccessDenied):
        _post(ctx, foreign, product, OperationType.INCOMING, 1)

    assert WarehouseOperation.objects.count() == 0
    assert WarehouseLedger.objects.count() == 0


@pytest.mark.django_db
def test_foreign_product_is_not_found():
    ctx, wh, _ = _setup()
    foreign_product = ProductFactory()

    with pytest.raises(NotFoundOrAccessDenied):
        _post(ctx, wh, foreign_product, OperationType.INCOMING, 1)

    assert WarehouseStock.objects.count() == 0


@pytest.mark.django_db
@pytest.mark.parametrize("quantity", [0, -3, 1.5, True, "10", MAX_QUANTITY + 1, 10**20])
def test_invalid_quantity_rejected_before_writes(quantity):
    ctx, wh, product = _setup()

    with pytest.raises(ValidationFailed):
        _post(ctx, wh, product, OperationType.INCOMING, quantity)

    assert WarehouseOperation.objects.count() == 0


@pytest.mark.django_db
def test_unknown_type_rejected():
    ctx, wh, product = _setup()

    with pytest.raises(ValidationFailed):
        _post(ctx, wh, product, "RETURN", 1)


@pytest.mark.django_db
def test_user_seller_posts_to_super_seller_stock():
    staff = UserSellerFactory()
    owner = staff.super_seller
    wh = WarehouseFactory(seller=owner)
    product = ProductFactory(seller=owner)
    ctx = resolve_seller_context(staff)

    op = _post(ctx, wh, product, OperationType.INCOMING, 12, reference_id="PO-1")

    assert ctx.actual_seller_id == owner.id
    assert op.performed_by_id == staff.id
    assert op.reference_id == "PO-1"
    assert _latest(wh, product).performed_by_id == staff.id


@pytest.mark.django_db
def test_user_seller_cannot_touch_other_sellers_stock():
    staff = UserSellerFactory()
    stranger = SellerFactory()
    wh = WarehouseFactory(seller=stranger)
    product = ProductFactory(seller=stranger)

    with pytest.raises(NotFoundOrAccessDenied):
        _post(resolve_seller_context(staff), wh, product, OperationType.INCOMING, 1)


@pytest.mark.django_db
def test_transfer_writes_two_linked_legs():
    ctx, source, product = _setup()
    destination = WarehouseFactory(seller=source.seller)
    _post(ctx, source, product, OperationType.INCOMING, 50)

    op = create_transfer(
        context=ctx,
        warehouse_id=source.id,
        destination_warehouse_id=destination.id,
        product_id=product.id,
        quantity=20,
        reason="Rebalance",
    )

    assert op.warehouse_id == source.id
    assert op.destination_warehouse_id == destination.id
    assert op.transfer_id is not None
    assert _stock(source, product) == 30
    assert _stock(destination, product) == 20

    legs = WarehouseOperation.objects.filter(transfer_id=op.transfer_id)
    assert legs.count() == 2
    entries = {e.direction: e for e in WarehouseLedger.objects.filter(transfer_id=op.transfer_id)}
    assert set(entries) == {LedgerDirection.OUT, LedgerDirection.IN}
    assert entries[LedgerDirection.OUT].warehouse_id == source.id
    assert entries[LedgerDirection.OUT].balance_qty == 30
    assert entries[LedgerDirection.OUT].balance_value == Decimal("150.00")
    assert entries[LedgerDirection.IN].warehouse_id == destination.id
    assert entries[LedgerDirection.IN].balance_qty == 20
    assert entries[LedgerDirection.IN].balance_value == Decimal("100.00")
    assert all(e.type == OperationType.TRANSFER for e in entries.values())


@pytest.mark.django_db
def test_transfer_through_create_operation():
    ctx, source, product = _setup()
    destination = WarehouseFactory(seller=source.seller)
    _post(ctx, source, product, OperationType.INCOMING, 5)

    op = _post(ctx, source, product, OperationType.TRANSFER, 5, destination_warehouse_id=destination.id)

    assert op.type == OperationType.TRANSFER
    assert _stock(source, product) == 0
    assert _stock(destination, product) == 5


@pytest.mark.django_db
def test_transfer_insufficient_stock_writes_nothing():
    ctx, source, product = _setup()
    destination = WarehouseFactory(seller=source.seller)
    _post(ctx, source, product, OperationType.INCOMING, 10)
    ops_before = WarehouseOperation.objects.count()
    ledger_before = WarehouseLedger.objects.count()

    with pytest.raises(InsufficientStock):
        create_transfer(
            context=ctx,
            warehouse_id=source.id,
            destination_warehouse_id=destination.id,
            product_id=product.id,
            quantity=11,
        )

    assert WarehouseOperation.objects.count() == ops_before
    assert WarehouseLedger.objects.count() == ledger_before
    assert _stock(source, product) == 10
    assert not WarehouseStock.objects.filter(warehouse=destination).exists()


@pytest.mark.django_db
def test_transfer_requires_distinct_owned_destination():
    ctx, source, product = _setup()
    _post(ctx, source, product, OperationType.INCOMING, 10)

    with pytest.raises(ValidationFailed):
        _post(ctx, source, product, OperationType.TRANSFER, 1)
    with pytest.raises(ValidationFailed):
        _post(ctx, source, product, OperationType.TRANSFER, 1, destination_warehouse_id=source.id)
    with pytest.raises(NotFoundOrAccessDenied):
        _post(ctx, source, product, OperationType.TRANSFER, 1, destination_warehouse_id=WarehouseFactory().id)


@pytest.mark.django_db(transaction=True)
def test_stock_lock_requires_atomic_block():
    _, wh, product = _setup()

    with pytest.raises(transaction.TransactionManagementError):
        with stock_lock(warehouse_id=wh.id, product_id=product.id):
            pass
    assert not WarehouseStock.objects.exists()


@pytest.mark.django_db
def test_operations_and_ledger_are_insert_only():
    ctx, wh, product = _setup()
    op = _post(ctx, wh, product, OperationType.INCOMING, 1)
    entry = _latest(wh, product)

    op.quantity = 2
    with pytest.raises(ImmutableRecord):
        op.save()
    with pytest.raises(ImmutableRecord):
        entry.delete()
    op.refresh_from_db()
    assert op.quantity == 1
    assert WarehouseLedger.objects.filter(id=entry.id).exists()


@pytest.mark.django_db
def test_incoming_past_quantity_range_is_rejected_and_rolled_back():
    ctx, wh, product = _setup()
    _post(ctx, wh, product, OperationType.INCOMING, MAX_QUANTITY)

    with pytest.raises(ValidationFailed) as exc:
        _post(ctx, wh, product, OperationType.INCOMING, 1)

    assert "quantity" in exc.value.detail
    assert WarehouseOperation.objects.count() == 1
    assert WarehouseLedger.objects.count() == 1
    assert _stock(wh, product) == MAX_QUANTITY
    assert _latest(wh, product).balance_qty == MAX_QUANTITY


@pytest.mark.django_db
def test_line_value_past_money_range_is_rejected():
    ctx, wh, product = _setup(purchase_price="1000000.00")

    with pytest.raises(ValidationFailed):
        _post(ctx, wh, product, OperationType.INCOMING, 1000000)

    assert WarehouseOperation.objects.count() == 0
    assert not WarehouseStock.objects.filter(warehouse=wh, product=product).exists()


@pytest.mark.django_db
def test_transfer_into_full_destination_is_rejected():
    ctx, source, product = _setup(purchase_price="0.00")
    destination = WarehouseFactory(seller=source.seller)
    _post(ctx, source, product, OperationType.INCOMING, 10)
    _post(ctx, destination, product, OperationType.INCOMING, MAX_QUANTITY)

    with pytest.raises(ValidationFailed):
        _post(ctx, source, product, OperationType.TRANSFER, 5, destination_warehouse_id=destination.id)

    assert _stock(source, product) == 10
    assert _stock(destination, product) == MAX_QUANTITY
    assert not WarehouseLedger.objects.filter(type=OperationType.TRANSFER).exists()


@pytest.mark.django_db
def test_running_balance_follows_posting_order_not_entry_dates():
    ctx, wh, product = _setup()
    _post(ctx, wh, product, OperationType.INCOMING, 10)
    _post(ctx, wh, product, OperationType.INCOMING, 5)
    first, second = WarehouseLedger.objects.filter(warehouse=wh, product=product).order_by("id")
    # A worker whose clock lags stamped the newer entry before the older one
    WarehouseLedger.objects.filter(id=second.id).update(date=first.date - timedelta(hours=1))

    _post(ctx, wh, product, OperationType.INCOMING, 1)

    assert _latest(wh, product).balance_qty == 16
    assert _stock(wh, product) == 16
