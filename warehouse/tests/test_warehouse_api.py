from decimal import Decimal

import pytest
from catalog.tests.factories import ProductFactory
from common.choices import SellerRole
from rest_framework.test import APIClient
from users.tests.factories import SellerFactory, UserSellerFactory
from warehouse.models import Warehouse, WarehouseLedger, WarehouseOperation
from warehouse.tests.factories import WarehouseFactory

BASE = "/api/v1/seller/warehouse/"
OPERATIONS = f"{BASE}operations/"
LEDGER = f"{BASE}ledger/"


def _client(user) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=user)
    return client


def _incoming(client, warehouse, product, quantity=100, **extra):
    body = {"warehouseId": warehouse.id, "productId": product.id, "type": "INCOMING", "quantity": quantity}
    body.update(extra)
    return client.post(OPERATIONS, body, format="json")


@pytest.fixture
def seller_setup():
    seller = SellerFactory()
    warehouse = WarehouseFactory(seller=seller, name="Main")
    product = ProductFactory(seller=seller, purchase_price=Decimal("5.00"))
    return seller, warehouse, product


@pytest.mark.django_db
def test_requires_authentication():
    r = APIClient().get(LEDGER)
    assert r.status_code == 401
    assert r.json()["success"] is False


@pytest.mark.django_db
def test_create_operation_returns_201(seller_setup):
    seller, warehouse, product = seller_setup
    client = _client(seller)

    r = _incoming(client, warehouse, product, reason="PO-17", referenceId="po-17")

    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["operation"]["type"] == "INCOMING"
    assert body["operation"]["quantity"] == 100
    assert body["operation"]["referenceId"] == "po-17"
    assert body["operation"]["warehouse"] == {"id": warehouse.id, "name": "Main"}
    assert body["operation"]["performedBy"] == seller.id


@pytest.mark.django_db
@pytest.mark.parametrize(
    "patch",
    [
        {"quantity": 0},
        {"quantity": -5},
        {"quantity": "abc"},
        {"quantity": 2**31},
        {"quantity": 10**20},
        {"quantity": 2**63},
        {"type": "RETURN"},
        {"warehouseId": None},
    ],
)
def test_create_operation_validation_errors(seller_setup, patch):
    seller, warehouse, product = seller_setup
    body = {"warehouseId": warehouse.id, "productId": product.id, "type": "INCOMING", "quantity": 1}
    body.update(patch)

    r = _client(seller).post(OPERATIONS, body, format="json")

    assert r.status_code == 400
    payload = r.json()
    assert payload["success"] is False
    assert payload["code"] == "VALIDATION_ERROR"
    assert set(payload["details"]) & set(patch)
    assert WarehouseOperation.objects.count() == 0


@pytest.mark.django_db
def test_create_operation_foreign_warehouse_returns_404(seller_setup):
    seller, _, product = seller_setup
    foreign = WarehouseFactory()

    r = _incoming(_client(seller), foreign, product)

    assert r.status_code == 404
    assert r.json() == {"success": False, "code": "NOT_FOUND", "error": "Warehouse not found or access denied."}


@pytest.mark.django_db
def test_transfer_requires_destination(seller_setup):
    seller, warehouse, product = seller_setup
    body = {"warehouseId": warehouse.id, "productId": product.id, "type": "TRANSFER", "quantity": 1}

    r = _client(seller).post(OPERATIONS, body, format="json")

    assert r.status_code == 400
    assert "destinationWarehouseId" in r.json()["details"]


@pytest.mark.django_db
def test_transfer_insufficient_stock_returns_409(seller_setup):
    seller, warehouse, product = seller_setup
    destination = WarehouseFactory(seller=seller)
    client = _client(seller)
    _incoming(client, warehouse, product, quantity=5)

    r = client.post(
        OPERATIONS,
        {
            "warehouseId": warehouse.id,
            "productId": product.id,
            "type": "TRANSFER",
            "quantity": 6,
            "destinationWarehouseId": destination.id,
        },
        format="json",
    )

    assert r.status_code == 409
    assert r.json()["code"] == "INSUFFICIENT_STOCK"
    assert WarehouseOperation.objects.count() == 1


@pytest.mark.django_db
def test_transfer_via_api(seller_setup):
    seller, warehouse, product = seller_setup
    destination = WarehouseFactory(seller=seller)
    client = _client(seller)
    _incoming(client, warehouse, product, quantity=5)

    r = client.post(
        OPERATIONS,
        {
            "warehouseId": warehouse.id,
            "productId": product.id,
            "type": "TRANSFER",
            "quantity": 5,
            "destinationWarehouseId": destination.id,
        },
        format="json",
    )

    assert r.status_code == 201
    operation = r.json()["operation"]
    assert operation["destinationWarehouseId"] == destination.id
    assert operation["transferId"]
    assert WarehouseLedger.objects.filter(transfer_id=operation["transferId"]).count() == 2


@pytest.mark.django_db
def test_user_seller_with_permission_can_post():
    staff = UserSellerFactory()
    warehouse = WarehouseFactory(seller=staff.super_seller)
    product = ProductFactory(seller=staff.super_seller)

    r = _incoming(_client(staff), warehouse, product, quantity=3)

    assert r.status_code == 201
    assert r.json()["operation"]["performedBy"] == staff.id


@pytest.mark.django_db
def test_user_seller_without_permission_can_read_but_not_post():
    staff = UserSellerFactory(seller_permissions={})
    warehouse = WarehouseFactory(seller=staff.super_seller)
    product = ProductFactory(seller=staff.super_seller)
    client = _client(staff)

    r = _incoming(client, warehouse, product)
    assert r.status_code == 403
    assert r.json()["code"] == "PERMISSION_DENIED"

    assert client.get(OPERATIONS).status_code == 200
    assert client.get(LEDGER).status_code == 200


@pytest.mark.django_db
def test_unlinked_user_seller_is_forbidden():
    orphan = SellerFactory(role=SellerRole.USER_SELLER, super_seller=None)

    r = _client(orphan).get(LEDGER)

    assert r.status_code == 403
    assert r.json()["code"] == "PERMISSION_DENIED"


@pytest.mark.django_db
def test_list_operations_with_filters(seller_setup):
    seller, warehouse, product = seller_setup
    client = _client(seller)
    _incoming(client, warehouse, product, quantity=10)
    client.post(
        OPERATIONS,
        {"warehouseId": warehouse.id, "productId": product.id, "type": "OUTGOING", "quantity": 4},
        format="json",
    )

    r = client.get(OPERATIONS, {"type": "OUTGOING", "warehouseId": warehouse.id})

    assert r.status_code == 200
    body = r.json()
    assert [op["quantity"] for op in body["operations"]] == [4]
    assert body["pagination"] == {"page": 1, "limit": 50, "total": 1, "pages": 1}


@pytest.mark.django_db
def test_ledger_response_shape_and_summary(seller_setup):
    seller, warehouse, product = seller_setup
    client = _client(seller)
    _incoming(client, warehouse, product, quantity=100)
    client.post(
        OPERATIONS,
        {"warehouseId": warehouse.id, "productId": product.id, "type": "OUTGOING", "quantity": 30},
        format="json",
    )

    r = client.get(LEDGER)

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["summary"] == {
        "incoming": "500.00",
        "outgoing": "150.00",
        "net": "350.00",
        "totalBalanceQty": 70,
        "totalBalanceValue": "350.00",
    }
    latest = body["ledgerEntries"][0]
    assert latest["type"] == "OUTGOING"
    assert latest["balanceQty"] == 70
    assert latest["balanceValue"] == "350.00"
    assert latest["warehouse"] == {"id": warehouse.id, "name": "Main"}
    assert latest["product"]["id"] == product.id
    assert latest["operation"]["type"] == "OUTGOING"
    assert body["warehouses"] == [{"id": warehouse.id, "name": "Main"}]
    assert body["pagination"]["limit"] == 100


@pytest.mark.django_db
def test_ledger_date_filters(seller_setup):
    seller, warehouse, product = seller_setup
    client = _client(seller)
    _incoming(client, warehouse, product, quantity=1)
    today = WarehouseLedger.objects.get().date.date().isoformat()

    # A bare end date covers the whole day
    r = client.get(LEDGER, {"startDate": today, "endDate": today})
    assert r.status_code == 200
    assert r.json()["pagination"]["total"] == 1

    r = client.get(LEDGER, {"startDate": "2000-01-01", "endDate": "2000-01-31"})
    assert r.json()["pagination"]["total"] == 0

    r = client.get(LEDGER, {"endDate": "2000-01-01T10:00:00Z"})
    assert r.status_code == 200
    assert r.json()["ledgerEntries"] == []


@pytest.mark.django_db
@pytest.mark.parametrize(
    "params",
    [
        {"startDate": "not-a-date"},
        {"startDate": "2024-02-30"},
        {"startDate": "2024-03-02", "endDate": "2024-03-01"},
        {"type": "RETURN"},
        {"page": "x"},
        {"limit": "0"},
        {"page": "0"},
        {"limit": "-1"},
        {"warehouseId": "abc"},
    ],
)
def test_ledger_bad_filters_return_400(seller_setup, params):
    seller, _, _ = seller_setup

    r = _client(seller).get(LEDGER, params)

    assert r.status_code == 400
    assert r.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.django_db
def test_ledger_blank_filters_are_ignored(seller_setup):
    seller, warehouse, product = seller_setup
    client = _client(seller)
    _incoming(client, warehouse, product, quantity=1)

    r = client.get(LEDGER, {"type": "", "warehouseId": "", "startDate": " "})

    assert r.status_code == 200
    assert r.json()["pagination"]["total"] == 1


@pytest.mark.django_db
def test_operations_pagination_and_page_past_end(seller_setup):
    seller, warehouse, product = seller_setup
    client = _client(seller)
    for quantity in (1, 2, 3):
        _incoming(client, warehouse, product, quantity=quantity)

    first = client.get(OPERATIONS, {"limit": 2}).json()
    assert first["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
    assert [op["quantity"] for op in first["operations"]] == [3, 2]

    second = client.get(OPERATIONS, {"limit": 2, "page": 2}).json()
    assert [op["quantity"] for op in second["operations"]] == [1]

    r = client.get(OPERATIONS, {"limit": 2, "page": 5})
    assert r.status_code == 200
    assert r.json()["operations"] == []
    assert r.json()["pagination"] == {"page": 5, "limit": 2, "total": 3, "pages": 2}


@pytest.mark.django_db
def test_ledger_summary_ignores_pagination(seller_setup):
    seller, warehouse, product = seller_setup
    client = _client(seller)
    for quantity in (1, 2, 3):
        _incoming(client, warehouse, product, quantity=quantity)

    body = client.get(LEDGER, {"limit": 1}).json()

    assert len(body["ledgerEntries"]) == 1
    assert body["pagination"]["pages"] == 3
    assert body["summary"]["totalBalanceQty"] == 6
    assert body["summary"]["incoming"] == "30.00"


@pytest.mark.django_db
def test_ledger_limit_is_capped(seller_setup):
    seller, _, _ = seller_setup

    r = _client(seller).get(LEDGER, {"limit": 100000})

    assert r.status_code == 200
    assert r.json()["pagination"]["limit"] == 500


@pytest.mark.django_db
def test_warehouse_crud_and_default_flag():
    seller = SellerFactory()
    client = _client(seller)

    first = client.post(BASE, {"name": "Main", "address": "1 Dock Rd", "isDefault": True}, format="json")
    assert first.status_code == 201
    first_id = first.json()["warehouse"]["id"]

    second = client.post(BASE, {"name": "Overflow", "isDefault": True}, format="json")
    assert second.status_code == 201
    second_id = second.json()["warehouse"]["id"]

    assert Warehouse.objects.get(id=first_id).is_default is False
    assert Warehouse.objects.get(id=second_id).is_default is True

    r = client.put(f"{BASE}{first_id}/", {"name": "Main Hall", "isDefault": True}, format="json")
    assert r.status_code == 200
    assert r.json()["warehouse"]["name"] == "Main Hall"
    assert Warehouse.objects.filter(seller=seller, is_default=True).get().id == first_id

    listing = client.get(BASE).json()["warehouses"]
    assert {w["name"] for w in listing} == {"Main Hall", "Overflow"}
    assert all("stockItems" in w and "counts" in w for w in listing)

    assert client.delete(f"{BASE}{second_id}/").status_code == 200
    assert not Warehouse.objects.filter(id=second_id).exists()


@pytest.mark.django_db
def test_warehouse_with_history_cannot_be_deleted(seller_setup):
    seller, warehouse, product = seller_setup
    client = _client(seller)
    _incoming(client, warehouse, product, quantity=1)

    r = client.delete(f"{BASE}{warehouse.id}/")

    assert r.status_code == 409
    assert r.json()["code"] == "WAREHOUSE_IN_USE"
    assert Warehouse.objects.filter(id=warehouse.id).exists()


@pytest.mark.django_db
def test_foreign_warehouse_update_returns_404(seller_setup):
    seller, _, _ = seller_setup
    foreign = WarehouseFactory()

    r = _client(seller).put(f"{BASE}{foreign.id}/", {"name": "Mine now"}, format="json")

    assert r.status_code == 404
    foreign.refresh_from_db()
    assert foreign.name != "Mine now"


@pytest.mark.django_db
def test_user_seller_cannot_create_warehouse():
    staff = UserSellerFactory()
    client = _client(staff)

    r = client.post(BASE, {"name": "Sneaky"}, format="json")

    assert r.status_code == 403
    assert not Warehouse.objects.exists()
    # Listing is still allowed and scoped to the super seller
    WarehouseFactory(seller=staff.super_seller, name="Owner's")
    listing = client.get(BASE).json()["warehouses"]
    assert [w["name"] for w in listing] == ["Owner's"]
