import pytest
from common.choices import SellerRole
from rest_framework.exceptions import PermissionDenied
from users.services import can_create_warehouse, can_manage_warehouse, resolve_seller_context
from users.tests.factories import SellerFactory, UserSellerFactory


@pytest.mark.django_db
def test_super_seller_acts_for_itself():
    seller = SellerFactory()

    ctx = resolve_seller_context(seller)

    assert ctx.user == seller
    assert ctx.actual_seller_id == seller.id
    assert ctx.is_user_seller is False
    assert ctx.role == SellerRole.SUPER_SELLER


@pytest.mark.django_db
def test_admin_acts_for_itself():
    admin = SellerFactory(role=SellerRole.ADMIN)

    assert resolve_seller_context(admin).actual_seller_id == admin.id
    assert can_create_warehouse(admin)
    assert can_manage_warehouse(admin)


@pytest.mark.django_db
def test_user_seller_acts_for_super_seller():
    staff = UserSellerFactory()

    ctx = resolve_seller_context(staff)

    assert ctx.user == staff
    assert ctx.actual_seller_id == staff.super_seller_id
    assert ctx.is_user_seller is True


@pytest.mark.django_db
def test_unlinked_user_seller_is_denied():
    orphan = SellerFactory(role=SellerRole.USER_SELLER)

    with pytest.raises(PermissionDenied):
        resolve_seller_context(orphan)


@pytest.mark.django_db
@pytest.mark.parametrize(
    "flags, allowed",
    [
        ({"manageWarehouse": True}, True),
        ({"manageWarehouse": False}, False),
        ({"manageWarehouse": "true"}, False),
        ({}, False),
    ],
)
def test_user_seller_manage_flag(flags, allowed):
    staff = UserSellerFactory(seller_permissions=flags)

    assert can_manage_warehouse(staff) is allowed
    assert can_create_warehouse(staff) is False


@pytest.mark.django_db
def test_email_is_normalized_on_save():
    seller = SellerFactory(email="  Mixed.Case@Example.COM ")
    seller.refresh_from_db()
    assert seller.email == "mixed.case@example.com"
