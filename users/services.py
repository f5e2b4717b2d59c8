"""Seller identity resolution for delegated accounts.

A user seller operates on data owned by its super seller. Everything that
scopes ownership (warehouses, products, stock) goes through
`resolve_seller_context`, while audit fields keep the raw caller.
"""

import logging
from dataclasses import dataclass

from common.choices import SellerRole
from rest_framework.exceptions import PermissionDenied

from .models import User

logger = logging.getLogger("auth")


@dataclass(frozen=True)
class SellerContext:
    """Capability object passed into warehouse services.

    ``user`` is the acting account (recorded as performer), ``actual_seller_id``
    the account that owns the data being touched.
    """

    user: User
    actual_seller_id: int
    is_user_seller: bool
    role: str


def resolve_seller_context(user: User) -> SellerContext:
    """Map an authenticated user to the seller account it acts for."""
    if user.role == SellerRole.USER_SELLER:
        if not user.super_seller_id:
            logger.warning(
                "seller.unlinked_user_seller",
                extra={"event": "seller.unlinked_user_seller", "user_id": user.id},
            )
            raise PermissionDenied("User seller must be linked to a super seller.")
        return SellerContext(
            user=user,
            actual_seller_id=user.super_seller_id,
            is_user_seller=True,
            role=user.role,
        )
    return SellerContext(user=user, actual_seller_id=user.id, is_user_seller=False, role=user.role)


def can_create_warehouse(user: User) -> bool:
    """Only super sellers and admins may create or edit warehouses."""
    return user.role in (SellerRole.SUPER_SELLER, SellerRole.ADMIN)


def can_manage_warehouse(user: User) -> bool:
    """Super sellers always; user sellers only with the ``manageWarehouse`` flag."""
    if user.role in (SellerRole.SUPER_SELLER, SellerRole.ADMIN):
        return True
    if user.role == SellerRole.USER_SELLER:
        permissions = user.seller_permissions or {}
        return isinstance(permissions, dict) and permissions.get("manageWarehouse") is True
    return False
