"""DRF permission classes for seller roles."""

from rest_framework.permissions import SAFE_METHODS, BasePermission

from .services import can_create_warehouse, can_manage_warehouse


class CanManageWarehouse(BasePermission):
    """Reads are open to any seller; writes need the warehouse permission."""

    message = "You do not have permission to manage warehouse stock."

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return can_manage_warehouse(request.user)


class CanCreateWarehouse(BasePermission):
    message = "Only super sellers can create or modify warehouses."

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return can_create_warehouse(request.user)
