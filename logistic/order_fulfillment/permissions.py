"""
Custom permissions for the allocation and backorder engine.
"""

from rest_framework.permissions import BasePermission

STAFF_ROLES = ('admin', 'warehouse_manager', 'worker')
MANAGER_ROLES = ('admin', 'warehouse_manager')


class IsWarehouseStaff(BasePermission):
    """
    Permission that allows access only to warehouse staff users.

    Staff are superusers and users whose role is admin, warehouse manager
    or worker.
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.is_superuser or user.role in STAFF_ROLES


class CanManageBackorders(BasePermission):
    """
    Permission for canceling backorders and resolving delivery issues.

    Restricted to warehouse managers and admins.
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.is_superuser or user.role in MANAGER_ROLES


class IsOrderCourierOrWarehouseStaff(BasePermission):
    """
    Permission for reporting a delivery shortage.

    Warehouse staff may report on any order; a driver only on orders bound
    to them as courier.
    """

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        if IsWarehouseStaff().has_permission(request, view):
            return True
        return obj.courier_id is not None and obj.courier_id == request.user.pk
