from rest_framework import permissions


class IsAdminOrWarehouseManager(permissions.BasePermission):
    def has_permission(self, request, view):
        return request.user and request.user.is_authenticated and (
            request.user.is_superuser or request.user.is_admin or request.user.is_warehouse_manager
        )


class IsWorkerOrAbove(permissions.BasePermission):
    """Any authenticated staff member except delivery drivers."""

    def has_permission(self, request, view):
        return request.user and request.user.is_authenticated and not request.user.is_driver
