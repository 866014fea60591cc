"""
Django admin configuration for the allocation and backorder engine.
"""

from django.contrib import admin
from .models import Order, OrderItem, Allocation, OrderIssue, AuditLog


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['id', 'ordered_qty', 'backordered_qty', 'unit_price_at_purchase', 'created_at']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'customer', 'status', 'parent_order', 'total_amount', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['order_number', 'customer__username']
    readonly_fields = ['id', 'order_number', 'total_amount', 'cancel_reason', 'canceled_at', 'canceled_by',
                       'created_at', 'updated_at']
    inlines = [OrderItemInline]


@admin.register(OrderItem)
class OrderItemAdmin(admin.ModelAdmin):
    list_display = ['order', 'product', 'ordered_qty', 'backordered_qty', 'unit_price_at_purchase']
    list_filter = ['order__status']
    search_fields = ['product__sku', 'order__order_number']
    readonly_fields = ['id', 'ordered_qty']


@admin.register(Allocation)
class AllocationAdmin(admin.ModelAdmin):
    list_display = ['order', 'product', 'allocated_qty', 'allocated_at', 'updated_at']
    list_filter = ['allocated_at']
    search_fields = ['order__order_number', 'product__sku']
    # Quantities change only through the allocation service
    readonly_fields = ['id', 'order', 'product', 'allocated_qty', 'allocated_at', 'updated_at']


@admin.register(OrderIssue)
class OrderIssueAdmin(admin.ModelAdmin):
    list_display = ['order', 'issue_type', 'reported_at', 'due_at', 'resolved_at']
    list_filter = ['issue_type', 'resolved_at']
    search_fields = ['order__order_number', 'note']
    readonly_fields = ['id', 'reported_at', 'due_at']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['entity_type', 'entity_id', 'action', 'user', 'timestamp']
    list_filter = ['entity_type', 'action', 'timestamp']
    search_fields = ['entity_id', 'user__username', 'notes']
    readonly_fields = ['id', 'timestamp']
