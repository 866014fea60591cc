"""
Order serializers for the allocation and backorder engine.
"""

from rest_framework import serializers

from ..models import Order, OrderItem, OrderStatus, Allocation


class OrderItemSerializer(serializers.ModelSerializer):
    """Serializer for OrderItem model."""

    product_sku = serializers.CharField(source='product.sku', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)
    demand_qty = serializers.IntegerField(read_only=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id', 'product', 'product_sku', 'product_name',
            'ordered_qty', 'backordered_qty', 'demand_qty',
            'unit_price_at_purchase', 'line_total', 'created_at'
        ]
        read_only_fields = fields


class AllocationSerializer(serializers.ModelSerializer):
    product_sku = serializers.CharField(source='product.sku', read_only=True)

    class Meta:
        model = Allocation
        fields = ['id', 'product', 'product_sku', 'allocated_qty', 'allocated_at', 'updated_at']
        read_only_fields = fields


class OrderItemInputSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class OrderCreateSerializer(serializers.Serializer):
    """Serializer for creating orders."""

    customer_id = serializers.IntegerField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    items = OrderItemInputSerializer(many=True)

    def validate_items(self, value):
        """Validate order items."""
        if not value:
            raise serializers.ValidationError("Order must contain at least one item")
        return value


class OrderListSerializer(serializers.ModelSerializer):
    """Serializer for order listing."""

    customer_name = serializers.CharField(source='customer.username', read_only=True)
    items_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'customer_name', 'status', 'parent_order',
            'total_amount', 'items_count', 'created_at', 'updated_at'
        ]

    def get_items_count(self, obj):
        return obj.items.count()


class OrderDetailSerializer(serializers.ModelSerializer):
    """Serializer for order details."""

    customer_name = serializers.CharField(source='customer.username', read_only=True)
    courier_name = serializers.CharField(source='courier.username', read_only=True, default=None)
    canceled_by_name = serializers.CharField(source='canceled_by.username', read_only=True, default=None)

    items = OrderItemSerializer(many=True, read_only=True)
    allocations = AllocationSerializer(many=True, read_only=True)
    backorders = serializers.PrimaryKeyRelatedField(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'customer', 'customer_name', 'status',
            'parent_order', 'backorders', 'courier', 'courier_name',
            'total_amount', 'notes', 'cancel_reason', 'canceled_at', 'canceled_by_name',
            'created_at', 'updated_at', 'items', 'allocations'
        ]
        read_only_fields = fields


class AllocateSerializer(serializers.Serializer):
    """
    Allocation request. Lines are validated one by one by the allocation
    service so a bad line does not reject the whole request.
    """

    lines = serializers.ListField(child=serializers.DictField(), required=False, default=list)
    auto_fill = serializers.BooleanField(required=False, default=False)
    split_backorder = serializers.BooleanField(required=False, default=False)


class CancelBackorderSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class UpdateStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    courier_id = serializers.IntegerField(required=False, allow_null=True, default=None)
