from rest_framework import serializers
from .models import StockMovement


class StockMovementSerializer(serializers.ModelSerializer):
    product_sku = serializers.CharField(source="product.sku", read_only=True)
    user_name = serializers.CharField(source="user.username", read_only=True, default=None)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "movement_type",
            "product",
            "product_sku",
            "quantity_delta",
            "balance_after",
            "reference",
            "user",
            "user_name",
            "notes",
            "created_at",
        ]
        read_only_fields = fields
