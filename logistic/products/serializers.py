from rest_framework import serializers
from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    below_min_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "sku",
            "on_hand_quantity",
            "min_stock",
            "below_min_stock",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "on_hand_quantity", "created_at", "updated_at"]


class ProductListSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ["id", "name", "sku", "on_hand_quantity", "min_stock", "is_active"]


class StockReceiptSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
