from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ["name", "sku", "on_hand_quantity", "min_stock", "is_active", "created_at"]
    list_filter = ["is_active", "created_at"]
    search_fields = ["name", "sku"]
    readonly_fields = ["on_hand_quantity", "created_at", "updated_at"]
