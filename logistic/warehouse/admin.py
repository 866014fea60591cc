from django.contrib import admin
from .models import StockMovement


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ["movement_type", "product", "quantity_delta", "balance_after", "reference", "user", "created_at"]
    list_filter = ["movement_type", "created_at"]
    search_fields = ["product__name", "product__sku", "reference", "notes"]
    readonly_fields = ["created_at"]
    date_hierarchy = "created_at"
