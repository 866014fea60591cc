from django.conf import settings
from django.db import models
from products.models import Product


class StockMovement(models.Model):
    """Journal row for every delta the stock ledger applies to a product."""

    MOVEMENT_ALLOCATION = "allocation"
    MOVEMENT_RELEASE = "release"
    MOVEMENT_RECEIPT = "receipt"
    MOVEMENT_ADJUSTMENT = "adjustment"

    MOVEMENT_TYPE_CHOICES = [
        (MOVEMENT_ALLOCATION, "Allocation"),
        (MOVEMENT_RELEASE, "Release"),
        (MOVEMENT_RECEIPT, "Receipt"),
        (MOVEMENT_ADJUSTMENT, "Adjustment"),
    ]

    movement_type = models.CharField(max_length=20, choices=MOVEMENT_TYPE_CHOICES)
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="movements")
    quantity_delta = models.IntegerField(help_text="Signed change applied to on_hand_quantity")
    balance_after = models.PositiveIntegerField()
    reference = models.CharField(max_length=100, blank=True, help_text="Order number or document reference")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="movements"
    )
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "stock_movements"
        verbose_name = "Stock Movement"
        verbose_name_plural = "Stock Movements"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["product", "-created_at"], name="stock_mov_product_idx"),
            models.Index(fields=["movement_type"], name="stock_mov_type_idx"),
            models.Index(fields=["reference"], name="stock_mov_reference_idx"),
        ]

    def __str__(self):
        return f"{self.movement_type} {self.quantity_delta:+d} {self.product.sku} -> {self.balance_after}"
