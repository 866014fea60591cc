from django.core.validators import MinValueValidator
from django.db import models


class Product(models.Model):
    """
    Stocked product.

    ``on_hand_quantity`` is net of every quantity currently allocated to open
    orders. It is written only through ``warehouse.services.StockService``.
    """

    name = models.CharField(max_length=200)
    sku = models.CharField(max_length=100, unique=True, db_index=True)
    on_hand_quantity = models.PositiveIntegerField(default=0, validators=[MinValueValidator(0)])
    min_stock = models.PositiveIntegerField(default=0, help_text="Reorder threshold (informational)")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "products"
        verbose_name = "Product"
        verbose_name_plural = "Products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_active"], name="products_is_active_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(on_hand_quantity__gte=0), name="product_on_hand_non_negative"),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    @property
    def below_min_stock(self):
        return self.on_hand_quantity < self.min_stock
