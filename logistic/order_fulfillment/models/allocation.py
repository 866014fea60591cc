"""
Allocation model: quantity of a product committed to an order.
"""

import uuid
from django.db import models
from django.utils import timezone


class Allocation(models.Model):
    """
    Committed stock for one (order, product) pair.

    There is at most one row per pair; it is updated in place by the
    allocation service and its quantity has already been subtracted from
    ``Product.on_hand_quantity``.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        'Order',
        on_delete=models.CASCADE,
        related_name='allocations',
        help_text="Order this allocation belongs to"
    )
    product = models.ForeignKey(
        'products.Product',
        on_delete=models.PROTECT,
        related_name='allocations'
    )

    allocated_qty = models.PositiveIntegerField(default=0)

    allocated_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['order', 'product']
        constraints = [
            models.UniqueConstraint(fields=['order', 'product'], name='allocation_unique_order_product'),
        ]
        indexes = [
            models.Index(fields=['product', 'allocated_qty'], name='allocation_product_qty_idx'),
        ]

    def __str__(self):
        return f"Allocation {self.order_id}/{self.product_id}: {self.allocated_qty}"
