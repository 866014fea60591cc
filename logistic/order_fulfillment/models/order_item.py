"""
OrderItem model for the allocation and backorder engine.
"""

import uuid
from decimal import Decimal
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class OrderItem(models.Model):
    """
    One ordered line.

    ``ordered_qty`` never changes after creation. When the unfulfilled part
    of a line is split into a backorder child, the moved quantity is recorded
    in ``backordered_qty`` so the parent's demand describes exactly what it
    still has to fulfil.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        'Order',
        on_delete=models.CASCADE,
        related_name='items',
        help_text="Order this item belongs to"
    )
    product = models.ForeignKey(
        'products.Product',
        on_delete=models.PROTECT,
        related_name='order_items'
    )

    ordered_qty = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Quantity ordered by the customer (immutable)"
    )
    backordered_qty = models.PositiveIntegerField(
        default=0,
        help_text="Quantity moved to a backorder child order"
    )
    unit_price_at_purchase = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00')
    )

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['order', 'created_at']
        indexes = [
            models.Index(fields=['order', 'product'], name='order_item_order_product_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(ordered_qty__gt=0),
                name='order_item_ordered_qty_positive'
            ),
            models.CheckConstraint(
                condition=models.Q(backordered_qty__lte=models.F('ordered_qty')),
                name='order_item_backordered_within_ordered'
            ),
        ]

    def __str__(self):
        return f"{self.product_id} x {self.ordered_qty}"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._stored_ordered_qty = instance.__dict__.get('ordered_qty')
        return instance

    def save(self, *args, **kwargs):
        stored_qty = getattr(self, '_stored_ordered_qty', None)
        if stored_qty is not None and self.ordered_qty != stored_qty:
            raise ValueError("ordered_qty is immutable once the item is created")
        super().save(*args, **kwargs)
        self._stored_ordered_qty = self.ordered_qty

    @property
    def demand_qty(self):
        """Quantity this order itself still has to fulfil."""
        return self.ordered_qty - self.backordered_qty

    @property
    def line_total(self):
        return self.unit_price_at_purchase * self.ordered_qty
