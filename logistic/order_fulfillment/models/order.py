"""
Order model for the allocation and backorder engine.
"""

import uuid
from decimal import Decimal
from django.db import models
from django.conf import settings
from django.utils import timezone


class OrderStatus(models.TextChoices):
    """Order status enumeration with workflow states."""
    PENDING = 'pending', 'Pending'
    WAITING_INVOICE = 'waiting_invoice', 'Waiting Invoice'
    ALLOCATED = 'allocated', 'Allocated'
    PARTIALLY_FULFILLED = 'partially_fulfilled', 'Partially Fulfilled'
    READY_TO_SHIP = 'ready_to_ship', 'Ready To Ship'
    SHIPPED = 'shipped', 'Shipped'
    DELIVERED = 'delivered', 'Delivered'
    COMPLETED = 'completed', 'Completed'
    HOLD = 'hold', 'Hold'
    DEBT_PENDING = 'debt_pending', 'Debt Pending'
    CANCELED = 'canceled', 'Canceled'


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELED})

# Once an order reaches ready_to_ship its invoice and payment are issued;
# hold is the only later status that re-opens allocation.
ALLOCATION_EDITABLE_STATUSES = frozenset({
    OrderStatus.PENDING,
    OrderStatus.WAITING_INVOICE,
    OrderStatus.ALLOCATED,
    OrderStatus.PARTIALLY_FULFILLED,
    OrderStatus.DEBT_PENDING,
    OrderStatus.HOLD,
})

SPLITTABLE_STATUSES = ALLOCATION_EDITABLE_STATUSES - {OrderStatus.HOLD}

BACKORDER_CANCELLABLE_STATUSES = ALLOCATION_EDITABLE_STATUSES


class Order(models.Model):
    """
    Customer order as seen by the allocation engine.

    A backorder child points at the order it was split from through
    ``parent_order``; the parent lists its children as ``backorders``.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(
        max_length=50,
        unique=True,
        help_text="Unique order identifier (auto-generated)"
    )

    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        help_text="Current order status in the fulfillment workflow"
    )

    parent_order = models.ForeignKey(
        'self',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='backorders',
        help_text="Order this backorder was split from"
    )

    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='orders',
        help_text="Customer who placed the order"
    )
    courier = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='deliveries',
        help_text="Delivery driver currently bound to the order"
    )

    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Value of the quantities currently allocated"
    )

    notes = models.TextField(blank=True)

    # Backorder cancellation audit (write-once)
    cancel_reason = models.TextField(blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)
    canceled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='canceled_orders'
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_orders'
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='updated_orders'
    )

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='order_status_created_idx'),
            models.Index(fields=['customer', 'status'], name='order_customer_status_idx'),
            models.Index(fields=['parent_order'], name='order_parent_idx'),
        ]

    def __str__(self):
        return f"Order {self.order_number} ({self.status})"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._stored_cancel_reason = instance.__dict__.get('cancel_reason', '')
        return instance

    def save(self, *args, **kwargs):
        """Generate the order number and keep the cancel reason write-once."""
        if not self.order_number:
            timestamp = timezone.now().strftime('%Y%m%d%H%M%S')
            self.order_number = f"ORD-{timestamp}-{str(self.id)[:8].upper()}"

        stored_reason = getattr(self, '_stored_cancel_reason', '')
        if stored_reason and self.cancel_reason != stored_reason:
            raise ValueError(f"Cancel reason of order {self.order_number} is immutable")

        super().save(*args, **kwargs)
        self._stored_cancel_reason = self.cancel_reason

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    @property
    def is_allocation_editable(self):
        return self.status in ALLOCATION_EDITABLE_STATUSES

    @property
    def is_backorder(self):
        return self.parent_order_id is not None
