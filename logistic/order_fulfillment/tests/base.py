"""
Shared fixtures for the engine tests.
"""

from decimal import Decimal

from django.contrib.auth import get_user_model

from products.models import Product

from ..models import OrderStatus
from ..services import OrderService, AllocationService


class EngineTestMixin:
    """Users, products and orders in the states the tests start from."""

    def setUp(self):
        super().setUp()
        User = get_user_model()
        self.manager = User.objects.create_user(
            username='manager', email='manager@example.com', password='testpass123',
            role=User.ROLE_WAREHOUSE_MANAGER
        )
        self.customer = User.objects.create_user(
            username='customer', email='customer@example.com', password='testpass123'
        )
        self.driver = User.objects.create_user(
            username='driver', email='driver@example.com', password='testpass123',
            role=User.ROLE_DRIVER
        )

    def make_product(self, sku='SKU-P', on_hand=10, min_stock=0):
        return Product.objects.create(name=f"Product {sku}", sku=sku, on_hand_quantity=on_hand, min_stock=min_stock)

    def make_order(self, *lines):
        """``lines`` are ``(product, quantity)`` or ``(product, quantity, unit_price)`` tuples."""
        items = []
        for line in lines:
            product, quantity = line[0], line[1]
            unit_price = line[2] if len(line) > 2 else Decimal('100.00')
            items.append({'product_id': product.pk, 'quantity': quantity, 'unit_price': unit_price})
        return OrderService.create_order(self.customer, {'items': items}, created_by=self.manager)

    def allocate(self, order, *lines, **kwargs):
        return AllocationService.allocate(
            order.id,
            [{'product_id': product.pk, 'qty': qty} for product, qty in lines],
            allocated_by=self.manager,
            **kwargs
        )

    def ship(self, order):
        """Move an allocated or partially fulfilled order out for delivery."""
        OrderService.update_status(order.id, OrderStatus.READY_TO_SHIP, self.manager)
        return OrderService.update_status(order.id, OrderStatus.SHIPPED, self.manager, courier_id=self.driver.pk)
