"""
Order Service for the allocation and backorder engine.

Handles order creation and the operator-driven status transitions that no
dedicated operation owns.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Any

from django.db import transaction

from products.models import Product

from ..exceptions import InvalidTransitionException, ValidationException
from ..models import Order, OrderItem, OrderStatus, AuditLog
from .escalation_service import EscalationService
from .order_state import get_order, load_order_lines, allocated_by_product, build_shortage_lines
from .workflow import OrderWorkflow, transition_order

logger = logging.getLogger(__name__)


class OrderService:
    """Service class for order operations."""

    @staticmethod
    def create_order(customer, order_data: Dict[str, Any], created_by=None) -> Order:
        """
        Create a new pending order with items.

        Args:
            customer: Customer user instance
            order_data: ``items`` (``product_id``, ``quantity``, ``unit_price``) and optional ``notes``
            created_by: User creating the order

        Returns:
            Created Order instance

        Raises:
            ValidationException: If order data is invalid
        """
        items_data = order_data.get('items') or []
        if not items_data:
            raise ValidationException("Order must contain at least one item")

        product_ids = {item_data.get('product_id') for item_data in items_data}
        products = Product.objects.filter(pk__in=[pid for pid in product_ids if isinstance(pid, int)], is_active=True)
        known = set(products.values_list('pk', flat=True))

        errors = {}
        for index, item_data in enumerate(items_data):
            quantity = item_data.get('quantity')
            if item_data.get('product_id') not in known:
                errors[f"items[{index}].product_id"] = "Unknown or inactive product"
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
                errors[f"items[{index}].quantity"] = "Quantity must be a positive integer"
            try:
                if Decimal(str(item_data.get('unit_price', '0'))) < 0:
                    errors[f"items[{index}].unit_price"] = "Unit price cannot be negative"
            except InvalidOperation:
                errors[f"items[{index}].unit_price"] = "Unit price must be a number"
        if errors:
            raise ValidationException("Invalid order items", errors)

        with transaction.atomic():
            order = Order.objects.create(
                customer=customer,
                notes=order_data.get('notes', ''),
                created_by=created_by,
                updated_by=created_by,
            )

            for item_data in items_data:
                OrderItem.objects.create(
                    order=order,
                    product_id=item_data['product_id'],
                    ordered_qty=item_data['quantity'],
                    unit_price_at_purchase=Decimal(str(item_data.get('unit_price', '0'))),
                )

            AuditLog.log_change(
                entity=order,
                action='created',
                user=created_by,
                new_values={'status': order.status},
                notes=f"Order created with {len(items_data)} items"
            )

            logger.info(f"Order {order.order_number} created for customer {customer}")
            return order

    @staticmethod
    def update_status(order_id, new_status: str, user=None, courier_id=None) -> Order:
        """
        Move an order along its lifecycle.

        Holding, resuming from hold and canceling belong to the escalation
        and backorder operations and are refused here. Shipping binds the
        order to an active courier.

        Args:
            order_id: Order UUID
            new_status: Target status
            user: User performing the update
            courier_id: Courier to bind when shipping

        Returns:
            Updated Order instance

        Raises:
            ValidationException: If the status is unknown or a courier is missing
            NotFoundException: If the order or courier does not exist
            InvalidTransitionException: If the transition is not allowed here
        """
        if new_status not in OrderStatus.values:
            raise ValidationException(f"Unknown status '{new_status}'", {'status': "Invalid choice"})

        with transaction.atomic():
            order = get_order(order_id, for_update=True)

            operation = OrderWorkflow.restricted_operation(order.status, new_status)
            if operation is not None:
                raise InvalidTransitionException(
                    current_status=order.status,
                    attempted_status=new_status,
                    entity_type="Order",
                    message=f"Moving order {order.order_number} to '{new_status}' requires {operation}"
                )

            OrderWorkflow.validate_transition(order, new_status)

            extra_fields = []
            if new_status == OrderStatus.SHIPPED:
                if courier_id is not None:
                    order.courier = EscalationService.get_courier(courier_id)
                elif order.courier is None or not order.courier.is_active_courier:
                    raise ValidationException(
                        f"Order {order.order_number} needs an active courier to ship",
                        {'courier_id': "This field is required"}
                    )
                extra_fields.append('courier')

            transition_order(order, new_status, user, extra_fields=extra_fields)
            return order

    @staticmethod
    def get_order_summary(order_id) -> Dict[str, Any]:
        """
        Get an order with its lines, backorders and open issue.

        Raises:
            NotFoundException: If the order does not exist
        """
        order = get_order(order_id)
        items, allocations = load_order_lines(order)
        allocated = allocated_by_product(allocations)
        lines = build_shortage_lines(items, allocated, only_short=False)
        open_issue = order.issues.filter(resolved_at__isnull=True).first()

        return {
            'order': {
                'id': str(order.id),
                'order_number': order.order_number,
                'status': order.status,
                'parent_order_id': str(order.parent_order_id) if order.parent_order_id else None,
                'total_amount': str(order.total_amount),
                'created_at': order.created_at.isoformat(),
                'customer': order.customer.username,
                'courier': order.courier.username if order.courier else None,
            },
            'lines': [line.to_dict() for line in lines],
            'total_shortage': sum(line.shortage for line in lines),
            'backorders': [
                {'id': str(child.id), 'order_number': child.order_number, 'status': child.status}
                for child in order.backorders.order_by('created_at')
            ],
            'open_issue_id': str(open_issue.id) if open_issue else None,
        }
