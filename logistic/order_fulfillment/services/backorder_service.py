"""
Backorder Service for the allocation engine.

Splits the unfulfilled remainder of an order into a linked child order and
handles operator cancellation of orders whose shortage will not be filled.
"""

import logging
from typing import Optional

from django.db import transaction
from django.utils import timezone

from ..conf import get_setting
from ..exceptions import InvalidTransitionException, InvalidReasonException, RejectedException
from ..models import (
    Order, OrderItem, OrderStatus, AuditLog,
    SPLITTABLE_STATUSES, BACKORDER_CANCELLABLE_STATUSES,
)
from .order_state import get_order, load_order_lines, allocated_by_product, build_shortage_lines
from .workflow import transition_order

logger = logging.getLogger(__name__)


class BackorderService:
    """Service class for backorder split and cancellation."""

    @staticmethod
    def split(order_id, user=None) -> Optional[Order]:
        """
        Move the unallocated remainder of an order into a new child order.

        Args:
            order_id: Order UUID
            user: User performing the split

        Returns:
            The child Order, or None if the order has no shortage

        Raises:
            NotFoundException: If the order does not exist
            InvalidTransitionException: If the order's status does not allow splitting
        """
        with transaction.atomic():
            order = get_order(order_id, for_update=True)
            return BackorderService.split_locked(order, user)

    @staticmethod
    def ensure_splittable(order: Order) -> None:
        if order.status not in SPLITTABLE_STATUSES:
            raise InvalidTransitionException(
                current_status=order.status,
                entity_type="Order",
                message=f"Order {order.order_number} cannot be split in status '{order.status}'"
            )

    @staticmethod
    def split_locked(order: Order, user=None) -> Optional[Order]:
        """
        Split an order whose row the caller has already locked.

        The parent keeps what was committed: each short item's
        ``backordered_qty`` grows by the moved quantity, latest items first,
        since allocation fills a product's items in creation order.
        """
        BackorderService.ensure_splittable(order)

        items, allocations = load_order_lines(order)
        shortage_lines = build_shortage_lines(items, allocated_by_product(allocations))
        if not shortage_lines:
            return None

        child = Order.objects.create(
            order_number=BackorderService._next_backorder_number(order),
            parent_order=order,
            customer=order.customer,
            status=OrderStatus.PENDING,
            notes=f"Backorder of {order.order_number}",
            created_by=user,
            updated_by=user,
        )

        moved = []
        for line in shortage_lines:
            remaining = line.shortage
            product_items = [item for item in items if item.product_id == line.product_id]
            for item in reversed(product_items):
                move = min(item.demand_qty, remaining)
                if move <= 0:
                    continue
                item.backordered_qty += move
                item.save(update_fields=['backordered_qty'])
                OrderItem.objects.create(
                    order=child,
                    product_id=item.product_id,
                    ordered_qty=move,
                    unit_price_at_purchase=item.unit_price_at_purchase,
                )
                remaining -= move
                if remaining == 0:
                    break
            moved.append(line.to_dict())

        AuditLog.log_change(
            entity=order,
            action='backorder_split',
            user=user,
            new_values={'backorder_order_id': child.id, 'backorder_order_number': child.order_number},
            metadata={'shortage': moved},
            notes=f"Shortage moved to backorder {child.order_number}"
        )
        AuditLog.log_change(
            entity=child,
            action='created',
            user=user,
            new_values={'status': child.status, 'parent_order_id': order.id},
            notes=f"Backorder created from {order.order_number}"
        )

        logger.info(
            f"Order {order.order_number} split: backorder {child.order_number} "
            f"carries {sum(line['shortage'] for line in moved)} units"
        )
        return child

    @staticmethod
    def _next_backorder_number(order: Order) -> str:
        sequence = order.backorders.count() + 1
        return f"{order.order_number}-BO{sequence}"

    @staticmethod
    def get_backorders(order_id):
        """
        Child orders split from an order, oldest first.

        Raises:
            NotFoundException: If the order does not exist
        """
        order = get_order(order_id)
        return order.backorders.order_by('created_at')

    @staticmethod
    def cancel_backorder(order_id, reason: str, canceled_by=None) -> Order:
        """
        Cancel an order whose shortage will not be fulfilled.

        Already-allocated quantities are not returned to stock; only the
        unfulfilled remainder is abandoned.

        Args:
            order_id: Order UUID
            reason: Operator justification, stored immutably on the order
            canceled_by: User canceling the order

        Returns:
            Canceled Order instance

        Raises:
            InvalidReasonException: If the reason is shorter than the minimum
            NotFoundException: If the order does not exist
            InvalidTransitionException: If the order's status is not editable or hold
            RejectedException: If the order has no shortage
        """
        min_length = get_setting('MIN_REASON_LENGTH')
        reason = (reason or '').strip()
        if len(reason) < min_length:
            raise InvalidReasonException(min_length)

        with transaction.atomic():
            order = get_order(order_id, for_update=True)

            if order.status not in BACKORDER_CANCELLABLE_STATUSES:
                raise InvalidTransitionException(
                    current_status=order.status,
                    attempted_status=OrderStatus.CANCELED,
                    entity_type="Order",
                    message=f"Backorder of order {order.order_number} cannot be canceled in status '{order.status}'"
                )

            items, allocations = load_order_lines(order)
            shortage_lines = build_shortage_lines(items, allocated_by_product(allocations))
            if not shortage_lines:
                raise RejectedException(
                    f"Order {order.order_number} has no unallocated quantity to cancel",
                    "NO_SHORTAGE",
                    {"order_id": str(order.id)}
                )

            now = timezone.now()
            open_issue = order.issues.select_for_update().filter(resolved_at__isnull=True).first()
            if open_issue is not None:
                open_issue.resolved_at = now
                open_issue.resolution_note = f"[CANCEL_BACKORDER] {reason}"
                open_issue.resolved_by = canceled_by
                open_issue.save(update_fields=['resolved_at', 'resolution_note', 'resolved_by'])

            order.cancel_reason = reason
            order.canceled_at = now
            order.canceled_by = canceled_by
            transition_order(
                order, OrderStatus.CANCELED, canceled_by,
                notes=f"Backorder canceled: {reason}",
                extra_fields=['cancel_reason', 'canceled_at', 'canceled_by'],
            )

            AuditLog.log_change(
                entity=order,
                action='backorder_canceled',
                user=canceled_by,
                new_values={'cancel_reason': reason},
                metadata={'shortage': [line.to_dict() for line in shortage_lines]},
                notes=reason
            )

            logger.info(f"Backorder {order.order_number} canceled by {canceled_by}: {reason}")
            return order
