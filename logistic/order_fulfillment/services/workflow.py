"""
Workflow service for the order lifecycle.

Manages allowed state transitions and enforces business rules.
"""

import logging

from ..exceptions import InvalidTransitionException
from ..models import Order, OrderStatus, AuditLog, ALLOCATION_EDITABLE_STATUSES

logger = logging.getLogger(__name__)


class OrderWorkflow:
    """Workflow rules for Order state transitions."""

    # Define allowed transitions
    ALLOWED_TRANSITIONS = {
        OrderStatus.PENDING: [
            OrderStatus.WAITING_INVOICE, OrderStatus.ALLOCATED, OrderStatus.PARTIALLY_FULFILLED,
            OrderStatus.DEBT_PENDING, OrderStatus.CANCELED,
        ],
        OrderStatus.WAITING_INVOICE: [
            OrderStatus.ALLOCATED, OrderStatus.PARTIALLY_FULFILLED, OrderStatus.READY_TO_SHIP,
            OrderStatus.DEBT_PENDING, OrderStatus.CANCELED,
        ],
        OrderStatus.ALLOCATED: [
            OrderStatus.PARTIALLY_FULFILLED, OrderStatus.WAITING_INVOICE, OrderStatus.READY_TO_SHIP,
            OrderStatus.DEBT_PENDING, OrderStatus.CANCELED,
        ],
        OrderStatus.PARTIALLY_FULFILLED: [
            OrderStatus.ALLOCATED, OrderStatus.WAITING_INVOICE, OrderStatus.READY_TO_SHIP,
            OrderStatus.DEBT_PENDING, OrderStatus.CANCELED,
        ],
        OrderStatus.DEBT_PENDING: [
            OrderStatus.ALLOCATED, OrderStatus.PARTIALLY_FULFILLED, OrderStatus.READY_TO_SHIP,
            OrderStatus.CANCELED,
        ],
        OrderStatus.READY_TO_SHIP: [OrderStatus.SHIPPED],
        OrderStatus.SHIPPED: [OrderStatus.DELIVERED, OrderStatus.HOLD],
        OrderStatus.HOLD: [OrderStatus.SHIPPED, OrderStatus.CANCELED],
        OrderStatus.DELIVERED: [OrderStatus.COMPLETED],
        OrderStatus.COMPLETED: [],  # Final state
        OrderStatus.CANCELED: [],  # Final state
    }

    # Transitions owned by a dedicated operation; generic status updates
    # must not perform them.
    RESTRICTED_TRANSITIONS = {
        (OrderStatus.SHIPPED, OrderStatus.HOLD): 'report_issue',
        (OrderStatus.HOLD, OrderStatus.SHIPPED): 'resolve_issue',
    }
    RESTRICTED_TARGETS = {
        OrderStatus.CANCELED: 'cancel_backorder',
    }

    @classmethod
    def validate_transition(cls, order: Order, new_status: str) -> None:
        """
        Validate if a status transition is allowed.

        Args:
            order: Order instance
            new_status: New status to transition to

        Raises:
            InvalidTransitionException: If transition is not allowed
        """
        current_status = order.status

        if current_status == new_status:
            return  # Allow no-op transitions

        allowed_transitions = cls.ALLOWED_TRANSITIONS.get(current_status, [])

        if new_status not in allowed_transitions:
            raise InvalidTransitionException(
                current_status=current_status,
                attempted_status=new_status,
                entity_type="Order"
            )

    @classmethod
    def can_transition_to(cls, order: Order, new_status: str) -> bool:
        """
        Check if transition is allowed without raising exception.
        """
        try:
            cls.validate_transition(order, new_status)
            return True
        except InvalidTransitionException:
            return False

    @classmethod
    def restricted_operation(cls, current_status: str, new_status: str):
        """Name of the operation that owns this transition, if any."""
        if new_status in cls.RESTRICTED_TARGETS:
            return cls.RESTRICTED_TARGETS[new_status]
        return cls.RESTRICTED_TRANSITIONS.get((current_status, new_status))

    @classmethod
    def ensure_allocation_editable(cls, order: Order) -> None:
        """
        Raises:
            InvalidTransitionException: If allocation is locked for the order's status
        """
        if order.status not in ALLOCATION_EDITABLE_STATUSES:
            raise InvalidTransitionException(
                current_status=order.status,
                entity_type="Order",
                message=(
                    f"Allocation of order {order.order_number} is locked in status '{order.status}'"
                )
            )


def validate_order_workflow(order: Order, new_status: str) -> None:
    """
    Validate order workflow transition.

    Raises:
        InvalidTransitionException: If transition is not allowed
    """
    OrderWorkflow.validate_transition(order, new_status)


def transition_order(order: Order, new_status: str, user=None, notes: str = "",
                     extra_fields=None) -> bool:
    """
    Move an order to ``new_status`` after validating the transition, save it
    and write the audit entry. The caller holds the row lock.

    Returns:
        True if the status changed, False for a no-op
    """
    validate_order_workflow(order, new_status)

    old_status = order.status
    if old_status == new_status:
        return False

    order.status = new_status
    if user is not None:
        order.updated_by = user
    order.save(update_fields=['status', 'updated_by', 'updated_at', *(extra_fields or [])])

    AuditLog.log_status_change(
        entity=order,
        old_status=old_status,
        new_status=new_status,
        user=user,
        notes=notes
    )

    logger.info(f"Order {order.order_number} moved {old_status} -> {new_status}")
    return True
