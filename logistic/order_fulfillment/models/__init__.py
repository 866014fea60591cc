"""
Allocation & Backorder Engine Models
"""

from .order import (
    Order, OrderStatus, TERMINAL_STATUSES, ALLOCATION_EDITABLE_STATUSES,
    SPLITTABLE_STATUSES, BACKORDER_CANCELLABLE_STATUSES,
)
from .order_item import OrderItem
from .allocation import Allocation
from .issue import OrderIssue, IssueType
from .audit import AuditLog

__all__ = [
    # Order models
    'Order', 'OrderStatus', 'OrderItem',
    'TERMINAL_STATUSES', 'ALLOCATION_EDITABLE_STATUSES',
    'SPLITTABLE_STATUSES', 'BACKORDER_CANCELLABLE_STATUSES',

    # Allocation
    'Allocation',

    # Delivery issues
    'OrderIssue', 'IssueType',

    # Audit
    'AuditLog',
]
