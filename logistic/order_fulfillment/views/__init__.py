"""
Allocation & Backorder Engine Views
"""

from .order_views import OrderViewSet
from .allocation_views import AllocationViewSet
from .issue_views import IssueViewSet

__all__ = [
    'OrderViewSet',
    'AllocationViewSet',
    'IssueViewSet',
]
