"""
Allocation & Backorder Engine Services
"""

from .workflow import OrderWorkflow, validate_order_workflow, transition_order
from .results import AllocationResult, AllocationLine, LineRejection, ShortageLine
from .order_service import OrderService
from .allocation_service import AllocationService
from .backorder_service import BackorderService
from .escalation_service import EscalationService, is_overdue

__all__ = [
    # Workflow
    'OrderWorkflow', 'validate_order_workflow', 'transition_order',

    # Results
    'AllocationResult', 'AllocationLine', 'LineRejection', 'ShortageLine',

    # Services
    'OrderService', 'AllocationService', 'BackorderService', 'EscalationService',
    'is_overdue',
]
