"""
Escalation Service for delivery-time shortages.

A driver who finds goods missing after dispatch reports an issue; the order
is held until an operator resolves it within the SLA window and hands the
order to a courier again.
"""

import logging
from datetime import timedelta
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from ..conf import get_setting
from ..exceptions import (
    InvalidNoteException, InvalidTransitionException, IssueAlreadyOpenException, NotFoundException,
)
from ..models import OrderIssue, OrderStatus, IssueType, AuditLog
from .order_state import get_order
from .workflow import transition_order

logger = logging.getLogger(__name__)


def is_overdue(issue: OrderIssue, now=None) -> bool:
    """An issue is overdue while unresolved past its due time."""
    if issue.resolved_at is not None:
        return False
    return (now or timezone.now()) > issue.due_at


def _clean_note(note, field: str) -> str:
    min_length = get_setting('MIN_NOTE_LENGTH')
    note = (note or '').strip()
    if len(note) < min_length:
        raise InvalidNoteException(field, min_length)
    return note


class EscalationService:
    """Service class for shortage reports and their resolution."""

    @staticmethod
    def report_issue(order_id, note: str, evidence_url: Optional[str] = None,
                     reported_by=None) -> OrderIssue:
        """
        Report a shortage found during delivery and put the order on hold.

        Args:
            order_id: Order UUID
            note: Description of what is missing
            evidence_url: Optional link to a photo or document
            reported_by: Driver reporting the issue

        Returns:
            Created OrderIssue instance

        Raises:
            InvalidNoteException: If the note is too short
            NotFoundException: If the order does not exist
            IssueAlreadyOpenException: If the order already has an unresolved issue
            InvalidTransitionException: If the order is not shipped
        """
        note = _clean_note(note, 'note')

        with transaction.atomic():
            order = get_order(order_id, for_update=True)

            open_issue = order.issues.filter(resolved_at__isnull=True).first()
            if open_issue is not None:
                raise IssueAlreadyOpenException(order.order_number, open_issue.id)

            if order.status != OrderStatus.SHIPPED:
                raise InvalidTransitionException(
                    current_status=order.status,
                    attempted_status=OrderStatus.HOLD,
                    entity_type="Order",
                    message=f"Issues can only be reported on shipped orders; {order.order_number} is '{order.status}'"
                )

            now = timezone.now()
            issue = OrderIssue.objects.create(
                order=order,
                issue_type=IssueType.SHORTAGE,
                note=note,
                evidence_url=evidence_url or '',
                reported_at=now,
                due_at=now + timedelta(hours=get_setting('ISSUE_SLA_HOURS')),
                reported_by=reported_by,
            )

            transition_order(order, OrderStatus.HOLD, reported_by, notes=f"Shortage reported: {note}")

            AuditLog.log_change(
                entity=issue,
                action='issue_reported',
                user=reported_by,
                new_values={'order_id': order.id, 'note': note, 'due_at': issue.due_at},
                notes=note
            )

            logger.info(f"Shortage reported on order {order.order_number}, due {issue.due_at.isoformat()}")
            return issue

    @staticmethod
    def resolve_issue(order_id, courier_id, resolution_note: str, resolved_by=None) -> OrderIssue:
        """
        Close the open issue of a held order and send it out again.

        Args:
            order_id: Order UUID
            courier_id: Driver the order is reassigned to
            resolution_note: What was done about the shortage
            resolved_by: User resolving the issue

        Returns:
            Resolved OrderIssue instance

        Raises:
            InvalidNoteException: If the resolution note is too short
            NotFoundException: If the order, courier or open issue does not exist
            InvalidTransitionException: If the order is not on hold
        """
        resolution_note = _clean_note(resolution_note, 'resolution_note')

        courier = EscalationService.get_courier(courier_id)

        with transaction.atomic():
            order = get_order(order_id, for_update=True)

            issue = order.issues.select_for_update().filter(resolved_at__isnull=True).first()
            if issue is None:
                raise NotFoundException("OrderIssue", order.id, f"Order {order.order_number} has no open issue")

            if order.status != OrderStatus.HOLD:
                raise InvalidTransitionException(
                    current_status=order.status,
                    attempted_status=OrderStatus.SHIPPED,
                    entity_type="Order",
                    message=f"Order {order.order_number} is not on hold"
                )

            issue.resolved_at = timezone.now()
            issue.resolution_note = resolution_note
            issue.reassigned_courier = courier
            issue.resolved_by = resolved_by
            issue.save(update_fields=['resolved_at', 'resolution_note', 'reassigned_courier', 'resolved_by'])

            order.courier = courier
            transition_order(
                order, OrderStatus.SHIPPED, resolved_by,
                notes=f"Issue resolved: {resolution_note}",
                extra_fields=['courier'],
            )

            AuditLog.log_change(
                entity=issue,
                action='issue_resolved',
                user=resolved_by,
                new_values={'courier_id': courier.pk, 'resolution_note': resolution_note},
                metadata={'overdue_at_resolution': issue.resolved_at > issue.due_at},
                notes=resolution_note
            )

            logger.info(f"Issue on order {order.order_number} resolved, courier {courier.username}")
            return issue

    @staticmethod
    def get_courier(courier_id):
        """
        Raises:
            NotFoundException: If no active courier has this id
        """
        User = get_user_model()
        try:
            return User.objects.active_couriers(get_setting('COURIER_ROLES')).get(pk=courier_id)
        except (User.DoesNotExist, ValueError, TypeError):
            raise NotFoundException("Courier", courier_id)

    @staticmethod
    def get_active_issue(order_id) -> Optional[OrderIssue]:
        """
        The unresolved issue of an order, if any.

        Raises:
            NotFoundException: If the order does not exist
        """
        order = get_order(order_id)
        return order.issues.filter(resolved_at__isnull=True).first()

    @staticmethod
    def list_overdue_issues(now=None):
        """Unresolved issues past their due time, most overdue first."""
        return (
            OrderIssue.objects.filter(resolved_at__isnull=True, due_at__lt=now or timezone.now())
            .select_related('order', 'reported_by')
            .order_by('due_at')
        )
