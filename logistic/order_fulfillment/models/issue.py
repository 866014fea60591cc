"""
OrderIssue model for delivery-time shortage escalation.
"""

import uuid
from django.db import models
from django.conf import settings
from django.utils import timezone


class IssueType(models.TextChoices):
    SHORTAGE = 'shortage', 'Shortage'


class OrderIssue(models.Model):
    """
    Shortage reported by a delivery driver after dispatch.

    The SLA deadline is stored in ``due_at``; whether the issue is overdue is
    never stored and is derived on read (see ``EscalationService.is_overdue``).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        'Order',
        on_delete=models.CASCADE,
        related_name='issues'
    )
    issue_type = models.CharField(
        max_length=20,
        choices=IssueType.choices,
        default=IssueType.SHORTAGE
    )
    note = models.TextField()
    evidence_url = models.URLField(max_length=500, blank=True)

    reported_at = models.DateTimeField(default=timezone.now)
    due_at = models.DateTimeField()
    reported_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reported_issues'
    )

    resolved_at = models.DateTimeField(null=True, blank=True)
    resolution_note = models.TextField(blank=True)
    reassigned_courier = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reassigned_issues'
    )
    resolved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='resolved_issues'
    )

    class Meta:
        ordering = ['-reported_at']
        constraints = [
            models.UniqueConstraint(
                fields=['order'],
                condition=models.Q(resolved_at__isnull=True),
                name='order_issue_one_open_per_order'
            ),
        ]
        indexes = [
            models.Index(fields=['due_at'], name='order_issue_due_idx'),
            models.Index(fields=['resolved_at'], name='order_issue_resolved_idx'),
        ]

    def __str__(self):
        return f"{self.issue_type} issue on {self.order_id} due {self.due_at:%Y-%m-%d %H:%M}"

    @property
    def is_resolved(self):
        return self.resolved_at is not None

    @property
    def is_overdue(self):
        from ..services.escalation_service import is_overdue
        return is_overdue(self)
