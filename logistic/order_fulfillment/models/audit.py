"""
Audit log model for the allocation and backorder engine.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from django.db import models
from django.conf import settings
from django.utils import timezone


def _json_safe(value):
    """Convert Decimal, UUID and datetime values for a JSONField."""
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    if isinstance(value, (Decimal, uuid.UUID)):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class AuditLog(models.Model):
    """
    Audit trail for orders and issues: status changes, allocation saves,
    splits, cancellations, issue reports and resolutions.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    entity_type = models.CharField(
        max_length=50,
        help_text="Type of entity (Order, OrderIssue)"
    )
    entity_id = models.CharField(
        max_length=64,
        help_text="Primary key of the entity being audited"
    )

    action = models.CharField(
        max_length=50,
        help_text="Action performed (allocated, backorder_split, status_changed, ...)"
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='audit_logs'
    )

    old_values = models.JSONField(default=dict, blank=True)
    new_values = models.JSONField(default=dict, blank=True)
    field_changes = models.JSONField(default=dict, blank=True)

    timestamp = models.DateTimeField(default=timezone.now)
    notes = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['entity_type', 'entity_id', '-timestamp'], name='audit_entity_idx'),
            models.Index(fields=['action', '-timestamp'], name='audit_action_idx'),
        ]

    def __str__(self):
        return f"{self.entity_type} {self.entity_id} - {self.action} by {self.user} at {self.timestamp}"

    @classmethod
    def log_change(cls, entity, action: str, user=None, old_values=None,
                   new_values=None, field_changes=None, notes="", metadata=None):
        """
        Create an audit log entry for an entity change.

        Args:
            entity: The model instance being audited
            action: The action performed
            user: User who performed the action
            old_values: Previous state
            new_values: New state
            field_changes: Specific field changes
            notes: Additional notes
            metadata: Additional metadata
        """
        return cls.objects.create(
            entity_type=entity.__class__.__name__,
            entity_id=str(entity.pk),
            action=action,
            user=user,
            old_values=_json_safe(old_values or {}),
            new_values=_json_safe(new_values or {}),
            field_changes=_json_safe(field_changes or {}),
            notes=notes,
            metadata=_json_safe(metadata or {})
        )

    @classmethod
    def log_status_change(cls, entity, old_status: str, new_status: str, user=None, notes=""):
        """Log a status change for an entity."""
        return cls.log_change(
            entity=entity,
            action='status_changed',
            user=user,
            old_values={'status': old_status},
            new_values={'status': new_status},
            field_changes={'status': {'old': old_status, 'new': new_status}},
            notes=notes
        )

    @classmethod
    def for_entity(cls, entity):
        return cls.objects.filter(
            entity_type=entity.__class__.__name__,
            entity_id=str(entity.pk)
        ).select_related('user')
