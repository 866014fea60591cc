"""
Delivery issue serializers.
"""

from rest_framework import serializers

from ..models import OrderIssue
from ..services.escalation_service import is_overdue


class OrderIssueSerializer(serializers.ModelSerializer):
    """Serializer for OrderIssue with the derived ``overdue`` flag."""

    order_number = serializers.CharField(source='order.order_number', read_only=True)
    overdue = serializers.SerializerMethodField()

    class Meta:
        model = OrderIssue
        fields = [
            'id', 'order', 'order_number', 'issue_type', 'note', 'evidence_url',
            'reported_at', 'due_at', 'reported_by', 'overdue',
            'resolved_at', 'resolution_note', 'reassigned_courier', 'resolved_by'
        ]
        read_only_fields = fields

    def get_overdue(self, obj):
        return is_overdue(obj)


class ReportIssueSerializer(serializers.Serializer):
    note = serializers.CharField(required=False, allow_blank=True, default='')
    evidence_url = serializers.URLField(required=False, allow_blank=True, max_length=500, default='')


class ResolveIssueSerializer(serializers.Serializer):
    courier_id = serializers.IntegerField()
    resolution_note = serializers.CharField(required=False, allow_blank=True, default='')
