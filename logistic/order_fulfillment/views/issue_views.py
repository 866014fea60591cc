"""
Delivery issue views.
"""

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, filters

from ..models import OrderIssue
from ..services import EscalationService
from ..serializers.issue_serializers import OrderIssueSerializer
from ..permissions import IsWarehouseStaff

TRUE_VALUES = ('1', 'true', 'yes')


class IssueViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Read-only view of delivery shortage reports.

    ``?overdue=true`` narrows the list to unresolved issues past their due
    time; ``?open=true`` to unresolved issues.
    """

    queryset = OrderIssue.objects.select_related('order').all()
    serializer_class = OrderIssueSerializer
    permission_classes = [IsWarehouseStaff]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['order', 'issue_type']
    ordering_fields = ['reported_at', 'due_at']
    ordering = ['-reported_at']

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params
        if params.get('overdue', '').lower() in TRUE_VALUES:
            queryset = queryset.filter(pk__in=EscalationService.list_overdue_issues().values('pk'))
        if params.get('open', '').lower() in TRUE_VALUES:
            queryset = queryset.filter(resolved_at__isnull=True)
        return queryset
