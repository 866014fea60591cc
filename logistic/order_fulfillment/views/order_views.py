"""
Order views for the allocation and backorder engine.
"""

from django.contrib.auth import get_user_model
from django.http import Http404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, mixins, filters, status
from rest_framework.decorators import action

from ..exceptions import BusinessException, NotFoundException
from ..models import Order
from ..services import OrderService, AllocationService, BackorderService, EscalationService
from ..serializers.order_serializers import (
    OrderCreateSerializer, OrderListSerializer, OrderDetailSerializer,
    AllocateSerializer, CancelBackorderSerializer, UpdateStatusSerializer,
)
from ..serializers.issue_serializers import OrderIssueSerializer, ReportIssueSerializer, ResolveIssueSerializer
from ..permissions import IsWarehouseStaff, CanManageBackorders, IsOrderCourierOrWarehouseStaff
from .base import success_response, error_response, invalid_request


class OrderViewSet(mixins.CreateModelMixin, viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for orders.

    Provides listing, creation and the allocation, backorder and delivery
    issue actions of an order.
    """

    queryset = Order.objects.select_related('customer', 'courier').all()
    permission_classes = [IsWarehouseStaff]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['status', 'parent_order', 'customer']
    search_fields = ['order_number']
    ordering_fields = ['created_at', 'updated_at', 'total_amount']
    ordering = ['created_at']

    def get_serializer_class(self):
        """Return appropriate serializer based on action."""
        if self.action == 'create':
            return OrderCreateSerializer
        elif self.action == 'list':
            return OrderListSerializer
        else:
            return OrderDetailSerializer

    def get_permissions(self):
        if self.action in ['cancel_backorder', 'resolve_issue']:
            return [CanManageBackorders()]
        if self.action == 'report_issue':
            return [IsOrderCourierOrWarehouseStaff()]
        return super().get_permissions()

    def get_order(self):
        """``get_object`` that reports a missing order as NOT_FOUND."""
        try:
            return self.get_object()
        except Http404:
            raise NotFoundException("Order", self.kwargs.get(self.lookup_field))

    def create(self, request, *args, **kwargs):
        """Create an order with its items."""
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)

        data = serializer.validated_data
        try:
            customer = request.user
            if data.get('customer_id') is not None:
                customer = get_user_model().objects.filter(pk=data['customer_id']).first()
                if customer is None:
                    raise NotFoundException("Customer", data['customer_id'])
            order = OrderService.create_order(
                customer,
                {'items': [dict(item) for item in data['items']], 'notes': data['notes']},
                created_by=request.user,
            )
        except BusinessException as e:
            return error_response(e)
        return success_response(OrderDetailSerializer(order).data, status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def allocate(self, request, pk=None):
        """Set allocated quantities for the order's products."""
        serializer = AllocateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)

        try:
            order = self.get_order()
            result = AllocationService.allocate(
                order.id,
                serializer.validated_data['lines'],
                allocated_by=request.user,
                split_backorder=serializer.validated_data['split_backorder'],
                auto_fill=serializer.validated_data['auto_fill'],
            )
        except BusinessException as e:
            return error_response(e)
        return success_response(result.to_dict())

    @action(detail=True, methods=['post'], url_path='split-backorder')
    def split_backorder(self, request, pk=None):
        """Move the order's shortage into a backorder child."""
        try:
            order = self.get_order()
            child = BackorderService.split(order.id, user=request.user)
        except BusinessException as e:
            return error_response(e)

        if child is None:
            return success_response({'order_id': str(order.id), 'backorder': None})
        return success_response(
            {'order_id': str(order.id), 'backorder': OrderDetailSerializer(child).data},
            status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['post'], url_path='cancel-backorder')
    def cancel_backorder(self, request, pk=None):
        """Cancel the order's unfulfilled remainder with a reason."""
        serializer = CancelBackorderSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)

        try:
            order = self.get_order()
            order = BackorderService.cancel_backorder(
                order.id, serializer.validated_data['reason'], canceled_by=request.user
            )
        except BusinessException as e:
            return error_response(e)
        return success_response(OrderDetailSerializer(order).data)

    @action(detail=True, methods=['post'], url_path='report-issue')
    def report_issue(self, request, pk=None):
        """Report a shortage found during delivery."""
        serializer = ReportIssueSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)

        try:
            order = self.get_order()
            issue = EscalationService.report_issue(
                order.id,
                serializer.validated_data['note'],
                evidence_url=serializer.validated_data['evidence_url'],
                reported_by=request.user,
            )
        except BusinessException as e:
            return error_response(e)
        return success_response(OrderIssueSerializer(issue).data, status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], url_path='resolve-issue')
    def resolve_issue(self, request, pk=None):
        """Resolve the open issue and reassign the courier."""
        serializer = ResolveIssueSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)

        try:
            order = self.get_order()
            issue = EscalationService.resolve_issue(
                order.id,
                serializer.validated_data['courier_id'],
                serializer.validated_data['resolution_note'],
                resolved_by=request.user,
            )
        except BusinessException as e:
            return error_response(e)
        return success_response(OrderIssueSerializer(issue).data)

    @action(detail=True, methods=['post'], url_path='update-status')
    def update_status(self, request, pk=None):
        """Operator status transition."""
        serializer = UpdateStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)

        try:
            order = self.get_order()
            order = OrderService.update_status(
                order.id,
                serializer.validated_data['status'],
                user=request.user,
                courier_id=serializer.validated_data['courier_id'],
            )
        except BusinessException as e:
            return error_response(e)
        return success_response(OrderDetailSerializer(order).data)

    @action(detail=True, methods=['get'])
    def shortage(self, request, pk=None):
        """Per-product shortage of the order."""
        try:
            order = self.get_order()
            summary = AllocationService.get_shortage_summary(order.id)
        except BusinessException as e:
            return error_response(e)
        return success_response(summary)

    @action(detail=True, methods=['get'])
    def backorders(self, request, pk=None):
        """Backorder children split from the order."""
        try:
            order = self.get_order()
            children = BackorderService.get_backorders(order.id)
        except BusinessException as e:
            return error_response(e)
        return success_response(OrderListSerializer(children, many=True).data)

    @action(detail=True, methods=['get'])
    def summary(self, request, pk=None):
        """Order with lines, backorders and open issue."""
        try:
            order = self.get_order()
            summary = OrderService.get_order_summary(order.id)
        except BusinessException as e:
            return error_response(e)
        return success_response(summary)
