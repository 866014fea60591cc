"""
Cross-order allocation views.
"""

from rest_framework import viewsets
from rest_framework.decorators import action

from ..exceptions import BusinessException
from ..services import AllocationService
from ..permissions import IsWarehouseStaff
from .base import success_response, error_response


class AllocationViewSet(viewsets.ViewSet):
    """Shortage and allocation reports spanning many orders."""

    permission_classes = [IsWarehouseStaff]

    @action(detail=False, methods=['get'])
    def shortages(self, request):
        """Outstanding shortage per product with suggested replenishment."""
        report = AllocationService.get_shortage_report()
        return success_response({'products': report, 'count': len(report)})

    @action(detail=False, methods=['get'])
    def pending(self, request):
        """Open orders awaiting allocation, oldest first."""
        scope = request.query_params.get('scope', 'shortage')
        try:
            orders = AllocationService.get_pending_allocations(scope)
        except BusinessException as e:
            return error_response(e)
        return success_response({'scope': scope, 'orders': orders, 'count': len(orders)})

    @action(detail=False, methods=['get'], url_path=r'product/(?P<product_id>[^/.]+)')
    def product(self, request, product_id=None):
        """Allocations held against one product."""
        try:
            data = AllocationService.get_product_allocations(product_id)
        except BusinessException as e:
            return error_response(e)
        return success_response(data)
