"""
URL configuration for the allocation and backorder engine.

Provides API endpoints for orders, cross-order allocation reports and
delivery issues.
"""

from rest_framework.routers import DefaultRouter

from .views import OrderViewSet, AllocationViewSet, IssueViewSet

# Create router and register viewsets
router = DefaultRouter()
router.register(r'orders', OrderViewSet, basename='order')
router.register(r'allocations', AllocationViewSet, basename='allocation')
router.register(r'issues', IssueViewSet, basename='issue')

# URL patterns
urlpatterns = router.urls
