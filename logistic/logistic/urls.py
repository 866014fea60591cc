"""
URL configuration for logistic project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""
from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView


@require_http_methods(["GET"])
def api_root(request):
    """API root view with available endpoints."""
    return JsonResponse({
        'message': 'ERP Logistics API',
        'version': '1.0.0',
        'endpoints': {
            'authentication': {
                'token': '/api/auth/token/',
                'token_refresh': '/api/auth/token/refresh/',
            },
            'products': {
                'products': '/api/products/',
            },
            'warehouse': {
                'movements': '/api/warehouse/movements/',
            },
            'order_fulfillment': {
                'orders': '/api/fulfillment/orders/',
                'allocations_pending': '/api/fulfillment/allocations/pending/',
                'shortage_report': '/api/fulfillment/allocations/shortages/',
                'issues': '/api/fulfillment/issues/',
            },
        }
    })


urlpatterns = [
    path("admin/", admin.site.urls),

    # API endpoints
    path('api/', api_root, name='api-root'),
    path('api/auth/token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('api/', include('products.urls')),
    path('api/warehouse/', include('warehouse.urls')),
    path('api/fulfillment/', include('order_fulfillment.urls')),
]
