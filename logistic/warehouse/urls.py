from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import StockMovementViewSet

router = DefaultRouter()
router.register(r"movements", StockMovementViewSet, basename="stockmovement")

urlpatterns = [
    path("", include(router.urls)),
]
