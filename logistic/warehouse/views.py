from rest_framework import viewsets, filters
from django_filters.rest_framework import DjangoFilterBackend
from .models import StockMovement
from .serializers import StockMovementSerializer
from users.permissions import IsWorkerOrAbove


class StockMovementViewSet(viewsets.ReadOnlyModelViewSet):
    """Read-only view of the stock ledger journal."""

    queryset = StockMovement.objects.select_related("product", "user").all()
    serializer_class = StockMovementSerializer
    permission_classes = [IsWorkerOrAbove]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["reference", "notes", "product__sku"]
    filterset_fields = ["product", "movement_type", "user"]
    ordering_fields = ["created_at"]
    ordering = ["-created_at"]
