from rest_framework import viewsets, filters, mixins, status
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend
from .models import Product
from .serializers import ProductSerializer, ProductListSerializer, StockReceiptSerializer
from users.permissions import IsAdminOrWarehouseManager, IsWorkerOrAbove
from warehouse.serializers import StockMovementSerializer
from warehouse.services import StockService


class ProductViewSet(
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    viewsets.ReadOnlyModelViewSet,
):
    """
    Products and their net on-hand stock.

    ``on_hand_quantity`` is read-only here; stock changes go through the
    ``receive`` action or the allocation engine.
    """

    queryset = Product.objects.all()
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["name", "sku"]
    filterset_fields = ["is_active"]
    ordering_fields = ["name", "sku", "on_hand_quantity", "created_at"]
    ordering = ["name"]

    def get_serializer_class(self):
        if self.action == "list":
            return ProductListSerializer
        if self.action == "receive":
            return StockReceiptSerializer
        return ProductSerializer

    def get_permissions(self):
        if self.action in ["create", "update", "partial_update", "receive"]:
            return [IsAdminOrWarehouseManager()]
        return [IsWorkerOrAbove()]

    @action(detail=True, methods=["post"])
    def receive(self, request, pk=None):
        """Book inbound stock for a product."""
        product = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        product = StockService().receive_stock(
            product.pk,
            serializer.validated_data["quantity"],
            user=request.user,
            reference=serializer.validated_data["reference"],
        )
        return Response({"success": True, "data": ProductSerializer(product).data}, status=status.HTTP_200_OK)

    @action(detail=True, methods=["get"])
    def movements(self, request, pk=None):
        """Stock ledger journal for a product."""
        product = self.get_object()
        queryset = StockService().get_movements(product.pk)
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(StockMovementSerializer(page, many=True).data)
        return Response(StockMovementSerializer(queryset, many=True).data)
