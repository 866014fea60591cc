import logging

from django.db import transaction
from django.db.models import F
from warehouse.models import StockMovement
from products.models import Product
from order_fulfillment.exceptions import InsufficientStockException, NotFoundException

logger = logging.getLogger(__name__)


class StockService:
    """
    Stock ledger: the only writer of ``Product.on_hand_quantity``.

    ``on_hand_quantity`` is kept net of live allocations, so a negative delta
    commits stock to an order and a positive delta releases or receives it.
    Callers that also write allocation rows must wrap both in one
    ``transaction.atomic()`` block; the methods here nest as savepoints.
    """

    def get_available(self, product_id):
        """
        Return the current on-hand (uncommitted) quantity of a product.

        Raises:
            NotFoundException: If the product does not exist
        """
        quantity = Product.objects.filter(pk=product_id).values_list("on_hand_quantity", flat=True).first()
        if quantity is None:
            raise NotFoundException("Product", product_id)
        return quantity

    @transaction.atomic
    def apply_delta(self, product_id, delta, reference="", user=None, movement_type=None, notes=""):
        """
        Atomically adjust ``on_hand_quantity`` by ``delta``.

        The product row is locked for the read-modify-write so concurrent
        allocations against the same product serialize here.

        Args:
            product_id: Product primary key
            delta: Signed quantity; negative commits, positive releases
            reference: Order number or document reference for the journal
            user: User responsible for the change
            movement_type: Journal type; derived from the sign when omitted
            notes: Free text for the journal

        Returns:
            Product instance with the refreshed quantity

        Raises:
            NotFoundException: If the product does not exist
            InsufficientStockException: If the result would go negative
        """
        try:
            product = Product.objects.select_for_update().get(pk=product_id)
        except Product.DoesNotExist:
            raise NotFoundException("Product", product_id)

        if delta == 0:
            return product

        if product.on_hand_quantity + delta < 0:
            logger.warning(
                f"Refused stock delta {delta:+d} on {product.sku}: only {product.on_hand_quantity} on hand"
            )
            raise InsufficientStockException(
                sku=product.sku,
                requested_qty=-delta,
                available_qty=product.on_hand_quantity,
                product_id=product.pk,
            )

        product.on_hand_quantity = F("on_hand_quantity") + delta
        product.save(update_fields=["on_hand_quantity", "updated_at"])
        product.refresh_from_db(fields=["on_hand_quantity"])

        if movement_type is None:
            movement_type = StockMovement.MOVEMENT_ALLOCATION if delta < 0 else StockMovement.MOVEMENT_RELEASE

        StockMovement.objects.create(
            movement_type=movement_type,
            product=product,
            quantity_delta=delta,
            balance_after=product.on_hand_quantity,
            reference=reference,
            user=user,
            notes=notes,
        )

        logger.debug(f"Stock {product.sku} {delta:+d} -> {product.on_hand_quantity} ({reference})")
        return product

    def receive_stock(self, product_id, quantity, user=None, reference="", notes=""):
        """
        Book inbound stock. Receipts never auto-allocate waiting backorders;
        operators re-run allocation explicitly.
        """
        if quantity <= 0:
            raise ValueError("Received quantity must be positive")
        return self.apply_delta(
            product_id, quantity, reference=reference, user=user,
            movement_type=StockMovement.MOVEMENT_RECEIPT, notes=notes,
        )

    def adjust_stock(self, product_id, quantity_delta, user=None, notes=""):
        """Apply a manual count correction."""
        return self.apply_delta(
            product_id, quantity_delta, user=user,
            movement_type=StockMovement.MOVEMENT_ADJUSTMENT, notes=notes,
        )

    def get_movements(self, product_id):
        """
        Get the journal of stock changes for a product, newest first.

        Returns:
            QuerySet of StockMovement
        """
        return StockMovement.objects.filter(product_id=product_id).select_related("user")
