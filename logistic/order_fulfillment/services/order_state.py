"""
Shared reads of an order's demand, allocation and shortage.

Demand of a product within an order is the sum of its items'
``ordered_qty - backordered_qty``; shortage is demand minus the allocated
quantity.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List

from django.core.exceptions import ValidationError as DjangoValidationError

from ..exceptions import NotFoundException
from ..models import Order, OrderItem, Allocation
from .results import ShortageLine


def get_order(order_id, for_update: bool = False) -> Order:
    """
    Fetch an order, optionally locking its row.

    Raises:
        NotFoundException: If the order does not exist or the id is malformed
    """
    queryset = Order.objects.select_for_update() if for_update else Order.objects.all()
    try:
        return queryset.get(pk=order_id)
    except (Order.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundException("Order", order_id)


def demand_by_product(items: Iterable[OrderItem]) -> Dict[int, int]:
    demand = defaultdict(int)
    for item in items:
        demand[item.product_id] += item.demand_qty
    return dict(demand)


def allocated_by_product(allocations: Iterable[Allocation]) -> Dict[int, int]:
    allocated = defaultdict(int)
    for allocation in allocations:
        allocated[allocation.product_id] += allocation.allocated_qty
    return dict(allocated)


def build_shortage_lines(items: List[OrderItem], allocated: Dict[int, int],
                         only_short: bool = True) -> List[ShortageLine]:
    """One ShortageLine per product of the order, in first-ordered order."""
    demand = demand_by_product(items)
    skus = {}
    for item in items:
        skus.setdefault(item.product_id, item.product.sku)

    lines = []
    for product_id, sku in skus.items():
        line = ShortageLine(
            product_id=product_id,
            sku=sku,
            ordered_qty=demand[product_id],
            allocated_qty=allocated.get(product_id, 0),
        )
        if line.shortage > 0 or not only_short:
            lines.append(line)
    return lines


def allocated_value(items: List[OrderItem], allocated: Dict[int, int]) -> Decimal:
    """
    Value of the allocated quantities at purchase prices. When a product is
    spread over several items, allocation fills them in creation order.
    """
    remaining = dict(allocated)
    total = Decimal('0.00')
    for item in sorted(items, key=lambda i: i.created_at):
        take = min(item.demand_qty, remaining.get(item.product_id, 0))
        if take <= 0:
            continue
        total += item.unit_price_at_purchase * take
        remaining[item.product_id] -= take
    return total


def load_order_lines(order: Order):
    """Items (with products) and allocations of an order."""
    items = list(order.items.select_related('product').order_by('created_at'))
    allocations = list(order.allocations.all())
    return items, allocations


def total_shortage(order: Order) -> int:
    items, allocations = load_order_lines(order)
    return sum(line.shortage for line in build_shortage_lines(items, allocated_by_product(allocations)))
