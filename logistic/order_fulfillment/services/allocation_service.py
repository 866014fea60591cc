"""
Allocation Service for the allocation and backorder engine.

Commits on-hand stock to orders line by line. ``Product.on_hand_quantity``
is kept net of live allocations, so the most an order can hold of a product
is what is on hand plus what the order itself already holds.
"""

import logging
from collections import OrderedDict
from typing import List, Dict, Any, Optional

from django.db import transaction
from django.db.models import Sum, F

from products.models import Product
from warehouse.services import StockService

from ..exceptions import InsufficientStockException, NotFoundException, ValidationException
from ..models import (
    Order, OrderItem, Allocation, OrderStatus, AuditLog,
    TERMINAL_STATUSES,
)
from .backorder_service import BackorderService
from .order_state import (
    get_order, load_order_lines, demand_by_product, allocated_by_product,
    build_shortage_lines, allocated_value,
)
from .results import AllocationResult, AllocationLine, LineRejection
from .workflow import OrderWorkflow, transition_order

logger = logging.getLogger(__name__)

# Status reached when an allocation round leaves no shortage, and the
# statuses it may be reached from. hold and debt_pending keep their status.
FULLY_ALLOCATED_FROM = frozenset({
    OrderStatus.PENDING, OrderStatus.WAITING_INVOICE, OrderStatus.PARTIALLY_FULFILLED,
})
PARTIALLY_ALLOCATED_FROM = frozenset({
    OrderStatus.PENDING, OrderStatus.WAITING_INVOICE, OrderStatus.ALLOCATED,
})

PENDING_SCOPES = ('shortage', 'all')


class AllocationService:
    """Service class for stock allocation operations."""

    @staticmethod
    def max_allocatable(demand: int, available: int) -> int:
        """Largest quantity an order may hold of a product."""
        return max(0, min(demand, available))

    @staticmethod
    def available_for(order: Order, product: Product, current_allocated: Optional[int] = None) -> int:
        """
        Stock an order may draw on for a product: what is on hand plus the
        order's own current allocation. Other orders' allocations are never
        added back.
        """
        if current_allocated is None:
            current_allocated = Allocation.objects.filter(
                order=order, product=product
            ).values_list('allocated_qty', flat=True).first() or 0
        return product.on_hand_quantity + current_allocated

    @staticmethod
    def auto_fill_lines(order: Order) -> List[Dict[str, int]]:
        """
        Lines that allocate as much of every ordered product as stock allows.

        Returns:
            List of ``{'product_id', 'qty'}`` dicts, one per ordered product
        """
        items, allocations = load_order_lines(order)
        demand = demand_by_product(items)
        allocated = allocated_by_product(allocations)
        products = Product.objects.in_bulk(list(demand))

        return [
            {
                'product_id': product_id,
                'qty': min(demand[product_id],
                           AllocationService.available_for(order, products[product_id],
                                                           allocated.get(product_id, 0))),
            }
            for product_id in sorted(demand)
        ]

    @staticmethod
    def allocate(order_id, lines=None, allocated_by=None, split_backorder: bool = False,
                 auto_fill: bool = False) -> AllocationResult:
        """
        Set the allocated quantity of each requested product of an order.

        Each line carries the absolute quantity the order should hold, so
        repeating a call changes nothing. Invalid lines are rejected one by
        one with the most that could have been allocated; valid lines are
        applied.

        Args:
            order_id: Order UUID
            lines: Iterable of ``{'product_id', 'qty'}`` dicts
            allocated_by: User performing allocation
            split_backorder: Move the remaining shortage to a backorder child
            auto_fill: Ignore ``lines`` and allocate as much as stock allows

        Returns:
            AllocationResult describing applied lines, rejections and shortage

        Raises:
            NotFoundException: If the order does not exist
            InvalidTransitionException: If allocation is locked for the order's status,
                or a split is requested in a status that cannot split
        """
        with transaction.atomic():
            order = get_order(order_id, for_update=True)
            OrderWorkflow.ensure_allocation_editable(order)
            if split_backorder:
                BackorderService.ensure_splittable(order)

            items, _ = load_order_lines(order)
            demand = demand_by_product(items)
            allocations = {
                allocation.product_id: allocation
                for allocation in Allocation.objects.select_for_update().filter(order=order)
            }

            if auto_fill:
                AllocationService._lock_products(demand)
                lines = AllocationService.auto_fill_lines(order)

            rejected = []
            requested = AllocationService._normalize_lines(lines or [], demand, rejected)
            products = AllocationService._lock_products(requested)

            stock = StockService()
            applied = []
            for product_id in sorted(requested):
                product = products[product_id]
                allocation = allocations.get(product_id)
                current = allocation.allocated_qty if allocation else 0
                bound = AllocationService.max_allocatable(
                    demand[product_id], AllocationService.available_for(order, product, current)
                )

                qty = requested[product_id]
                if isinstance(qty, bool) or not isinstance(qty, int) or qty < 0:
                    rejected.append(LineRejection(
                        product_id, qty, bound, 'INVALID_QUANTITY',
                        "Quantity must be a non-negative integer"
                    ))
                    continue
                if qty > demand[product_id]:
                    rejected.append(LineRejection(
                        product_id, qty, bound, 'EXCEEDS_ORDERED',
                        f"Requested {qty} of {product.sku} but the order needs {demand[product_id]}"
                    ))
                    continue
                if qty > bound:
                    rejected.append(LineRejection(
                        product_id, qty, bound, 'INSUFFICIENT_STOCK',
                        f"Requested {qty} of {product.sku} but at most {bound} can be allocated"
                    ))
                    continue

                try:
                    with transaction.atomic():
                        stock.apply_delta(
                            product_id, current - qty,
                            reference=order.order_number, user=allocated_by,
                        )
                        if allocation is None:
                            allocation = Allocation.objects.create(
                                order=order, product=product, allocated_qty=qty
                            )
                            allocations[product_id] = allocation
                        elif allocation.allocated_qty != qty:
                            allocation.allocated_qty = qty
                            allocation.save(update_fields=['allocated_qty', 'updated_at'])
                except InsufficientStockException as e:
                    rejected.append(LineRejection(
                        product_id, qty,
                        AllocationService.max_allocatable(
                            demand[product_id], e.details["available_quantity"] + current
                        ),
                        e.code, e.message
                    ))
                    continue

                applied.append(AllocationLine(product_id=product_id, previous_qty=current, allocated_qty=qty))

            for rejection in rejected:
                logger.warning(
                    f"Order {order.order_number}: rejected allocation line for product "
                    f"{rejection.product_id} ({rejection.error_code})"
                )

            allocated = {product_id: a.allocated_qty for product_id, a in allocations.items()}
            shortage = build_shortage_lines(items, allocated)
            total_shortage = sum(line.shortage for line in shortage)

            order.total_amount = allocated_value(items, allocated)
            if allocated_by is not None:
                order.updated_by = allocated_by
            order.save(update_fields=['total_amount', 'updated_by', 'updated_at'])

            if total_shortage == 0 and order.status in FULLY_ALLOCATED_FROM:
                transition_order(order, OrderStatus.ALLOCATED, allocated_by, notes="Allocation complete")
            elif total_shortage > 0 and order.status in PARTIALLY_ALLOCATED_FROM:
                transition_order(
                    order, OrderStatus.PARTIALLY_FULFILLED, allocated_by,
                    notes=f"Allocation short by {total_shortage} units"
                )

            AuditLog.log_change(
                entity=order,
                action='allocated',
                user=allocated_by,
                new_values={'lines': [line.to_dict() for line in applied]},
                metadata={
                    'rejected': [line.to_dict() for line in rejected],
                    'shortage': [line.to_dict() for line in shortage],
                    'auto_fill': auto_fill,
                },
                notes=f"{len(applied)} lines applied, {len(rejected)} rejected"
            )

            result = AllocationResult(
                order_id=order.id,
                status=order.status,
                lines=applied,
                rejected=rejected,
                shortage=shortage,
                allocated_total=order.total_amount,
            )

            if split_backorder and total_shortage > 0:
                child = BackorderService.split_locked(order, allocated_by)
                result.backorder_order_id = child.id

            logger.info(
                f"Order {order.order_number} allocation saved: {len(applied)} lines, "
                f"shortage {total_shortage}, status {order.status}"
            )
            return result

    @staticmethod
    def _lock_products(product_ids) -> Dict[int, Product]:
        # Ascending id order so concurrent rounds cannot deadlock
        return {
            product.pk: product
            for product in Product.objects.select_for_update().filter(pk__in=list(product_ids)).order_by('pk')
        }

    @staticmethod
    def _normalize_lines(lines, demand: Dict[int, int], rejected: List[LineRejection]) -> Dict[int, int]:
        """
        Resolve raw lines to products of the order, keeping the last line per product.

        Lines naming no product of the order are appended to ``rejected``;
        quantities are checked later against the computed bound.

        Returns:
            Ordered mapping of product id to requested quantity
        """
        latest = OrderedDict()
        for line in lines:
            raw_product_id = line.get('product_id')
            try:
                product_id = int(raw_product_id)
            except (TypeError, ValueError):
                product_id = raw_product_id
            latest.pop(product_id, None)
            latest[product_id] = line.get('qty')

        requested = OrderedDict()
        for product_id, qty in latest.items():
            if not isinstance(product_id, int):
                rejected.append(LineRejection(
                    product_id, qty, 0, 'NOT_FOUND', f"Product {product_id} not found"
                ))
            elif product_id not in demand:
                if Product.objects.filter(pk=product_id).exists():
                    rejected.append(LineRejection(
                        product_id, qty, 0, 'PRODUCT_NOT_IN_ORDER',
                        f"Product {product_id} is not part of this order"
                    ))
                else:
                    rejected.append(LineRejection(
                        product_id, qty, 0, 'NOT_FOUND', f"Product {product_id} not found"
                    ))
            else:
                requested[product_id] = qty
        return requested

    @staticmethod
    def _summarize(order: Order, items, allocations, only_short: bool = False) -> Dict[str, Any]:
        allocated = allocated_by_product(allocations)
        lines = build_shortage_lines(items, allocated, only_short=only_short)
        total_ordered = sum(line.ordered_qty for line in lines)
        total_allocated = sum(line.allocated_qty for line in lines)
        total_shortage = sum(line.shortage for line in lines)

        if total_shortage == 0:
            status_label = 'fulfilled'
        elif total_allocated > 0:
            status_label = 'backorder'
        else:
            status_label = 'preorder'

        return {
            'order_id': str(order.id),
            'order_number': order.order_number,
            'status': order.status,
            'parent_order_id': str(order.parent_order_id) if order.parent_order_id else None,
            'customer_id': order.customer_id,
            'created_at': order.created_at.isoformat(),
            'lines': [line.to_dict() for line in lines],
            'total_ordered': total_ordered,
            'total_allocated': total_allocated,
            'total_shortage': total_shortage,
            'status_label': status_label,
        }

    @staticmethod
    def get_shortage_summary(order_id) -> Dict[str, Any]:
        """
        Per-product ordered, allocated and shortage quantities of an order.

        Raises:
            NotFoundException: If the order does not exist
        """
        order = get_order(order_id)
        items, allocations = load_order_lines(order)
        return AllocationService._summarize(order, items, allocations)

    @staticmethod
    def get_shortage_report() -> List[Dict[str, Any]]:
        """
        Outstanding shortage per product across all non-terminal orders,
        largest first, with a suggested replenishment quantity.
        """
        open_orders = Order.objects.exclude(status__in=TERMINAL_STATUSES)

        demand_rows = (
            OrderItem.objects.filter(order__in=open_orders)
            .values('order_id', 'product_id')
            .order_by()
            .annotate(demand=Sum(F('ordered_qty') - F('backordered_qty')))
        )
        allocated = {
            (order_id, product_id): qty
            for order_id, product_id, qty in Allocation.objects.filter(
                order__in=open_orders
            ).values_list('order_id', 'product_id', 'allocated_qty')
        }

        totals = {}
        for row in demand_rows:
            shortage = row['demand'] - allocated.get((row['order_id'], row['product_id']), 0)
            if shortage <= 0:
                continue
            entry = totals.setdefault(row['product_id'], {'total_shortage': 0, 'order_count': 0})
            entry['total_shortage'] += shortage
            entry['order_count'] += 1

        products = Product.objects.in_bulk(list(totals))
        report = []
        for product_id, entry in totals.items():
            product = products[product_id]
            report.append({
                'product_id': product_id,
                'sku': product.sku,
                'name': product.name,
                'total_shortage': entry['total_shortage'],
                'order_count': entry['order_count'],
                'on_hand': product.on_hand_quantity,
                'min_stock': product.min_stock,
                'suggested_replenishment': max(
                    0, entry['total_shortage'] + product.min_stock - product.on_hand_quantity
                ),
            })

        report.sort(key=lambda row: (-row['total_shortage'], row['sku']))
        return report

    @staticmethod
    def get_pending_allocations(scope: str = 'shortage') -> List[Dict[str, Any]]:
        """
        Open orders in the order they were placed.

        Args:
            scope: ``'shortage'`` for orders still short of stock, ``'all'``
                for every open order

        Raises:
            ValidationException: If the scope is unknown
        """
        if scope not in PENDING_SCOPES:
            raise ValidationException(
                f"Unknown scope '{scope}'",
                {'scope': f"Expected one of: {', '.join(PENDING_SCOPES)}"}
            )

        orders = (
            Order.objects.exclude(status__in=TERMINAL_STATUSES)
            .prefetch_related('items__product', 'allocations')
            .order_by('created_at')
        )

        pending = []
        for order in orders:
            summary = AllocationService._summarize(order, list(order.items.all()), list(order.allocations.all()))
            if scope == 'shortage' and summary['total_shortage'] == 0:
                continue
            pending.append(summary)
        return pending

    @staticmethod
    def get_product_allocations(product_id) -> Dict[str, Any]:
        """
        Allocations held against a product, oldest order first.

        Raises:
            NotFoundException: If the product does not exist
        """
        try:
            product = Product.objects.get(pk=product_id)
        except (Product.DoesNotExist, ValueError, TypeError):
            raise NotFoundException("Product", product_id)

        allocations = (
            Allocation.objects.filter(product=product, allocated_qty__gt=0)
            .select_related('order')
            .order_by('order__created_at')
        )

        rows = []
        total_allocated = 0
        open_allocated = 0
        for allocation in allocations:
            total_allocated += allocation.allocated_qty
            if allocation.order.status not in TERMINAL_STATUSES:
                open_allocated += allocation.allocated_qty
            rows.append({
                'order_id': str(allocation.order_id),
                'order_number': allocation.order.order_number,
                'order_status': allocation.order.status,
                'allocated_qty': allocation.allocated_qty,
                'allocated_at': allocation.allocated_at.isoformat(),
                'updated_at': allocation.updated_at.isoformat(),
            })

        return {
            'product_id': product.pk,
            'sku': product.sku,
            'on_hand': product.on_hand_quantity,
            'total_allocated': total_allocated,
            'open_allocated': open_allocated,
            'allocations': rows,
        }
