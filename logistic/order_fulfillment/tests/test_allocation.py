"""
Tests for stock allocation functionality.
"""

import uuid
from decimal import Decimal
from django.test import TestCase

from warehouse.models import StockMovement

from ..models import OrderStatus, Allocation, AuditLog
from ..services import AllocationService, EscalationService, OrderService
from ..exceptions import InvalidTransitionException, NotFoundException, ValidationException
from .base import EngineTestMixin


class AllocationTest(EngineTestMixin, TestCase):
    """Test allocation service functionality."""

    def test_full_allocation(self):
        """Allocating the whole demand commits stock and marks the order allocated."""
        product = self.make_product(on_hand=10)
        order = self.make_order((product, 4, Decimal('25.00')))

        result = self.allocate(order, (product, 4))

        self.assertEqual(result.status, OrderStatus.ALLOCATED)
        self.assertTrue(result.is_fully_allocated)
        self.assertEqual(result.lines[0].delta, 4)
        self.assertEqual(result.allocated_total, Decimal('100.00'))

        product.refresh_from_db()
        order.refresh_from_db()
        self.assertEqual(product.on_hand_quantity, 6)
        self.assertEqual(order.status, OrderStatus.ALLOCATED)
        self.assertEqual(order.total_amount, Decimal('100.00'))

        movement = StockMovement.objects.get(product=product)
        self.assertEqual(movement.quantity_delta, -4)
        self.assertEqual(movement.balance_after, 6)
        self.assertEqual(movement.reference, order.order_number)
        self.assertTrue(AuditLog.for_entity(order).filter(action='allocated').exists())

    def test_allocation_is_idempotent(self):
        product = self.make_product(on_hand=10)
        order = self.make_order((product, 4))

        self.allocate(order, (product, 4))
        result = self.allocate(order, (product, 4))

        product.refresh_from_db()
        self.assertEqual(product.on_hand_quantity, 6)
        self.assertEqual(result.lines[0].delta, 0)
        self.assertEqual(StockMovement.objects.filter(product=product).count(), 1)
        self.assertEqual(Allocation.objects.get(order=order, product=product).allocated_qty, 4)

    def test_reallocation_adds_back_own_commitment(self):
        """With 5 on hand and 3 already held, the order may raise its allocation to 7."""
        product = self.make_product(on_hand=8)
        order = self.make_order((product, 10))
        self.allocate(order, (product, 3))
        product.refresh_from_db()
        self.assertEqual(product.on_hand_quantity, 5)

        result = self.allocate(order, (product, 7))

        self.assertFalse(result.has_rejections)
        product.refresh_from_db()
        self.assertEqual(product.on_hand_quantity, 1)
        self.assertEqual(Allocation.objects.get(order=order, product=product).allocated_qty, 7)

    def test_other_orders_allocations_are_not_available(self):
        product = self.make_product(on_hand=6)
        first = self.make_order((product, 5))
        second = self.make_order((product, 5))
        self.allocate(first, (product, 4))

        result = self.allocate(second, (product, 3))

        self.assertEqual(len(result.rejected), 1)
        rejection = result.rejected[0]
        self.assertEqual(rejection.error_code, 'INSUFFICIENT_STOCK')
        self.assertEqual(rejection.max_allocatable, 2)
        self.assertEqual(result.status, OrderStatus.PARTIALLY_FULFILLED)
        self.assertFalse(Allocation.objects.filter(order=second).exists())

        product.refresh_from_db()
        self.assertEqual(product.on_hand_quantity, 2)

    def test_reducing_allocation_releases_stock(self):
        product = self.make_product(on_hand=10)
        order = self.make_order((product, 6))
        self.allocate(order, (product, 6))

        result = self.allocate(order, (product, 2))

        self.assertEqual(result.lines[0].delta, -4)
        self.assertEqual(result.status, OrderStatus.PARTIALLY_FULFILLED)
        product.refresh_from_db()
        self.assertEqual(product.on_hand_quantity, 8)
        release = StockMovement.objects.filter(product=product).order_by('-id').first()
        self.assertEqual(release.movement_type, StockMovement.MOVEMENT_RELEASE)
        self.assertEqual(release.quantity_delta, 4)

    def test_quantity_above_demand_is_rejected(self):
        product = self.make_product(on_hand=10)
        order = self.make_order((product, 3))

        result = self.allocate(order, (product, 5))

        self.assertEqual(result.rejected[0].error_code, 'EXCEEDS_ORDERED')
        self.assertEqual(result.rejected[0].max_allocatable, 3)
        product.refresh_from_db()
        self.assertEqual(product.on_hand_quantity, 10)

    def test_valid_lines_apply_when_others_are_rejected(self):
        plenty = self.make_product(sku='SKU-A', on_hand=10)
        scarce = self.make_product(sku='SKU-B', on_hand=1)
        order = self.make_order((plenty, 5), (scarce, 3))

        result = self.allocate(order, (plenty, 5), (scarce, 3))

        self.assertEqual([line.product_id for line in result.lines], [plenty.pk])
        self.assertEqual(result.rejected[0].product_id, scarce.pk)
        self.assertEqual(result.rejected[0].max_allocatable, 1)
        self.assertEqual(result.total_shortage, 3)
        self.assertEqual(result.shortage[0].sku, 'SKU-B')

        plenty.refresh_from_db()
        scarce.refresh_from_db()
        self.assertEqual(plenty.on_hand_quantity, 5)
        self.assertEqual(scarce.on_hand_quantity, 1)

    def test_invalid_lines_are_rejected_individually(self):
        product = self.make_product(sku='SKU-A', on_hand=10)
        stranger = self.make_product(sku='SKU-X', on_hand=10)
        order = self.make_order((product, 5))

        result = AllocationService.allocate(order.id, [
            {'product_id': product.pk, 'qty': -1},
            {'product_id': stranger.pk, 'qty': 1},
            {'product_id': 999999, 'qty': 1},
        ], allocated_by=self.manager)

        codes = {rejection.product_id: rejection.error_code for rejection in result.rejected}
        self.assertEqual(codes, {
            product.pk: 'INVALID_QUANTITY',
            stranger.pk: 'PRODUCT_NOT_IN_ORDER',
            999999: 'NOT_FOUND',
        })
        self.assertEqual(result.lines, [])

    def test_invalid_quantity_reports_computed_maximum(self):
        product = self.make_product(on_hand=8)
        order = self.make_order((product, 10))
        self.allocate(order, (product, 3))

        for qty in (-1, 2.5, '4'):
            result = self.allocate(order, (product, qty))

            rejection = result.rejected[0]
            self.assertEqual(rejection.error_code, 'INVALID_QUANTITY')
            self.assertEqual(rejection.max_allocatable, 8)

        self.assertEqual(Allocation.objects.get(order=order).allocated_qty, 3)

    def test_last_line_for_a_product_wins(self):
        product = self.make_product(on_hand=10)
        order = self.make_order((product, 5))

        self.allocate(order, (product, 2), (product, 4))

        product.refresh_from_db()
        self.assertEqual(product.on_hand_quantity, 6)
        self.assertEqual(Allocation.objects.get(order=order).allocated_qty, 4)

    def test_auto_fill_allocates_what_stock_allows(self):
        scarce = self.make_product(sku='SKU-A', on_hand=3)
        plenty = self.make_product(sku='SKU-B', on_hand=10)
        order = self.make_order((scarce, 5), (plenty, 2))

        self.assertEqual(AllocationService.auto_fill_lines(order), [
            {'product_id': scarce.pk, 'qty': 3},
            {'product_id': plenty.pk, 'qty': 2},
        ])

        result = AllocationService.allocate(order.id, allocated_by=self.manager, auto_fill=True)

        self.assertEqual(result.total_shortage, 2)
        scarce.refresh_from_db()
        plenty.refresh_from_db()
        self.assertEqual(scarce.on_hand_quantity, 0)
        self.assertEqual(plenty.on_hand_quantity, 8)

    def test_allocation_locked_after_ready_to_ship(self):
        product = self.make_product(on_hand=10)
        order = self.make_order((product, 2))
        self.allocate(order, (product, 2))
        self.ship(order)

        with self.assertRaises(InvalidTransitionException):
            self.allocate(order, (product, 1))

        product.refresh_from_db()
        self.assertEqual(product.on_hand_quantity, 8)

    def test_allocation_during_hold_keeps_status(self):
        product = self.make_product(on_hand=10)
        order = self.make_order((product, 2))
        self.allocate(order, (product, 2))
        self.ship(order)
        EscalationService.report_issue(order.id, "Box arrived short", reported_by=self.driver)

        result = self.allocate(order, (product, 1))

        self.assertEqual(result.status, OrderStatus.HOLD)
        product.refresh_from_db()
        self.assertEqual(product.on_hand_quantity, 9)

    def test_split_request_during_hold_is_refused_before_stock_moves(self):
        product = self.make_product(on_hand=10)
        order = self.make_order((product, 10))
        self.allocate(order, (product, 10))
        self.ship(order)
        EscalationService.report_issue(order.id, "Box arrived short", reported_by=self.driver)
        movements = StockMovement.objects.count()

        with self.assertRaises(InvalidTransitionException):
            self.allocate(order, (product, 8), split_backorder=True)

        product.refresh_from_db()
        self.assertEqual(product.on_hand_quantity, 0)
        self.assertEqual(StockMovement.objects.count(), movements)
        self.assertEqual(Allocation.objects.get(order=order).allocated_qty, 10)

    def test_unknown_order(self):
        with self.assertRaises(NotFoundException):
            AllocationService.allocate(uuid.uuid4(), [], allocated_by=self.manager)


class AllocationQueryTest(EngineTestMixin, TestCase):
    """Test shortage and allocation reports."""

    def test_shortage_summary_labels(self):
        product = self.make_product(on_hand=4)
        order = self.make_order((product, 5))

        self.assertEqual(AllocationService.get_shortage_summary(order.id)['status_label'], 'preorder')

        self.allocate(order, (product, 4))
        summary = AllocationService.get_shortage_summary(order.id)
        self.assertEqual(summary['status_label'], 'backorder')
        self.assertEqual(summary['total_ordered'], 5)
        self.assertEqual(summary['total_allocated'], 4)
        self.assertEqual(summary['total_shortage'], 1)

        other = self.make_product(sku='SKU-FULL', on_hand=5)
        fulfilled = self.make_order((other, 5))
        self.allocate(fulfilled, (other, 5))
        self.assertEqual(AllocationService.get_shortage_summary(fulfilled.id)['status_label'], 'fulfilled')

    def test_shortage_report_suggests_replenishment(self):
        product = self.make_product(on_hand=1, min_stock=4)
        first = self.make_order((product, 3))
        self.make_order((product, 2))
        self.allocate(first, (product, 1))

        report = AllocationService.get_shortage_report()

        self.assertEqual(len(report), 1)
        row = report[0]
        self.assertEqual(row['total_shortage'], 4)
        self.assertEqual(row['order_count'], 2)
        self.assertEqual(row['on_hand'], 0)
        self.assertEqual(row['suggested_replenishment'], 8)

    def test_pending_allocations_scope(self):
        product = self.make_product(on_hand=5)
        complete = self.make_order((product, 2))
        short = self.make_order((product, 9))
        self.allocate(complete, (product, 2))

        shortage_scope = AllocationService.get_pending_allocations('shortage')
        all_scope = AllocationService.get_pending_allocations('all')

        self.assertEqual([row['order_id'] for row in shortage_scope], [str(short.id)])
        self.assertEqual([row['order_id'] for row in all_scope], [str(complete.id), str(short.id)])

        with self.assertRaises(ValidationException):
            AllocationService.get_pending_allocations('everything')

    def test_pending_allocations_cover_every_open_order(self):
        product = self.make_product(on_hand=10)
        shipped = self.make_order((product, 2))
        self.allocate(shipped, (product, 2))
        self.ship(shipped)
        done = self.make_order((product, 1))
        self.allocate(done, (product, 1))
        self.ship(done)
        OrderService.update_status(done.id, OrderStatus.DELIVERED, self.manager)
        OrderService.update_status(done.id, OrderStatus.COMPLETED, self.manager)

        all_scope = AllocationService.get_pending_allocations('all')

        self.assertEqual([row['order_id'] for row in all_scope], [str(shipped.id)])

    def test_product_allocations(self):
        product = self.make_product(on_hand=10)
        first = self.make_order((product, 2))
        second = self.make_order((product, 3))
        self.allocate(first, (product, 2))
        self.allocate(second, (product, 1))

        data = AllocationService.get_product_allocations(product.pk)

        self.assertEqual(data['total_allocated'], 3)
        self.assertEqual(data['open_allocated'], 3)
        self.assertEqual(data['on_hand'], 7)
        self.assertEqual([row['allocated_qty'] for row in data['allocations']], [2, 1])

        with self.assertRaises(NotFoundException):
            AllocationService.get_product_allocations(999999)
