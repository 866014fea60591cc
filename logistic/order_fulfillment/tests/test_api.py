"""
Tests for the engine's HTTP endpoints.
"""

import uuid
from datetime import timedelta
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from ..models import Order, OrderStatus
from ..services import EscalationService
from .base import EngineTestMixin


class OrderApiTest(EngineTestMixin, APITestCase):
    """Test order actions through the REST API."""

    def setUp(self):
        super().setUp()
        self.client.force_authenticate(user=self.manager)
        self.product = self.make_product(on_hand=10)
        self.order = self.make_order((self.product, 12))

    def _url(self, action, order=None):
        return f"/api/fulfillment/orders/{(order or self.order).id}/{action}/"

    def test_allocate_with_split(self):
        response = self.client.post(self._url('allocate'), {
            'lines': [{'product_id': self.product.pk, 'qty': 10}],
            'split_backorder': True,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertTrue(response.data['success'])
        self.assertEqual(data['order_id'], str(self.order.id))
        self.assertEqual(data['status'], OrderStatus.PARTIALLY_FULFILLED)
        self.assertEqual(data['allocation_status'], 'partially_allocated')
        self.assertEqual(data['total_shortage'], 2)
        self.assertEqual(data['shortage'][0]['shortage'], 2)
        self.assertIsNotNone(data['backorder_order_id'])

        backorders = self.client.get(self._url('backorders'))
        self.assertEqual(backorders.data['data'][0]['id'], data['backorder_order_id'])

    def test_allocate_reports_rejected_lines(self):
        response = self.client.post(self._url('allocate'), {
            'lines': [{'product_id': self.product.pk, 'qty': 11}],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        rejected = response.data['data']['rejected']
        self.assertEqual(rejected[0]['error_code'], 'INSUFFICIENT_STOCK')
        self.assertEqual(rejected[0]['max_allocatable'], 10)

    def test_allocate_unknown_order(self):
        response = self.client.post(f"/api/fulfillment/orders/{uuid.uuid4()}/allocate/", {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['error']['code'], 'NOT_FOUND')

    def test_cancel_backorder_short_reason(self):
        self.allocate(self.order, (self.product, 10))

        response = self.client.post(self._url('cancel-backorder'), {'reason': 'no'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'INVALID_REASON')

    def test_cancel_backorder(self):
        self.allocate(self.order, (self.product, 10))

        response = self.client.post(self._url('cancel-backorder'), {'reason': 'supplier kosong'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], OrderStatus.CANCELED)
        self.assertEqual(response.data['data']['cancel_reason'], 'supplier kosong')

    def test_cancel_backorder_requires_manager(self):
        worker = self.customer
        self.client.force_authenticate(user=worker)

        response = self.client.post(self._url('cancel-backorder'), {'reason': 'supplier kosong'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_report_and_resolve_issue(self):
        self.allocate(self.order, (self.product, 10))
        self.ship(self.order)
        self.client.force_authenticate(user=self.driver)

        reported = self.client.post(self._url('report-issue'), {'note': 'Two units missing'}, format='json')
        duplicate = self.client.post(self._url('report-issue'), {'note': 'Two units missing'}, format='json')

        self.assertEqual(reported.status_code, status.HTTP_201_CREATED)
        self.assertFalse(reported.data['data']['overdue'])
        self.assertEqual(duplicate.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(duplicate.data['error']['code'], 'ISSUE_ALREADY_OPEN')

        self.client.force_authenticate(user=self.manager)
        resolved = self.client.post(self._url('resolve-issue'), {
            'courier_id': self.driver.pk, 'resolution_note': 'Delivered the rest',
        }, format='json')

        self.assertEqual(resolved.status_code, status.HTTP_200_OK)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.SHIPPED)

    def test_report_issue_by_unassigned_driver_forbidden(self):
        self.allocate(self.order, (self.product, 10))
        self.ship(self.order)
        other_driver = type(self.driver).objects.create_user(
            username='other', password='testpass123', role=type(self.driver).ROLE_DRIVER
        )
        self.client.force_authenticate(user=other_driver)

        response = self.client.post(self._url('report-issue'), {'note': 'Two units missing'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_status_restricted(self):
        response = self.client.post(self._url('update-status'), {'status': 'canceled'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'ILLEGAL_TRANSITION')

    def test_update_status_invalid_payload(self):
        response = self.client.post(self._url('update-status'), {'status': 'lost'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')

    def test_shortage_summary(self):
        self.allocate(self.order, (self.product, 10))

        response = self.client.get(self._url('shortage'))

        self.assertEqual(response.data['data']['total_shortage'], 2)
        self.assertEqual(response.data['data']['status_label'], 'backorder')

    def test_create_order(self):
        response = self.client.post('/api/fulfillment/orders/', {
            'customer_id': self.customer.pk,
            'items': [{'product_id': self.product.pk, 'quantity': 2, 'unit_price': '9.99'}],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        order = Order.objects.get(id=response.data['data']['id'])
        self.assertEqual(order.customer, self.customer)
        self.assertEqual(order.items.get().ordered_qty, 2)

    def test_list_filters_by_status(self):
        self.allocate(self.order, (self.product, 10))
        self.make_order((self.product, 1))

        response = self.client.get('/api/fulfillment/orders/', {'status': 'partially_fulfilled'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data['results']], [str(self.order.id)])


class AllocationApiTest(EngineTestMixin, APITestCase):
    """Test cross-order reports and issue listing."""

    def setUp(self):
        super().setUp()
        self.client.force_authenticate(user=self.manager)
        self.product = self.make_product(on_hand=2, min_stock=1)
        self.order = self.make_order((self.product, 5))
        self.allocate(self.order, (self.product, 2))

    def test_shortage_report(self):
        response = self.client.get('/api/fulfillment/allocations/shortages/')

        row = response.data['data']['products'][0]
        self.assertEqual(row['total_shortage'], 3)
        self.assertEqual(row['suggested_replenishment'], 4)

    def test_pending_allocations(self):
        response = self.client.get('/api/fulfillment/allocations/pending/', {'scope': 'all'})
        invalid = self.client.get('/api/fulfillment/allocations/pending/', {'scope': 'nope'})

        self.assertEqual(response.data['data']['count'], 1)
        self.assertEqual(invalid.status_code, status.HTTP_400_BAD_REQUEST)

    def test_product_allocations(self):
        response = self.client.get(f"/api/fulfillment/allocations/product/{self.product.pk}/")
        missing = self.client.get("/api/fulfillment/allocations/product/999999/")

        self.assertEqual(response.data['data']['total_allocated'], 2)
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)

    def test_overdue_issue_filter(self):
        self.ship(self.order)
        issue = EscalationService.report_issue(self.order.id, "Half the order missing", reported_by=self.driver)
        issue.due_at = timezone.now() - timedelta(hours=1)
        issue.save(update_fields=['due_at'])

        overdue = self.client.get('/api/fulfillment/issues/', {'overdue': 'true'})

        self.assertEqual(overdue.status_code, status.HTTP_200_OK)
        self.assertEqual(len(overdue.data['results']), 1)
        self.assertTrue(overdue.data['results'][0]['overdue'])

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)

        response = self.client.get('/api/fulfillment/allocations/shortages/')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
