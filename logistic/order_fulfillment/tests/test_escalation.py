"""
Tests for delivery shortage escalation and its SLA window.
"""

from datetime import datetime, timedelta, timezone as dt_timezone
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings

from ..models import OrderStatus, OrderIssue
from ..services import EscalationService, is_overdue
from ..exceptions import (
    InvalidNoteException, InvalidTransitionException, IssueAlreadyOpenException, NotFoundException,
)
from .base import EngineTestMixin

T = datetime(2026, 3, 2, 9, 0, tzinfo=dt_timezone.utc)


class EscalationTest(EngineTestMixin, TestCase):
    """Test report and resolution of delivery issues."""

    def setUp(self):
        super().setUp()
        self.product = self.make_product(on_hand=10)
        self.order = self.make_order((self.product, 2))
        self.allocate(self.order, (self.product, 2))
        self.ship(self.order)
        self.backup_driver = get_user_model().objects.create_user(
            username='backup', email='backup@example.com', password='testpass123',
            role=get_user_model().ROLE_DRIVER
        )

    def _report_at(self, moment, note="One box missing on arrival"):
        with mock.patch('django.utils.timezone.now', return_value=moment):
            return EscalationService.report_issue(self.order.id, note, reported_by=self.driver)

    def test_report_puts_order_on_hold(self):
        issue = self._report_at(T)

        self.assertEqual(issue.reported_at, T)
        self.assertEqual(issue.due_at, T + timedelta(hours=24))
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.HOLD)

    def test_overdue_is_derived_from_due_time(self):
        issue = self._report_at(T)

        self.assertFalse(is_overdue(issue, now=T + timedelta(hours=23)))
        self.assertTrue(is_overdue(issue, now=T + timedelta(hours=25)))

        with mock.patch('django.utils.timezone.now', return_value=T + timedelta(hours=25)):
            self.assertTrue(issue.is_overdue)
            self.assertEqual(list(EscalationService.list_overdue_issues()), [issue])

            EscalationService.resolve_issue(
                self.order.id, self.backup_driver.pk, "Resent the missing box", resolved_by=self.manager
            )

        issue.refresh_from_db()
        self.assertFalse(is_overdue(issue, now=T + timedelta(hours=25)))
        self.assertFalse(is_overdue(issue, now=T + timedelta(days=30)))
        self.assertFalse(EscalationService.list_overdue_issues(now=T + timedelta(days=30)).exists())

    @override_settings(ORDER_FULFILLMENT={'ISSUE_SLA_HOURS': 48})
    def test_sla_window_is_configurable(self):
        issue = self._report_at(T)

        self.assertEqual(issue.due_at, T + timedelta(hours=48))

    def test_resolve_rebinds_courier_and_ships(self):
        self._report_at(T)

        issue = EscalationService.resolve_issue(
            self.order.id, self.backup_driver.pk, "Resent the missing box", resolved_by=self.manager
        )

        self.assertEqual(issue.reassigned_courier, self.backup_driver)
        self.assertEqual(issue.resolution_note, "Resent the missing box")
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.SHIPPED)
        self.assertEqual(self.order.courier, self.backup_driver)
        self.assertIsNone(EscalationService.get_active_issue(self.order.id))

    def test_second_report_while_open_rejected(self):
        first = self._report_at(T)

        with self.assertRaises(IssueAlreadyOpenException) as ctx:
            self._report_at(T + timedelta(hours=1))

        self.assertEqual(ctx.exception.details['issue_id'], str(first.id))
        self.assertEqual(OrderIssue.objects.filter(order=self.order).count(), 1)

    def test_short_note_rejected(self):
        with self.assertRaises(InvalidNoteException):
            self._report_at(T, note="  bad ")

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.SHIPPED)

    def test_report_requires_shipped_order(self):
        pending = self.make_order((self.product, 1))

        with self.assertRaises(InvalidTransitionException):
            EscalationService.report_issue(pending.id, "Nothing arrived at all", reported_by=self.driver)

    def test_resolve_requires_active_driver(self):
        self._report_at(T)
        self.backup_driver.is_active = False
        self.backup_driver.save()

        with self.assertRaises(NotFoundException):
            EscalationService.resolve_issue(self.order.id, self.backup_driver.pk, "Resent the missing box")
        with self.assertRaises(NotFoundException):
            EscalationService.resolve_issue(self.order.id, self.manager.pk, "Resent the missing box")

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.HOLD)

    def test_resolve_without_open_issue(self):
        with self.assertRaises(NotFoundException):
            EscalationService.resolve_issue(self.order.id, self.backup_driver.pk, "Resent the missing box")

    def test_resolve_short_note_rejected(self):
        self._report_at(T)

        with self.assertRaises(InvalidNoteException):
            EscalationService.resolve_issue(self.order.id, self.backup_driver.pk, "ok")
