import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("products", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "order_number",
                    models.CharField(help_text="Unique order identifier (auto-generated)", max_length=50, unique=True),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("waiting_invoice", "Waiting Invoice"),
                            ("allocated", "Allocated"),
                            ("partially_fulfilled", "Partially Fulfilled"),
                            ("ready_to_ship", "Ready To Ship"),
                            ("shipped", "Shipped"),
                            ("delivered", "Delivered"),
                            ("completed", "Completed"),
                            ("hold", "Hold"),
                            ("debt_pending", "Debt Pending"),
                            ("canceled", "Canceled"),
                        ],
                        default="pending",
                        help_text="Current order status in the fulfillment workflow",
                        max_length=20,
                    ),
                ),
                (
                    "total_amount",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Value of the quantities currently allocated",
                        max_digits=12,
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("cancel_reason", models.TextField(blank=True)),
                ("canceled_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "parent_order",
                    models.ForeignKey(
                        blank=True,
                        help_text="Order this backorder was split from",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="backorders",
                        to="order_fulfillment.order",
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        help_text="Customer who placed the order",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "courier",
                    models.ForeignKey(
                        blank=True,
                        help_text="Delivery driver currently bound to the order",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="deliveries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "canceled_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="canceled_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "updated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="updated_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="order_status_created_idx"),
                    models.Index(fields=["customer", "status"], name="order_customer_status_idx"),
                    models.Index(fields=["parent_order"], name="order_parent_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "ordered_qty",
                    models.PositiveIntegerField(
                        help_text="Quantity ordered by the customer (immutable)",
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                (
                    "backordered_qty",
                    models.PositiveIntegerField(default=0, help_text="Quantity moved to a backorder child order"),
                ),
                (
                    "unit_price_at_purchase",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "order",
                    models.ForeignKey(
                        help_text="Order this item belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="order_fulfillment.order",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="order_items",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "ordering": ["order", "created_at"],
                "indexes": [
                    models.Index(fields=["order", "product"], name="order_item_order_product_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("ordered_qty__gt", 0)),
                        name="order_item_ordered_qty_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("backordered_qty__lte", models.F("ordered_qty"))),
                        name="order_item_backordered_within_ordered",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Allocation",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("allocated_qty", models.PositiveIntegerField(default=0)),
                ("allocated_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "order",
                    models.ForeignKey(
                        help_text="Order this allocation belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="allocations",
                        to="order_fulfillment.order",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="allocations",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "ordering": ["order", "product"],
                "indexes": [
                    models.Index(fields=["product", "allocated_qty"], name="allocation_product_qty_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("order", "product"), name="allocation_unique_order_product"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderIssue",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "issue_type",
                    models.CharField(choices=[("shortage", "Shortage")], default="shortage", max_length=20),
                ),
                ("note", models.TextField()),
                ("evidence_url", models.URLField(blank=True, max_length=500)),
                ("reported_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("due_at", models.DateTimeField()),
                ("resolved_at", models.DateTimeField(blank=True, null=True)),
                ("resolution_note", models.TextField(blank=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="issues",
                        to="order_fulfillment.order",
                    ),
                ),
                (
                    "reported_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="reported_issues",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "reassigned_courier",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="reassigned_issues",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "resolved_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="resolved_issues",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-reported_at"],
                "indexes": [
                    models.Index(fields=["due_at"], name="order_issue_due_idx"),
                    models.Index(fields=["resolved_at"], name="order_issue_resolved_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("resolved_at__isnull", True)),
                        fields=("order",),
                        name="order_issue_one_open_per_order",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("entity_type", models.CharField(help_text="Type of entity (Order, OrderIssue)", max_length=50)),
                ("entity_id", models.CharField(help_text="Primary key of the entity being audited", max_length=64)),
                (
                    "action",
                    models.CharField(
                        help_text="Action performed (allocated, backorder_split, status_changed, ...)",
                        max_length=50,
                    ),
                ),
                ("old_values", models.JSONField(blank=True, default=dict)),
                ("new_values", models.JSONField(blank=True, default=dict)),
                ("field_changes", models.JSONField(blank=True, default=dict)),
                ("timestamp", models.DateTimeField(default=django.utils.timezone.now)),
                ("notes", models.TextField(blank=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "user",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_logs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-timestamp"],
                "indexes": [
                    models.Index(fields=["entity_type", "entity_id", "-timestamp"], name="audit_entity_idx"),
                    models.Index(fields=["action", "-timestamp"], name="audit_action_idx"),
                ],
            },
        ),
    ]
