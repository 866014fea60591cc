import django.db.models.deletion
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
            name="StockMovement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "movement_type",
                    models.CharField(
                        choices=[
                            ("allocation", "Allocation"),
                            ("release", "Release"),
                            ("receipt", "Receipt"),
                            ("adjustment", "Adjustment"),
                        ],
                        max_length=20,
                    ),
                ),
                ("quantity_delta", models.IntegerField(help_text="Signed change applied to on_hand_quantity")),
                ("balance_after", models.PositiveIntegerField()),
                (
                    "reference",
                    models.CharField(blank=True, help_text="Order number or document reference", max_length=100),
                ),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT, related_name="movements", to="products.product"
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="movements",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Stock Movement",
                "verbose_name_plural": "Stock Movements",
                "db_table": "stock_movements",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["product", "-created_at"], name="stock_mov_product_idx"),
                    models.Index(fields=["movement_type"], name="stock_mov_type_idx"),
                    models.Index(fields=["reference"], name="stock_mov_reference_idx"),
                ],
            },
        ),
    ]
