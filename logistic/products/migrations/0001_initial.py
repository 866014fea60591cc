import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("sku", models.CharField(db_index=True, max_length=100, unique=True)),
                (
                    "on_hand_quantity",
                    models.PositiveIntegerField(
                        default=0, validators=[django.core.validators.MinValueValidator(0)]
                    ),
                ),
                (
                    "min_stock",
                    models.PositiveIntegerField(default=0, help_text="Reorder threshold (informational)"),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Product",
                "verbose_name_plural": "Products",
                "db_table": "products",
                "ordering": ["name"],
                "indexes": [models.Index(fields=["is_active"], name="products_is_active_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("on_hand_quantity__gte", 0)), name="product_on_hand_non_negative"
                    )
                ],
            },
        ),
    ]
