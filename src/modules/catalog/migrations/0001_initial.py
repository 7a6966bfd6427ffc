from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import uuid6
from django.db import migrations, models


def _base_fields():
    return [
        (
            "id",
            models.UUIDField(
                default=uuid6.uuid7,
                editable=False,
                primary_key=True,
                serialize=False,
            ),
        ),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Station",
            fields=[
                *_base_fields(),
                ("code", models.CharField(max_length=32, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={"db_table": "stations", "ordering": ["code"]},
        ),
        migrations.CreateModel(
            name="Supplier",
            fields=[
                *_base_fields(),
                ("code", models.CharField(max_length=32, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={"db_table": "suppliers", "ordering": ["code"]},
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                *_base_fields(),
                ("sku", models.CharField(max_length=64, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={"db_table": "catalog_products", "ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="SupplierProduct",
            fields=[
                *_base_fields(),
                (
                    "unit_price",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0.01"))
                        ],
                    ),
                ),
                ("packaging_unit", models.CharField(default="unit", max_length=32)),
                ("quantity_per_package", models.PositiveIntegerField(default=1)),
                (
                    "supplier_reference",
                    models.CharField(blank=True, default="", max_length=64),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="supplier_terms",
                        to="catalog.product",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="terms",
                        to="catalog.supplier",
                    ),
                ),
            ],
            options={
                "db_table": "supplier_products",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("supplier", "product"),
                        name="supplier_products_unique_pair",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(unit_price__gt=0),
                        name="supplier_products_price_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(quantity_per_package__gte=1),
                        name="supplier_products_package_positive",
                    ),
                ],
            },
        ),
    ]
