from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import uuid6
from django.db import migrations, models

STATUS_CHOICES = [
    ("REGISTERED", "Registered"),
    ("CONFIRMED", "Confirmed"),
    ("SHIPPED", "Shipped"),
    ("RECEIVED", "Received"),
    ("CLOSED", "Closed"),
    ("INVOICED", "Invoiced"),
    ("ARCHIVED", "Archived"),
]


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

    dependencies = [
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="MasterOrder",
            fields=[
                *_base_fields(),
                (
                    "reference",
                    models.CharField(editable=False, max_length=20, unique=True),
                ),
                (
                    "aggregate_status",
                    models.CharField(
                        choices=STATUS_CHOICES, default="REGISTERED", max_length=20
                    ),
                ),
                (
                    "total_amount",
                    models.DecimalField(
                        decimal_places=2, default=Decimal("0.00"), max_digits=12
                    ),
                ),
                ("created_by", models.CharField(max_length=255)),
                (
                    "station",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="master_orders",
                        to="catalog.station",
                    ),
                ),
            ],
            options={
                "db_table": "master_orders",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["station", "-created_at"],
                        name="mo_station_created_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PurchaseOrder",
            fields=[
                *_base_fields(),
                (
                    "order_number",
                    models.CharField(editable=False, max_length=20, unique=True),
                ),
                (
                    "status",
                    models.CharField(
                        choices=STATUS_CHOICES, default="REGISTERED", max_length=20
                    ),
                ),
                (
                    "total_amount",
                    models.DecimalField(
                        decimal_places=2, default=Decimal("0.00"), max_digits=12
                    ),
                ),
                ("created_by", models.CharField(max_length=255)),
                ("carrier", models.CharField(blank=True, default="", max_length=120)),
                (
                    "tracking_number",
                    models.CharField(blank=True, default="", max_length=120),
                ),
                (
                    "shipment_proof_key",
                    models.CharField(blank=True, default="", max_length=512),
                ),
                ("shipped_at", models.DateTimeField(blank=True, null=True)),
                (
                    "reception_proof_key",
                    models.CharField(blank=True, default="", max_length=512),
                ),
                ("received_at", models.DateTimeField(blank=True, null=True)),
                (
                    "master_order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchase_orders",
                        to="orders.masterorder",
                    ),
                ),
                (
                    "station",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchase_orders",
                        to="catalog.station",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchase_orders",
                        to="catalog.supplier",
                    ),
                ),
            ],
            options={
                "db_table": "purchase_orders",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="po_status_idx"),
                    models.Index(
                        fields=["supplier", "-created_at"],
                        name="po_supplier_created_idx",
                    ),
                    models.Index(
                        fields=["station", "-created_at"],
                        name="po_station_created_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderLine",
            fields=[
                *_base_fields(),
                (
                    "quantity",
                    models.PositiveIntegerField(
                        validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("packaging_unit", models.CharField(max_length=32)),
                ("quantity_per_package", models.PositiveIntegerField(default=1)),
                (
                    "supplier_reference",
                    models.CharField(blank=True, default="", max_length=64),
                ),
                (
                    "subtotal",
                    models.DecimalField(decimal_places=2, editable=False, max_digits=12),
                ),
                ("desired_delivery_date", models.DateField(blank=True, null=True)),
                ("confirmed_delivery_date", models.DateField(blank=True, null=True)),
                ("quantity_received", models.PositiveIntegerField(blank=True, null=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="order_lines",
                        to="catalog.product",
                    ),
                ),
                (
                    "purchase_order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="orders.purchaseorder",
                    ),
                ),
            ],
            options={
                "db_table": "order_lines",
                "ordering": ["created_at", "id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(quantity__gte=1),
                        name="order_lines_quantity_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="NonConformity",
            fields=[
                *_base_fields(),
                (
                    "stage",
                    models.CharField(
                        choices=[
                            ("RECEPTION", "At reception"),
                            ("POST_RECEPTION", "After reception"),
                        ],
                        max_length=20,
                    ),
                ),
                ("description", models.TextField()),
                ("quantity_affected", models.PositiveIntegerField(default=0)),
                ("photo_keys", models.JSONField(blank=True, default=list)),
                ("reported_by", models.CharField(max_length=255)),
                (
                    "purchase_order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="non_conformities",
                        to="orders.purchaseorder",
                    ),
                ),
            ],
            options={
                "db_table": "order_non_conformities",
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="OrderStatusHistory",
            fields=[
                *_base_fields(),
                (
                    "old_status",
                    models.CharField(
                        blank=True, choices=STATUS_CHOICES, max_length=20, null=True
                    ),
                ),
                (
                    "new_status",
                    models.CharField(choices=STATUS_CHOICES, max_length=20),
                ),
                ("actor_id", models.CharField(max_length=255)),
                ("actor_role", models.CharField(max_length=20)),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "purchase_order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="status_history",
                        to="orders.purchaseorder",
                    ),
                ),
            ],
            options={
                "db_table": "order_status_history",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["purchase_order", "created_at"],
                        name="osh_order_created_idx",
                    ),
                ],
            },
        ),
    ]
