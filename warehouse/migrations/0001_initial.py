import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

OPERATION_TYPES = [
    ("INCOMING", "Incoming"),
    ("OUTGOING", "Outgoing"),
    ("TRANSFER", "Transfer"),
    ("ADJUSTMENT", "Adjustment"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Warehouse",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=120)),
                ("address", models.CharField(blank=True, max_length=255)),
                ("is_default", models.BooleanField(default=False)),
                (
                    "seller",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="warehouses",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_default", True)),
                        fields=("seller",),
                        name="one_default_warehouse_per_seller",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="WarehouseOperation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("type", models.CharField(choices=OPERATION_TYPES, db_index=True, max_length=16)),
                ("quantity", models.PositiveIntegerField()),
                ("reason", models.TextField(blank=True)),
                ("reference_id", models.CharField(blank=True, max_length=120)),
                ("transfer_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "destination_warehouse",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="incoming_transfers",
                        to="warehouse.warehouse",
                    ),
                ),
                (
                    "performed_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="warehouse_operations",
                        to="catalog.product",
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="operations",
                        to="warehouse.warehouse",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["warehouse", "product", "created_at"], name="operation_wh_product_created")
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="operation_positive_qty")
                ],
            },
        ),
        migrations.CreateModel(
            name="WarehouseStock",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("quantity", models.IntegerField(default=0)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="warehouse_stock",
                        to="catalog.product",
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="stock_items",
                        to="warehouse.warehouse",
                    ),
                ),
            ],
            options={
                "ordering": ["-updated_at", "id"],
                "constraints": [
                    models.UniqueConstraint(fields=("warehouse", "product"), name="unique_stock_per_warehouse_product"),
                    models.CheckConstraint(condition=models.Q(("quantity__gte", 0)), name="warehouse_stock_non_negative"),
                ],
            },
        ),
        migrations.CreateModel(
            name="WarehouseLedger",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateTimeField(db_index=True)),
                ("type", models.CharField(choices=OPERATION_TYPES, db_index=True, max_length=16)),
                ("direction", models.CharField(blank=True, choices=[("in", "In"), ("out", "Out")], max_length=3)),
                ("transfer_id", models.UUIDField(blank=True, null=True)),
                ("quantity", models.PositiveIntegerField()),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=14)),
                ("total_value", models.DecimalField(decimal_places=2, max_digits=14)),
                ("balance_qty", models.IntegerField()),
                ("balance_value", models.DecimalField(decimal_places=2, max_digits=16)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "operation",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entries",
                        to="warehouse.warehouseoperation",
                    ),
                ),
                (
                    "performed_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entries",
                        to="catalog.product",
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entries",
                        to="warehouse.warehouse",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "warehouse ledger",
                "ordering": ["-date", "-id"],
                "indexes": [models.Index(fields=["warehouse", "product", "date"], name="ledger_wh_product_date")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("balance_qty__gte", 0)), name="ledger_balance_qty_non_negative"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("balance_value__gte", 0)), name="ledger_balance_value_non_negative"
                    ),
                ],
            },
        ),
    ]
