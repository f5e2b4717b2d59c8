from django.core.management.base import BaseCommand
from django.db import transaction
from warehouse.models import WarehouseLedger, WarehouseStock
from warehouse.selectors import stock_drift


class Command(BaseCommand):
    help = "Report stock rows whose quantity differs from the latest ledger balance; --fix rewrites them."

    def add_arguments(self, parser):
        parser.add_argument("--seller", type=int, default=None, help="Only check warehouses of this seller id.")
        parser.add_argument("--fix", action="store_true", help="Set stock quantity to the latest ledger balance.")

    def handle(self, *args, **options):
        mismatches = 0
        fixed = 0
        for stock, ledger_qty in list(stock_drift(seller_id=options["seller"])):
            mismatches += 1
            self.stdout.write(
                self.style.WARNING(
                    f"MISMATCH warehouse={stock.warehouse_id} product={stock.product_id} "
                    f"stock={stock.quantity} ledger={ledger_qty}"
                )
            )
            if not options["fix"]:
                continue
            with transaction.atomic():
                locked = WarehouseStock.objects.select_for_update().get(id=stock.id)
                latest = (
                    WarehouseLedger.objects.filter(warehouse_id=locked.warehouse_id, product_id=locked.product_id)
                    .order_by("-id")
                    .values_list("balance_qty", flat=True)
                    .first()
                )
                locked.quantity = latest or 0
                locked.save(update_fields=["quantity", "updated_at"])
                fixed += 1

        if options["fix"]:
            self.stdout.write(self.style.SUCCESS(f"Stock reconciliation complete. Fixed {fixed} of {mismatches}."))
        else:
            self.stdout.write(self.style.SUCCESS(f"Stock reconciliation complete. Mismatches: {mismatches}"))
