"""Catalog app models.

Only the product record the warehouse ledger depends on: ownership and the
purchase price snapshotted into ledger entries.
"""

from common.models import TimeStampedModel
from django.conf import settings
from django.db import models


class Product(TimeStampedModel):
    """Seller-owned product."""

    seller = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="products", on_delete=models.CASCADE)
    name = models.CharField(max_length=200)
    barcode = models.CharField(max_length=64, blank=True, db_index=True)
    price = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    # Unit cost used for ledger valuation
    purchase_price = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)

    class Meta:
        ordering = ["name", "id"]
        constraints = [
            models.CheckConstraint(
                name="product_price_non_negative",
                condition=models.Q(price__gte=0) | models.Q(price__isnull=True),
            ),
            models.CheckConstraint(
                name="product_purchase_price_non_negative",
                condition=models.Q(purchase_price__gte=0) | models.Q(purchase_price__isnull=True),
            ),
        ]
        indexes = [
            models.Index(fields=["seller", "name"], name="product_seller_name_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return self.name
