"""Shared enumerations and choices used across apps."""

from django.db import models


class SellerRole(models.TextChoices):
    """Account roles for the seller portal."""

    SUPER_SELLER = "SUPER_SELLER", "Super seller"
    USER_SELLER = "USER_SELLER", "User seller"
    ADMIN = "ADMIN", "Admin"


class OperationType(models.TextChoices):
    INCOMING = "INCOMING", "Incoming"
    OUTGOING = "OUTGOING", "Outgoing"
    TRANSFER = "TRANSFER", "Transfer"
    ADJUSTMENT = "ADJUSTMENT", "Adjustment"


class LedgerDirection(models.TextChoices):
    """Side of a transfer a ledger entry belongs to (blank for single-sided types)."""

    IN = "in", "In"
    OUT = "out", "Out"
