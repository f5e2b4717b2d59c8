"""User models for authentication and seller delegation.

A single `User` table holds every portal account. Super sellers own
warehouses and products; user sellers are delegated accounts that act on
behalf of a super seller (``super_seller``) with a limited permission set.
"""

from common.choices import SellerRole
from django.contrib.auth.models import AbstractUser
from django.core.validators import RegexValidator
from django.db import models


class User(AbstractUser):
    """Custom user with unique email, seller role and delegation link.

    Fields:
    - email: the primary email, unique at the database level (normalized).
    - role: super seller, user seller, or admin.
    - super_seller: owning account for a user seller; empty otherwise.
    - seller_permissions: feature flags granted to a user seller,
      e.g. ``{"manageWarehouse": true}``.
    """

    ROLE_SUPER_SELLER = SellerRole.SUPER_SELLER
    ROLE_USER_SELLER = SellerRole.USER_SELLER
    ROLE_ADMIN = SellerRole.ADMIN

    email = models.EmailField(unique=True)
    phone = models.CharField(
        max_length=16,
        blank=True,
        validators=[RegexValidator(r"^\+?[1-9]\d{1,14}$", message="Use E.164 format (e.g., +14155552671)")],
        help_text="Primary contact number for the account in E.164 format",
    )
    role = models.CharField(max_length=16, choices=SellerRole.choices, default=SellerRole.SUPER_SELLER, db_index=True)
    super_seller = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        related_name="user_sellers",
        on_delete=models.CASCADE,
    )
    seller_permissions = models.JSONField(default=dict, blank=True)

    def save(self, *args, **kwargs):
        """Normalize email and phone before persisting."""
        if self.email:
            self.email = self.email.strip().lower()
        if self.phone:
            self.phone = self.phone.strip()
        super().save(*args, **kwargs)

    @property
    def is_user_seller(self) -> bool:
        return self.role == SellerRole.USER_SELLER
