"""Serializers for the user profile and sign-in flow.

- UserMeSerializer: read-only profile data for the authenticated user,
  including the seller account it acts for.
- EmailOrPhoneTokenObtainPairSerializer: obtain JWTs using email or phone.
"""

from rest_framework import serializers
from rest_framework_simplejwt.tokens import RefreshToken

from .models import User
from .services import can_create_warehouse, can_manage_warehouse, resolve_seller_context


class UserMeSerializer(serializers.ModelSerializer):
    """Profile fields plus the resolved seller context."""

    actual_seller_id = serializers.SerializerMethodField()
    can_manage_warehouse = serializers.SerializerMethodField()
    can_create_warehouse = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "role",
            "super_seller",
            "actual_seller_id",
            "can_manage_warehouse",
            "can_create_warehouse",
        ]
        read_only_fields = fields

    def get_actual_seller_id(self, obj) -> int | None:
        # Unlinked user sellers have no effective seller yet
        if obj.is_user_seller and not obj.super_seller_id:
            return None
        return resolve_seller_context(obj).actual_seller_id

    def get_can_manage_warehouse(self, obj) -> bool:
        return can_manage_warehouse(obj)

    def get_can_create_warehouse(self, obj) -> bool:
        return can_create_warehouse(obj)


class EmailOrPhoneTokenObtainPairSerializer(serializers.Serializer):
    """Obtain JWTs by authenticating with either email or phone.

    Accepts a single `identifier` field which may be an email address
    (case-insensitive) or an E.164 phone number, and a `password`.
    Returns `access` and `refresh` tokens on success.
    """

    identifier = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        identifier = (attrs.get("identifier") or "").strip()
        password = attrs.get("password") or ""

        if not identifier or not password:
            raise serializers.ValidationError({"detail": "identifier and password are required."})

        user = None
        if "@" in identifier:
            try:
                user = User.objects.get(email=identifier.lower())
            except User.DoesNotExist:
                pass
        else:
            try:
                user = User.objects.get(phone=identifier)
            except User.DoesNotExist:
                pass

        if not user or not user.check_password(password) or not user.is_active:
            raise serializers.ValidationError({"detail": "Invalid credentials."})

        refresh = RefreshToken.for_user(user)
        return {"access": str(refresh.access_token), "refresh": str(refresh)}
