import factory
from common.choices import SellerRole
from django.contrib.auth import get_user_model
from factory.django import DjangoModelFactory


class SellerFactory(DjangoModelFactory):
    class Meta:
        model = get_user_model()

    username = factory.Sequence(lambda n: f"seller{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    role = SellerRole.SUPER_SELLER
    password = factory.PostGenerationMethodCall("set_password", "pass")


class UserSellerFactory(SellerFactory):
    """Delegated account acting for a super seller."""

    username = factory.Sequence(lambda n: f"staff{n}")
    role = SellerRole.USER_SELLER
    super_seller = factory.SubFactory(SellerFactory)
    seller_permissions = factory.LazyFunction(lambda: {"manageWarehouse": True})
