import factory
from factory.django import DjangoModelFactory
from warehouse.models import Warehouse


class WarehouseFactory(DjangoModelFactory):
    class Meta:
        model = Warehouse

    seller = factory.SubFactory("users.tests.factories.SellerFactory")
    name = factory.Sequence(lambda n: f"Warehouse {n}")
    address = factory.Faker("street_address")
    is_default = False
