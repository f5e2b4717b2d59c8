"""Query-string filters for the operations list and the ledger."""

from datetime import datetime, time, timedelta

from common.choices import OperationType
from django import forms
from django.utils import timezone
from django.utils.dateparse import parse_date
from django_filters import rest_framework as filters
from django_filters.fields import IsoDateTimeField

from .models import WarehouseLedger, WarehouseOperation


class RangeEndField(IsoDateTimeField):
    """Exclusive upper bound of a date range.

    A bare date covers that whole day (next midnight). A datetime is
    inclusive, so it is moved one microsecond forward.
    """

    def to_python(self, value):
        if isinstance(value, str):
            try:
                day = parse_date(value.strip())
            except ValueError:
                raise forms.ValidationError(self.error_messages["invalid"], code="invalid")
            if day is not None:
                return timezone.make_aware(datetime.combine(day + timedelta(days=1), time.min))
        value = super().to_python(value)
        return value + timedelta(microseconds=1) if value is not None else None


class RangeEndFilter(filters.IsoDateTimeFilter):
    field_class = RangeEndField


class LedgerFilterForm(forms.Form):
    def clean(self):
        cleaned = super().clean()
        start, end = cleaned.get("startDate"), cleaned.get("endDate")
        if start and end and start >= end:
            self.add_error("endDate", "End date must not be before start date.")
        return cleaned


class SellerFilterSet(filters.FilterSet):
    def __init__(self, data=None, *args, **kwargs):
        if data is not None:
            # Blank values from UI forms mean "no filter"
            data = {key: value for key, value in data.items() if str(value).strip()}
        super().__init__(data, *args, **kwargs)


class OperationFilterSet(SellerFilterSet):
    warehouseId = filters.NumberFilter(field_name="warehouse_id", min_value=1)
    productId = filters.NumberFilter(field_name="product_id", min_value=1)
    type = filters.ChoiceFilter(choices=OperationType.choices)

    class Meta:
        model = WarehouseOperation
        fields = ["warehouseId", "productId", "type"]


class LedgerFilterSet(OperationFilterSet):
    startDate = filters.IsoDateTimeFilter(field_name="date", lookup_expr="gte")
    endDate = RangeEndFilter(field_name="date", lookup_expr="lt")

    class Meta:
        model = WarehouseLedger
        fields = ["warehouseId", "productId", "type", "startDate", "endDate"]
        form = LedgerFilterForm
