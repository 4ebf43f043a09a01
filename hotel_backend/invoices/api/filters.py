# invoices/api/filters.py

import django_filters

from invoices.models import Invoice


class InvoiceFilter(django_filters.FilterSet):
    issued_from = django_filters.DateFilter(field_name="issue_date", lookup_expr="date__gte")
    issued_to = django_filters.DateFilter(field_name="issue_date", lookup_expr="date__lte")
    unpaid_only = django_filters.BooleanFilter(method="filter_unpaid_only")
    invoice_number = django_filters.CharFilter(lookup_expr="icontains")

    class Meta:
        model = Invoice
        fields = ["status", "folio"]

    def filter_unpaid_only(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(
            status__in=[Invoice.STATUS_ISSUED, Invoice.STATUS_OVERDUE],
            balance_due__gt=0,
        )
