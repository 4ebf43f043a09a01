# folios/api/filters.py

import django_filters

from folios.models import Folio


class FolioFilter(django_filters.FilterSet):
    opened_from = django_filters.DateFilter(field_name="opened_at", lookup_expr="date__gte")
    opened_to = django_filters.DateFilter(field_name="opened_at", lookup_expr="date__lte")
    folio_number = django_filters.CharFilter(lookup_expr="icontains")

    class Meta:
        model = Folio
        fields = ["status", "payment_status", "guest", "booking"]
