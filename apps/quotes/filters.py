"""FilterSet for the back-office quote request list."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import QuoteRequest
from .workflow import QuoteStatus


class QuoteRequestFilterSet(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=QuoteStatus.choices)
    request_type = django_filters.ChoiceFilter(choices=QuoteRequest.RequestType.choices)
    agency = django_filters.NumberFilter(field_name="agency_id")
    # date_to is inclusive: the whole day counts
    date_from = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    date_to = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = QuoteRequest
        fields = ["status", "request_type", "agency"]


class AgencyQuoteFilterSet(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=QuoteStatus.choices)

    class Meta:
        model = QuoteRequest
        fields = ["status"]
