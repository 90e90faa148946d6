"""FilterSets for account statement lists."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import AccountStatement


class AgencyStatementFilterSet(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name="data", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="data", lookup_expr="lte")

    class Meta:
        model = AccountStatement
        fields: list[str] = []


class AccountStatementFilterSet(AgencyStatementFilterSet):
    agency = django_filters.NumberFilter(field_name="agency_id")
    stato = django_filters.ChoiceFilter(choices=AccountStatement.Stato.choices)

    class Meta:
        model = AccountStatement
        fields = ["agency", "stato"]
