"""Serializers for account statements."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.agencies.models import Agency

from .models import AccountStatement


class AccountStatementSerializer(serializers.ModelSerializer):
    agency = serializers.PrimaryKeyRelatedField(queryset=Agency.objects.all())
    agency_name = serializers.ReadOnlyField(source="agency.business_name")
    file = serializers.FileField(write_only=True, required=False)

    class Meta:
        model = AccountStatement
        fields = ["id", "agency", "agency_name", "title", "file_url", "file", "data", "stato", "created_at", "updated_at"]
        read_only_fields = ["id", "agency_name", "created_at", "updated_at"]


class AgencyStatementSerializer(serializers.ModelSerializer):
    class Meta:
        model = AccountStatement
        fields = ["id", "title", "file_url", "data", "stato", "created_at"]
        read_only_fields = fields
