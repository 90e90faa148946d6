"""Serializers for quote requests and the workflow action payloads."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers  # type: ignore

from apps.catalog.models import Cruise, Departure, Extra, Tour

from . import workflow
from .models import (
    QuoteDocument,
    QuoteOffer,
    QuoteParticipant,
    QuotePayment,
    QuoteRequest,
    QuoteRequestExtra,
    QuoteTimeline,
)


# ============================================================================
# READ SERIALIZERS
# ============================================================================

class QuoteOfferSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuoteOffer
        fields = [
            "id",
            "total_price",
            "conditions",
            "payment_terms",
            "offer_expiry",
            "package_details",
            "contract_file_url",
            "iban",
            "created_at",
        ]
        read_only_fields = fields


class QuoteParticipantSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuoteParticipant
        fields = ["id", "full_name", "age", "is_child", "document_type", "document_number", "sort_order"]
        read_only_fields = fields


class QuotePaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuotePayment
        fields = ["id", "bank_details", "amount", "reference", "status", "created_at"]
        read_only_fields = fields


class QuoteDocumentSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuoteDocument
        fields = ["id", "file_url", "file_name", "document_type", "uploaded_by", "created_at"]
        read_only_fields = fields


class QuoteTimelineSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuoteTimeline
        fields = ["id", "action", "details", "actor", "created_at"]
        read_only_fields = fields


class QuoteRequestExtraSerializer(serializers.ModelSerializer):
    name = serializers.ReadOnlyField(source="extra.name")

    class Meta:
        model = QuoteRequestExtra
        fields = ["id", "extra", "name", "quantity"]
        read_only_fields = fields


class QuoteRequestListSerializer(serializers.ModelSerializer):
    """Row of the back-office quote list."""

    agency_name = serializers.ReadOnlyField(source="agency.business_name")
    product_name = serializers.ReadOnlyField()
    departure_date = serializers.DateField(source="departure.departure_date", read_only=True)
    status_action = serializers.SerializerMethodField()

    class Meta:
        model = QuoteRequest
        fields = [
            "id",
            "agency",
            "agency_name",
            "request_type",
            "product_name",
            "departure_date",
            "participants_adults",
            "participants_children",
            "status",
            "status_action",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_status_action(self, obj):  # type: ignore
        return workflow.admin_status_action(obj.status)


class AgencyQuoteListSerializer(QuoteRequestListSerializer):
    def get_status_action(self, obj):  # type: ignore
        return workflow.agency_status_action(obj.status)


class _QuoteDetailMixin(serializers.Serializer):
    extras = QuoteRequestExtraSerializer(many=True, read_only=True)
    offers = serializers.SerializerMethodField()
    participants = QuoteParticipantSerializer(many=True, read_only=True)
    payments = serializers.SerializerMethodField()
    documents = serializers.SerializerMethodField()
    timeline = serializers.SerializerMethodField()

    def get_offers(self, obj):  # type: ignore
        return QuoteOfferSerializer(obj.offers.order_by("-created_at", "-pk"), many=True).data

    def get_payments(self, obj):  # type: ignore
        return QuotePaymentSerializer(obj.payments.order_by("-created_at", "-pk"), many=True).data

    def get_documents(self, obj):  # type: ignore
        return QuoteDocumentSerializer(obj.documents.order_by("-created_at", "-pk"), many=True).data

    def get_timeline(self, obj):  # type: ignore
        return QuoteTimelineSerializer(obj.timeline.order_by("-created_at", "-pk"), many=True).data


class QuoteRequestDetailSerializer(_QuoteDetailMixin, QuoteRequestListSerializer):
    agency_detail = serializers.SerializerMethodField()

    class Meta(QuoteRequestListSerializer.Meta):
        fields = [
            *QuoteRequestListSerializer.Meta.fields,
            "agency_detail",
            "tour",
            "cruise",
            "departure",
            "cabin_type",
            "num_cabins",
            "notes",
            "extras",
            "offers",
            "participants",
            "payments",
            "documents",
            "timeline",
        ]
        read_only_fields = fields

    def get_agency_detail(self, obj):  # type: ignore
        agency = obj.agency
        return {
            "id": agency.pk,
            "business_name": agency.business_name,
            "contact_name": agency.contact_name,
            "email": agency.email or agency.user.email,
            "phone": agency.phone,
            "city": agency.city,
        }


class AgencyQuoteDetailSerializer(_QuoteDetailMixin, AgencyQuoteListSerializer):
    class Meta(QuoteRequestListSerializer.Meta):
        fields = [
            *QuoteRequestListSerializer.Meta.fields,
            "tour",
            "cruise",
            "departure",
            "cabin_type",
            "num_cabins",
            "notes",
            "extras",
            "offers",
            "participants",
            "payments",
            "documents",
            "timeline",
        ]
        read_only_fields = fields


# ============================================================================
# WRITE SERIALIZERS
# ============================================================================

class QuoteRequestCreateSerializer(serializers.Serializer):
    request_type = serializers.ChoiceField(choices=QuoteRequest.RequestType.choices)
    tour = serializers.PrimaryKeyRelatedField(queryset=Tour.objects.all(), required=False, allow_null=True)
    cruise = serializers.PrimaryKeyRelatedField(queryset=Cruise.objects.all(), required=False, allow_null=True)
    departure = serializers.PrimaryKeyRelatedField(queryset=Departure.objects.all())
    participants_adults = serializers.IntegerField(min_value=1)
    participants_children = serializers.IntegerField(min_value=0, default=0)
    cabin_type = serializers.CharField(max_length=100, required=False, allow_blank=True)
    num_cabins = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    extras = serializers.PrimaryKeyRelatedField(
        queryset=Extra.objects.filter(is_active=True), many=True, required=False
    )


class ParticipantInputSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=255, error_messages={"blank": "Nome completo obbligatorio"})
    age = serializers.IntegerField(min_value=0, max_value=120, required=False, allow_null=True)
    document_type = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    document_number = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)


class AcceptOfferSerializer(serializers.Serializer):
    participants = ParticipantInputSerializer(many=True, allow_empty=False)


class DeclineOfferSerializer(serializers.Serializer):
    motivation = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[(status, status) for status in workflow.ADMIN_SETTABLE_STATUSES])
    details = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class OfferCreateSerializer(serializers.Serializer):
    total_price = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0"),
        error_messages={"min_value": "Il prezzo deve essere positivo"},
    )
    conditions = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    payment_terms = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    offer_expiry = serializers.DateField(required=False, allow_null=True)
    package_details = serializers.JSONField(required=False, allow_null=True)
    send_now = serializers.BooleanField(default=False)


class PaymentDetailsSerializer(serializers.Serializer):
    bank_details = serializers.CharField(error_messages={"blank": "IBAN obbligatorio"})
    amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0.01"),
        error_messages={"min_value": "Importo obbligatorio"},
    )
    reference = serializers.CharField(error_messages={"blank": "Causale obbligatoria"})


class ContractSerializer(serializers.Serializer):
    offer_id = serializers.IntegerField()
    contract_file = serializers.FileField(required=False)
    contract_file_url = serializers.URLField(max_length=500, required=False)
    iban = serializers.CharField(max_length=64)
    destinatario = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    causale = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    banca = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    send_email = serializers.BooleanField(default=True)

    def validate(self, attrs):  # type: ignore
        if not attrs.get("contract_file") and not attrs.get("contract_file_url"):
            raise serializers.ValidationError("Il contratto è obbligatorio.")
        return attrs


class RejectSerializer(serializers.Serializer):
    motivation = serializers.CharField(error_messages={"blank": "La motivazione è obbligatoria"})


class ReminderSerializer(serializers.Serializer):
    message = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class QuoteDocumentUploadSerializer(serializers.Serializer):
    """Either an uploaded ``file`` or an already-hosted ``file_url``."""

    file = serializers.FileField(required=False)
    file_url = serializers.URLField(max_length=500, required=False)
    file_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    document_type = serializers.CharField(max_length=50, required=False, default="altro")

    def validate(self, attrs):  # type: ignore
        if not attrs.get("file") and not attrs.get("file_url"):
            raise serializers.ValidationError("Carica un file o indica un URL.")
        return attrs
