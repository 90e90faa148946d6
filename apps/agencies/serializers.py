"""Serializers for the agency domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Agency, AgencyDocument


class AgencyDocumentSerializer(serializers.ModelSerializer):
    document_type_display = serializers.CharField(source="get_document_type_display", read_only=True)

    class Meta:
        model = AgencyDocument
        fields = ["id", "document_type", "document_type_display", "file_url", "file_name", "created_at"]
        read_only_fields = ["id", "document_type_display", "created_at"]


class AgencySerializer(serializers.ModelSerializer):
    """Agency as seen by the back-office."""

    user_email = serializers.ReadOnlyField(source="user.email")
    quotes_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Agency
        fields = [
            "id",
            "user_email",
            "business_name",
            "vat_number",
            "fiscal_code",
            "license_number",
            "address",
            "city",
            "zip_code",
            "province",
            "region",
            "contact_name",
            "phone",
            "email",
            "website",
            "latitude",
            "longitude",
            "status",
            "quotes_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AgencyDetailSerializer(AgencySerializer):
    documents = AgencyDocumentSerializer(many=True, read_only=True)

    class Meta(AgencySerializer.Meta):
        fields = [*AgencySerializer.Meta.fields, "documents"]
        read_only_fields = fields


class AgencyStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Agency.Status.choices)


class AgencyProfileSerializer(serializers.ModelSerializer):
    """Agency self-service profile; status and owner are not editable."""

    documents = AgencyDocumentSerializer(many=True, read_only=True)

    class Meta:
        model = Agency
        fields = [
            "id",
            "business_name",
            "vat_number",
            "fiscal_code",
            "license_number",
            "address",
            "city",
            "zip_code",
            "province",
            "region",
            "contact_name",
            "phone",
            "email",
            "website",
            "latitude",
            "longitude",
            "status",
            "documents",
            "created_at",
        ]
        read_only_fields = ["id", "status", "documents", "created_at"]


class AgencyRegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    password_confirm = serializers.CharField(write_only=True, min_length=8)
    business_name = serializers.CharField(max_length=255)
    vat_number = serializers.CharField(max_length=20, required=False, allow_blank=True)
    fiscal_code = serializers.CharField(max_length=20, required=False, allow_blank=True)
    license_number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    zip_code = serializers.CharField(max_length=10, required=False, allow_blank=True)
    province = serializers.CharField(max_length=50, required=False, allow_blank=True)
    region = serializers.CharField(max_length=50, required=False, allow_blank=True)
    contact_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    website = serializers.URLField(required=False, allow_blank=True)

    def validate(self, attrs):  # type: ignore
        if attrs.get("password") != attrs.get("password_confirm"):
            raise serializers.ValidationError({"password_confirm": "Le password non coincidono."})
        return attrs


class AgencyDocumentUploadSerializer(serializers.Serializer):
    """Either an already uploaded URL or a file to store in the documents bucket."""

    document_type = serializers.ChoiceField(
        choices=AgencyDocument.DocumentType.choices,
        default=AgencyDocument.DocumentType.VISURA_CAMERALE,
    )
    file = serializers.FileField(required=False)
    file_url = serializers.URLField(required=False, max_length=500)
    file_name = serializers.CharField(required=False, max_length=255)

    def validate(self, attrs):  # type: ignore
        if not attrs.get("file") and not attrs.get("file_url"):
            raise serializers.ValidationError("Carica un file o indica l'URL del documento.")
        return attrs
