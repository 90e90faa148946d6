"""Serializers for back-office user management."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

from .models import OperatorSection

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Read-only user representation with role and sections."""

    display_name = serializers.CharField(read_only=True)
    role_display = serializers.CharField(source="get_role_display", read_only=True)
    sections = serializers.SerializerMethodField()
    agency_id = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "display_name",
            "role",
            "role_display",
            "sections",
            "agency_id",
            "is_active",
            "last_login",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_sections(self, obj) -> list[str]:  # type: ignore
        return obj.sections()

    def get_agency_id(self, obj):  # type: ignore
        agency = getattr(obj, "agency", None) if obj.is_agency() else None
        return agency.id if agency else None


class AdminUserCreateSerializer(serializers.Serializer):
    email = serializers.EmailField(error_messages={"invalid": "Email non valida"})
    password = serializers.CharField(write_only=True)
    display_name = serializers.CharField(error_messages={"blank": "Il nome è obbligatorio"})
    role = serializers.ChoiceField(choices=[User.RoleChoices.ADMIN, User.RoleChoices.OPERATOR])
    permissions = serializers.ListField(child=serializers.CharField(), required=False, default=list)


class UserRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=User.RoleChoices.choices)
    permissions = serializers.ListField(child=serializers.CharField(), required=False, default=list)


class DisplayNameSerializer(serializers.Serializer):
    display_name = serializers.CharField(max_length=150)


class PasswordResetSerializer(serializers.Serializer):
    new_password = serializers.CharField(write_only=True)


class SectionSerializer(serializers.Serializer):
    value = serializers.CharField()
    label = serializers.CharField()

    @staticmethod
    def all_sections() -> list[dict[str, str]]:
        return [{"value": value, "label": str(label)} for value, label in OperatorSection.choices]
