"""Serializers for destinations and macro areas."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Destination, MacroArea
from .services import MEGA_MENU_MODES


class MacroAreaSerializer(serializers.ModelSerializer):
    destinations_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = MacroArea
        fields = [
            "id",
            "name",
            "slug",
            "description",
            "cover_image_url",
            "sort_order",
            "status",
            "destinations_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "destinations_count", "created_at", "updated_at"]
        # slug uniqueness is reported by the service with a readable message
        extra_kwargs = {
            "slug": {"validators": []},
            "description": {"allow_blank": True},
            "cover_image_url": {"allow_blank": True},
        }


class DestinationSerializer(serializers.ModelSerializer):
    macro_area_id = serializers.PrimaryKeyRelatedField(
        source="macro_area_ref",
        queryset=MacroArea.objects.all(),
        allow_null=True,
        required=False,
    )

    class Meta:
        model = Destination
        fields = [
            "id",
            "name",
            "slug",
            "macro_area",
            "macro_area_id",
            "description",
            "coordinate",
            "cover_image_url",
            "sort_order",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]
        extra_kwargs = {
            "slug": {"validators": []},
            "macro_area": {"allow_blank": True},
            "description": {"allow_blank": True},
            "coordinate": {"allow_blank": True},
            "cover_image_url": {"allow_blank": True},
        }


class BulkIdsSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=True)


class MegaMenuModeSerializer(serializers.Serializer):
    mode = serializers.ChoiceField(choices=[(mode, mode) for mode in MEGA_MENU_MODES])
