"""Serializers for the activity log."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import ActivityLog


class ActivityLogSerializer(serializers.ModelSerializer):
    user_email = serializers.ReadOnlyField(source="user.email")

    class Meta:
        model = ActivityLog
        fields = [
            "id",
            "user",
            "user_email",
            "action",
            "entity_type",
            "entity_id",
            "entity_title",
            "details",
            "created_at",
        ]
        read_only_fields = fields
