"""Admin registrations for shared models."""

from __future__ import annotations

from django.contrib import admin

from .models import ActivityLog, SiteSetting


@admin.register(SiteSetting)
class SiteSettingAdmin(admin.ModelAdmin):
    list_display = ("key", "value", "updated_at")
    search_fields = ("key",)


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "user", "action", "entity_type", "entity_title")
    list_filter = ("action", "entity_type")
    search_fields = ("entity_title", "user__email")
    readonly_fields = ("user", "action", "entity_type", "entity_id", "entity_title", "details", "created_at")
