"""Admin registration for agencies."""

from __future__ import annotations

from django.contrib import admin

from .models import Agency, AgencyDocument


class AgencyDocumentInline(admin.TabularInline):
    model = AgencyDocument
    extra = 0


@admin.register(Agency)
class AgencyAdmin(admin.ModelAdmin):
    list_display = ("business_name", "city", "email", "status", "created_at")
    list_filter = ("status", "region")
    search_fields = ("business_name", "email", "vat_number", "city")
    readonly_fields = ("created_at", "updated_at")
    inlines = [AgencyDocumentInline]
