"""Admin registration for quote requests."""

from __future__ import annotations

from django.contrib import admin

from .models import QuoteDocument, QuoteOffer, QuotePayment, QuoteRequest, QuoteTimeline


class QuoteOfferInline(admin.TabularInline):
    model = QuoteOffer
    extra = 0


class QuotePaymentInline(admin.TabularInline):
    model = QuotePayment
    extra = 0


class QuoteDocumentInline(admin.TabularInline):
    model = QuoteDocument
    extra = 0


class QuoteTimelineInline(admin.TabularInline):
    model = QuoteTimeline
    extra = 0
    can_delete = False
    readonly_fields = ("action", "details", "actor", "created_at")

    def has_add_permission(self, request, obj=None):  # type: ignore
        return False


@admin.register(QuoteRequest)
class QuoteRequestAdmin(admin.ModelAdmin):
    list_display = ("id", "agency", "request_type", "status", "created_at")
    list_filter = ("status", "request_type")
    search_fields = ("agency__business_name", "notes")
    readonly_fields = ("created_at", "updated_at")
    inlines = [QuoteOfferInline, QuotePaymentInline, QuoteDocumentInline, QuoteTimelineInline]
