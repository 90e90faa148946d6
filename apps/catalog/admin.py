"""Admin registration for the catalog."""

from __future__ import annotations

from django.contrib import admin

from .models import Cruise, Departure, Destination, Extra, MacroArea, Tour


@admin.register(MacroArea)
class MacroAreaAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "sort_order", "status")
    list_filter = ("status",)
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Destination)
class DestinationAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "macro_area", "status", "sort_order")
    list_filter = ("status", "macro_area_ref")
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}


class DepartureInline(admin.TabularInline):
    model = Departure
    extra = 0


@admin.register(Tour)
class TourAdmin(admin.ModelAdmin):
    list_display = ("title", "destination", "status")
    search_fields = ("title",)
    inlines = [DepartureInline]


@admin.register(Cruise)
class CruiseAdmin(admin.ModelAdmin):
    list_display = ("title", "ship_name", "status")
    search_fields = ("title", "ship_name")
    inlines = [DepartureInline]


admin.site.register(Extra)
