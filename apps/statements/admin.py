from django.contrib import admin  # type: ignore

from .models import AccountStatement


@admin.register(AccountStatement)
class AccountStatementAdmin(admin.ModelAdmin):
    list_display = ("title", "agency", "data", "stato", "created_at")
    list_filter = ("stato",)
    search_fields = ("title", "agency__business_name")
    date_hierarchy = "data"
    raw_id_fields = ("agency",)
