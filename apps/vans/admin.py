"""Admin registrations for the fleet."""

from __future__ import annotations

from django.contrib import admin

from .models import LedgerEntry, Van


class LedgerEntryInline(admin.TabularInline):
    model = LedgerEntry
    extra = 0
    readonly_fields = ("start_date", "end_date", "created_at")
    can_delete = False

    def has_add_permission(self, request, obj=None):  # type: ignore
        return False


@admin.register(Van)
class VanAdmin(admin.ModelAdmin):
    list_display = ("name", "day_rate", "created_at")
    search_fields = ("name",)
    inlines = [LedgerEntryInline]
