"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Read-only view; bookings change only through the booking API."""

    list_display = (
        "id",
        "van",
        "user",
        "status",
        "start_date",
        "end_date",
        "total_price",
        "created_at",
    )
    list_filter = ("status", "start_date", "end_date")
    readonly_fields = (
        "id",
        "user",
        "van",
        "start_date",
        "end_date",
        "total_price",
        "status",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):  # type: ignore
        return False

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False
