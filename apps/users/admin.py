"""Admin registrations for the users domain."""

from __future__ import annotations

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from apps.bookings.application.access import Requester
from apps.bookings.application.command_handlers import DeleteUserCommand
from apps.bookings.models import Booking
from apps.bookings.services import get_message_bus

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    fieldsets = (
        (None, {"fields": ("email", "password")}),
        (
            _("Personal info"),
            {"fields": ("first_name", "last_name", "date_of_birth", "address", "licence_number")},
        ),
        (
            _("Permissions"),
            {"fields": ("is_active", "is_admin", "is_staff", "is_superuser", "groups", "user_permissions")},
        ),
        (_("Important dates"), {"fields": ("last_login", "date_joined")}),
    )
    add_fieldsets = (
        (None, {"classes": ("wide",), "fields": ("email", "password1", "password2", "is_admin")}),
    )
    list_display = ("email", "first_name", "last_name", "is_admin", "is_active")
    list_filter = ("is_admin", "is_staff", "is_active")
    search_fields = ("email", "first_name", "last_name")
    ordering = ("email",)

    def get_deleted_objects(self, objs, request):  # type: ignore
        """Bookings protect their user only from a raw delete; they are cancelled first."""
        deleted, model_count, perms_needed, _protected = super().get_deleted_objects(objs, request)
        bookings = Booking.objects.filter(user__in=[obj.pk for obj in objs]).count()
        if bookings:
            model_count[Booking._meta.verbose_name_plural] = bookings
        return deleted, model_count, perms_needed, []

    def delete_model(self, request, obj):  # type: ignore
        get_message_bus().handle(
            DeleteUserCommand(requester=Requester.from_user(request.user), user_id=obj.pk)
        )

    def delete_queryset(self, request, queryset):  # type: ignore
        for obj in queryset:
            self.delete_model(request, obj)
