"""Serializers for the booking domain."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from rest_framework import serializers  # type: ignore

from .models import Booking


class BookingCreateSerializer(serializers.Serializer):
    """Booking request. ``user`` is only honoured for privileged callers."""

    van = serializers.UUIDField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    user = serializers.UUIDField(required=False)


class BookingUpdateSerializer(serializers.Serializer):
    """Partial change; omitted fields keep their stored value."""

    van = serializers.UUIDField(required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    user = serializers.UUIDField(required=False)


class BookingSerializer(serializers.ModelSerializer):
    """Read representation of a booking."""

    user_id = serializers.ReadOnlyField(source="user.id")
    van_id = serializers.ReadOnlyField(source="van.id")
    van_name = serializers.ReadOnlyField(source="van.name")
    days = serializers.ReadOnlyField()
    currency = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "user_id",
            "van_id",
            "van_name",
            "start_date",
            "end_date",
            "days",
            "total_price",
            "currency",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_currency(self, obj: Booking) -> str:  # type: ignore
        return getattr(settings, "RENTAL_CURRENCY", "AUD")


class CancellationSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    status = serializers.CharField()
    ledger_released = serializers.BooleanField()
