"""Serializers for the fleet."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers  # type: ignore

from apps.bookings.domain.exceptions import InvalidRate
from apps.bookings.domain.pricing import validate_day_rate

from .models import Van


class VanSerializer(serializers.ModelSerializer):
    class Meta:
        model = Van
        fields = ["id", "name", "day_rate", "created_at", "updated_at"]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_day_rate(self, value: Decimal) -> Decimal:  # type: ignore
        try:
            return validate_day_rate(value, allow_zero=False)
        except InvalidRate as exc:
            raise serializers.ValidationError(exc.message)


class CalendarEntrySerializer(serializers.Serializer):
    """One committed range; carries no booking or user ids."""

    start_date = serializers.DateField()
    end_date = serializers.DateField()
    days = serializers.IntegerField()
