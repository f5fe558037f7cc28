"""Serializers for reviews.

The reviewing user is inferred from the request in the view and may only
pick a booking they can see; the rating must be a whole number from 1 to 5.
"""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.bookings.application.access import BookingAccessPolicy, Requester
from apps.bookings.models import Booking

from .models import Review


class ReviewSerializer(serializers.ModelSerializer):
    """Read and write serializer for reviews."""

    user_id = serializers.ReadOnlyField(source='user.id')
    van_id = serializers.ReadOnlyField(source='booking.van_id')

    class Meta:
        model = Review
        fields = [
            'id',
            'booking',
            'user_id',
            'van_id',
            'rating',
            'comment',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_fields(self):  # type: ignore
        """Offer only bookings the caller can see, so others read as missing."""
        fields = super().get_fields()
        request = self.context.get('request')
        if request is not None and request.user.is_authenticated:
            scope = BookingAccessPolicy.scope_filter(Requester.from_user(request.user))
            fields['booking'].queryset = Booking.objects.filter(**scope)
        return fields

    def validate_rating(self, value: int) -> int:  # type: ignore
        if value < 1 or value > 5:
            raise serializers.ValidationError('Rating must be between 1 and 5.')
        return value

    def validate_booking(self, value):  # type: ignore
        if self.instance is not None and value.pk != self.instance.booking_id:
            raise serializers.ValidationError('A review cannot be moved to another booking.')
        return value
