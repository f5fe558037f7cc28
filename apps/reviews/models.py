"""Models for the review domain.

A ``Review`` is a renter's rating of a booking. The rating is a whole
number from 1 to 5 and the comment is optional.
"""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Review(models.Model):
    """Represents a review left for a booking."""

    booking = models.ForeignKey(
        'bookings.Booking', on_delete=models.CASCADE, related_name='reviews'
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='reviews'
    )
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)],
        help_text=_('Rating from 1 to 5'),
    )
    comment = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(rating__gte=1) & models.Q(rating__lte=5),
                name='review_rating_range',
            ),
        ]
        indexes = [
            models.Index(fields=['booking', '-created_at'], name='review_booking_created_idx'),
            models.Index(fields=['user'], name='review_user_idx'),
        ]

    def __str__(self) -> str:
        return f"Review by {self.user_id} for booking {self.booking_id} (Rating: {self.rating})"
