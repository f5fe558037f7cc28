"""Booking records for the van rental backend."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Booking(models.Model):
    """
    A user's reservation of a van, both dates inclusive.

    Rows are created, changed and deleted only by the booking command
    handlers, which write the van's matching ledger entry in the same
    transaction.
    """

    class Status(models.TextChoices):
        COMMITTED = "committed", _("Committed")
        UPDATED = "updated", _("Updated")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    van = models.ForeignKey(
        "vans.Van",
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    start_date = models.DateField()
    end_date = models.DateField()
    total_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text=_("Day rate times billable days, fixed when the dates were last set."),
    )
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.COMMITTED,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("booking")
        verbose_name_plural = _("bookings")
        ordering = ["start_date", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gte=models.F("start_date")),
                name="booking_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["van", "start_date", "end_date"], name="booking_van_dates_idx"),
            models.Index(fields=["user"], name="booking_user_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.id} of van {self.van_id}: {self.start_date}..{self.end_date}"

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1
