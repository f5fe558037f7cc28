"""Fleet models: vans and their committed date ranges."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Van(models.Model):
    """A van that can be rented by the day."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=150)
    day_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
        help_text=_("Price for one billable day."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("van")
        verbose_name_plural = _("vans")
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(day_rate__gt=0),
                name="van_positive_day_rate",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.day_rate}/day)"


class LedgerEntry(models.Model):
    """
    One committed date range of a van, both ends inclusive.

    Rows are written only through the booking command handlers; each one
    matches the range of exactly one booking of the same van.
    """

    van = models.ForeignKey(
        Van,
        on_delete=models.CASCADE,
        related_name="ledger_entries",
    )
    start_date = models.DateField()
    end_date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("ledger entry")
        verbose_name_plural = _("ledger entries")
        ordering = ["van", "start_date"]
        constraints = [
            models.UniqueConstraint(
                fields=["van", "start_date", "end_date"],
                name="ledger_entry_unique_range",
            ),
            models.CheckConstraint(
                condition=models.Q(end_date__gte=models.F("start_date")),
                name="ledger_entry_valid_dates",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.van_id}: {self.start_date}..{self.end_date}"
