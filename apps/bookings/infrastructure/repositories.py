"""
Django repositories

Map the booking engine's domain objects to and from ORM rows. Every
repository is bound to the unit of work that created it, so its queries
run inside that unit of work's transaction.
"""

from typing import List, Optional
from uuid import UUID
import logging

from django.contrib.auth import get_user_model  # type: ignore
from django.db import transaction  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from apps.bookings.domain.entities import Booking, BookingStatus, Van
from apps.bookings.domain.ledger import AvailabilityLedger
from apps.bookings.models import Booking as BookingModel
from apps.vans.models import LedgerEntry, Van as VanModel
from shared.domain.value_objects import DateRange

logger = logging.getLogger(__name__)


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


class DjangoVanRepository:
    """Vans and their ledgers"""

    def get(self, van_id: UUID, lock: bool = False) -> Optional[Van]:
        """
        Load a van with its full ledger

        With ``lock=True`` the van row is selected for update, which
        serializes ledger writers across processes until the transaction
        ends.
        """
        queryset = VanModel.objects.filter(pk=van_id)
        if lock:
            queryset = _lock_queryset_if_possible(queryset)
        row = queryset.first()
        if row is None:
            return None

        entries = [
            DateRange(start, end)
            for start, end in LedgerEntry.objects.filter(van_id=row.pk)
            .values_list('start_date', 'end_date')
        ]
        return Van(
            id=row.pk,
            created_at=row.created_at,
            updated_at=row.updated_at,
            name=row.name,
            day_rate=row.day_rate,
            ledger=AvailabilityLedger.from_entries(row.pk, entries),
        )

    def save_ledger(self, ledger: AvailabilityLedger):
        """Write the ledger's entries, inserting and deleting only the difference"""
        stored = {
            DateRange(start, end)
            for start, end in LedgerEntry.objects.filter(van_id=ledger.van_id)
            .values_list('start_date', 'end_date')
        }
        wanted = set(ledger.entries)

        for dates in stored - wanted:
            LedgerEntry.objects.filter(
                van_id=ledger.van_id,
                start_date=dates.start_date,
                end_date=dates.end_date,
            ).delete()

        added = sorted(wanted - stored, key=lambda d: d.start_date)
        if added:
            LedgerEntry.objects.bulk_create([
                LedgerEntry(van_id=ledger.van_id, start_date=d.start_date, end_date=d.end_date)
                for d in added
            ])
        logger.debug(
            f"Ledger of van {ledger.van_id} saved: "
            f"{len(added)} added, {len(stored - wanted)} removed"
        )

    def delete(self, van_id: UUID):
        VanModel.objects.filter(pk=van_id).delete()


class DjangoBookingRepository:
    """Booking records"""

    @staticmethod
    def _to_domain(row: BookingModel) -> Booking:
        return Booking(
            id=row.pk,
            created_at=row.created_at,
            updated_at=row.updated_at,
            user_id=row.user_id,
            van_id=row.van_id,
            dates=DateRange(row.start_date, row.end_date),
            total_price=row.total_price,
            status=BookingStatus(row.status),
        )

    @staticmethod
    def _fields(booking: Booking) -> dict:
        return {
            'user_id': booking.user_id,
            'van_id': booking.van_id,
            'start_date': booking.dates.start_date,
            'end_date': booking.dates.end_date,
            'total_price': booking.total_price,
            'status': booking.status.value,
        }

    def get(self, booking_id: UUID) -> Optional[Booking]:
        row = BookingModel.objects.filter(pk=booking_id).first()
        return self._to_domain(row) if row else None

    def add(self, booking: Booking):
        BookingModel.objects.create(id=booking.id, **self._fields(booking))

    def save(self, booking: Booking):
        updated = BookingModel.objects.filter(pk=booking.id).update(**self._fields(booking))
        if not updated:
            raise BookingModel.DoesNotExist(f"Booking {booking.id} does not exist")

    def delete(self, booking_id: UUID):
        BookingModel.objects.filter(pk=booking_id).delete()

    def delete_for_van(self, van_id: UUID) -> int:
        """Delete every booking of a van; returns how many there were"""
        _, per_model = BookingModel.objects.filter(van_id=van_id).delete()
        return per_model.get(BookingModel._meta.label, 0)

    def list(self, **filters) -> List[Booking]:
        rows = BookingModel.objects.filter(**filters).order_by('start_date', 'created_at')
        return [self._to_domain(row) for row in rows]


class DjangoUserRepository:
    def exists(self, user_id: UUID, active_only: bool = True) -> bool:
        users = get_user_model().objects.filter(pk=user_id)
        if active_only:
            users = users.filter(is_active=True)
        return users.exists()

    def delete(self, user_id: UUID):
        get_user_model().objects.filter(pk=user_id).delete()
