"""Unit of work bound to the rental database."""

from shared.application.uow import DjangoUnitOfWork

from apps.bookings.infrastructure.repositories import (
    DjangoBookingRepository,
    DjangoUserRepository,
    DjangoVanRepository,
)


class RentalUnitOfWork(DjangoUnitOfWork):
    """
    Record-store handle for the booking engine

    Exposes ``vans``, ``bookings`` and ``users`` repositories once entered.
    """

    def __enter__(self):
        super().__enter__()
        self.vans = DjangoVanRepository()
        self.bookings = DjangoBookingRepository()
        self.users = DjangoUserRepository()
        return self
