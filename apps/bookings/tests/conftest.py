from datetime import date
from functools import partial

import pytest

from apps.bookings.application.access import BookingQueries, Requester
from apps.bookings.application.bootstrap import bootstrap
from apps.bookings.tests.fakes import FakeUnitOfWork, InMemoryStore
from shared.application.locks import KeyedLock

TODAY = date(2024, 4, 1)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def published():
    return []


@pytest.fixture
def bus(store, published):
    def uow_factory(publish=None):
        def recording_publish(events):
            published.extend(events)
            publish(events)

        return FakeUnitOfWork(store, publish=recording_publish)

    return bootstrap(uow_factory, locks=KeyedLock(timeout=5), clock=lambda: TODAY)


@pytest.fixture
def queries(store):
    return BookingQueries(partial(FakeUnitOfWork, store))


@pytest.fixture
def user_id(store):
    return store.add_user()


@pytest.fixture
def requester(user_id):
    return Requester(id=user_id)


@pytest.fixture
def admin(store):
    return Requester(id=store.add_user(), is_privileged=True)


@pytest.fixture
def van_id(store):
    return store.add_van(day_rate="130")
