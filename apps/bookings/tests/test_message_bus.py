from dataclasses import dataclass

import pytest

from apps.bookings.domain.events import VanDeleted
from shared.application.message_bus import MessageBus
from shared.domain.exceptions import DomainError


@dataclass
class Ping:
    value: int


def test_command_returns_handler_result():
    bus = MessageBus()
    bus.register_command_handler(Ping, lambda command: command.value * 2)

    assert bus.handle(Ping(21)) == 42


def test_second_command_handler_is_refused():
    bus = MessageBus()
    bus.register_command_handler(Ping, lambda command: None)

    with pytest.raises(ValueError):
        bus.register_command_handler(Ping, lambda command: None)


def test_unregistered_command():
    with pytest.raises(ValueError):
        MessageBus().handle(Ping(1))


def test_domain_errors_propagate_and_are_logged_quietly(caplog):
    def reject(command):
        raise DomainError("no vans left")

    bus = MessageBus()
    bus.register_command_handler(Ping, reject)

    with caplog.at_level("INFO", logger="shared"):
        with pytest.raises(DomainError):
            bus.handle(Ping(1))

    assert [r.levelname for r in caplog.records if "rejected" in r.message] == ["INFO"]


def test_failing_subscriber_does_not_stop_the_others(caplog):
    seen = []

    def broken(event):
        raise RuntimeError("mail server down")

    bus = MessageBus()
    bus.register_event_handler(VanDeleted, broken)
    bus.register_event_handler(VanDeleted, seen.append)
    event = VanDeleted(van_id=None, bookings_deleted=1)

    with caplog.at_level("ERROR", logger="shared"):
        bus.publish_events([event])

    assert seen == [event]
    assert "broken failed on VanDeleted" in caplog.text
