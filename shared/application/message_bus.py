"""
Message Bus

Dispatches booking commands and fans committed events out to their
subscribers. ``bootstrap`` builds one and registers every handler.
"""

from typing import Any, Callable, Dict, List, Type
import logging

from shared.domain.base import DomainEvent
from shared.domain.exceptions import DomainError

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class MessageBus:
    """Exactly one handler per command type, any number per event type"""

    def __init__(self):
        self._command_handlers: Dict[Type, Callable[[Any], Any]] = {}
        self._event_handlers: Dict[Type[DomainEvent], List[EventHandler]] = {}

    def register_command_handler(self, command_type: Type, handler: Callable[[Any], Any]):
        if command_type in self._command_handlers:
            raise ValueError(f"{command_type.__name__} already has a handler")
        self._command_handlers[command_type] = handler

    def register_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        self._event_handlers.setdefault(event_type, []).append(handler)

    def handle(self, command: Any) -> Any:
        """
        Run the command's handler and return what it returns

        Rejections (``DomainError``) are routine and logged at info; any
        other failure is logged with its traceback. Both propagate.
        """
        name = type(command).__name__
        handler = self._command_handlers.get(type(command))
        if handler is None:
            raise ValueError(f"No handler for {name}")

        logger.info(f"Dispatching {name}")
        try:
            return handler(command)
        except DomainError as e:
            logger.info(f"{name} rejected with {e.code}: {e.message}")
            raise
        except Exception as e:
            logger.error(f"{name} failed: {e}", exc_info=True)
            raise

    def publish_events(self, events: List[DomainEvent]):
        """
        Deliver committed events

        The change is already durable, so a failing subscriber is logged
        and the remaining subscribers still run.
        """
        for event in events:
            for handler in self._event_handlers.get(type(event), ()):
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        f"Subscriber {getattr(handler, '__name__', handler)} "
                        f"failed on {type(event).__name__}"
                    )
