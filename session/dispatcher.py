"""Listener registries and event fan-out."""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from .errors import ListenerFault
from .events import Category, Event

logger = logging.getLogger(__name__)

Listener = Callable[[Event], None]
FaultHandler = Callable[[ListenerFault], None]


class Topic:
    """
    Ordered set of listeners for one category.

    ``publish`` walks a snapshot of the listeners taken when it starts, so
    listeners may subscribe or unsubscribe (themselves or others) while an
    event is being delivered. Changes apply from the next publish.
    """

    def __init__(self, name: str, on_fault: Optional[FaultHandler] = None):
        self.name = name
        self.on_fault = on_fault
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener):
        if not callable(listener):
            raise TypeError(f"Listener must be callable, got {listener!r}")
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener):
        """Remove ``listener``; unknown listeners are ignored."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listeners(self) -> Tuple[Listener, ...]:
        return tuple(self._listeners)

    def publish(self, event: Event) -> int:
        """
        Deliver ``event`` to every listener, in registration order.

        A listener that raises is logged and skipped; the others still get
        the event.

        Returns:
            Number of listeners that handled the event without raising
        """
        delivered = 0
        for listener in tuple(self._listeners):
            try:
                listener(event)
                delivered += 1
            except Exception as e:
                logger.exception(
                    "Listener %r failed on %s event %s",
                    listener, self.name, type(event).__name__
                )
                self._report(ListenerFault(listener, event, e))
        return delivered

    def _report(self, fault: ListenerFault):
        if self.on_fault is None:
            return
        try:
            self.on_fault(fault)
        except Exception:
            logger.exception("Fault handler failed for %s", fault)

    def __len__(self) -> int:
        return len(self._listeners)

    def __contains__(self, listener) -> bool:
        return listener in self._listeners


class Dispatcher:
    """One independent ``Topic`` per event category."""

    def __init__(self, on_fault: Optional[FaultHandler] = None):
        self.topics: Dict[Category, Topic] = {
            category: Topic(category.value, on_fault) for category in Category
        }

    def register(self, category: Category, listener: Listener):
        self.topics[category].subscribe(listener)

    def unregister(self, category: Category, listener: Listener):
        self.topics[category].unsubscribe(listener)

    def listeners(self, category: Category) -> Tuple[Listener, ...]:
        return self.topics[category].listeners

    def publish(self, category: Category, event: Event) -> int:
        if event.category is not category:
            raise ValueError(
                f"{type(event).__name__} belongs to {event.category.value}, "
                f"not {category.value}"
            )
        logger.debug("Publishing %s to %d listener(s)",
                     type(event).__name__, len(self.topics[category]))
        return self.topics[category].publish(event)
