"""In-process fan-out of lifecycle events to subscribers."""

import threading
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from notifyflow.core.event import LifecycleEvent
from notifyflow.core.logging import configure_dispatch_logger


@runtime_checkable
class EventListener(Protocol):
    """Receives lifecycle events. Plain callables are accepted as well."""

    def on_event(self, event: LifecycleEvent) -> None: ...


Listener = EventListener | Callable[[LifecycleEvent], None]


class EventPublisher:
    """Synchronous, fault-isolated publisher.

    Listeners are kept in a copy-on-write tuple: ``publish`` iterates a snapshot
    while ``subscribe``/``unsubscribe`` swap in a new tuple under a lock, so
    concurrent mutation never corrupts an in-progress delivery. A listener added
    after a publish has started does not receive that event.
    """

    def __init__(self) -> None:
        self._listeners: tuple[Listener, ...] = ()
        self._lock = threading.Lock()
        self._log = configure_dispatch_logger()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Listener) -> None:
        if not (isinstance(listener, EventListener) or callable(listener)):
            raise TypeError(
                f"listener must define on_event() or be callable, got {type(listener).__name__}"
            )
        with self._lock:
            self._listeners = (*self._listeners, listener)

    def unsubscribe(self, listener: Listener) -> None:
        """Remove the first registration of ``listener``; unknown listeners are ignored."""
        with self._lock:
            listeners = list(self._listeners)
            try:
                listeners.remove(listener)
            except ValueError:
                return
            self._listeners = tuple(listeners)

    def publish(self, event: LifecycleEvent) -> None:
        """Deliver ``event`` to every listener in registration order.

        A listener that raises is logged and skipped; the fault never reaches
        the caller and later listeners still receive the event.
        """
        listeners = self._listeners
        self._log.debug(
            f"Publishing {event.event_type.value} for {event.kind.value} to {event.recipient}",
            extra={
                "kind": event.kind.value,
                "recipient": event.recipient,
                "attempt": event.attempt,
                "event_type": event.event_type.value,
                "listeners": len(listeners),
            },
        )
        for listener in listeners:
            try:
                if isinstance(listener, EventListener):
                    listener.on_event(event)
                else:
                    listener(event)
            except Exception as e:
                self._log.warning(
                    f"Event listener raised exception for {event.event_type.value}: {e}",
                    extra={
                        "kind": event.kind.value,
                        "recipient": event.recipient,
                        "event_type": event.event_type.value,
                        "error": str(e),
                    },
                )
