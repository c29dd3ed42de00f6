"""
Event Emitter

Minimal synchronous publish/subscribe used by every component.
on() returns a Subscription handle; owners keep the handles and
release them explicitly instead of relying on garbage collection.
"""
import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class Subscription:
    """Handle returned by EventEmitter.on(), call release() to unsubscribe"""

    def __init__(self, emitter: "EventEmitter", event: str, listener: Listener):
        self._emitter = emitter
        self._event = event
        self._listener = listener

    @property
    def active(self) -> bool:
        return self._emitter is not None

    def release(self):
        if self._emitter is None:
            return
        self._emitter.off(self._event, self._listener)
        self._emitter = None
        self._listener = None


class EventEmitter:
    """Event emitter with per-event listener lists"""

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {}

    def on(self, event: str, listener: Listener) -> Subscription:
        self._listeners.setdefault(event, []).append(listener)
        return Subscription(self, event, listener)

    def once(self, event: str, listener: Listener) -> Subscription:
        subscription = None

        def wrapper(data):
            subscription.release()
            listener(data)

        subscription = self.on(event, wrapper)
        return subscription

    def off(self, event: str, listener: Listener):
        listeners = self._listeners.get(event)
        if not listeners:
            return
        self._listeners[event] = [l for l in listeners if l is not listener]

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def emit(self, event: str, data: Any = None):
        """
        Dispatch event to all listeners registered at call time

        A failing listener is logged and does not stop the others.
        """
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(data)
            except Exception as e:
                logger.error(
                    f"[ERROR] {self.__class__.__name__} listener for '{event}' failed: {e}",
                    exc_info=True
                )
