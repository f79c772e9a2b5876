"""Per-event listener bookkeeping shared by the emitter and its public facade."""

import threading
from enum import Enum
from types import MethodType
from typing import Any, Callable, Dict, List, Optional, Tuple

from mocknet.core.exceptions import InvalidEventName


class LifeCycleEvent(str, Enum):
    """Closed set of life-cycle event names."""
    REQUEST_START = "request:start"
    REQUEST_MATCH = "request:match"
    REQUEST_UNHANDLED = "request:unhandled"
    REQUEST_END = "request:end"
    RESPONSE_MOCKED = "response:mocked"
    RESPONSE_BYPASS = "response:bypass"


Listener = Callable[..., Any]


def resolve_event(event: Any) -> LifeCycleEvent:
    """Normalise *event* to a :class:`LifeCycleEvent` or raise ``InvalidEventName``."""
    try:
        return LifeCycleEvent(event)
    except (ValueError, TypeError):
        raise InvalidEventName(event) from None


def _same_listener(registered: Listener, listener: Listener) -> bool:
    if registered is listener:
        return True
    # obj.method builds a new bound method object on every attribute access
    if isinstance(registered, MethodType) and isinstance(listener, MethodType):
        return (
            registered.__self__ is listener.__self__
            and registered.__func__ is listener.__func__
        )
    return False


class ListenerRegistry:
    """Ordered listener lists keyed by life-cycle event.

    All reads and writes go through one lock. Listeners are never invoked
    while it is held, so a listener may freely register or remove listeners.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: Dict[LifeCycleEvent, List[Listener]] = {}

    def add(self, event: Any, listener: Listener) -> None:
        name = resolve_event(event)
        if not callable(listener):
            raise TypeError(f"Listener for '{name.value}' must be callable, got {listener!r}")
        with self._lock:
            self._listeners.setdefault(name, []).append(listener)

    def remove(self, event: Any, listener: Listener) -> None:
        """Drop the first registration of *listener*; unknown listeners are ignored."""
        name = resolve_event(event)
        with self._lock:
            listeners = self._listeners.get(name, [])
            for index, registered in enumerate(listeners):
                if _same_listener(registered, listener):
                    del listeners[index]
                    break

    def remove_all(self, event: Optional[Any] = None) -> None:
        if event is None:
            with self._lock:
                self._listeners.clear()
            return
        name = resolve_event(event)
        with self._lock:
            self._listeners.pop(name, None)

    def snapshot(self, event: Any) -> Tuple[Listener, ...]:
        name = resolve_event(event)
        with self._lock:
            return tuple(self._listeners.get(name, ()))

    def listener_count(self, event: Optional[Any] = None) -> int:
        with self._lock:
            if event is None:
                return sum(len(listeners) for listeners in self._listeners.values())
        return len(self.snapshot(event))
