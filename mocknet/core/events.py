"""Life-cycle event bus for intercepted requests.

The pipeline owns a :class:`LifeCycleEmitter`; application code only ever sees
the :class:`LifeCycleEventsObserver` facade, which can subscribe and
unsubscribe but has no path to ``emit``.

Payloads per event::

    request:start      (RequestRecord)
    request:match      (RequestRecord)
    request:unhandled  (RequestRecord)
    request:end        (RequestRecord)
    response:mocked    (ResponseRecord, request_id)
    response:bypass    (ResponseRecord, request_id)
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Optional, Set

from mocknet.core.registry import Listener, LifeCycleEvent, ListenerRegistry, resolve_event

logger = logging.getLogger(__name__)

# ── Event name constants ──

REQUEST_START = LifeCycleEvent.REQUEST_START
REQUEST_MATCH = LifeCycleEvent.REQUEST_MATCH
REQUEST_UNHANDLED = LifeCycleEvent.REQUEST_UNHANDLED
REQUEST_END = LifeCycleEvent.REQUEST_END
RESPONSE_MOCKED = LifeCycleEvent.RESPONSE_MOCKED
RESPONSE_BYPASS = LifeCycleEvent.RESPONSE_BYPASS


class LifeCycleEventsObserver:
    """Public, subscribe-only view of the life-cycle events.

    Usage::

        def on_start(request):
            print(request.method, request.url)

        server.events.on("request:start", on_start)
    """

    __slots__ = ("_registry",)

    def __init__(self, registry: ListenerRegistry) -> None:
        self._registry = registry

    def on(self, event: Any, listener: Listener) -> None:
        """Register *listener* for *event*."""
        self._registry.add(event, listener)

    def remove_listener(self, event: Any, listener: Listener) -> None:
        """Unregister the first registration of *listener* from *event*."""
        self._registry.remove(event, listener)

    def remove_all_listeners(self, event: Optional[Any] = None) -> None:
        """Unregister every listener of *event*, or of all events when omitted."""
        self._registry.remove_all(event)


class LifeCycleEmitter:
    """Internal emitter. Only the interception pipeline holds one.

    Listeners are called in registration order. When a listener returns an
    awaitable it is scheduled as a task instead of awaited, so observers can
    never hold up the request that triggered them.
    """

    def __init__(self, registry: Optional[ListenerRegistry] = None) -> None:
        self.registry = registry or ListenerRegistry()
        self.observer = LifeCycleEventsObserver(self.registry)
        self._pending: Set[asyncio.Future] = set()

    async def emit(self, event: Any, *args: Any) -> None:
        """Emit *event*, calling the listeners registered when emission starts.

        Errors in individual listeners are logged but do not propagate.
        """
        name = resolve_event(event)
        for listener in self.registry.snapshot(name):
            try:
                result = listener(*args)
                if inspect.isawaitable(result):
                    self._schedule(result, listener, name)
            except Exception:
                logger.error("Life-cycle listener %r failed on '%s'", listener, name.value, exc_info=True)

    def _schedule(self, awaitable: Awaitable[Any], listener: Listener, name: LifeCycleEvent) -> None:
        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)

        def _done(finished: asyncio.Future) -> None:
            self._pending.discard(finished)
            if finished.cancelled():
                return
            exc = finished.exception()
            if exc is not None:
                logger.error(
                    "Life-cycle listener %r failed on '%s'", listener, name.value,
                    exc_info=(type(exc), exc, exc.__traceback__),
                )

        task.add_done_callback(_done)

    @property
    def pending(self) -> int:
        """Number of async listeners still running."""
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled async listener to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
