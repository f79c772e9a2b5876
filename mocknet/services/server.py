"""
Mock server facade

Wires handlers, the interception pipeline and an httpx transport together::

    server = setup_server(http.get("/user", lambda request, params: HttpResponse.json({"id": 1})))
    server.listen()

    async with server.client() as client:
        await client.get("https://api.example.com/user")

    server.close()
"""

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from mocknet.config import Settings, get_settings
from mocknet.core.audit import attach_lifecycle_logger
from mocknet.core.events import LifeCycleEventsObserver
from mocknet.core.logging_config import configure_logging
from mocknet.core.registry import LifeCycleEvent
from mocknet.services.handlers import RequestHandler
from mocknet.services.matching import HandlersController
from mocknet.services.pipeline import InterceptionPipeline, MockTransport, OnUnhandledRequest

logger = logging.getLogger(__name__)


class MockServer:
    """Request interception for ``httpx.AsyncClient``."""

    def __init__(
        self,
        handlers: List[RequestHandler],
        *,
        settings: Optional[Settings] = None,
        passthrough_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._controller = HandlersController(handlers)
        self._pipeline = InterceptionPipeline(
            self._controller,
            passthrough_transport or httpx.AsyncHTTPTransport(),
            on_unhandled_request=self.settings.on_unhandled_request,
        )
        self._transport = MockTransport(self._pipeline)
        self._lifecycle_logger: Optional[Dict[LifeCycleEvent, Callable]] = None

    @property
    def events(self) -> LifeCycleEventsObserver:
        return self._pipeline.events

    @property
    def transport(self) -> MockTransport:
        return self._transport

    @property
    def is_listening(self) -> bool:
        return self._transport.active

    def listen(self, on_unhandled_request: Optional[OnUnhandledRequest] = None) -> None:
        """Start intercepting requests sent through :attr:`transport`."""
        self._pipeline.on_unhandled_request = (
            on_unhandled_request or self.settings.on_unhandled_request
        )
        if self.settings.log_lifecycle:
            configure_logging(json_output=self.settings.log_json, level=self.settings.log_level)
            if self._lifecycle_logger is None:
                self._lifecycle_logger = attach_lifecycle_logger(self.events)
        self._transport.active = True
        logger.debug("Interception enabled with %d handler(s)", len(self._controller.current()))

    def close(self) -> None:
        """Stop intercepting and remove every life-cycle listener."""
        self._transport.active = False
        self.events.remove_all_listeners()
        self._lifecycle_logger = None
        logger.debug("Interception disabled")

    async def aclose(self) -> None:
        """``close()``, let pending async listeners finish, release the passthrough transport."""
        self.close()
        await self._pipeline.drain()
        await self._pipeline.passthrough_transport.aclose()

    async def wait_for_listeners(self) -> None:
        """Wait until async life-cycle listeners scheduled so far have finished."""
        await self._pipeline.drain()

    def use(self, *handlers: RequestHandler) -> None:
        """Prepend runtime handlers; they take precedence over initial ones."""
        self._controller.prepend(handlers)

    def reset_handlers(self, *next_handlers: RequestHandler) -> None:
        """Drop runtime handlers; replace the initial ones when any are given."""
        self._controller.reset(next_handlers)

    def restore_handlers(self) -> None:
        """Re-enable every ``once`` handler that has already answered."""
        self._controller.restore()

    def list_handlers(self) -> List[RequestHandler]:
        return self._controller.current()

    def client(self, **kwargs: Any) -> httpx.AsyncClient:
        """``httpx.AsyncClient`` bound to :attr:`transport`."""
        kwargs.setdefault("timeout", self.settings.passthrough_timeout)
        return httpx.AsyncClient(transport=self._transport, **kwargs)

    def __enter__(self) -> "MockServer":
        self.listen()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def setup_server(
    *handlers: RequestHandler,
    settings: Optional[Settings] = None,
    passthrough_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> MockServer:
    return MockServer(
        list(handlers),
        settings=settings,
        passthrough_transport=passthrough_transport,
    )
