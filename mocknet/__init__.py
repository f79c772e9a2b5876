"""mocknet: HTTP request mocking for httpx with an observe-only life-cycle event bus."""

from mocknet.config import Settings, get_settings
from mocknet.core.exceptions import InvalidEventName, MocknetError, UnhandledRequestError
from mocknet.core.logging_config import configure_logging
from mocknet.core.events import LifeCycleEventsObserver
from mocknet.core.registry import LifeCycleEvent
from mocknet.models.records import RequestRecord, ResponseRecord
from mocknet.services.handlers import RequestHandler, http, passthrough
from mocknet.services.responses import HttpResponse
from mocknet.services.server import MockServer, setup_server

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "MocknetError",
    "InvalidEventName",
    "UnhandledRequestError",
    "LifeCycleEvent",
    "LifeCycleEventsObserver",
    "RequestRecord",
    "ResponseRecord",
    "RequestHandler",
    "http",
    "passthrough",
    "HttpResponse",
    "MockServer",
    "setup_server",
]
