"""Structured logging of request life-cycle events.

Attaches ordinary listeners to a :class:`LifeCycleEventsObserver` that emit
one log line per event (picked up by ``JSONFormatter`` as ``data``).
"""

import logging
from typing import Callable, Dict, Optional

from mocknet.core.events import LifeCycleEventsObserver
from mocknet.core.registry import LifeCycleEvent
from mocknet.models.records import RequestRecord, ResponseRecord

logger = logging.getLogger(__name__)


def _request_listener(event: LifeCycleEvent, log: logging.Logger) -> Callable[[RequestRecord], None]:
    def listener(request: RequestRecord) -> None:
        extra = {
            "event": event.value,
            "request_id": request.id,
            "method": request.method,
            "url": request.url,
        }
        log.info(
            "lifecycle: %s %s %s", event.value, request.method, request.url,
            extra={"extra_data": extra},
        )

    return listener


def _response_listener(event: LifeCycleEvent, log: logging.Logger) -> Callable[[ResponseRecord, str], None]:
    def listener(response: ResponseRecord, request_id: str) -> None:
        extra = {
            "event": event.value,
            "request_id": request_id,
            "status": response.status,
        }
        log.info(
            "lifecycle: %s %s (%d)", event.value, request_id, response.status,
            extra={"extra_data": extra},
        )

    return listener


def attach_lifecycle_logger(
    events: LifeCycleEventsObserver,
    log: Optional[logging.Logger] = None,
) -> Dict[LifeCycleEvent, Callable]:
    """Log every life-cycle event on *log* (defaults to this module's logger).

    Returns the registered listeners keyed by event so callers can detach
    them with ``events.remove_listener``.
    """
    log = log or logger
    attached: Dict[LifeCycleEvent, Callable] = {}
    for event in LifeCycleEvent:
        if event in (LifeCycleEvent.RESPONSE_MOCKED, LifeCycleEvent.RESPONSE_BYPASS):
            listener = _response_listener(event, log)
        else:
            listener = _request_listener(event, log)
        events.on(event, listener)
        attached[event] = listener
    return attached
