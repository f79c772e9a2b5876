"""Listener-side correlation of life-cycle events."""

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, DefaultDict, Dict, List, Optional, Tuple

from mocknet.core.events import LifeCycleEventsObserver
from mocknet.core.registry import LifeCycleEvent
from mocknet.models.records import RequestRecord, ResponseRecord


@dataclass(frozen=True)
class RecordedEvent:
    event: str
    request_id: str
    payload: Tuple[Any, ...]


class LifeCycleRecorder:
    """Records every life-cycle event, grouped by request id.

    The correlation table lives here, on the listener side; the bus itself
    keeps no per-request state.
    """

    def __init__(self) -> None:
        self.events: List[RecordedEvent] = []
        self._by_request: DefaultDict[str, List[RecordedEvent]] = defaultdict(list)
        self._observer: Optional[LifeCycleEventsObserver] = None
        self._listeners: Dict[LifeCycleEvent, Callable[..., None]] = {}

    def attach(self, events: LifeCycleEventsObserver) -> "LifeCycleRecorder":
        self._observer = events
        for event in LifeCycleEvent:
            listener = self._listener_for(event)
            events.on(event, listener)
            self._listeners[event] = listener
        return self

    def detach(self) -> None:
        if self._observer is None:
            return
        for event, listener in self._listeners.items():
            self._observer.remove_listener(event, listener)
        self._listeners.clear()
        self._observer = None

    def _listener_for(self, event: LifeCycleEvent) -> Callable[..., None]:
        if event in (LifeCycleEvent.RESPONSE_MOCKED, LifeCycleEvent.RESPONSE_BYPASS):
            def on_response(response: ResponseRecord, request_id: str) -> None:
                self._record(event, request_id, (response, request_id))
            return on_response

        def on_request(request: RequestRecord) -> None:
            self._record(event, request.id, (request,))
        return on_request

    def _record(self, event: LifeCycleEvent, request_id: str, payload: Tuple[Any, ...]) -> None:
        entry = RecordedEvent(event.value, request_id, payload)
        self.events.append(entry)
        self._by_request[request_id].append(entry)

    @property
    def request_ids(self) -> List[str]:
        return list(self._by_request)

    def sequence(self, request_id: str) -> List[str]:
        """Event names recorded for *request_id*, in emission order."""
        return [entry.event for entry in self._by_request.get(request_id, [])]

    def request(self, request_id: str) -> Optional[RequestRecord]:
        for entry in self._by_request.get(request_id, []):
            if isinstance(entry.payload[0], RequestRecord):
                return entry.payload[0]
        return None

    def response(self, request_id: str) -> Optional[ResponseRecord]:
        for entry in self._by_request.get(request_id, []):
            if isinstance(entry.payload[0], ResponseRecord):
                return entry.payload[0]
        return None

    def clear(self) -> None:
        self.events.clear()
        self._by_request.clear()
