"""Library-wide exception hierarchy."""


class MocknetError(Exception):
    """Base exception for all mocknet errors."""

    def __init__(self, message: str = "", code: str = ""):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidEventName(MocknetError):
    """Life-cycle event name outside the supported set."""

    def __init__(self, event_name: object, code: str = "INVALID_EVENT_NAME"):
        self.event_name = event_name
        super().__init__(f"Unknown life-cycle event: {event_name!r}", code)


class UnhandledRequestError(MocknetError):
    """Intercepted request had no matching handler under the "error" strategy."""

    def __init__(self, record, code: str = "UNHANDLED_REQUEST"):
        self.record = record
        super().__init__(
            f"Cannot bypass a request when using the \"error\" strategy "
            f"for unhandled requests: {record.method} {record.url}",
            code,
        )
