"""Exception taxonomy separating configuration, transport, payload and per-record failures."""


class FinboardError(Exception):
    """Base class for all errors raised by finboard."""


class ConfigurationError(FinboardError):
    """Settings are missing or invalid; raised at startup."""


class UpstreamError(FinboardError):
    """An outbound fetch failed as a whole batch."""

    summary = "Upstream request failed"

    def __init__(self, message: str, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class TransportError(UpstreamError):
    """Network failure, timeout or non-2xx response."""

    summary = "Failed to reach upstream"

    def __init__(self, message: str, url: str = "", status_code: int | None = None) -> None:
        super().__init__(message, url=url)
        self.status_code = status_code


class MalformedPayloadError(UpstreamError):
    """Upstream answered but the JSON or XML body is not what we expect."""

    summary = "Malformed upstream payload"


class RecordParseError(FinboardError):
    """A single record inside a batch cannot be parsed."""
