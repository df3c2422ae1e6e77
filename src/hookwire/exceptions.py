"""Custom exception classes for the hookwire library."""

import httpx


class HookwireError(Exception):
    """Base exception class for all hookwire errors."""

    def __init__(
        self,
        message: str,
        *,
        response: httpx.Response | None = None,
        request: httpx.Request | None = None,
    ):
        """Initializes the base exception.

        Args:
            message: The error message.
            response: Optional httpx.Response object associated with the error.
            request: Optional httpx.Request object associated with the error.
        """
        super().__init__(message)
        self.message = message
        self.response = response
        self.request = request

    def __str__(self) -> str:
        if self.response is not None:
            url_info = getattr(getattr(self.response, "_request", None), "url", "N/A")
            return (
                f"{self.message} (Status: {self.response.status_code}, URL: {url_info})"
            )
        if isinstance(self.request, httpx.Request):
            return f"{self.message} (URL: {self.request.url})"
        return self.message


class ValidationError(HookwireError):
    """Represents an invalid request descriptor.

    Raised at construction time, before any lifecycle stage runs, e.g. when both
    a form body and a JSON body are given, or files are attached to a JSON body.
    """

    def __init__(self, message: str):
        super().__init__(message)


class ConfigurationError(HookwireError):
    """Represents invalid process-wide settings, e.g. a malformed ``HOOKWIRE_*``
    environment variable picked up by ``get_settings()``."""

    def __init__(self, message: str):
        super().__init__(message)


class AssessorError(HookwireError):
    """Represents an assessor that returned something other than a verdict."""


class TimeoutError(HookwireError):
    """Represents a transmission that did not finish within the resolved timeout.

    Never raised out of ``send()``; it is recorded on the descriptor's ``error``
    slot before the timeout hook runs.
    """

    def __init__(
        self,
        message: str,
        *,
        request: httpx.Request | None = None,
        timeout: float | None = None,
    ):
        """Initializes the TimeoutError.

        Args:
            message: The error message.
            request: The httpx.Request that timed out.
            timeout: The resolved timeout in seconds, if the lifecycle timer fired.
        """
        super().__init__(message, request=request)
        self.timeout = timeout


class NetworkError(HookwireError):
    """Represents a connection-level failure reported by the transport.

    Never raised out of ``send()``; it is recorded on the descriptor's ``error``
    slot before the connection-failure hook runs.
    """

    def __init__(self, message: str, *, request: httpx.Request | None = None):
        super().__init__(message, request=request)
