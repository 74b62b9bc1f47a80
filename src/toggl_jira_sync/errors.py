"""Error types raised by the synchronizer."""

import httpx


class SyncError(Exception):
    """Base class for all synchronizer errors."""


class InvalidInput(SyncError, ValueError):
    """A required parameter is missing or malformed."""


class OutOfRange(SyncError, ValueError):
    """A parameter is outside its accepted bounds."""


class ConfigError(SyncError):
    """Required configuration is missing."""


class TransportFailure(SyncError):
    """A single call to a remote system failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize with the HTTP status of the failed call, if any."""
        super().__init__(message)
        self.status_code = status_code


class PartialResolutionFailure(SyncError):
    """A bulk lookup only resolved part of what was asked for.

    The mapping that could be resolved is available as ``resolved``.
    """

    def __init__(self, message: str, resolved: dict[str, str] | None = None) -> None:
        """Initialize with the mapping resolved before the failure."""
        super().__init__(message)
        self.resolved = resolved or {}


def raise_for_status(response: httpx.Response, action: str) -> None:
    """Raise TransportFailure with a readable message for an error response.

    Args:
        response: Response to check.
        action: What was being attempted, e.g. "create work log".

    Raises:
        TransportFailure: If the response status is 4xx or 5xx.
    """
    if not response.is_error:
        return

    detail = response.reason_phrase
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        if body.get("message"):
            detail = body["message"]
        elif body.get("errorMessages"):
            detail = "; ".join(body["errorMessages"])

    raise TransportFailure(
        f"Failed to {action}: {response.status_code} - {detail}",
        status_code=response.status_code,
    )
