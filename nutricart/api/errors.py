"""Exception hierarchy for NutriCart backend interactions."""

from __future__ import annotations

NETWORK_ERROR_MESSAGE = (
    "Network error: Unable to connect to server. "
    "Please check if the backend is running."
)


class NutriCartError(Exception):
    """Base class for all NutriCart client errors."""


class APIError(NutriCartError):
    """The backend answered with a non-2xx status.

    ``from_server`` is True when ``message`` came from the response body.
    """

    def __init__(
        self, status_code: int, message: str, from_server: bool = False
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.from_server = from_server


class NetworkError(NutriCartError):
    """The backend could not be reached at all."""

    def __init__(self, message: str = NETWORK_ERROR_MESSAGE) -> None:
        super().__init__(message)
        self.message = message


class AuthRequiredError(NutriCartError):
    """An operation needs a bearer token and none is available."""


class PaymentError(NutriCartError):
    """The payment step of a subscription upgrade failed."""
