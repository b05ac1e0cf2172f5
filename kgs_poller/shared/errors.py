"""Exception hierarchy for kgs-poller.

Every error carries a ``type`` discriminant alongside its human-readable
``message``. Usage errors are raised straight out of ``PollingSession.send``;
connection failures are delivered through the ``on_error`` callback or the
``"error"`` event instead.
"""

from typing import Any

import httpx


class PollerError(Exception):
    """Base exception for all kgs-poller errors."""

    type: str = "kgsPollerError"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        if self.message:
            return f"{self.type}: {self.message}"
        return self.type


class NotLoggedInError(PollerError):
    """A non-LOGIN message was sent before the login was confirmed."""

    type = "kgsPollerNotLoggedInError"

    def __init__(self, message: str = "You have to log in first") -> None:
        super().__init__(message)


class AlreadyLoggedInError(PollerError):
    """A LOGIN message was sent on a session that is already logged in."""

    type = "kgsPollerAlreadyLoggedInError"

    def __init__(self, message: str = "You are already logged in") -> None:
        super().__init__(message)


class PollingError(PollerError, ConnectionError):
    """A request to the access API failed.

    ``response`` is the raw ``httpx.Response`` when the server answered with a
    status other than 200, and ``None`` when the request never completed (the
    transport exception is chained as ``__cause__`` in that case).
    """

    type = "kgsPollerPollingError"

    def __init__(self, response: httpx.Response | None = None, message: str | None = None) -> None:
        if message is None:
            message = f"{response.status_code} {response.reason_phrase}" if response is not None else ""
        super().__init__(message)
        self.response = response

    @property
    def status_code(self) -> int | None:
        return self.response.status_code if self.response is not None else None

    @property
    def reason_phrase(self) -> str:
        return self.response.reason_phrase if self.response is not None else ""


class UnhandledErrorEvent(PollerError):
    """Raised when a non-exception value is emitted on ``"error"`` with no listener."""

    type = "kgsPollerUnhandledErrorEvent"

    def __init__(self, value: Any) -> None:
        super().__init__(f"Unhandled error event ({value!r})")
        self.value = value
