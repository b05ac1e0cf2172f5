"""
MODULE OVERVIEW:
The long-polling session against the game server's access API.

WHAT IS HAPPENING HERE:
A LOGIN is POSTed once. When the server accepts it, the session starts an
unending chain of GET requests: each response is a batch of messages, and the
next GET is only issued once the previous batch has been fully handled, so
there is never more than one poll outstanding and batches arrive in order.
There is no delay and no backoff between polls; the server holds each GET
open until it has something to say. Any accepted POST that finds the loop
stopped starts it again, the same way the LOGIN did.

Each batch is handled in two passes. The first pass only looks for control
messages (LOGIN_SUCCESS, LOGIN_FAILED*, LOGOUT) and updates the login state.
The second pass publishes every message twice: once as "message" and once
under its own type. Because the state is settled before anything is published,
every listener of a batch sees the same `is_logged_in`, even a listener of a
message that came before the LOGOUT in that batch.

The loop ends on LOGOUT, on a non-200 answer, or when the request itself fails;
the two latter cases are published as an "error" event carrying a PollingError.
"""
import asyncio
from datetime import datetime, timezone
from typing import Any, Callable

import httpx
from loguru import logger as default_logger
from pydantic import ValidationError

from kgs_poller.shared.client_utils import (
    JSON_CONTENT_TYPE,
    SessionLogger,
    describe,
    make_session_stats,
    to_message,
)
from kgs_poller.shared.config import settings
from kgs_poller.shared.errors import AlreadyLoggedInError, NotLoggedInError, PollingError
from kgs_poller.shared.events import EventDistributor, Listener
from kgs_poller.shared.models import Message, PollResponse

ResponseCallback = Callable[[httpx.Response], Any]
ErrorCallback = Callable[[PollingError], Any]

class PollingSession:
    """
    Owns the login state and the poll loop, and republishes server traffic
    through an embedded EventDistributor.

    `client` is the HTTP capability. Pass your own `httpx.AsyncClient` to
    control transport, cookies or proxies; otherwise the session creates one
    and closes it in `aclose()`.
    """

    def __init__(
        self,
        url: str | None = None,
        logger: SessionLogger | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.events = EventDistributor()
        self._url = url or settings.ACCESS_URL
        self._logger = logger if logger is not None else default_logger

        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient(timeout=settings.POLL_TIMEOUT_S)

        self._keep_polling = False
        self._is_logged_in = False
        self._poll_task: asyncio.Task | None = None

        self.stats = make_session_stats()

    async def __aenter__(self) -> "PollingSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ==========================
    # CONFIGURATION
    # ==========================
    @property
    def url(self) -> str:
        return self._url

    @url.setter
    def url(self, value: str) -> None:
        self._url = value

    def set_url(self, value: str) -> "PollingSession":
        self.url = value
        return self

    @property
    def logger(self) -> SessionLogger:
        return self._logger

    @logger.setter
    def logger(self, value: SessionLogger) -> None:
        self._logger = value

    def set_logger(self, value: SessionLogger) -> "PollingSession":
        self.logger = value
        return self

    @property
    def is_logged_in(self) -> bool:
        return self._is_logged_in

    @property
    def is_polling(self) -> bool:
        return self._keep_polling

    # ==========================
    # EVENTS
    # ==========================
    def on(self, event: str, *listeners: Listener):
        registered = self.events.on(event, *listeners)
        return self if listeners else registered

    def off(self, event: str | Listener | None = None, listener: Listener | None = None) -> "PollingSession":
        self.events.off(event, listener)
        return self

    def once(self, event: str, listener: Listener) -> "PollingSession":
        self.events.once(event, listener)
        return self

    def emit(self, event: str, *args: Any) -> int:
        return self.events.emit(event, *args)

    def listeners(self, event: str) -> list[Listener]:
        return self.events.listeners(event)

    def event_names(self) -> list[str]:
        return self.events.event_names()

    # ==========================
    # OUTBOUND
    # ==========================
    async def send(
        self,
        message: Message | dict[str, Any],
        on_success: ResponseCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """
        POST one message to the access API.

        Raises AlreadyLoggedInError / NotLoggedInError before any I/O when the
        message does not fit the current login state. A failed request is
        reported to `on_error` only; it never becomes an "error" event.
        """
        message = to_message(message)

        if message.type == "LOGIN" and self._is_logged_in:
            raise AlreadyLoggedInError()
        if message.type != "LOGIN" and not self._is_logged_in:
            raise NotLoggedInError()

        self.logger.debug(f"-> {describe(message)}")

        url = self.url
        try:
            response = await self.client.post(
                url,
                content=message.model_dump_json(),
                headers={"Content-Type": JSON_CONTENT_TYPE},
            )
        except httpx.RequestError as exc:
            self._reject(PollingError(), on_error, cause=exc)
            return

        if response.status_code != 200:
            self._reject(PollingError(response), on_error)
            return

        if not self._keep_polling:
            self.logger.info(f"Start polling {url}")
            self.stats["connected_at"] = datetime.now(timezone.utc).isoformat()
            self._keep_polling = True
            # Confirmation of the login arrives through the poll stream
            self._is_logged_in = False
            self._poll_task = asyncio.create_task(self._poll(url))

        if on_success is not None:
            on_success(response)

    def _reject(self, error: PollingError, on_error: ErrorCallback | None, cause: Exception | None = None) -> None:
        error.__cause__ = cause
        self.logger.warning(f"Request failed: {error}")
        self._keep_polling = False
        self._is_logged_in = False
        if on_error is not None:
            on_error(error)

    # ==========================
    # POLL LOOP
    # ==========================
    async def _poll(self, url: str) -> None:
        try:
            while True:
                messages = await self._fetch(url)
                if messages is None:
                    return

                self._apply_control_messages(messages)
                self._dispatch(messages)

                if not self._keep_polling:
                    return
                self.logger.debug("Keep polling")
        except Exception:
            # An "error" nobody handled escaped a listener; the loop is gone
            self._keep_polling = False
            self._is_logged_in = False
            raise

    async def _fetch(self, url: str) -> list[Message] | None:
        """One GET. Returns the batch, or None after publishing the failure."""
        self.stats["polls_issued"] += 1
        try:
            response = await self.client.get(url)
        except httpx.RequestError as exc:
            self._fail(PollingError(), cause=exc)
            return None

        if response.status_code != 200:
            self._fail(PollingError(response))
            return None

        try:
            poll_resp = PollResponse.model_validate_json(response.content)
        except ValidationError as exc:
            self._fail(PollingError(response, message="Malformed poll response"), cause=exc)
            return None

        self.stats["bytes_received"] += len(response.content)
        if not poll_resp.messages:
            self.stats["empty_responses"] += 1
        return poll_resp.messages

    def _fail(self, error: PollingError, cause: Exception | None = None) -> None:
        error.__cause__ = cause
        self.logger.warning(f"Polling failed: {error}")
        self._keep_polling = False
        self._is_logged_in = False
        self.emit("error", error)

    def _apply_control_messages(self, messages: list[Message]) -> None:
        for message in messages:
            if message.type == "LOGIN_SUCCESS":
                self._keep_polling = True
                self._is_logged_in = True
            elif message.is_login_failure():
                # The server may still have something to say; keep polling
                self._keep_polling = True
                self._is_logged_in = False
            elif message.type == "LOGOUT":
                self.logger.info("Stop polling")
                self._keep_polling = False
                self._is_logged_in = False

    def _dispatch(self, messages: list[Message]) -> None:
        for message in messages:
            self.stats["messages_received"] += 1
            self.stats["last_message_at"] = datetime.now(timezone.utc).isoformat()
            self.logger.debug(f"<- {describe(message)}")
            self.emit("message", message)
            self.emit(message.type, message)

    # ==========================
    # LIFECYCLE
    # ==========================
    async def wait(self) -> None:
        """Wait for the current poll loop to end. Re-raises whatever ended it abnormally."""
        if self._poll_task is not None:
            await self._poll_task

    async def aclose(self) -> None:
        task, self._poll_task = self._poll_task, None
        self._keep_polling = False
        self._is_logged_in = False

        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if self._owns_client:
            await self.client.aclose()
