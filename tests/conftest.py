"""Shared fixtures: a scripted access API behind httpx.MockTransport."""

import asyncio
from collections import deque

import httpx
import pytest

from kgs_poller import PollingSession, null_logger

ACCESS_URL = "http://access.test/api/access"

# A poll that blocks until the test releases it
HOLD = object()


def batch(*types: str) -> httpx.Response:
    return httpx.Response(200, json={"messages": [{"type": t} for t in types]})


def garbled() -> httpx.Response:
    """A 200 whose body claims gzip but is not, so reading it fails."""
    return httpx.Response(
        200,
        headers={"Content-Encoding": "gzip"},
        stream=httpx.ByteStream(b"not gzip at all"),
    )


class ScriptedAccessAPI:
    """MockTransport handler.

    POSTs answer with ``post_reply`` (a status code, a response, or an
    exception to raise).
    GETs replay ``polls`` in order; each item is a response, an exception to
    raise, or ``HOLD``. Once the script runs out every GET answers LOGOUT.
    """

    def __init__(self, *polls, post_reply=200):
        self.polls = deque(polls)
        self.post_reply = post_reply
        self.requests: list[httpx.Request] = []
        self.held = asyncio.Event()
        self.release = asyncio.Event()

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            if isinstance(self.post_reply, Exception):
                raise self.post_reply
            if isinstance(self.post_reply, httpx.Response):
                return self.post_reply
            return httpx.Response(self.post_reply)

        reply = self.polls.popleft() if self.polls else batch("LOGOUT")
        if reply is HOLD:
            self.held.set()
            await self.release.wait()
            return batch("LOGOUT")
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def gets(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]

    @property
    def posts(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]


@pytest.fixture
def make_session():
    def factory(api: ScriptedAccessAPI, **kwargs) -> PollingSession:
        client = httpx.AsyncClient(transport=httpx.MockTransport(api))
        kwargs.setdefault("logger", null_logger())
        return PollingSession(url=ACCESS_URL, client=client, **kwargs)

    return factory


@pytest.fixture
def login_message() -> dict:
    return {"type": "LOGIN", "name": "alice", "password": "secret", "locale": "en_US"}


def run(coro, timeout: float = 5.0):
    """Run a scenario on a fresh event loop, failing instead of hanging."""
    return asyncio.run(asyncio.wait_for(coro, timeout))
