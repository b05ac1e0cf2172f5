"""Long-polling client for the KGS game server access API."""
from loguru import logger

from kgs_poller.client.session import PollingSession
from kgs_poller.shared.client_utils import NullLogger, null_logger
from kgs_poller.shared.errors import (
    AlreadyLoggedInError,
    NotLoggedInError,
    PollerError,
    PollingError,
    UnhandledErrorEvent,
)
from kgs_poller.shared.events import EventDistributor
from kgs_poller.shared.models import Message, PollResponse

# Silent until the application opts in with logger.enable("kgs_poller")
logger.disable("kgs_poller")

__all__ = [
    "AlreadyLoggedInError",
    "EventDistributor",
    "Message",
    "NotLoggedInError",
    "NullLogger",
    "PollResponse",
    "PollerError",
    "PollingError",
    "PollingSession",
    "UnhandledErrorEvent",
    "null_logger",
]
