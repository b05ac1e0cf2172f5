from typing import Any, Protocol

from .models import Message

JSON_CONTENT_TYPE = "application/json; charset=UTF-8"

class SessionLogger(Protocol):
    """Anything with loguru/stdlib-style severity methods can be injected."""
    def error(self, message: str, *args: Any, **kwargs: Any) -> Any: ...
    def warning(self, message: str, *args: Any, **kwargs: Any) -> Any: ...
    def info(self, message: str, *args: Any, **kwargs: Any) -> Any: ...
    def debug(self, message: str, *args: Any, **kwargs: Any) -> Any: ...

class NullLogger:
    def error(self, *args: Any, **kwargs: Any) -> None: pass
    def warning(self, *args: Any, **kwargs: Any) -> None: pass
    def info(self, *args: Any, **kwargs: Any) -> None: pass
    def log(self, *args: Any, **kwargs: Any) -> None: pass
    def debug(self, *args: Any, **kwargs: Any) -> None: pass

def null_logger() -> NullLogger:
    """A logger whose every severity method discards its input."""
    return NullLogger()

def make_session_stats() -> dict:
    """
    Returns a fresh stats dictionary with zeroed counters.
    Every session calls this once in __init__.
    Keys: messages_received, polls_issued, empty_responses,
          bytes_received, last_message_at, connected_at.
    connected_at is stamped each time an accepted POST starts the poll loop.
    """
    return {
        "messages_received": 0,
        "polls_issued": 0,
        "empty_responses": 0,
        "bytes_received": 0,
        "last_message_at": None,
        "connected_at": None
    }

def to_message(message: Message | dict[str, Any]) -> Message:
    """Accepts an outbound message either as a `Message` or as a plain mapping with a `type` key."""
    if isinstance(message, Message):
        return message
    return Message.model_validate(message)

def describe(message: Message) -> str:
    """Single log line fragment for a message travelling in either direction."""
    return f"{message.type}: {message.model_dump_json()}"
