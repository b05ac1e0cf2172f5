"""
MODULE OVERVIEW:
The typed data structures exchanged with the access API, powered by Pydantic v2.

WHAT IS HAPPENING HERE:
The access API speaks in loosely-shaped messages: every message has a `type`
tag and whatever other fields that type needs. `Message` therefore validates
only the tag and keeps every other field verbatim, so nothing the server sends
is lost on the way to a listener. `PollResponse` is the envelope of one GET.
"""
from typing import Any
from pydantic import BaseModel, ConfigDict, field_validator

# WHAT IS HAPPENING HERE:
# `extra="allow"` keeps unknown fields as attributes (message.channelId) and in
# `model_extra`, and `model_dump()` returns them alongside `type`.
class Message(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str

    @property
    def payload(self) -> dict[str, Any]:
        return self.model_dump()

    def is_login_failure(self) -> bool:
        # LOGIN_FAILED_BAD_PASSWORD, LOGIN_FAILED_NO_SUCH_USER, ...
        return self.type.startswith("LOGIN_FAILED")

# WHAT IS HAPPENING HERE:
# A 200 poll body. `messages` may be missing (or null), which means "nothing new".
# Order is preserved: the session dispatches in exactly this order.
class PollResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    messages: list[Message] = []

    @field_validator("messages", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value
