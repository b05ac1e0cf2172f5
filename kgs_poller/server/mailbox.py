"""
MODULE OVERVIEW:
The per-login state registry of the access API emulator.

WHAT IS HAPPENING HERE:
Every login gets a mailbox: a queue of pending messages and an asyncio.Event
that a held long-poll request sleeps on. `post()` appends to the queue and wakes
the waiter; `collect()` drains the queue once something is there or the hold
time runs out. A login is forgotten as soon as it has been handed a LOGOUT or a
LOGIN_FAILED* message, so the next poll of that client gets a 401.
"""

import asyncio
import uuid
from collections import deque
from dataclasses import dataclass, field
from loguru import logger

@dataclass
class Mailbox:
    name: str
    pending: deque[dict] = field(default_factory=deque)
    wakeup: asyncio.Event = field(default_factory=asyncio.Event)

class MailboxRegistry:
    def __init__(self):
        self.mailboxes: dict[str, Mailbox] = {}
        self.total_messages_posted = 0

    def open(self, name: str) -> str:
        session_id = str(uuid.uuid4())
        self.mailboxes[session_id] = Mailbox(name=name)
        logger.info(f"session_id={session_id} user={name} event=login")
        return session_id

    def get(self, session_id: str | None) -> Mailbox | None:
        if session_id is None:
            return None
        return self.mailboxes.get(session_id)

    def post(self, session_id: str, message: dict) -> None:
        mailbox = self.mailboxes[session_id]
        mailbox.pending.append(message)
        mailbox.wakeup.set()
        self.total_messages_posted += 1

    async def collect(self, session_id: str, timeout_s: float) -> list[dict]:
        """Hold until messages are queued or `timeout_s` elapses, then drain."""
        mailbox = self.mailboxes[session_id]
        if not mailbox.pending:
            mailbox.wakeup.clear()
            try:
                await asyncio.wait_for(mailbox.wakeup.wait(), timeout=timeout_s)
            except asyncio.TimeoutError:
                logger.debug(f"session_id={session_id} event=poll reason=timeout")

        messages = list(mailbox.pending)
        mailbox.pending.clear()

        if any(self._is_final(m) for m in messages):
            self.close(session_id)
        return messages

    def close(self, session_id: str | None) -> None:
        mailbox = self.mailboxes.pop(session_id, None)
        if mailbox is not None:
            logger.info(f"session_id={session_id} user={mailbox.name} event=logout")

    @staticmethod
    def _is_final(message: dict) -> bool:
        message_type = message.get("type", "")
        return message_type == "LOGOUT" or message_type.startswith("LOGIN_FAILED")
