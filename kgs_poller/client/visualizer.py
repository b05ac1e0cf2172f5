"""
MODULE OVERVIEW:
The Rich Terminal Dashboard.

WHAT IS HAPPENING HERE:
The dashboard is just another set of listeners on the session: "message" feeds
the table, the control message types feed the timeline, and "error" records the
failure (which also keeps an unhandled "error" from being raised out of the poll
loop). The Live layout is redrawn from that state while the poll loop runs.
"""

from rich.live import Live
from rich.layout import Layout
from rich.panel import Panel
from rich.table import Table
from collections import deque
from datetime import datetime
import asyncio

from kgs_poller.client.session import PollingSession
from kgs_poller.shared.models import Message

CONTROL_INFO = {
    "LOGIN_SUCCESS": "Login confirmed; polling continues.",
    "LOGOUT": "Server ended the session; polling stops.",
}

class Visualizer:
    def __init__(self, session: PollingSession):
        self.session = session
        self.recent_messages = deque(maxlen=10)
        self.timeline = deque(maxlen=5)
        self.last_error: Exception | None = None

    def attach(self) -> None:
        self.session.on("message", self.on_message)
        self.session.on("LOGIN_SUCCESS", self.on_control)
        self.session.on("LOGOUT", self.on_control)
        self.session.on("error", self.on_error)

    def detach(self) -> None:
        self.session.off(self.on_message)
        self.session.off(self.on_control)
        self.session.off(self.on_error)

    @property
    def status(self) -> str:
        if self.last_error is not None:
            return "FAILED"
        if self.session.is_logged_in:
            return "ACTIVE"
        if self.session.is_polling:
            return "WAITING"
        return "CLOSED"

    def _stamp(self, text: str) -> None:
        ts = datetime.now().strftime("%H:%M:%S")
        self.timeline.appendleft(f"[{ts}] {text}")

    def on_message(self, message: Message):
        ts = datetime.now().strftime("%H:%M:%S")
        extra = message.model_extra or {}
        payload_str = str(extra)[:40] + "..." if len(str(extra)) > 40 else str(extra)
        self.recent_messages.appendleft((ts, message.type, payload_str))
        if message.is_login_failure():
            self._stamp(f"{message.type}: login rejected")

    def on_control(self, message: Message):
        self._stamp(CONTROL_INFO.get(message.type, message.type))

    def on_error(self, error: Exception):
        self.last_error = error
        self._stamp(f"Error: {error}")

    def generate_layout(self) -> Layout:
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="main")
        )
        layout["main"].split_row(
            Layout(name="left", ratio=2),
            Layout(name="right", ratio=1)
        )
        layout["right"].split_column(
            Layout(name="stats"),
            Layout(name="timeline")
        )

        status = self.status
        color = "green" if status == "ACTIVE" else "yellow" if status == "WAITING" else "red"
        layout["header"].update(Panel(f"[{color} bold]Endpoint: {self.session.url} | Status: {status}[/]", style=color))

        table = Table(title="Inbound Messages", expand=True)
        table.add_column("Time", justify="left", style="cyan", no_wrap=True)
        table.add_column("Type", style="magenta")
        table.add_column("Payload", style="green")

        for m in self.recent_messages:
            table.add_row(m[0], m[1], m[2])

        layout["left"].update(Panel(table, title="Feed"))

        stats = self.session.stats
        stats_text = (
            f"Messages Received: {stats['messages_received']}\n"
            f"Polls Issued: {stats['polls_issued']}\n"
            f"Empty Responses: {stats['empty_responses']}\n"
            f"Bytes Received: {stats['bytes_received']}"
        )
        layout["stats"].update(Panel(stats_text, title="Session Stats"))

        layout["timeline"].update(Panel("\n".join(self.timeline), title="Timeline"))

        return layout

    async def run(self, login: Message | dict, duration_s: float):
        """Log in, draw until the poll loop ends or `duration_s` passes, then log out."""
        self.attach()
        await self.session.send(login, on_error=self.on_error)
        self._stamp("LOGIN sent")

        loop = asyncio.get_running_loop()
        deadline = loop.time() + duration_s

        with Live(self.generate_layout(), refresh_per_second=4) as live:
            while self.session.is_polling and loop.time() < deadline:
                live.update(self.generate_layout())
                await asyncio.sleep(0.25)

            if self.session.is_logged_in:
                await self.session.send({"type": "LOGOUT"}, on_error=self.on_error)
                self._stamp("LOGOUT sent")
                try:
                    await asyncio.wait_for(self.session.wait(), timeout=5.0)
                except asyncio.TimeoutError:
                    pass
            live.update(self.generate_layout())

        self.detach()
