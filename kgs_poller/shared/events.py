"""
MODULE OVERVIEW:
The publish/subscribe registry every session is built on.

WHAT IS HAPPENING HERE:
Listeners are plain callables kept in one list per event name. Emission always
iterates over a snapshot, so a listener that calls `on`/`off`/`once` while an
event is being delivered changes what the *next* emission sees, never the one in
flight. Failures are never dropped: a listener that raises is redirected to the
"error" event, and an "error" nobody listens to is raised at the caller.
"""
from typing import Any, Callable

from .errors import UnhandledErrorEvent

Listener = Callable[..., Any]

class EventDistributor:
    """
    A minimal per-event listener registry.
    Registering the same callable twice means it runs twice per emission.
    """
    def __init__(self):
        self._listeners: dict[str, list[Listener]] = {}

    def event_names(self) -> list[str]:
        return list(self._listeners)

    def listeners(self, event: str) -> list[Listener]:
        """Returns a copy; mutating it never touches the registry."""
        return list(self._listeners.get(event, ()))

    def on(self, event: str, *listeners: Listener):
        """
        With listeners: append them to `event` in order and return self for chaining.
        Without: return a snapshot of what is currently registered for `event`.
        """
        if not listeners:
            return self.listeners(event)
        self._listeners.setdefault(event, []).extend(listeners)
        return self

    def off(self, event: str | Listener | None = None, listener: Listener | None = None):
        """
        off()                 -> forget every listener of every event
        off("name")           -> forget every listener of one event
        off(fn)               -> remove fn from every event it is registered on
        off("name", fn)       -> remove the first registration of fn on "name"
        """
        if event is not None and listener is not None:
            registered = self._listeners.get(event)
            if registered:
                for index, candidate in enumerate(registered):
                    if candidate == listener:
                        del registered[index]
                        break
        elif callable(event):
            for name in self.event_names():
                self.off(name, event)
        elif isinstance(event, str):
            self._listeners[event] = []
        else:
            self._listeners = {}
        return self

    def once(self, event: str, listener: Listener):
        def wrapper(*args):
            # Unregister first so a raising listener still runs only once
            self.off(event, wrapper)
            return listener(*args)

        return self.on(event, wrapper)

    def emit(self, event: str, *args: Any) -> int:
        listeners = self.listeners(event)

        if event == "error" and not listeners:
            error = args[0] if args else None
            if isinstance(error, BaseException):
                raise error
            raise UnhandledErrorEvent(error)

        for listener in listeners:
            try:
                listener(*args)
            except Exception as error:
                if event == "error":
                    raise
                self.emit("error", error)

        return len(listeners)
