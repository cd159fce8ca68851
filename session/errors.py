"""Exceptions raised by the session layer."""


class SessionError(Exception):
    """Base exception for session errors."""
    pass


class InvalidArgument(SessionError, ValueError):
    """An empty or missing nick/channel name was passed to a resolver."""
    pass


class MalformedProtocolData(SessionError):
    """An inbound message is missing something its command requires."""

    def __init__(self, command: str, reason: str):
        super().__init__(f"{command}: {reason}")
        self.command = command
        self.reason = reason


class ListenerFault(SessionError):
    """A listener raised while an event was being delivered to it."""

    def __init__(self, listener, event, original: BaseException):
        super().__init__(
            f"Listener {listener!r} failed on {type(event).__name__}: {original}"
        )
        self.listener = listener
        self.event = event
        self.original = original
