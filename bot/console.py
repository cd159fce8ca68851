"""Console output for session events."""

from session import Connection
from session.events import (
    ChannelJoined,
    ChannelLeft,
    ConnectionEstablished,
    ConnectionLost,
    CtcpEvent,
    ErrorReceived,
    Invited,
    MotdReceived,
    PrivateMessageEvent,
    UnexpectedEvent,
)


def describe(event) -> str:
    """One status line for an event, or "" if it isn't worth printing."""
    if isinstance(event, ConnectionEstablished):
        return f"✓ Connected to server as {event.connection.nickname}"
    if isinstance(event, ConnectionLost):
        return "✗ Connection lost"
    if isinstance(event, ErrorReceived):
        return f"✗ IRC ERROR: {event.message.text}"
    if isinstance(event, MotdReceived):
        return f"✓ MOTD received ({len(event.lines)} lines)"
    if isinstance(event, ChannelJoined):
        return f"✓ Successfully joined {event.channel.name}"
    if isinstance(event, ChannelLeft):
        if event.kicked_by is not None:
            return f"✗ Kicked from {event.channel.name} by {event.kicked_by.nick}: {event.reason or ''}"
        return f"  Left {event.channel.name}"
    if isinstance(event, Invited):
        return f"  {event.user.nick} invited us to {event.channel.name}"
    if isinstance(event, PrivateMessageEvent):
        where = event.destination_channel.name if event.is_channel_message else event.sender.nick
        return f"← [{where}] <{event.sender.nick}> {event.message.text}"
    if isinstance(event, CtcpEvent):
        return f"← CTCP {event.command} from {event.sender.nick}: {event.arguments}"
    if isinstance(event, UnexpectedEvent) and event.error:
        return f"✗ Malformed {event.command}: {event.error}"
    return ""


def print_event(event):
    line = describe(event)
    if line:
        print(line)


def attach(connection: Connection):
    """Print lifecycle, message and CTCP events as they arrive."""
    connection.add_connection_listener(print_event)
    connection.add_private_message_listener(print_event)
    connection.add_ctcp_listener(print_event)
    connection.add_unexpected_event_listener(print_event)
