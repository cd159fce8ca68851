"""
Typed session events.

Every event belongs to one ``Category``; listeners subscribe per category
and receive the event objects defined here.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Optional, Tuple

from protocol.ctcp import split_query_answer
from protocol.hostmask import Hostmask
from protocol.replies import ReplyCode, parse_numeric
from .models import Channel, Message, User

if TYPE_CHECKING:
    from .connection import Connection


class Category(Enum):
    CONNECTION = 'connection'
    PRIVATE_MESSAGE = 'private_message'
    CTCP = 'ctcp'
    UNEXPECTED = 'unexpected'


@dataclass(frozen=True)
class Event:
    category: ClassVar[Category]
    connection: 'Connection' = field(repr=False, compare=False)


# Connection lifecycle

@dataclass(frozen=True)
class ConnectionEvent(Event):
    category: ClassVar[Category] = Category.CONNECTION


@dataclass(frozen=True)
class ConnectionEstablished(ConnectionEvent):
    pass


@dataclass(frozen=True)
class ConnectionLost(ConnectionEvent):
    pass


@dataclass(frozen=True)
class ErrorReceived(ConnectionEvent):
    message: Message


@dataclass(frozen=True)
class PingReceived(ConnectionEvent):
    message: Message


@dataclass(frozen=True)
class MotdReceived(ConnectionEvent):
    lines: Tuple[str, ...]


@dataclass(frozen=True)
class ChannelJoined(ConnectionEvent):
    channel: Channel


@dataclass(frozen=True)
class ChannelLeft(ConnectionEvent):
    """The local user parted, or was kicked when ``kicked_by`` is set."""
    channel: Channel
    kicked_by: Optional[User] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class Invited(ConnectionEvent):
    channel: Channel
    user: User


# Private messages

@dataclass(frozen=True)
class PrivateMessageEvent(Event):
    """
    A PRIVMSG or NOTICE sent to us or to a channel we are in.

    Exactly one of ``destination_user`` and ``destination_channel`` is set.
    """
    category: ClassVar[Category] = Category.PRIVATE_MESSAGE
    sender: User
    destination_user: Optional[User]
    destination_channel: Optional[Channel]
    message: Message

    @property
    def destination(self):
        if self.destination_channel is not None:
            return self.destination_channel
        return self.destination_user

    @property
    def is_channel_message(self) -> bool:
        return self.destination_channel is not None


@dataclass(frozen=True)
class PrivmsgReceived(PrivateMessageEvent):
    pass


@dataclass(frozen=True)
class NoticeReceived(PrivateMessageEvent):
    pass


# CTCP

@dataclass(frozen=True)
class CtcpEvent(Event):
    category: ClassVar[Category] = Category.CTCP
    sender: User
    destination_user: Optional[User]
    destination_channel: Optional[Channel]
    command: str
    arguments: str


@dataclass(frozen=True)
class CtcpRequestReceived(CtcpEvent):
    """A CTCP query carried in a PRIVMSG (ACTION included)."""
    pass


@dataclass(frozen=True)
class CtcpReplyReceived(CtcpEvent):
    """
    A CTCP reply carried in a NOTICE.

    For ``ERRMSG xyz :bla`` the query is "xyz" and the answer "bla". Replies
    without the " :" separator leave both ``None``; ``arguments`` still
    holds the text.
    """

    @property
    def query(self) -> Optional[str]:
        return split_query_answer(self.arguments)[0]

    @property
    def answer(self) -> Optional[str]:
        return split_query_answer(self.arguments)[1]


# Everything else

@dataclass(frozen=True)
class UnexpectedEvent(Event):
    """
    A message with no typed notification.

    ``handled`` is true when the message still updated the session model
    (NAMES, NICK, TOPIC...). ``error`` is set when it was malformed.
    """
    category: ClassVar[Category] = Category.UNEXPECTED
    command: str
    args: Tuple[Any, ...]
    sender: Optional[Hostmask] = None
    reply: Optional[ReplyCode] = None
    handled: bool = False
    error: Optional[str] = None

    @property
    def code(self) -> Optional[int]:
        return parse_numeric(self.command)
