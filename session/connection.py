"""
Session state for one IRC connection.

``Connection`` owns the joined channels, the listener registries and the
identity resolver. It is mutated by ``EventTranslator`` only; applications
read from it and register listeners on it.
"""

import logging
import weakref
from enum import Enum
from typing import Callable, List, Optional

from protocol.casemapping import DEFAULT_CASEMAPPING, irc_lower, is_supported
from protocol.hostmask import Hostmask, HostmaskLike
from .dispatcher import Dispatcher, FaultHandler, Listener
from .errors import InvalidArgument
from .events import Category
from .models import Channel, User

logger = logging.getLogger(__name__)

CHANNEL_PREFIXES = '#&+!'


class ConnectionState(Enum):
    IDLE = 'idle'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'
    DISCONNECTED = 'disconnected'


_TRANSITIONS = {
    ConnectionState.IDLE: {ConnectionState.CONNECTING, ConnectionState.CONNECTED,
                           ConnectionState.DISCONNECTED},
    ConnectionState.CONNECTING: {ConnectionState.CONNECTED,
                                 ConnectionState.DISCONNECTED},
    ConnectionState.CONNECTED: {ConnectionState.DISCONNECTED},
    ConnectionState.DISCONNECTED: set(),
}


class Connection:
    """IRC session state: joined channels, known users and listeners."""

    def __init__(
        self,
        nickname: Optional[str] = None,
        request_modes: bool = True,
        send: Optional[Callable[..., None]] = None,
        casemapping: str = DEFAULT_CASEMAPPING,
        on_fault: Optional[FaultHandler] = None,
        server_hostname: Optional[str] = None
    ):
        """
        Initialize a connection.

        Args:
            nickname: Our nick; replaced by the one the server confirms
            request_modes: Ask for channel modes right after joining
            send: Callable taking raw command parts, used for mode requests
            casemapping: Name folding until the server advertises one
            on_fault: Called with a ListenerFault when a listener raises
            server_hostname: Server we connect to; replaced by the name it
                registers under
        """
        self.nickname = nickname
        self.server_hostname = server_hostname
        self.request_modes = request_modes
        self.send = send
        self.casemapping = casemapping
        self.state = ConnectionState.IDLE
        self.dispatcher = Dispatcher(on_fault)

        self._channels = {}
        # Users nobody references any more drop out on their own.
        self._users = weakref.WeakValueDictionary()

    # Lifecycle

    def transition(self, state: ConnectionState):
        if state is self.state:
            return
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Cannot go from {self.state.value} to {state.value}"
            )
        logger.info("Connection %s -> %s", self.state.value, state.value)
        self.state = state

    def mark_connecting(self):
        self.transition(ConnectionState.CONNECTING)

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def is_closed(self) -> bool:
        return self.state is ConnectionState.DISCONNECTED

    # Names

    def fold(self, name: str) -> str:
        return irc_lower(name, self.casemapping)

    def is_me(self, nick: Optional[str]) -> bool:
        return bool(nick and self.nickname) and self.fold(nick) == self.fold(self.nickname)

    @staticmethod
    def is_channel_name(name: Optional[str]) -> bool:
        return bool(name) and name[0] in CHANNEL_PREFIXES

    def set_casemapping(self, casemapping: str):
        """Switch name folding and re-key everything already known."""
        if not is_supported(casemapping):
            logger.warning("Unknown CASEMAPPING %r, keeping %s",
                           casemapping, self.casemapping)
            return
        casemapping = casemapping.lower()
        if casemapping == self.casemapping:
            return
        self.casemapping = casemapping
        channels = list(self._channels.values())
        self._channels = {}
        for channel in channels:
            channel.set_casemapping(casemapping)
            self._channels[channel.key] = channel
        users = list(self._users.values())
        self._users = weakref.WeakValueDictionary(
            (self.fold(user.nick), user) for user in users
        )

    # Channels

    @property
    def channels(self) -> List[Channel]:
        """Joined channels sorted by name."""
        return [self._channels[key] for key in sorted(self._channels)]

    def get_channel(self, name: str) -> Optional[Channel]:
        """Return the joined channel called ``name``, or ``None``."""
        if not name:
            return None
        return self._channels.get(self.fold(name))

    def resolve_channel(self, name: str) -> Channel:
        """
        Return the joined channel called ``name``.

        If we are not in it, an empty placeholder is returned. Placeholders
        are not added to the connection.

        Raises:
            InvalidArgument: Empty channel name
        """
        if not name:
            raise InvalidArgument("Channel name must not be empty")
        channel = self._channels.get(self.fold(name))
        if channel is not None:
            return channel
        return Channel(name, casemapping=self.casemapping)

    def add_channel(self, name: str) -> Channel:
        """Record that we joined ``name``; joining twice keeps the old object."""
        channel = self.get_channel(name)
        if channel is None:
            channel = Channel(name, casemapping=self.casemapping)
            self._channels[channel.key] = channel
        return channel

    def remove_channel(self, name: str) -> Optional[Channel]:
        return self._channels.pop(self.fold(name), None)

    # Users

    def resolve_user(self, nick: str) -> User:
        """
        Return the ``User`` for ``nick``.

        Joined channels are searched first, then users still referenced
        elsewhere. Failing both, a new user that belongs to no channel is
        created.

        Raises:
            InvalidArgument: Empty nick
        """
        if not nick:
            raise InvalidArgument("Nick must not be empty")
        for channel in self.channels:
            user = channel.get_user(nick)
            if user is not None:
                self._users[self.fold(user.nick)] = user
                return user

        user = self._users.get(self.fold(nick))
        if user is None:
            user = User(nick)
            self._users[self.fold(nick)] = user
        return user

    def resolve_hostmask(self, hostmask: HostmaskLike) -> User:
        """
        Resolve the sender of a message and merge its username and host.

        Raises:
            InvalidArgument: The hostmask carries no nick
        """
        if hostmask is None:
            raise InvalidArgument("Hostmask must not be empty")
        hostmask = Hostmask.coerce(hostmask)
        user = self.resolve_user(hostmask.nick)
        user.update(hostmask)
        return user

    def rename_user(self, user: User, new_nick: str):
        """Give ``user`` a new nick, keeping the same object everywhere."""
        if not new_nick:
            raise InvalidArgument("Nick must not be empty")
        old_nick = user.nick
        if self._users.get(self.fold(old_nick)) is user:
            del self._users[self.fold(old_nick)]
        user.nick = new_nick
        self._users[self.fold(new_nick)] = user
        for channel in self._channels.values():
            channel.rename_user(old_nick, user)
        if self.is_me(old_nick):
            self.nickname = new_nick

    def remove_user(self, nick: str) -> List[Channel]:
        """Drop ``nick`` from every joined channel; returns the channels it left."""
        left = []
        for channel in self.channels:
            if channel.remove_user(nick) is not None:
                left.append(channel)
        return left

    def channels_of(self, user: User) -> List[Channel]:
        return [channel for channel in self.channels if user in channel]

    # Listeners

    def add_connection_listener(self, listener: Listener):
        self.dispatcher.register(Category.CONNECTION, listener)

    def remove_connection_listener(self, listener: Listener):
        self.dispatcher.unregister(Category.CONNECTION, listener)

    def add_private_message_listener(self, listener: Listener):
        self.dispatcher.register(Category.PRIVATE_MESSAGE, listener)

    def remove_private_message_listener(self, listener: Listener):
        self.dispatcher.unregister(Category.PRIVATE_MESSAGE, listener)

    def add_ctcp_listener(self, listener: Listener):
        self.dispatcher.register(Category.CTCP, listener)

    def remove_ctcp_listener(self, listener: Listener):
        self.dispatcher.unregister(Category.CTCP, listener)

    def add_unexpected_event_listener(self, listener: Listener):
        self.dispatcher.register(Category.UNEXPECTED, listener)

    def remove_unexpected_event_listener(self, listener: Listener):
        self.dispatcher.unregister(Category.UNEXPECTED, listener)

    def __repr__(self) -> str:
        return (
            f"<Connection nick={self.nickname!r} server={self.server_hostname!r} "
            f"state={self.state.value} "
            f"channels={[c.name for c in self.channels]}>"
        )
