"""
Translate generic IRC messages into session state and typed events.

The transport hands every inbound line to ``EventTranslator.handle`` as
``(hostmask, command, args)``, with the trailing parameter kept whole.
Each message updates the ``Connection`` and produces at most one event,
which is published on the connection's dispatcher.
"""

import logging
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence

from protocol import ctcp
from protocol.hostmask import Hostmask, HostmaskLike
from protocol.replies import ReplyCode, ReplyRegistry, default_registry, parse_numeric
from .connection import Connection, ConnectionState
from .errors import InvalidArgument, MalformedProtocolData
from .events import (
    ChannelJoined,
    ChannelLeft,
    ConnectionEstablished,
    ConnectionLost,
    CtcpReplyReceived,
    CtcpRequestReceived,
    ErrorReceived,
    Event,
    Invited,
    MotdReceived,
    NoticeReceived,
    PingReceived,
    PrivmsgReceived,
    UnexpectedEvent,
)
from .models import Channel, Message

logger = logging.getLogger(__name__)

NICK_PREFIXES = '@+%~&!'
PARAM_MODES = 'kl'

# Returned by handlers that keep the message for a later event (MOTD lines).
_DEFERRED = object()


class Inbound(NamedTuple):
    """One message as received from the transport."""
    sender: Hostmask
    command: str
    args: List[str]
    reply: Optional[ReplyCode] = None

    def param(self, index: int, what: str) -> str:
        try:
            value = self.args[index]
        except IndexError:
            raise MalformedProtocolData(
                self.command, f"missing {what} (got {len(self.args)} params)"
            ) from None
        if value is None or value == "":
            raise MalformedProtocolData(self.command, f"empty {what}")
        return value

    def optional(self, index: int) -> Optional[str]:
        return self.args[index] if len(self.args) > index else None

    def sender_nick(self) -> str:
        if not self.sender.nick:
            raise MalformedProtocolData(self.command, "no sender")
        return self.sender.nick


def strip_motd_line(line: str) -> str:
    """Drop the "- " servers put in front of every MOTD line."""
    if line.startswith('- '):
        return line[2:]
    if line.startswith('-'):
        return line[1:]
    return line


def apply_mode_flags(current: Optional[str], changes: str) -> str:
    """
    Apply a parameterless mode change like "+m-l" to a mode string.

    The key and limit parameters in the current string belong to their
    letters, in order; removing ``k`` or ``l`` drops only its own parameter.
    """
    tokens = (current or '+').split()
    letters = list(tokens[0].lstrip('+'))
    values = iter(tokens[1:])
    params = {char: next(values, None) for char in letters if char in PARAM_MODES}
    adding = True
    for char in changes:
        if char == '+':
            adding = True
        elif char == '-':
            adding = False
        elif adding and char not in letters:
            letters.append(char)
        elif not adding and char in letters:
            letters.remove(char)
            params.pop(char, None)
    kept = [params[char] for char in letters if params.get(char)]
    return ' '.join(['+' + ''.join(letters)] + kept)


class EventTranslator:
    """Turns transport callbacks into ``Connection`` updates and events."""

    def __init__(self, connection: Connection, registry: Optional[ReplyRegistry] = None):
        self.connection = connection
        self.registry = registry if registry is not None else default_registry()
        self._motd: List[str] = []

        self._commands: Dict[str, Callable] = {
            'PING': self._on_ping,
            'ERROR': self._on_error,
            'JOIN': self._on_join,
            'PART': self._on_part,
            'KICK': self._on_kick,
            'QUIT': self._on_quit,
            'NICK': self._on_nick,
            'INVITE': self._on_invite,
            'TOPIC': self._on_topic,
            'MODE': self._on_mode,
            'PRIVMSG': self._on_message,
            'NOTICE': self._on_message,
        }
        self._numerics: Dict[str, Callable] = {
            'RPL_WELCOME': self._on_welcome,
            'RPL_ISUPPORT': self._on_isupport,
            'RPL_MOTDSTART': self._on_motd_start,
            'RPL_MOTD': self._on_motd_line,
            'RPL_ENDOFMOTD': self._on_motd_end,
            'ERR_NOMOTD': self._on_no_motd,
            'RPL_CHANNELMODEIS': self._on_channel_mode_is,
            'RPL_NOTOPIC': self._on_no_topic,
            'RPL_TOPIC': self._on_topic_reply,
            'RPL_NAMREPLY': self._on_names,
            'RPL_WHOISUSER': self._on_whois_user,
            'RPL_WHOISOPERATOR': self._on_whois_operator,
            'RPL_AWAY': self._on_away,
            'RPL_UNAWAY': self._on_unaway,
            'RPL_NOWAWAY': self._on_now_away,
            'RPL_WHOREPLY': self._on_who_reply,
        }

    def handle(self, hostmask: HostmaskLike, command: str, args: Sequence[str]) -> List[Event]:
        """
        Process one inbound message.

        Messages nothing else claims are published as ``UnexpectedEvent``;
        malformed ones too, with ``error`` set.

        Returns:
            The events published for this message
        """
        if self.connection.is_closed:
            logger.warning("Dropping %s received after disconnect", command)
            return []

        inbound = Inbound(Hostmask.coerce(hostmask), (command or '').upper(), list(args or ()))
        code = parse_numeric(inbound.command)
        if code is not None:
            reply = self.registry.lookup(code)
            inbound = inbound._replace(reply=reply)
            handler = self._numerics.get(reply.name) if reply else None
        else:
            handler = self._commands.get(inbound.command)

        logger.debug("← %s %s %s", inbound.sender, inbound.command, inbound.args)
        try:
            if handler is None:
                result = self._unexpected(inbound)
            else:
                result = handler(inbound)
        except (MalformedProtocolData, InvalidArgument) as e:
            logger.warning("Malformed %s message: %s", inbound.command, e)
            result = self._unexpected(inbound, error=str(e))

        if result is _DEFERRED:
            return []
        if result is None:
            result = self._unexpected(inbound, handled=True)
        self._publish(result)
        return [result]

    def connection_lost(self) -> Optional[ConnectionLost]:
        """Report that the transport went away. Only the first call counts."""
        if self.connection.is_closed:
            return None
        self.connection.transition(ConnectionState.DISCONNECTED)
        self._motd = []
        event = ConnectionLost(self.connection)
        self._publish(event)
        return event

    def _publish(self, event: Event):
        self.connection.dispatcher.publish(event.category, event)

    def _unexpected(self, inbound: Inbound, handled: bool = False,
                    error: Optional[str] = None) -> UnexpectedEvent:
        return UnexpectedEvent(
            self.connection,
            command=inbound.command,
            args=tuple(inbound.args),
            sender=inbound.sender,
            reply=inbound.reply,
            handled=handled,
            error=error
        )

    # Registration and server messages

    def _on_welcome(self, inbound: Inbound):
        nick = inbound.optional(0)
        if nick:
            self.connection.nickname = nick
        if inbound.sender.nick:
            self.connection.server_hostname = inbound.sender.nick
        self.connection.transition(ConnectionState.CONNECTED)
        return ConnectionEstablished(self.connection)

    def _on_isupport(self, inbound: Inbound):
        # args: <nick> <token>... :are supported by this server
        for token in inbound.args[1:-1]:
            key, _, value = token.partition('=')
            if key.upper() == 'CASEMAPPING' and value:
                self.connection.set_casemapping(value)

    def _on_motd_start(self, inbound: Inbound):
        self._motd = []
        return _DEFERRED

    def _on_motd_line(self, inbound: Inbound):
        line = inbound.args[-1] if inbound.args else ""
        self._motd.append(strip_motd_line(line))
        return _DEFERRED

    def _on_motd_end(self, inbound: Inbound):
        lines, self._motd = tuple(self._motd), []
        return MotdReceived(self.connection, lines)

    def _on_no_motd(self, inbound: Inbound):
        self._motd = []
        return MotdReceived(self.connection, ())

    def _on_ping(self, inbound: Inbound):
        return PingReceived(self.connection, Message.from_args(inbound.command, inbound.args))

    def _on_error(self, inbound: Inbound):
        return ErrorReceived(self.connection, Message.from_args(inbound.command, inbound.args))

    # Membership

    def _joined_channel(self, inbound: Inbound, name: str) -> Channel:
        channel = self.connection.get_channel(name)
        if channel is None:
            raise MalformedProtocolData(inbound.command, f"not in channel {name}")
        return channel

    def _on_join(self, inbound: Inbound):
        nick = inbound.sender_nick()
        name = inbound.param(0, "channel")
        if self.connection.is_me(nick):
            if self.connection.get_channel(name) is not None:
                logger.debug("Duplicate JOIN for %s", name)
                return None
            channel = self.connection.add_channel(name)
            logger.info("Joined %s", channel.name)
            if self.connection.request_modes and self.connection.send is not None:
                self.connection.send('MODE', channel.name)
            return ChannelJoined(self.connection, channel)

        channel = self._joined_channel(inbound, name)
        channel.add_user(self.connection.resolve_hostmask(inbound.sender))
        return None

    def _on_part(self, inbound: Inbound):
        nick = inbound.sender_nick()
        name = inbound.param(0, "channel")
        if self.connection.is_me(nick):
            channel = self.connection.remove_channel(name)
            if channel is None:
                raise MalformedProtocolData(inbound.command, f"not in channel {name}")
            logger.info("Left %s", channel.name)
            return ChannelLeft(self.connection, channel, reason=inbound.optional(1))

        self._joined_channel(inbound, name).remove_user(nick)
        return None

    def _on_kick(self, inbound: Inbound):
        name = inbound.param(0, "channel")
        target = inbound.param(1, "kicked nick")
        channel = self._joined_channel(inbound, name)
        if self.connection.is_me(target):
            kicker = None
            if inbound.sender.nick:
                kicker = self.connection.resolve_hostmask(inbound.sender)
            self.connection.remove_channel(name)
            logger.info("Kicked from %s", channel.name)
            return ChannelLeft(self.connection, channel, kicked_by=kicker,
                               reason=inbound.optional(2))

        channel.remove_user(target)
        return None

    def _on_quit(self, inbound: Inbound):
        nick = inbound.sender_nick()
        if not self.connection.is_me(nick):
            self.connection.remove_user(nick)

    def _on_nick(self, inbound: Inbound):
        new_nick = inbound.param(0, "new nick")
        user = self.connection.resolve_hostmask(inbound.sender)
        self.connection.rename_user(user, new_nick)

    def _on_invite(self, inbound: Inbound):
        name = inbound.param(1, "channel")
        user = self.connection.resolve_hostmask(inbound.sender)
        return Invited(self.connection, self.connection.resolve_channel(name), user)

    # Channel details

    def _on_topic(self, inbound: Inbound):
        channel = self._joined_channel(inbound, inbound.param(0, "channel"))
        channel.topic = inbound.optional(1) or None

    def _on_mode(self, inbound: Inbound):
        target = inbound.param(0, "target")
        channel = self.connection.get_channel(target)
        # Changes with parameters (+o nick, +k key...) don't alter the flags we track
        if channel is not None and len(inbound.args) == 2:
            channel.mode = apply_mode_flags(channel.mode, inbound.args[1])

    def _on_channel_mode_is(self, inbound: Inbound):
        channel = self.connection.get_channel(inbound.param(1, "channel"))
        if channel is not None:
            channel.mode = ' '.join(inbound.args[2:]) or None

    def _on_no_topic(self, inbound: Inbound):
        channel = self.connection.get_channel(inbound.param(1, "channel"))
        if channel is not None:
            channel.topic = None

    def _on_topic_reply(self, inbound: Inbound):
        channel = self.connection.get_channel(inbound.param(1, "channel"))
        if channel is not None:
            channel.topic = inbound.optional(2) or None

    def _on_names(self, inbound: Inbound):
        # <nick> [<symbol>] <channel> :<names>
        if len(inbound.args) < 3:
            raise MalformedProtocolData(inbound.command, "missing channel or names")
        channel = self.connection.get_channel(inbound.args[-2])
        if channel is None:
            return None
        for entry in inbound.args[-1].split():
            hostmask = Hostmask.parse(entry.lstrip(NICK_PREFIXES))
            if hostmask.nick:
                channel.add_user(self.connection.resolve_hostmask(hostmask))

    # Users

    def _on_whois_user(self, inbound: Inbound):
        # <nick> <target> <user> <host> * :<real name>
        user = self.connection.resolve_user(inbound.param(1, "nick"))
        user.merge(
            username=inbound.param(2, "username"),
            hostname=inbound.param(3, "host"),
            realname=inbound.optional(5)
        )

    def _on_whois_operator(self, inbound: Inbound):
        self.connection.resolve_user(inbound.param(1, "nick")).merge(operator=True)

    def _on_away(self, inbound: Inbound):
        user = self.connection.resolve_user(inbound.param(1, "nick"))
        user.set_away(inbound.optional(2) or "")

    def _on_unaway(self, inbound: Inbound):
        if self.connection.nickname:
            self.connection.resolve_user(self.connection.nickname).set_away(None)

    def _on_now_away(self, inbound: Inbound):
        if self.connection.nickname:
            self.connection.resolve_user(self.connection.nickname).merge(away=True)

    def _on_who_reply(self, inbound: Inbound):
        # <nick> <channel> <user> <host> <server> <target> <flags> :<hops> <real name>
        user = self.connection.resolve_user(inbound.param(5, "nick"))
        flags = inbound.optional(6) or ""
        trailing = inbound.optional(7) or ""
        user.merge(
            username=inbound.param(2, "username"),
            hostname=inbound.param(3, "host"),
            realname=trailing.split(' ', 1)[1] if ' ' in trailing else None,
            operator='*' in flags
        )
        if 'G' in flags:
            user.merge(away=True)
        else:
            user.set_away(None)
        channel = self.connection.get_channel(inbound.args[1])
        if channel is not None:
            channel.add_user(user)

    # Messages

    def _on_message(self, inbound: Inbound):
        target = inbound.param(0, "target")
        text = inbound.args[1] if len(inbound.args) > 1 else None
        if text is None:
            raise MalformedProtocolData(inbound.command, "missing text")
        inbound.sender_nick()

        destination_user = destination_channel = None
        if self.connection.is_channel_name(target):
            destination_channel = self.connection.get_channel(target)
            if destination_channel is None:
                return self._unexpected(inbound)
        elif self.connection.is_me(target):
            destination_user = self.connection.resolve_user(self.connection.nickname)
        else:
            return self._unexpected(inbound)

        sender = self.connection.resolve_hostmask(inbound.sender)

        if ctcp.is_ctcp(text):
            command, arguments = ctcp.unpack(text)
            event_type = CtcpRequestReceived if inbound.command == 'PRIVMSG' else CtcpReplyReceived
            return event_type(
                self.connection,
                sender=sender,
                destination_user=destination_user,
                destination_channel=destination_channel,
                command=command,
                arguments=arguments
            )

        event_type = PrivmsgReceived if inbound.command == 'PRIVMSG' else NoticeReceived
        return event_type(
            self.connection,
            sender=sender,
            destination_user=destination_user,
            destination_channel=destination_channel,
            message=Message.from_args(inbound.command, inbound.args)
        )
