"""Sender descriptors (nick!user@host)."""

from typing import NamedTuple, Optional, Sequence, Union

HostmaskLike = Union['Hostmask', Sequence[str], str, None]


def _present(value: Optional[str]) -> Optional[str]:
    """Treat empty strings and the '*' placeholder as unknown."""
    if not value or value == '*':
        return None
    return value


class Hostmask(NamedTuple):
    """
    The prefix of an inbound IRC line.

    ``user`` and ``host`` are either both known or both ``None``.
    Server-originated lines carry only a name in ``nick``.
    """
    nick: Optional[str]
    user: Optional[str] = None
    host: Optional[str] = None

    @classmethod
    def parse(cls, prefix: Optional[str]) -> 'Hostmask':
        """Parse a raw ``nick!user@host`` prefix."""
        if not prefix:
            return cls(None)
        prefix = prefix.lstrip(':')
        if '!' in prefix and '@' in prefix:
            nick, rest = prefix.split('!', 1)
            user, host = rest.split('@', 1)
            return cls.create(nick, user, host)
        return cls(prefix or None)

    @classmethod
    def create(
        cls,
        nick: Optional[str],
        user: Optional[str] = None,
        host: Optional[str] = None
    ) -> 'Hostmask':
        user = _present(user)
        host = _present(host)
        if user is None or host is None:
            user = host = None
        return cls(nick or None, user, host)

    @classmethod
    def coerce(cls, value: HostmaskLike) -> 'Hostmask':
        """
        Accept whatever the transport hands us.

        miniirc passes a ``(nick, user, host)`` tuple; for server lines all
        three entries are the server name.
        """
        if isinstance(value, Hostmask):
            return value
        if value is None or isinstance(value, str):
            return cls.parse(value)
        parts = list(value) + [None, None, None]
        nick, user, host = parts[0], parts[1], parts[2]
        if nick and user == nick and host == nick:
            return cls(nick)
        return cls.create(nick, user, host)

    @property
    def has_userhost(self) -> bool:
        return self.user is not None

    def __str__(self) -> str:
        if self.has_userhost:
            return f"{self.nick}!{self.user}@{self.host}"
        return self.nick or ''
