"""Data models for the IRC session: users, channels and message payloads."""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from protocol.casemapping import DEFAULT_CASEMAPPING, irc_lower
from protocol.hostmask import Hostmask


def _known(value: Optional[str]) -> bool:
    return bool(value) and value != '*'


@dataclass(eq=False)
class User:
    """
    IRC user representation.

    Everything but the nick is optional and filled in as replies arrive.
    ``away`` and ``operator`` are ``None`` while unknown. Instances compare
    by identity: there is one ``User`` per nick in a session.
    """
    nick: str
    username: Optional[str] = None
    hostname: Optional[str] = None
    realname: Optional[str] = None
    away: Optional[bool] = None
    away_message: Optional[str] = None
    operator: Optional[bool] = None

    def update(self, hostmask: Hostmask):
        """Merge username and host from a sender prefix."""
        if hostmask.has_userhost:
            self.merge(username=hostmask.user, hostname=hostmask.host)

    def merge(self, **attributes):
        """
        Merge known attribute values into this user.

        Unknown values (``None``, empty strings, '*') never overwrite what
        is already known. Booleans are always known.
        """
        for name, value in attributes.items():
            if name == 'nick' or not hasattr(self, name):
                raise AttributeError(f"User has no mergeable attribute {name!r}")
            if isinstance(value, bool):
                setattr(self, name, value)
            elif _known(value):
                setattr(self, name, value)

    def set_away(self, message: Optional[str]):
        """Mark the user away with ``message``; ``None`` marks them back."""
        self.away = message is not None
        self.away_message = message

    @property
    def hostmask(self) -> str:
        return f"{self.nick}!{self.username or '*'}@{self.hostname or '*'}"


@dataclass(eq=False)
class Channel:
    """
    IRC channel representation.

    A channel built for a name we have not joined is an empty placeholder;
    its membership says nothing about the real channel.
    """
    name: str
    topic: Optional[str] = None
    mode: Optional[str] = None
    casemapping: str = DEFAULT_CASEMAPPING
    _members: Dict[str, User] = field(default_factory=dict, init=False, repr=False)

    @property
    def key(self) -> str:
        return irc_lower(self.name, self.casemapping)

    def fold(self, nick: str) -> str:
        return irc_lower(nick, self.casemapping)

    @property
    def users(self) -> List[User]:
        """Members sorted by nick."""
        return [self._members[key] for key in sorted(self._members)]

    @property
    def nicks(self) -> List[str]:
        return [user.nick for user in self.users]

    def get_user(self, nick: str) -> Optional[User]:
        return self._members.get(self.fold(nick))

    def has_user(self, nick: str) -> bool:
        return self.fold(nick) in self._members

    def add_user(self, user: User) -> User:
        """Add ``user``, replacing any other object held under the same nick."""
        self._members[self.fold(user.nick)] = user
        return user

    def remove_user(self, nick: str) -> Optional[User]:
        return self._members.pop(self.fold(nick), None)

    def rename_user(self, old_nick: str, user: User):
        """Re-key ``user`` after its nick changed from ``old_nick``."""
        if self._members.get(self.fold(old_nick)) is user:
            del self._members[self.fold(old_nick)]
            self._members[self.fold(user.nick)] = user

    def set_casemapping(self, casemapping: str):
        self.casemapping = casemapping
        self._members = {self.fold(u.nick): u for u in self._members.values()}

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[User]:
        return iter(self.users)

    def __contains__(self, item) -> bool:
        if isinstance(item, User):
            return self._members.get(self.fold(item.nick)) is item
        return isinstance(item, str) and self.has_user(item)


@dataclass(frozen=True)
class Message:
    """Payload of an inbound line: its text plus the command and parameters."""
    text: str
    command: Optional[str] = None
    params: Tuple[str, ...] = ()

    @classmethod
    def from_args(cls, command: str, args) -> 'Message':
        """Build from transport args; the last one is the trailing text."""
        params = tuple(args or ())
        return cls(text=params[-1] if params else "", command=command, params=params)

    def __str__(self) -> str:
        return self.text
