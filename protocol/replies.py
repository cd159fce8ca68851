"""
Numeric reply registry.

Servers answer with three-digit numerics instead of named commands. The
registry maps those codes to symbolic ``ReplyCode`` values. Codes are sparse
(001-005 and 200-502), so lookups go through a dense list indexed by
``code - lowest`` rather than a dict or a search.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Iterator, List, Optional, Tuple


@dataclass(frozen=True)
class ReplyCode:
    """A numeric reply with its canonical symbolic name."""
    name: str
    code: int

    @property
    def is_error(self) -> bool:
        return self.name.startswith('ERR_')

    def __str__(self) -> str:
        return f"{self.name} ({self.code:03d})"


# RFC 1459 / 2812 numerics. One name per code: RPL_AUTHNAME used to share
# 333 with RPL_TOPICINFO and was dropped.
KNOWN_REPLIES: Tuple[Tuple[str, int], ...] = (
    # Registration
    ('RPL_WELCOME', 1),
    ('RPL_YOURHOST', 2),
    ('RPL_CREATED', 3),
    ('RPL_MYINFO', 4),
    ('RPL_ISUPPORT', 5),

    # Trace and stats
    ('RPL_TRACELINK', 200),
    ('RPL_TRACECONNECTING', 201),
    ('RPL_TRACEHANDSHAKE', 202),
    ('RPL_TRACEUNKNOWN', 203),
    ('RPL_TRACEOPERATOR', 204),
    ('RPL_TRACEUSER', 205),
    ('RPL_TRACESERVER', 206),
    ('RPL_TRACENEWTYPE', 208),
    ('RPL_TRACECLASS', 209),
    ('RPL_STATSLINKINFO', 211),
    ('RPL_STATSCOMMANDS', 212),
    ('RPL_STATSCLINE', 213),
    ('RPL_STATSNLINE', 214),
    ('RPL_STATSILINE', 215),
    ('RPL_STATSKLINE', 216),
    ('RPL_STATSQLINE', 217),
    ('RPL_STATSYLINE', 218),
    ('RPL_ENDOFSTATS', 219),
    ('RPL_UMODEIS', 221),
    ('RPL_SERVICEINFO', 231),
    ('RPL_ENDOFSERVICES', 232),
    ('RPL_SERVICE', 233),
    ('RPL_SERVLIST', 234),
    ('RPL_SERVLISTEND', 235),
    ('RPL_STATSLLINE', 241),
    ('RPL_STATSUPTIME', 242),
    ('RPL_STATSOLINE', 243),
    ('RPL_STATSHLINE', 244),
    ('RPL_LUSERCLIENT', 251),
    ('RPL_LUSEROP', 252),
    ('RPL_LUSERUNKNOWN', 253),
    ('RPL_LUSERCHANNELS', 254),
    ('RPL_LUSERME', 255),
    ('RPL_ADMINME', 256),
    ('RPL_ADMINLOC1', 257),
    ('RPL_ADMINLOC2', 258),
    ('RPL_ADMINEMAIL', 259),
    ('RPL_TRACELOG', 261),

    # Command responses
    ('RPL_NONE', 300),
    ('RPL_AWAY', 301),
    ('RPL_USERHOST', 302),
    ('RPL_ISON', 303),
    ('RPL_UNAWAY', 305),
    ('RPL_NOWAWAY', 306),
    ('RPL_WHOISUSER', 311),
    ('RPL_WHOISSERVER', 312),
    ('RPL_WHOISOPERATOR', 313),
    ('RPL_WHOWASUSER', 314),
    ('RPL_ENDOFWHO', 315),
    ('RPL_WHOISCHANOP', 316),
    ('RPL_WHOISIDLE', 317),
    ('RPL_ENDOFWHOIS', 318),
    ('RPL_WHOISCHANNELS', 319),
    ('RPL_LISTSTART', 321),
    ('RPL_LIST', 322),
    ('RPL_LISTEND', 323),
    ('RPL_CHANNELMODEIS', 324),
    ('RPL_WHOISAUTHNAME', 330),
    ('RPL_NOTOPIC', 331),
    ('RPL_TOPIC', 332),
    ('RPL_TOPICINFO', 333),
    ('RPL_INVITING', 341),
    ('RPL_SUMMONING', 342),
    ('RPL_VERSION', 351),
    ('RPL_WHOREPLY', 352),
    ('RPL_NAMREPLY', 353),
    ('RPL_KILLDONE', 361),
    ('RPL_CLOSING', 362),
    ('RPL_CLOSEEND', 363),
    ('RPL_LINKS', 364),
    ('RPL_ENDOFLINKS', 365),
    ('RPL_ENDOFNAMES', 366),
    ('RPL_BANLIST', 367),
    ('RPL_ENDOFBANLIST', 368),
    ('RPL_ENDOFWHOWAS', 369),
    ('RPL_INFO', 371),
    ('RPL_MOTD', 372),
    ('RPL_INFOSTART', 373),
    ('RPL_ENDOFINFO', 374),
    ('RPL_MOTDSTART', 375),
    ('RPL_ENDOFMOTD', 376),
    ('RPL_YOUREOPER', 381),
    ('RPL_REHASHING', 382),
    ('RPL_MYPORTIS', 384),
    ('RPL_TIME', 391),
    ('RPL_USERSSTART', 392),
    ('RPL_USERS', 393),
    ('RPL_ENDOFUSERS', 394),
    ('RPL_NOUSERS', 395),

    # Errors
    ('ERR_NOSUCHNICK', 401),
    ('ERR_NOSUCHSERVER', 402),
    ('ERR_NOSUCHCHANNEL', 403),
    ('ERR_CANNOTSENDTOCHAN', 404),
    ('ERR_TOOMANYCHANNELS', 405),
    ('ERR_WASNOSUCHNICK', 406),
    ('ERR_TOOMANYTARGETS', 407),
    ('ERR_NOORIGIN', 409),
    ('ERR_NORECIPIENT', 411),
    ('ERR_NOTEXTTOSEND', 412),
    ('ERR_NOTOPLEVEL', 413),
    ('ERR_WILDTOPLEVEL', 414),
    ('ERR_UNKNOWNCOMMAND', 421),
    ('ERR_NOMOTD', 422),
    ('ERR_NOADMININFO', 423),
    ('ERR_FILEERROR', 424),
    ('ERR_NONICKNAMEGIVEN', 431),
    ('ERR_ERRONEUSNICKNAME', 432),
    ('ERR_NICKNAMEINUSE', 433),
    ('ERR_NICKCOLLISION', 436),
    ('ERR_USERNOTINCHANNEL', 441),
    ('ERR_NOTONCHANNEL', 442),
    ('ERR_USERONCHANNEL', 443),
    ('ERR_NOLOGIN', 444),
    ('ERR_SUMMONDISABLED', 445),
    ('ERR_USERSDISABLED', 446),
    ('ERR_NOTREGISTERED', 451),
    ('ERR_NEEDMOREPARAMS', 461),
    ('ERR_ALREADYREGISTRED', 462),
    ('ERR_NOPERMFORHOST', 463),
    ('ERR_PASSWDMISMATCH', 464),
    ('ERR_YOUREBANNEDCREEP', 465),
    ('ERR_YOUWILLBEBANNED', 466),
    ('ERR_KEYSET', 467),
    ('ERR_CHANNELISFULL', 471),
    ('ERR_UNKNOWNMODE', 472),
    ('ERR_INVITEONLYCHAN', 473),
    ('ERR_BANNEDFROMCHAN', 474),
    ('ERR_BADCHANNELKEY', 475),
    ('ERR_BADCHANMASK', 476),
    ('ERR_NOPRIVILEGES', 481),
    ('ERR_CHANOPRIVSNEEDED', 482),
    ('ERR_CANTKILLSERVER', 483),
    ('ERR_NOOPERHOST', 491),
    ('ERR_NOSERVICEHOST', 492),
    ('ERR_UMODEUNKNOWNFLAG', 501),
    ('ERR_USERSDONTMATCH', 502),
)


class ReplyRegistry:
    """
    Lookup table from numeric code to ``ReplyCode``.

    Fill it with ``register`` during setup, then ``seal`` it. A sealed
    registry rejects further registrations and is safe to share.
    """

    def __init__(self):
        self._by_name = {}
        self._table: List[Optional[ReplyCode]] = []
        self._lowest = 0
        self._highest = -1
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def bounds(self) -> Tuple[int, int]:
        """(lowest, highest) registered code. Empty registries give (0, -1)."""
        return self._lowest, self._highest

    def register(self, code: int, name: str) -> ReplyCode:
        """
        Add a numeric reply.

        Raises:
            RuntimeError: Registry is sealed
            ValueError: Code is not positive, or the code or name is taken
        """
        if self._sealed:
            raise RuntimeError("Reply registry is sealed")
        if not isinstance(code, int) or code <= 0:
            raise ValueError(f"Reply code must be a positive integer: {code!r}")
        if not name:
            raise ValueError("Reply name must not be empty")
        if name in self._by_name:
            raise ValueError(f"Reply name already registered: {name}")
        existing = self.lookup(code)
        if existing is not None:
            raise ValueError(
                f"Reply code {code:03d} already registered as {existing.name}"
            )

        reply = ReplyCode(name, code)
        self._by_name[name] = reply
        self._place(reply)
        return reply

    def _place(self, reply: ReplyCode):
        """Grow the dense table to cover ``reply.code`` and store it."""
        if not self._table:
            self._lowest = self._highest = reply.code
            self._table = [reply]
            return

        if reply.code < self._lowest:
            self._table[:0] = [None] * (self._lowest - reply.code)
            self._lowest = reply.code
        elif reply.code > self._highest:
            self._table.extend([None] * (reply.code - self._highest))
            self._highest = reply.code
        self._table[reply.code - self._lowest] = reply

    def seal(self) -> 'ReplyRegistry':
        self._sealed = True
        return self

    def lookup(self, code: int) -> Optional[ReplyCode]:
        """Return the reply for ``code``, or ``None`` if unknown or out of range."""
        if not self._table or code < self._lowest or code > self._highest:
            return None
        return self._table[code - self._lowest]

    def lookup_name(self, name: str) -> Optional[ReplyCode]:
        return self._by_name.get(name)

    def __contains__(self, code) -> bool:
        return isinstance(code, int) and self.lookup(code) is not None

    def __len__(self) -> int:
        return len(self._by_name)

    def __iter__(self) -> Iterator[ReplyCode]:
        return (reply for reply in self._table if reply is not None)


def build_reply_registry(replies=KNOWN_REPLIES) -> ReplyRegistry:
    """Build and seal a registry from ``(name, code)`` pairs."""
    registry = ReplyRegistry()
    for name, code in replies:
        registry.register(code, name)
    return registry.seal()


@lru_cache(maxsize=None)
def default_registry() -> ReplyRegistry:
    """The process-wide registry of known replies, built on first use."""
    return build_reply_registry()


def parse_numeric(command: Optional[str]) -> Optional[int]:
    """Return the code of a three-digit numeric command, else ``None``."""
    if command and len(command) == 3 and command.isdigit():
        return int(command)
    return None
