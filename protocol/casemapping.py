"""Nick and channel name case folding."""

from typing import Dict

ASCII = 'ascii'
RFC1459 = 'rfc1459'
STRICT_RFC1459 = 'strict-rfc1459'

DEFAULT_CASEMAPPING = RFC1459

_UPPER = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ'
_LOWER = 'abcdefghijklmnopqrstuvwxyz'

# rfc1459 treats []\~ as the upper case forms of {}|^
_TABLES: Dict[str, dict] = {
    ASCII: str.maketrans(_UPPER, _LOWER),
    RFC1459: str.maketrans(_UPPER + '[]\\~', _LOWER + '{}|^'),
    STRICT_RFC1459: str.maketrans(_UPPER + '[]\\', _LOWER + '{}|'),
}


def is_supported(casemapping: str) -> bool:
    """Whether we know how to fold names for this CASEMAPPING value."""
    return casemapping.lower() in _TABLES


def irc_lower(name: str, casemapping: str = DEFAULT_CASEMAPPING) -> str:
    """
    Fold a nick or channel name for comparison.

    Unknown casemappings fall back to rfc1459, which is what servers
    assume when they don't advertise one.
    """
    table = _TABLES.get(casemapping.lower(), _TABLES[DEFAULT_CASEMAPPING])
    return name.translate(table)


def irc_equals(a: str, b: str, casemapping: str = DEFAULT_CASEMAPPING) -> bool:
    return irc_lower(a, casemapping) == irc_lower(b, casemapping)
