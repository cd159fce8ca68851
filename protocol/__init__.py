"""IRC protocol helpers: numeric replies, sender prefixes, CTCP framing."""

from .casemapping import irc_lower, irc_equals, DEFAULT_CASEMAPPING
from .hostmask import Hostmask
from .replies import (
    ReplyCode,
    ReplyRegistry,
    build_reply_registry,
    default_registry,
    parse_numeric,
)

__all__ = [
    'irc_lower',
    'irc_equals',
    'DEFAULT_CASEMAPPING',
    'Hostmask',
    'ReplyCode',
    'ReplyRegistry',
    'build_reply_registry',
    'default_registry',
    'parse_numeric',
]
