"""CTCP framing helpers."""

from typing import Optional, Tuple

DELIMITER = '\x01'
QUERY_SEPARATOR = ' :'


def is_ctcp(text: Optional[str]) -> bool:
    """Check whether a PRIVMSG/NOTICE body is a CTCP frame."""
    return bool(text) and len(text) > 1 and text.startswith(DELIMITER)


def unpack(text: str) -> Tuple[str, str]:
    """
    Split a CTCP frame into its verb and argument text.

    The closing delimiter is optional since some clients drop it.

    Returns:
        (command, arguments), command upper-cased, arguments possibly empty
    """
    body = text[1:]
    if body.endswith(DELIMITER):
        body = body[:-1]
    parts = body.split(' ', 1)
    command = parts[0].upper()
    arguments = parts[1] if len(parts) > 1 else ""
    return command, arguments


def split_query_answer(arguments: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Split reply arguments like ``"xyz :bla"`` into query and answer.

    Only the first separator counts. Without a separator both parts are
    ``None``; the caller keeps the raw arguments.
    """
    if QUERY_SEPARATOR not in arguments:
        return None, None
    query, answer = arguments.split(QUERY_SEPARATOR, 1)
    return query, answer
