"""Runner configuration from the environment."""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv


@dataclass
class Settings:
    """Connection parameters for the session runner."""
    server: str = 'irc.libera.chat'
    port: int = 6667
    use_ssl: bool = False
    nick: str = 'Terra'
    channels: List[str] = field(default_factory=lambda: ['#test'])
    request_modes: bool = True
    log_level: str = 'INFO'


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Load settings from the environment.

    A .env file is read first (``env_file`` or the nearest one found);
    variables already set in the environment win.
    """
    load_dotenv(env_file)

    channels = os.getenv('IRC_CHANNELS', '#test').split(',')
    channels = [ch.strip() for ch in channels if ch.strip()]

    return Settings(
        server=os.getenv('IRC_SERVER', 'irc.libera.chat'),
        port=_env_int('IRC_PORT', '6667'),
        use_ssl=_env_bool('IRC_USE_SSL', 'false'),
        nick=os.getenv('IRC_NICK', 'Terra'),
        channels=channels,
        request_modes=_env_bool('IRC_REQUEST_MODES', 'true'),
        log_level=os.getenv('LOG_LEVEL', 'INFO').upper()
    )
