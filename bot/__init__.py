"""miniirc runner for the session layer."""

from .config import Settings, load_settings
from .irc_client import SessionBot

__all__ = ['Settings', 'load_settings', 'SessionBot']
