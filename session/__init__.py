"""Session state and typed event dispatch on top of a raw IRC transport."""

from .connection import Connection, ConnectionState
from .dispatcher import Dispatcher, Topic
from .errors import InvalidArgument, ListenerFault, MalformedProtocolData, SessionError
from .events import Category
from .models import Channel, Message, User
from .translator import EventTranslator

__all__ = [
    'Connection',
    'ConnectionState',
    'Dispatcher',
    'Topic',
    'InvalidArgument',
    'ListenerFault',
    'MalformedProtocolData',
    'SessionError',
    'Category',
    'Channel',
    'Message',
    'User',
    'EventTranslator',
]
