import pytest

from session import Category, Connection, EventTranslator

ME = ('me', 'me', 'my.host')
SERVER = ('irc.example.net', 'irc.example.net', 'irc.example.net')


class Recorder:
    """Collects every published event, per category."""

    def __init__(self, connection: Connection):
        self.events = {category: [] for category in Category}
        for category in Category:
            connection.dispatcher.register(category, self._listener(category))

    def _listener(self, category):
        def listener(event):
            self.events[category].append(event)
        return listener

    def __getitem__(self, category):
        return self.events[category]

    @property
    def all(self):
        return [event for events in self.events.values() for event in events]


@pytest.fixture
def connection():
    return Connection(nickname='me')


@pytest.fixture
def translator(connection):
    return EventTranslator(connection)


@pytest.fixture
def recorder(connection):
    return Recorder(connection)


@pytest.fixture
def feed(translator):
    """Feed a message as ``feed(hostmask, command, *args)``."""
    def _feed(hostmask, command, *args):
        return translator.handle(hostmask, command, list(args))
    return _feed


@pytest.fixture
def joined(feed, connection):
    """Connection that has joined #test with alice and bob in it."""
    feed(SERVER, '001', 'me', 'Welcome')
    feed(ME, 'JOIN', '#test')
    feed(SERVER, '353', 'me', '=', '#test', '@me alice +bob')
    return connection.get_channel('#test')
