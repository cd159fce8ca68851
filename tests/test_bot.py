import asyncio
import logging
import threading

import pytest

from bot import SessionBot, load_settings
from bot import console
from bot import irc_client
from session import Category, ConnectionState, Message, User
from session.events import (
    ChannelJoined,
    ChannelLeft,
    ConnectionLost,
    CtcpRequestReceived,
    PrivmsgReceived,
    UnexpectedEvent,
)

ENV_KEYS = (
    'IRC_SERVER', 'IRC_PORT', 'IRC_USE_SSL', 'IRC_NICK',
    'IRC_CHANNELS', 'IRC_REQUEST_MODES', 'LOG_LEVEL',
)


class FakeIRC:
    """Stands in for miniirc.IRC: records handlers and outbound lines."""

    def __init__(self, ip, port, nick, channels=None, **kwargs):
        self.ip = ip
        self.port = port
        self.nick = nick
        self.channels = channels
        self.options = kwargs
        self.handlers = []
        self.quoted = []
        self.connected = None
        self.disconnects = 0

    def CmdHandler(self, *events, colon=True, ircv3=False):
        def decorator(func):
            self.handlers.append((events, colon, func))
            return func
        return decorator

    def connect(self):
        self.connected = True

    def disconnect(self):
        self.disconnects += 1
        self.connected = False

    def quote(self, *parts):
        self.quoted.append(parts)

    def deliver(self, command, hostmask, args):
        """Call handlers from another thread, like miniirc does."""
        def run():
            for _, _, func in self.handlers:
                func(self, command, hostmask, args)
        thread = threading.Thread(target=run)
        thread.start()
        thread.join()


class ClosedByServerIRC(FakeIRC):
    def connect(self):
        self.connected = False


class RefusingIRC(FakeIRC):
    def connect(self):
        raise OSError("connection refused")


async def wait_for(predicate, timeout=1.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def fake_irc(monkeypatch):
    monkeypatch.setattr(irc_client.miniirc, 'IRC', FakeIRC)
    return FakeIRC


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.setenv(key, 'placeholder')
        monkeypatch.delenv(key)


# Configuration

def test_settings_defaults(clean_env, tmp_path):
    settings = load_settings(str(tmp_path / 'missing.env'))
    assert settings.server == 'irc.libera.chat'
    assert settings.port == 6667
    assert settings.use_ssl is False
    assert settings.nick == 'Terra'
    assert settings.channels == ['#test']
    assert settings.request_modes is True
    assert settings.log_level == 'INFO'


def test_settings_from_environment(clean_env, monkeypatch, tmp_path):
    monkeypatch.setenv('IRC_PORT', '6697')
    monkeypatch.setenv('IRC_USE_SSL', 'TRUE')
    monkeypatch.setenv('IRC_CHANNELS', '#a, #b,,')
    monkeypatch.setenv('IRC_REQUEST_MODES', 'false')
    monkeypatch.setenv('LOG_LEVEL', 'debug')
    settings = load_settings(str(tmp_path / 'missing.env'))
    assert settings.port == 6697
    assert settings.use_ssl is True
    assert settings.channels == ['#a', '#b']
    assert settings.request_modes is False
    assert settings.log_level == 'DEBUG'


def test_settings_from_dotenv_file(clean_env, tmp_path):
    env_file = tmp_path / '.env'
    env_file.write_text("IRC_NICK=FromFile\nIRC_SERVER=irc.example.net\n")
    settings = load_settings(str(env_file))
    assert settings.nick == 'FromFile'
    assert settings.server == 'irc.example.net'


def test_invalid_port(clean_env, monkeypatch, tmp_path):
    monkeypatch.setenv('IRC_PORT', 'sixsixsixseven')
    with pytest.raises(ValueError, match='IRC_PORT'):
        load_settings(str(tmp_path / 'missing.env'))


# miniirc binding

def test_connect_configures_transport(fake_irc):
    bot = SessionBot('irc.example.net', 6697, 'me', ['#test'], use_ssl=True)

    async def scenario():
        await bot.connect()

    asyncio.run(scenario())
    assert bot.irc.ip == 'irc.example.net'
    assert bot.irc.options['ssl'] is True
    assert bot.irc.options['persist'] is False
    assert bot.irc.options['auto_connect'] is False
    assert bot.irc.options['executor'] is bot.executor
    assert bot.executor._max_workers == 1
    [(events, colon, _)] = bot.irc.handlers
    assert events == ()
    assert colon is False
    assert bot.connection.state is ConnectionState.CONNECTING


def test_transport_messages_reach_the_session(fake_irc):
    bot = SessionBot('irc.example.net', 6667, 'me', ['#test'])
    joined = []
    bot.connection.add_connection_listener(joined.append)

    async def scenario():
        await bot.connect()
        bot.irc.deliver('001', ('irc.example.net',) * 3, ['me', 'Welcome'])
        bot.irc.deliver('JOIN', ('me', 'me', 'host'), ['#test'])
        await wait_for(lambda: bot.connection.get_channel('#test') is not None)
        await bot.shutdown()

    asyncio.run(scenario())
    assert bot.irc.quoted == [('MODE', '#test')]
    assert any(isinstance(e, ChannelJoined) for e in joined)
    assert isinstance(joined[-1], ConnectionLost)
    assert bot.connection.state is ConnectionState.DISCONNECTED
    assert bot.irc.disconnects == 1


def test_request_modes_can_be_disabled(fake_irc):
    bot = SessionBot('irc.example.net', 6667, 'me', ['#test'], request_modes=False)

    async def scenario():
        await bot.connect()
        bot.irc.deliver('JOIN', ('me', 'me', 'host'), ['#test'])
        await wait_for(lambda: bot.connection.get_channel('#test') is not None)

    asyncio.run(scenario())
    assert bot.irc.quoted == []


def test_failed_connect_closes_session(monkeypatch):
    monkeypatch.setattr(irc_client.miniirc, 'IRC', RefusingIRC)
    bot = SessionBot('irc.example.net', 6667, 'me', [])
    lost = []
    bot.connection.add_connection_listener(lost.append)

    with pytest.raises(OSError):
        asyncio.run(bot.connect())
    assert bot.connection.is_closed
    assert len(lost) == 1


def test_run_forever_stops_when_server_closes(monkeypatch):
    monkeypatch.setattr(irc_client.miniirc, 'IRC', ClosedByServerIRC)
    bot = SessionBot('irc.example.net', 6667, 'me', [])
    events = []
    bot.connection.add_connection_listener(events.append)

    asyncio.run(bot.run_forever(poll_interval=0.01))
    assert [type(e) for e in events] == [ConnectionLost]
    assert bot.irc.disconnects == 0


def test_send_before_connect_is_dropped(caplog):
    bot = SessionBot('irc.example.net', 6667, 'me', [])
    with caplog.at_level(logging.WARNING, logger='bot.irc_client'):
        bot.send_raw('MODE', '#test')
    assert bot.irc is None
    assert "dropping MODE #test" in caplog.text


def test_inbound_processing_errors_are_logged(fake_irc, caplog):
    bot = SessionBot('irc.example.net', 6667, 'me', [])

    def broken(hostmask, command, args):
        raise RuntimeError("translator broke")

    async def scenario():
        await bot.connect()
        bot.translator.handle = broken
        bot.irc.deliver('PING', ('irc.example.net',) * 3, ['x'])
        await wait_for(lambda: "translator broke" in caplog.text)

    with caplog.at_level(logging.ERROR, logger='bot.irc_client'):
        asyncio.run(scenario())
    assert "Failed to process inbound message" in caplog.text


# Console output

def test_console_describes_events():
    bot = SessionBot('irc.example.net', 6667, 'me', [])
    conn = bot.connection
    alice = User('alice')
    channel = conn.add_channel('#test')

    assert console.describe(ChannelJoined(conn, channel)) == "✓ Successfully joined #test"
    assert console.describe(ChannelLeft(conn, channel, kicked_by=alice, reason='bye')) == \
        "✗ Kicked from #test by alice: bye"
    assert console.describe(PrivmsgReceived(
        conn, sender=alice, destination_user=None, destination_channel=channel,
        message=Message('hi')
    )) == "← [#test] <alice> hi"
    assert console.describe(CtcpRequestReceived(
        conn, sender=alice, destination_user=User('me'), destination_channel=None,
        command='VERSION', arguments=''
    )) == "← CTCP VERSION from alice: "
    assert console.describe(UnexpectedEvent(conn, command='NAMES', args=())) == ""


def test_console_attach_prints(capsys):
    bot = SessionBot('irc.example.net', 6667, 'me', [])
    console.attach(bot.connection)
    for category in Category:
        assert len(bot.connection.dispatcher.listeners(category)) == 1
    bot.translator.handle(('me', 'me', 'h'), 'JOIN', ['#test'])
    assert "✓ Successfully joined #test" in capsys.readouterr().out
