import gc

import pytest

from protocol.hostmask import Hostmask
from session import Connection, ConnectionState, InvalidArgument, User


@pytest.fixture
def populated():
    connection = Connection(nickname='me')
    test = connection.add_channel('#test')
    other = connection.add_channel('#other')
    alice = User('alice', username='al')
    test.add_user(alice)
    other.add_user(alice)
    return connection


def test_resolve_user_finds_channel_member(populated):
    alice = populated.get_channel('#test').get_user('alice')
    assert populated.resolve_user('alice') is alice
    assert populated.resolve_user('ALICE') is alice


def test_resolve_user_twice_returns_same_instance(populated):
    assert populated.resolve_user('alice') is populated.resolve_user('alice')


def test_detached_user_stays_resolvable_while_referenced():
    connection = Connection(nickname='me')
    stranger = connection.resolve_user('stranger')
    assert connection.channels_of(stranger) == []
    assert connection.resolve_user('stranger') is stranger


def test_detached_user_is_forgotten_when_unreferenced():
    connection = Connection(nickname='me')
    connection.resolve_user('stranger')
    gc.collect()
    assert 'stranger' not in connection._users


def test_resolve_hostmask_merges_host_into_existing(populated):
    alice = populated.resolve_hostmask(Hostmask('alice', 'other', 'example.org'))
    assert alice is populated.get_channel('#test').get_user('alice')
    assert alice.hostname == 'example.org'
    assert alice.username == 'other'


def test_resolve_hostmask_accepts_transport_tuple():
    connection = Connection(nickname='me')
    user = connection.resolve_hostmask(('bob', 'b', 'host'))
    assert (user.nick, user.username, user.hostname) == ('bob', 'b', 'host')


@pytest.mark.parametrize("nick", ['', None])
def test_resolve_user_rejects_empty_nick(nick):
    connection = Connection(nickname='me')
    with pytest.raises(InvalidArgument):
        connection.resolve_user(nick)
    assert len(connection._users) == 0


def test_resolve_hostmask_rejects_missing_nick():
    with pytest.raises(InvalidArgument):
        Connection().resolve_hostmask(Hostmask(None))
    with pytest.raises(InvalidArgument):
        Connection().resolve_hostmask(None)


@pytest.mark.parametrize("name", ['', None])
def test_resolve_channel_rejects_empty_name(name):
    with pytest.raises(InvalidArgument):
        Connection().resolve_channel(name)


def test_invalid_argument_is_a_value_error():
    with pytest.raises(ValueError):
        Connection().resolve_user('')


def test_resolve_channel_returns_joined(populated):
    assert populated.resolve_channel('#TEST') is populated.get_channel('#test')


def test_resolve_channel_placeholder_is_not_inserted(populated):
    placeholder = populated.resolve_channel('#elsewhere')
    assert placeholder.name == '#elsewhere'
    assert len(placeholder) == 0
    assert populated.get_channel('#elsewhere') is None
    assert placeholder not in populated.channels


def test_channels_sorted_and_unique(populated):
    populated.add_channel('#Test')
    assert [c.name for c in populated.channels] == ['#other', '#test']


def test_remove_channel(populated):
    channel = populated.remove_channel('#test')
    assert channel.name == '#test'
    assert populated.get_channel('#test') is None
    assert populated.remove_channel('#test') is None


def test_rename_user_keeps_identity_everywhere(populated):
    alice = populated.resolve_user('alice')
    populated.rename_user(alice, 'alicia')
    assert alice.nick == 'alicia'
    for channel in populated.channels:
        assert channel.get_user('alicia') is alice
        assert channel.get_user('alice') is None
    assert populated.resolve_user('alicia') is alice


def test_rename_local_user_updates_nickname():
    connection = Connection(nickname='me')
    me = connection.resolve_user('me')
    connection.rename_user(me, 'me_')
    assert connection.nickname == 'me_'


def test_remove_user_from_all_channels(populated):
    left = populated.remove_user('alice')
    assert [c.name for c in left] == ['#other', '#test']
    assert all(c.get_user('alice') is None for c in populated.channels)


def test_is_me_is_case_folded():
    connection = Connection(nickname='Me[1]')
    assert connection.is_me('me{1}')
    assert not connection.is_me('you')
    assert not connection.is_me(None)


def test_is_channel_name():
    assert Connection.is_channel_name('#a')
    assert Connection.is_channel_name('&local')
    assert not Connection.is_channel_name('nick')
    assert not Connection.is_channel_name('')


def test_set_casemapping_rekeys_channels():
    connection = Connection(nickname='me', casemapping='ascii')
    channel = connection.add_channel('#a[b]')
    assert connection.get_channel('#a{b}') is None
    connection.set_casemapping('RFC1459')
    assert connection.casemapping == 'rfc1459'
    assert connection.get_channel('#a{b}') is channel


def test_unknown_casemapping_is_ignored():
    connection = Connection(nickname='me')
    connection.set_casemapping('rfc7613')
    assert connection.casemapping == 'rfc1459'


def test_lifecycle_transitions():
    connection = Connection()
    assert connection.state is ConnectionState.IDLE
    connection.mark_connecting()
    connection.transition(ConnectionState.CONNECTED)
    assert connection.is_connected
    connection.transition(ConnectionState.DISCONNECTED)
    assert connection.is_closed
    with pytest.raises(RuntimeError):
        connection.transition(ConnectionState.CONNECTED)


def test_cannot_go_back_to_connecting():
    connection = Connection()
    connection.transition(ConnectionState.CONNECTED)
    with pytest.raises(RuntimeError):
        connection.mark_connecting()
