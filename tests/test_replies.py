import pytest

from protocol.replies import (
    KNOWN_REPLIES,
    ReplyCode,
    ReplyRegistry,
    build_reply_registry,
    default_registry,
    parse_numeric,
)


def test_every_known_reply_is_found():
    registry = build_reply_registry()
    for name, code in KNOWN_REPLIES:
        assert registry.lookup(code) == ReplyCode(name, code)
        assert registry.lookup_name(name).code == code


def test_bounds_cover_known_table():
    registry = build_reply_registry()
    assert registry.bounds == (1, 502)
    assert len(registry) == len(KNOWN_REPLIES)


@pytest.mark.parametrize("code", [0, -5, 503, 999, 10000])
def test_out_of_range_codes_are_not_found(code):
    assert build_reply_registry().lookup(code) is None


def test_gaps_inside_range_are_not_found():
    registry = build_reply_registry()
    assert registry.lookup(6) is None
    assert registry.lookup(207) is None
    assert 207 not in registry
    assert 372 in registry


def test_topicinfo_is_canonical_for_333():
    registry = build_reply_registry()
    assert registry.lookup(333).name == 'RPL_TOPICINFO'
    assert registry.lookup_name('RPL_AUTHNAME') is None


def test_empty_registry_finds_nothing():
    registry = ReplyRegistry()
    assert registry.lookup(1) is None
    assert list(registry) == []


def test_duplicate_code_is_rejected():
    registry = ReplyRegistry()
    registry.register(333, 'RPL_TOPICINFO')
    with pytest.raises(ValueError):
        registry.register(333, 'RPL_AUTHNAME')


def test_duplicate_name_is_rejected():
    registry = ReplyRegistry()
    registry.register(372, 'RPL_MOTD')
    with pytest.raises(ValueError):
        registry.register(373, 'RPL_MOTD')


@pytest.mark.parametrize("code", [0, -1])
def test_non_positive_code_is_rejected(code):
    with pytest.raises(ValueError):
        ReplyRegistry().register(code, 'RPL_BOGUS')


def test_table_grows_both_ways():
    registry = ReplyRegistry()
    registry.register(300, 'RPL_NONE')
    registry.register(401, 'ERR_NOSUCHNICK')
    registry.register(1, 'RPL_WELCOME')
    assert registry.bounds == (1, 401)
    assert registry.lookup(1).name == 'RPL_WELCOME'
    assert registry.lookup(300).name == 'RPL_NONE'
    assert registry.lookup(401).name == 'ERR_NOSUCHNICK'
    assert [reply.code for reply in registry] == [1, 300, 401]


def test_sealed_registry_rejects_registration():
    registry = build_reply_registry()
    assert registry.sealed
    with pytest.raises(RuntimeError):
        registry.register(900, 'RPL_LOGGEDIN')


def test_default_registry_is_built_once():
    assert default_registry() is default_registry()


def test_reply_code_helpers():
    reply = ReplyCode('ERR_NICKNAMEINUSE', 433)
    assert reply.is_error
    assert str(ReplyCode('RPL_WELCOME', 1)) == 'RPL_WELCOME (001)'


@pytest.mark.parametrize("command,expected", [
    ('001', 1),
    ('372', 372),
    ('PRIVMSG', None),
    ('37', None),
    ('3722', None),
    ('', None),
    (None, None),
])
def test_parse_numeric(command, expected):
    assert parse_numeric(command) == expected
