from urllib.parse import unquote

import pytest

from volumectl_core import constants, utils


@pytest.mark.parametrize('args,expected', [
    (('0',), 0),
    (('1000',), 1000),
    (('1 kB',), 1e3),
    (('1M',), 1e6),
    (('1g',), 1e9),
    (('1GB',), 1e9),
    (('1TB',), 1e12),
    (('1KiB',), 2 ** 10),
    (('1MiB',), 2 ** 20),
    (('1GiB',), 2 ** 30),
    (('1Gi',), 2 ** 30),
    (('1K', 'jedec'), 2 ** 10),
    (('1G', 'jedec'), 2 ** 30),
    (('foo',), -1),
    (('1byte',), -1),
    (('-5G',), -1),
    (('1', 'jedec', 'G',), 2 ** 30),
    ((1,), 1),
    ((1, 'jedec', 'G'), 2 ** 30),
])
def test_parse_size(args, expected):
    assert utils.parse_size(*args) == expected


@pytest.mark.parametrize('args,expected', [
    ((0,), '0 B'),
    ((1,), '1.0 B'),
    ((2 ** 10,), '1.0 KiB'),
    ((2 ** 30,), '1.0 GiB'),
    ((1e9,), '953.7 MiB'),
    ((1e9, 'si'), '1.0 GB'),
    ((2 ** 20, 'jedec'), '1.0 MB'),
])
def test_humanbytes(args, expected):
    assert utils.humanbytes(*args) == expected


@pytest.mark.parametrize('name,expected', [
    ('vol1', 'vol1'),
    ('a/b.c', 'a%2Fb%2Ec'),
    ('..', '%2E%2E'),
    ('my vol', 'my%20vol'),
    ('x?y#z', 'x%3Fy%23z'),
])
def test_quote_name(name, expected):
    assert utils.quote_name(name) == expected


@pytest.mark.parametrize('name', ['a/b.c', '../etc/passwd', 'ü.vol', '100%', 'a+b=c&d'])
def test_quote_name_round_trip(name):
    quoted = utils.quote_name(name)
    assert '/' not in quoted
    assert '.' not in quoted
    assert unquote(quoted) == name


def test_compact_params():
    params = utils.compact_params({'name': 'v1', 'iops': None, 'size': 0, 'flag': False, 'user': ''})
    assert list(params) == ['name', 'size', 'flag', 'user']
    assert utils.compact_params(params) == params


@pytest.mark.parametrize('value,expected', [
    ('1', True),
    (' 2 ', True),
    ('-1', True),
    ('0', False),
    ('', False),
    ('yes', False),
    (None, False),
])
def test_get_env_flag(monkeypatch, value, expected):
    if value is None:
        monkeypatch.delenv(constants.ENV_DEBUG, raising=False)
    else:
        monkeypatch.setenv(constants.ENV_DEBUG, value)
    assert utils.get_env_flag(constants.ENV_DEBUG) is expected


def test_print_table():
    out = utils.print_table([{'name': 'v1', 'type': 'ssd'}, {'name': 'v2'}], fields=['name', 'type'])
    lines = out.splitlines()
    assert 'name' in lines[1] and 'type' in lines[1]
    assert 'v1' in out and 'v2' in out
    assert utils.print_table([]) is None


def test_print_fields():
    out = utils.print_fields({'name': 'v1', 'capacity': '1.0 GiB'})
    assert 'Field' in out
    assert 'capacity' in out and '1.0 GiB' in out


def test_mask_secrets():
    params = {"name": "v1", "access_token": "t0k3n", "otp": "123456", "user": None}
    assert utils.mask_secrets(params) == {"name": "v1", "access_token": "****", "otp": "****", "user": None}
    assert params["otp"] == "123456"
    assert utils.mask_secrets(None) is None
