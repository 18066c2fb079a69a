import pytest

from jsonresult import utils
from jsonresult.utils import Url


@pytest.mark.parametrize(
    'value, expected',
    [
        (None, 'http://127.0.0.1:8080'),
        ('localhost', 'http://localhost:8080'),
        (':9000', 'http://127.0.0.1:9000'),
        ('http://*:0', 'http://0.0.0.0:0'),
        ('https://example.com:443/', 'https://example.com:443'),
    ],
)
def test_url_parse(value, expected):
    assert str(Url.parse(value)) == expected


def test_url_parse_rejects_path():
    with pytest.raises(ValueError):
        Url.parse('http://localhost:80/api')


def test_url_address():
    url = Url.parse('localhost:1234')

    assert url.address == ('localhost', 1234)
    assert url.netloc == 'localhost:1234'
    assert Url.parse(url) is url


def test_format_exc():
    assert utils.format_exc(ValueError('bad')) == 'ValueError: bad'


def test_elide():
    assert utils.elide('abc', 5) == 'abc'
    assert utils.elide('abcdefgh', 5) == 'ab...'
