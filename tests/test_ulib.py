import io

import pytest

from xvutils.ulib import atoi, gets, strcmp


@pytest.mark.parametrize("text,expected", [("123", 123), ("123abc", 123), ("", 0), ("abc", 0)])
def test_atoi(text, expected):
    assert atoi(text) == expected


def test_atoi_no_sign_or_space():
    assert atoi("-5") == 0
    assert atoi(" 7") == 0
    assert atoi(b"42x") == 42


def test_strcmp_equal_and_ordering():
    assert strcmp("abc", "abc") == 0
    assert strcmp("abc", "abd") < 0
    assert strcmp("b", "a") > 0


def test_strcmp_prefix():
    assert strcmp("ab", "abc") == -ord("c")
    assert strcmp("abc", "ab") == ord("c")


def test_strcmp_stops_at_nul():
    assert strcmp("ab\0x", "ab\0y") == 0


def test_strcmp_unsigned():
    assert strcmp(b"\xff", b"a") > 0


def test_gets_lines():
    stream = io.StringIO("hello\nworld")
    assert gets(stream, 100) == "hello\n"
    assert gets(stream, 100) == "world"
    assert gets(stream, 100) == ""


def test_gets_limit():
    stream = io.StringIO("abcdef")
    assert gets(stream, 4) == "abc"
    assert gets(stream, 4) == "def"


def test_gets_carriage_return():
    assert gets(io.StringIO("ab\rcd"), 10) == "ab\r"


def test_gets_bytes():
    assert gets(io.BytesIO(b"xy\nz"), 10) == b"xy\n"