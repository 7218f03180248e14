import pytest

from besieger.config import MAXREPS, Config, Method, is_separator


def test_add_header_appends_crlf():
    cfg = Config()
    cfg.add_header("X-Test: one")
    cfg.add_header("X-Other: two")
    assert cfg.extra == "X-Test: one\r\nX-Other: two\r\n"


def test_add_header_requires_colon():
    cfg = Config()
    with pytest.raises(ValueError, match="no ':'"):
        cfg.add_header("NoColonHere")
    assert cfg.extra == ""


def test_add_header_too_large():
    cfg = Config()
    with pytest.raises(ValueError, match="too large"):
        cfg.add_header("A: " + "x" * 20, max_size=10)
    assert cfg.extra == ""


def test_add_header_limit_boundary():
    cfg = Config()
    header = "A:b"
    cfg.add_header(header, max_size=len(header) + 3)
    assert cfg.extra == "A:b\r\n"
    with pytest.raises(ValueError):
        cfg.add_header(header, max_size=len(header) + 3)


@pytest.mark.parametrize("ch,expected", [("=", True), (":", True), (" ", False), ("a", False), ("", False)])
def test_is_separator(ch, expected):
    assert is_separator(ch) is expected


def test_lists_not_shared_between_instances():
    a = Config()
    b = Config()
    a.nomap.append("example.com")
    assert b.nomap == []


def test_defaults():
    cfg = Config()
    assert cfg.method is Method.HEAD
    assert cfg.url is None
    assert MAXREPS == 10301062