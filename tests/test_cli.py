import pytest

from besieger.cli import display_help, display_version, parse_cmdline, parse_rc_cmdline
from besieger.config import Config
from besieger.settings import VERSION


@pytest.fixture(autouse=True)
def _no_posix(monkeypatch):
    monkeypatch.delenv("POSIXLY_CORRECT", raising=False)


def test_rc_short_option():
    assert parse_rc_cmdline(["-v", "-R", "/tmp/my.rc", "-q"]) == "/tmp/my.rc"


def test_rc_long_option_with_equals():
    assert parse_rc_cmdline(["--rc=/tmp/other.rc"]) == "/tmp/other.rc"


def test_rc_absent():
    assert parse_rc_cmdline(["-v", "http://localhost/"]) == ""


def test_basic_switches_and_url():
    config = parse_cmdline(Config(), ["-c", "25", "-r", "once", "-b", "http://localhost/"])
    assert config.cusers == 25
    assert config.reps == -1
    assert config.bench is True
    assert config.url == "http://localhost/"


def test_clustered_short_options():
    config = parse_cmdline(Config(), ["-vqi"])
    assert (config.verbose, config.quiet, config.internet) == (True, True, True)


def test_attached_required_argument():
    config = parse_cmdline(Config(), ["-c7", "-r3"])
    assert config.cusers == 7
    assert config.reps == 3


def test_negative_delay_clamped():
    config = parse_cmdline(Config(), ["-d", "-2.5"])
    assert config.delay == 0.0


def test_delay_value():
    config = parse_cmdline(Config(), ["--delay=1.5"])
    assert config.delay == 1.5


def test_print_forces_single_user_and_rep():
    config = parse_cmdline(Config(cusers=50, reps=9), ["-p"])
    assert config.print is True
    assert config.cusers == 1
    assert config.reps == 1


def test_log_without_argument_keeps_logfile():
    config = parse_cmdline(Config(logfile="/var/log/x.log"), ["--log"])
    assert config.logging is True
    assert config.logfile == "/var/log/x.log"


def test_log_with_attached_argument():
    config = parse_cmdline(Config(), ["-l/tmp/run.log"])
    assert config.logging is True
    assert config.logfile == "/tmp/run.log"


def test_log_optional_does_not_take_next_word():
    config = parse_cmdline(Config(), ["-l", "http://localhost/"])
    assert config.logfile == ""
    assert config.url == "http://localhost/"


def test_log_name_too_long():
    with pytest.raises(ValueError):
        parse_cmdline(Config(), ["--log=" + "a" * 5000])


def test_header_added():
    config = parse_cmdline(Config(), ["-H", "X-Test: 1", "--header=X-Other: 2"])
    assert config.extra == "X-Test: 1\r\nX-Other: 2\r\n"


def test_header_without_colon_rejected():
    with pytest.raises(ValueError):
        parse_cmdline(Config(), ["-H", "broken"])


def test_get_requires_url():
    with pytest.raises(ValueError):
        parse_cmdline(Config(), ["-g"])


def test_get_with_url():
    config = parse_cmdline(Config(), ["-g", "http://localhost/"])
    assert config.get is True
    assert config.url == "http://localhost/"


def test_long_option_abbreviation():
    config = parse_cmdline(Config(), ["--conc=5"])
    assert config.cusers == 5


def test_ambiguous_long_option(capsys):
    config = parse_cmdline(Config(), ["--ver", "-q"])
    assert "ambiguous" in capsys.readouterr().err
    assert config.verbose is False
    assert config.quiet is True


def test_unknown_short_option_is_reported(capsys):
    config = parse_cmdline(Config(), ["-Z", "-v"])
    assert "invalid option -- Z" in capsys.readouterr().err
    assert config.verbose is True


def test_missing_argument_reported(capsys):
    config = parse_cmdline(Config(cusers=4), ["-c"])
    assert "requires an argument" in capsys.readouterr().err
    assert config.cusers == 4


def test_double_dash_ends_options():
    config = parse_cmdline(Config(), ["-v", "--", "-q"])
    assert config.quiet is False
    assert config.url == "-q"


def test_options_after_url_are_permuted():
    config = parse_cmdline(Config(), ["http://localhost/", "-v"])
    assert config.verbose is True
    assert config.url == "http://localhost/"


def test_posixly_correct_stops_at_first_word(monkeypatch):
    monkeypatch.setenv("POSIXLY_CORRECT", "1")
    config = parse_cmdline(Config(), ["http://localhost/", "-v"])
    assert config.verbose is False
    assert config.url == "-v"


def test_last_word_is_url():
    config = parse_cmdline(Config(), ["http://localhost/a", "http://localhost/b"])
    assert config.url == "http://localhost/b"


def test_time_option():
    config = parse_cmdline(Config(), ["-t", "30S"])
    assert config.secs == 30


def test_user_agent_truncated():
    config = parse_cmdline(Config(), ["-A", "x" * 400])
    assert config.uagent == "x" * 255


def test_content_type_and_file():
    config = parse_cmdline(Config(), ["-T", "text/plain", "-f", "/tmp/urls.txt"])
    assert config.conttype == "text/plain"
    assert config.file == "/tmp/urls.txt"


def test_config_switch_clears_get():
    config = parse_cmdline(Config(get=True, url="http://localhost/"), ["-C"])
    assert config.config is True
    assert config.get is False


def test_mark_enables_logging():
    config = parse_cmdline(Config(), ["--mark", "run one"])
    assert config.mark is True
    assert config.markstr == "run one"
    assert config.logging is True


def test_no_parser_no_follow_json():
    config = parse_cmdline(Config(parser=True, follow=True), ["--no-parser", "--no-follow", "-j"])
    assert config.parser is False
    assert config.follow is False
    assert config.json_output is True


def test_no_argument_long_option_rejects_value(capsys):
    config = parse_cmdline(Config(), ["--verbose=yes"])
    assert "doesn't allow an argument" in capsys.readouterr().err
    assert config.verbose is False


def test_version_switch_exits(capsys):
    with pytest.raises(SystemExit) as info:
        parse_cmdline(Config(), ["-V"])
    assert info.value.code == 0
    assert VERSION in capsys.readouterr().err


def test_display_version_short_does_not_exit(capsys):
    text = display_version(Config(), False)
    assert text == f"SIEGE {VERSION}\n"
    assert capsys.readouterr().err == text


def test_display_version_debug_does_not_exit():
    text = display_version(Config(debug=True), True)
    assert "debugging enabled" in text


def test_display_help_exits(capsys):
    with pytest.raises(SystemExit) as info:
        display_help("siege")
    assert info.value.code == 0
    out = capsys.readouterr().out
    assert "Usage: siege [options]" in out
    assert "--json-output" in out


def test_help_switch_exits(capsys):
    with pytest.raises(SystemExit):
        parse_cmdline(Config(), ["--help"])
    assert "Options:" in capsys.readouterr().out