import io
from unittest import mock

import pytest

from besieger.config import MAXREPS, Config, Method
from besieger.settings import (
    ConfigError,
    ds_module_check,
    init_config,
    load_conf,
    parse_time,
    read_config_line,
    show_config,
)


def _write(tmp_path, text, name="siege.conf"):
    path = tmp_path / name
    path.write_text(text)
    return str(path)


def _home(tmp_path):
    (tmp_path / ".siege").mkdir(exist_ok=True)
    return str(tmp_path)


def test_read_config_line_strips_comment_and_newline():
    fp = io.StringIO("verbose = true # talk a lot\n\nlast")
    assert read_config_line(fp) == "verbose = true "
    assert read_config_line(fp) == ""
    assert read_config_line(fp) == "last"
    assert read_config_line(fp) is None


def test_read_config_line_keeps_hash_in_login():
    fp = io.StringIO("  login = user:pa#ss\n")
    assert read_config_line(fp) == "  login = user:pa#ss"


def test_parse_time_units():
    config = Config()
    parse_time(config, "30S")
    assert (config.secs, config.time) == (30, 1)
    parse_time(config, "1H")
    assert config.secs == 3600


def test_parse_time_without_digits_clears():
    config = Config(secs=9, time=9)
    parse_time(config, "H")
    assert (config.secs, config.time) == (0, 0)


def test_load_conf_sets_values(tmp_path):
    path = _write(tmp_path, (
        "# comment\n"
        "verbose = true\n"
        "concurrent = 25\n"
        "delay = 1.5\n"
        "connection = keep-alive\n"
        "protocol = HTTP/1.1\n"
        "gmethod = get\n"
        "color = off\n"
        "url-escaping = false\n"
        "proxy-host = proxy.example.com \n"
        "proxy-port = 8080\n"
    ))
    config = load_conf(Config(), path)
    assert config.verbose is True
    assert config.cusers == 25
    assert config.delay == 1.5
    assert config.keepalive is True
    assert config.protocol is True
    assert config.method is Method.GET
    assert config.color is False
    assert config.escape is False
    assert config.proxy_host == "proxy.example.com"
    assert config.proxy_port == 8080


def test_load_conf_variables_substituted(tmp_path):
    path = _write(tmp_path, "host = www.example.com\nurl = http://$(host)/index.html\n")
    config = load_conf(Config(), path)
    assert config.url == "http://www.example.com/index.html"


def test_load_conf_logins_and_headers(tmp_path):
    path = _write(tmp_path, (
        "login = user:password\n"
        "login-url = http://example.com/login POST name=user\n"
        "ftp-login = user:password\n"
        "header = X-Test: yes\n"
        "nofollow = ad.example.com\n"
    ))
    config = load_conf(Config(), path)
    assert ("http", "user:password") in config.credentials
    assert ("ftp", "user:password") in config.credentials
    assert config.login is True
    assert config.lurl == ["http://example.com/login POST name=user"]
    assert config.extra == "X-Test: yes\r\n"
    assert config.nomap == ["ad.example.com"]


def test_load_conf_header_without_colon(tmp_path):
    path = _write(tmp_path, "header = nocolon\n")
    with pytest.raises(ConfigError):
        load_conf(Config(), path)


def test_load_conf_missing_file(tmp_path):
    with pytest.raises(OSError):
        load_conf(Config(), str(tmp_path / "absent.conf"))


def test_init_config_defaults(tmp_path):
    rc = _write(tmp_path, "verbose = false\n")
    config = init_config(Config(), home=_home(tmp_path), environ={"SIEGERC": rc})
    assert config.rc == rc
    assert config.limit == 255
    assert config.reps == MAXREPS
    assert config.proxy_port == 3128
    assert config.timeout == 30
    assert config.encoding == "*"
    assert config.conttype == "application/x-www-form-urlencoded"
    assert config.uagent.startswith("Mozilla/5.0 (")


def test_init_config_uses_home_conf(tmp_path):
    home = _home(tmp_path)
    (tmp_path / ".siege" / "siege.conf").write_text("concurrent = 7\n")
    config = init_config(Config(), home=home, environ={})
    assert config.rc.endswith("/.siege/siege.conf")
    assert config.cusers == 7


def test_init_config_missing_rc(tmp_path):
    config = Config(rc=str(tmp_path / "nothing.conf"))
    with pytest.raises(ConfigError):
        init_config(config, home=_home(tmp_path), environ={})


def test_init_config_runs_helper_when_dir_missing(tmp_path):
    rc = _write(tmp_path, "quiet = true\n")
    with mock.patch("besieger.settings.subprocess.run") as run:
        config = init_config(Config(), home=str(tmp_path), environ={"SIEGERC": rc})
    assert run.call_args[0][0] == ["siege.config"]
    assert (tmp_path / ".siege").is_dir()
    assert config.quiet is True


def test_ds_module_check_get_mode():
    config = ds_module_check(Config(get=True, cusers=50, reps=10, logging=True))
    assert (config.cusers, config.reps) == (1, 1)
    assert config.logging is False
    assert config.bench is True


def test_ds_module_check_time_beats_reps():
    config = ds_module_check(Config(secs=10, reps=5, cusers=0))
    assert config.reps == MAXREPS
    assert config.cusers == 1


def test_ds_module_check_json_quiets():
    config = ds_module_check(Config(json_output=True, verbose=True, debug=True, cusers=3))
    assert config.quiet is True
    assert config.verbose is False
    assert config.debug is False


def test_ds_module_check_bench_zeroes_delay():
    config = ds_module_check(Config(bench=True, delay=2.5, cusers=2))
    assert config.delay == 0


def test_show_config_report():
    config = Config(protocol=True, cusers=4, secs=-1, reps=MAXREPS, url="http://example.com/",
                    parser=True, nomap=["ad.example.com"])
    text = show_config(config)
    assert "protocol:                       HTTP/1.1\n" in text
    assert "concurrent users:               4\n" in text
    assert "time to run:                    n/a\n" in text
    assert "named URL:                      http://example.com/\n" in text
    assert " - ad.example.com\n" in text
    assert text.startswith("CURRENT  SIEGE  CONFIGURATION\n")