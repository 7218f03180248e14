"""Resource-file loading, defaults and sanity checks for a run."""

from __future__ import annotations

import os
import platform
import re
import subprocess
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import IO

from besieger.config import (
    ENCODING_SIZE,
    EXTRA_SIZE,
    FILE_SIZE,
    LOGFILE_SIZE,
    MAXREPS,
    UAGENT_SIZE,
    Config,
    Method,
    is_separator,
)
from besieger.hashtable import HashTable

VERSION = "4.1.6"
PLATFORM = f"{platform.machine() or 'unknown'}-{sys.platform}"
CNF_FILE = "/usr/local/etc/siegerc"
URL_FILE = "/usr/local/etc/urls.txt"
LOG_FILE = "/usr/local/var/log/siege.log"
CONFIG_HELPER = "siege.config"
DEFAULT_CONTENT_TYPE = "application/x-www-form-urlencoded"

_INT_RE = re.compile(r"\s*([+-]?\d+)")
_FLOAT_RE = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_VAR_RE = re.compile(r"\$[({]([^)}]*)[)}]")


class ConfigError(Exception):
    """Raised when the resource file is missing or holds an invalid setting."""


def _atoi(value: str) -> int:
    match = _INT_RE.match(value)
    return int(match.group(1)) if match else 0


def _atof(value: str) -> float:
    match = _FLOAT_RE.match(value)
    return float(match.group(1)) if match else 0.0


def _is_true(value: str) -> bool:
    return value[:4].lower() == "true"


def _matches(option: str, name: str) -> bool:
    return option.lower() == name.lower()


def _limit(value: str, size: int) -> str:
    return value[: size - 1]


def read_config_line(fp: IO[str]) -> str | None:
    """Return the next line of ``fp`` without its newline and comment, or None at EOF.

    Lines that begin with "login" keep their '#' characters, since passwords
    may contain them.
    """
    line = fp.readline()
    if not line:
        return None
    if line.endswith("\n"):
        line = line[:-1]
    if not line.strip().startswith("login"):
        line = line.split("#", 1)[0]
    return line


def parse_time(config: Config, value: str) -> None:
    """Set the run length from a value such as "30S", "5M" or "1H" (minutes by default)."""
    config.time = 0
    config.secs = 0
    digits = len(value) - len(value.lstrip("0123456789"))
    if digits == 0:
        return
    config.time = int(value[:digits])
    for ch in value[digits:].lower():
        if ch == "s":
            config.secs = config.time
        elif ch == "m":
            config.secs = config.time * 60
        elif ch == "h":
            config.secs = config.time * 3600
        else:
            continue
        config.time = 1
        return
    if config.time > 0 and config.secs <= 0:
        config.secs = config.time * 60


def _evaluate(variables: HashTable, text: str, environ: Mapping[str, str]) -> str:
    def lookup(match: re.Match[str]) -> str:
        name = match.group(1)
        found = variables.get(name) if name else None
        if found is None:
            found = environ.get(name, "")
        return str(found)

    while "$" in text:
        replaced = _VAR_RE.sub(lookup, text)
        if replaced == text:
            break
        text = replaced
    return text


def _split_option(line: str) -> tuple[str, str]:
    end = 0
    while end < len(line) and not line[end].isspace() and not is_separator(line[end]):
        end += 1
    option = line[:end]
    rest = line[end + 1:]
    start = 0
    while start < len(rest) and (rest[start].isspace() or is_separator(rest[start])):
        start += 1
    return option, rest[start:]


def _apply(config: Config, option: str, value: str, variables: HashTable) -> None:
    flags = {
        "verbose": "verbose",
        "quiet": "quiet",
        "parser": "parser",
        "csv": "csv",
        "fullurl": "fullurl",
        "display-id": "display",
        "logging": "logging",
        "show-logfile": "shlog",
        "timestamp": "timestamp",
        "internet": "internet",
        "benchmark": "bench",
        "cache": "cache",
        "debug": "debug",
        "chunked": "chunked",
        "unique": "unique",
        "json_output": "json_output",
        "expire-session": "expire",
        "follow-location": "follow",
        "zero-data-ok": "zero_ok",
        "spinner": "spinner",
    }
    integers = {
        "concurrent": "cusers",
        "reps": "reps",
        "limit": "limit",
        "timeout": "timeout",
        "attempts": "bids",
        "failures": "failures",
        "ssl-timeout": "ssl_timeout",
    }
    key = option.lower()

    if key in flags:
        setattr(config, flags[key], _is_true(value))
    elif key in integers:
        setattr(config, integers[key], _atoi(value))
    elif key == "color":
        config.color = not (_matches(value, "false") or _matches(value, "off"))
    elif key == "nofollow":
        if len(value) > 3:
            config.nomap.append(value)
    elif key == "logfile":
        config.logfile = _limit(value, LOGFILE_SIZE)
    elif key == "time":
        parse_time(config, value)
    elif key == "delay":
        config.delay = _atof(value)
    elif key == "gmethod":
        config.method = Method.GET if _matches(value, "GET") else Method.HEAD
    elif key == "file":
        config.file = _limit(value, FILE_SIZE)
    elif key == "url":
        config.url = value
    elif key == "user-agent":
        config.uagent = _limit(value, UAGENT_SIZE)
    elif key == "accept-encoding":
        config.encoding = _limit(value, ENCODING_SIZE)
    elif key.startswith("login"):
        if key == "login-url":
            config.login = True
            config.lurl.append(value)
        else:
            config.credentials.append(("http", value))
    elif key == "auth-url":
        config.aurl.append(value)
    elif key == "connection":
        config.keepalive = value[:10].lower() == "keep-alive"
    elif key == "protocol":
        config.protocol = value[:8].lower() == "http/1.1"
    elif key == "proxy-host":
        config.proxy_host = value.strip()
        config.proxy_required = True
    elif key == "proxy-socks5":
        config.proxy_socks5 = _is_true(value)
    elif key == "proxy-port":
        config.proxy_port = _atoi(value)
    elif key == "ftp-login":
        config.credentials.append(("ftp", value))
    elif key == "proxy-login":
        config.credentials.append(("proxy", value))
    elif key == "header":
        if ":" not in value:
            raise ConfigError("no ':' in http-header")
        if len(value) + len(config.extra) + 3 > EXTRA_SIZE // 2:
            raise ConfigError("too many headers")
        config.extra += value + "\r\n"
    elif key == "url-escaping":
        config.escape = value[:5].lower() != "false"
    elif key == "ssl-cert":
        config.ssl_cert = value
    elif key == "ssl-key":
        config.ssl_key = value
    elif key == "ssl-ciphers":
        config.ssl_ciphers = value
    else:
        variables.add(option, value)


def load_conf(config: Config, filename: str) -> Config:
    """Apply the settings in resource file ``filename`` to ``config``.

    Unknown keys become variables that later lines may reference as
    ``$(name)``; environment variables are used where no such key exists.
    Raises OSError if the file cannot be opened and ConfigError on a bad
    header setting.
    """
    variables = HashTable()
    with open(filename, encoding="utf-8", errors="replace") as fp:
        while (raw := read_config_line(fp)) is not None:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            option, value = _split_option(line)
            option = _evaluate(variables, option, os.environ)
            value = _evaluate(variables, value, os.environ)
            _apply(config, option, value, variables)
    return config


def _ensure_home_config(home: str) -> None:
    directory = Path(home) / ".siege"
    needed = False
    if not directory.exists():
        needed = True
    elif not directory.is_dir():
        try:
            directory.unlink()
            needed = True
        except OSError:
            needed = False
    if needed:
        try:
            directory.mkdir(mode=0o750, exist_ok=True)
        except OSError:
            pass
        try:
            subprocess.run([CONFIG_HELPER], check=False)
        except (OSError, KeyboardInterrupt):
            pass


def _reset_defaults(config: Config) -> None:
    config.debug = False
    config.quiet = False
    config.color = True
    config.internet = False
    config.config = False
    config.csv = False
    config.fullurl = False
    config.escape = True
    config.parser = False
    config.secs = -1
    config.limit = 255
    config.reps = MAXREPS
    config.bids = 5
    config.login = False
    config.failures = 1024
    config.failed = 0
    config.credentials = []
    config.proxy_required = False
    config.proxy_host = None
    config.proxy_port = 3128
    config.proxy_socks5 = False
    config.timeout = 30
    config.timestamp = False
    config.chunked = False
    config.unique = True
    config.json_output = False
    config.extra = ""
    config.follow = True
    config.zero_ok = True
    config.signaled = 0
    config.ssl_timeout = 300
    config.ssl_cert = None
    config.ssl_key = None
    config.ssl_ciphers = None
    config.lurl = []
    config.aurl = []
    config.nomap = []


def init_config(config: Config, home: str | None = None,
                environ: Mapping[str, str] | None = None) -> Config:
    """Set defaults, locate the resource file and load it into ``config``.

    Raises ConfigError if the resource file cannot be opened.
    """
    environ = os.environ if environ is None else environ
    home = home if home is not None else environ.get("HOME", "")
    _ensure_home_config(home)

    if config.rc == "":
        rc = environ.get("SIEGERC")
        if rc is None:
            rc = f"{home}/.siege/siege.conf"
            if not Path(rc).exists():
                rc = CNF_FILE
        config.rc = rc

    _reset_defaults(config)

    try:
        load_conf(config, config.rc)
    except OSError as exc:
        raise ConfigError(
            f"could not open {config.rc}; run '{CONFIG_HELPER}' to generate a new config file"
        ) from exc

    if len(config.file) < 1:
        config.file = URL_FILE
    if len(config.uagent) < 1:
        config.uagent = f"Mozilla/5.0 ({PLATFORM}) Siege/{VERSION}"
    if len(config.conttype) < 1:
        config.conttype = DEFAULT_CONTENT_TYPE
    if len(config.encoding) < 1:
        config.encoding = "*"
    if len(config.logfile) < 1:
        config.logfile = LOG_FILE
    return config


def ds_module_check(config: Config) -> Config:
    """Resolve conflicting settings before a run starts."""
    if config.bench:
        config.delay = 0
    if config.secs > 0 and config.reps > 0 and config.reps != MAXREPS:
        sys.stderr.write("[error] CONFIG conflict: selected time and repetition based testing\n")
        sys.stderr.write(f"defaulting to time-based testing: {config.secs} seconds\n")
        config.reps = MAXREPS
    if config.cusers <= 0:
        config.cusers = 1
    if config.get:
        config.cusers = 1
        config.reps = 1
        config.logging = False
        config.bench = True
    if config.json_output:
        config.quiet = True
    if config.quiet:
        config.verbose = False
        config.debug = False
    return config


def _bool(flag: bool) -> str:
    return "true" if flag else "false"


def _credentials(config: Config, kind: str) -> str:
    names = [value.split(":", 1)[0] for k, value in config.credentials if k == kind]
    return ", ".join(names) if names else "none"


def show_config(config: Config) -> str:
    """Build the settings report printed by the --config switch."""
    method = "GET" if config.method is Method.GET else "HEAD"
    lines = [
        "CURRENT  SIEGE  CONFIGURATION",
        config.uagent,
        "Edit the resource file to change the settings.",
        "----------------------------------------------",
        f"version:                        {VERSION}",
        f"verbose:                        {_bool(config.verbose)}",
        f"color:                          {_bool(config.color)}",
        f"quiet:                          {_bool(config.quiet)}",
        f"debug:                          {_bool(config.debug)}",
        f"protocol:                       {'HTTP/1.1' if config.protocol else 'HTTP/1.0'}",
        f"HTML parser:                    {'enabled' if config.parser else 'disabled'}",
        f"get method:                     {method}",
    ]
    if config.proxy_required:
        lines += [
            f"proxy-host:                     {config.proxy_host}",
            f"proxy-port:                     {config.proxy_port}",
            f"proxy-socks5:                   {_bool(config.proxy_socks5)}",
        ]
    lines.append(f"connection:                     {'keep-alive' if config.keepalive else 'close'}")
    lines.append(f"concurrent users:               {config.cusers}")
    if config.secs > 0:
        lines.append(f"time to run:                    {config.secs} seconds")
    else:
        lines.append("time to run:                    n/a")
    if config.reps > 0 and config.reps != MAXREPS:
        lines.append(f"repetitions:                    {config.reps}")
    else:
        lines.append("repetitions:                    n/a")
    named = "none" if config.url is None or len(config.url) < 2 else config.url
    lines += [
        f"socket timeout:                 {config.timeout}",
        f"cache enabled:                  {_bool(config.cache)}",
        f"accept-encoding:                {config.encoding}",
        f"delay:                          {config.delay:.3f} sec{'s' if config.delay > 1 else ''}",
        f"internet simulation:            {_bool(config.internet)}",
        f"benchmark mode:                 {_bool(config.bench)}",
        f"failures until abort:           {config.failures}",
        f"named URL:                      {named}",
        f"URLs file:                      {config.file if len(config.file) > 1 else URL_FILE}",
        f"thread limit:                   {255 if config.limit < 1 else config.limit}",
        f"logging:                        {_bool(config.logging)}",
        f"log file:                       {config.logfile or LOG_FILE}",
        f"resource file:                  {config.rc}",
        f"timestamped output:             {_bool(config.timestamp)}",
        f"comma separated output:         {_bool(config.csv)}",
        f"allow redirects:                {_bool(config.follow)}",
        f"allow zero byte data:           {_bool(config.zero_ok)}",
        f"allow chunked encoding:         {_bool(config.chunked)}",
        f"upload unique files:            {_bool(config.unique)}",
        f"json output:                    {_bool(config.json_output)}",
    ]
    if config.parser and config.nomap:
        lines.append("no-follow:")
        lines += [f" - {host}" for host in config.nomap]
    lines.append(f"proxy auth:                     {_credentials(config, 'proxy')}")
    lines.append(f"www auth:                       {_credentials(config, 'http')}")
    return "\n".join(lines) + "\n"