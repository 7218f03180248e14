"""Run-time configuration shared by the whole program."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

MAXREPS = 10301062
"""Sentinel repetition count meaning "no repetition limit was given"."""

EXTRA_SIZE = 8192
LOGFILE_SIZE = 4096
FILE_SIZE = 255
UAGENT_SIZE = 256
ENCODING_SIZE = 256
CONTTYPE_SIZE = 256
RC_SIZE = 256


class Method(enum.Enum):
    """HTTP request methods the tool knows about."""

    HEAD = "HEAD"
    GET = "GET"
    POST = "POST"
    PUT = "PUT"


def is_separator(ch: str) -> bool:
    """Return True if ``ch`` separates a configuration key from its value."""
    return ch in ("=", ":") and len(ch) == 1


@dataclass
class Config:
    """Settings for one run, filled from the resource file and command line."""

    logging: bool = False
    shlog: bool = False
    limit: int = 0
    url: str | None = None
    logfile: str = ""
    verbose: bool = False
    quiet: bool = False
    parser: bool = False
    csv: bool = False
    fullurl: bool = False
    display: bool = False
    config: bool = False
    color: bool = False
    cusers: int = 0
    delay: float = 0.0
    timeout: int = 0
    bench: bool = False
    internet: bool = False
    timestamp: bool = False
    time: int = 0
    secs: int = 0
    reps: int = 0
    file: str = ""
    length: int = 0
    nomap: list[str] = field(default_factory=list)
    debug: bool = False
    chunked: bool = False
    unique: bool = False
    get: bool = False
    print: bool = False
    mark: bool = False
    markstr: str | None = None
    protocol: bool = False
    uagent: str = ""
    encoding: str = ""
    conttype: str = ""
    bids: int = 0
    keepalive: bool = False
    signaled: int = 0
    extra: str = ""
    login: bool = False
    lurl: list[str] = field(default_factory=list)
    aurl: list[str] = field(default_factory=list)
    failures: int = 0
    failed: int = 0
    escape: bool = False
    expire: bool = False
    follow: bool = False
    zero_ok: bool = False
    spinner: bool = False
    cache: bool = False
    rc: str = ""
    ssl_timeout: int = 0
    ssl_cert: str | None = None
    ssl_key: str | None = None
    ssl_ciphers: str | None = None
    method: Method = Method.HEAD
    json_output: bool = False
    proxy_required: bool = False
    proxy_host: str | None = None
    proxy_port: int = 0
    proxy_socks5: bool = False
    credentials: list[tuple[str, str]] = field(default_factory=list)

    def add_header(self, header: str, max_size: int = EXTRA_SIZE) -> None:
        """Append an extra request header, terminated by CRLF.

        Raises ValueError if the header has no ':' or if the accumulated
        headers would exceed ``max_size``.
        """
        if ":" not in header:
            raise ValueError("no ':' in http-header")
        if len(header) + len(self.extra) + 3 > max_size:
            raise ValueError("header is too large")
        self.extra += header + "\r\n"