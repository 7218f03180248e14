"""HTTP/HTTPS request building and response reading over a byte stream."""

from __future__ import annotations

import re
import zlib
from dataclasses import dataclass, field
from typing import Protocol

_ACCEPT = "Accept: */*\r\n"
_READ_BLOCK = 0x10000
_ULONG_MAX = 2**64 - 1

_STATUS_RE = re.compile(r"^http\S*\s+(\d+)", re.IGNORECASE)
_HEX_RE = re.compile(r"[0-9a-fA-F]+")
_KEEPALIVE_RE = re.compile(r"(timeout|max)\s*=\s*(\d+)", re.IGNORECASE)


class _Connection(Protocol):
    def read(self, size: int) -> bytes:
        """Return up to ``size`` bytes; an empty result means end of stream."""

    def write(self, data: bytes) -> int:
        """Send ``data`` and return the number of bytes written."""


@dataclass
class Target:
    """Where a request goes and what it asks for."""

    hostname: str
    port: int = 80
    request: str = "/"
    scheme: str = "http"
    method: str = "GET"


@dataclass
class RequestOptions:
    """Per-request settings that shape the request head.

    ``www_auth`` and ``proxy_auth`` are complete header lines (with CRLF)
    or empty; ``cookie`` is the value of the Cookie header or empty.
    """

    encrypt: bool = False
    proxy: bool = False
    protocol: bool = True
    get: bool = False
    print: bool = False
    keepalive: bool = False
    uagent: str = ""
    encoding: str = "*"
    extra: str = ""
    cookie: str = ""
    www_auth: str = ""
    proxy_auth: str = ""
    if_modified_since: str | None = None
    if_none_match: str | None = None


@dataclass
class ResponseHeaders:
    """The parts of a response head that the client acts on."""

    code: int = 0
    content_type: str | None = None
    content_encoding: str | None = None
    content_length: int | None = None
    transfer_encoding: str | None = None
    connection: str | None = None
    keepalive_timeout: int | None = None
    keepalive_max: int | None = None
    location: str | None = None
    last_modified: str | None = None
    etag: str | None = None
    expires: str | None = None
    www_authenticate: str | None = None
    proxy_authenticate: str | None = None
    cookies: list[str] = field(default_factory=list)

    @property
    def chunked(self) -> bool:
        """True if the body is sent in chunks."""
        return self.transfer_encoding is not None and "chunked" in self.transfer_encoding.lower()

    @property
    def encoding(self) -> str | None:
        """Compression of the body: "gzip", "deflate" or None."""
        if self.content_encoding is None:
            return None
        value = self.content_encoding.lower()
        if "gzip" in value:
            return "gzip"
        if "deflate" in value:
            return "deflate"
        return None


def _readline(conn: _Connection) -> bytes:
    line = bytearray()
    while True:
        byte = conn.read(1)
        if not byte:
            return bytes(line)
        line += byte
        if byte == b"\n":
            return bytes(line)


def https_tunnel_request(conn: _Connection, host: str, port: int) -> bytes:
    """Ask a proxy to open a tunnel to ``host:port`` and return what was sent.

    Raises ConnectionError if the request cannot be written in full.
    """
    request = (
        f"CONNECT {host}:{port} HTTP/1.0\r\n"
        "User-agent: Proxy-User\r\n"
        "\r\n"
    ).encode("latin-1")
    if conn.write(request) != len(request):
        raise ConnectionError("HTTP: unable to write to socket.")
    return request


def https_tunnel_response(conn: _Connection) -> int:
    """Read the proxy's reply to a tunnel request and return its status code."""
    code = 100
    while True:
        raw = _readline(conn)
        if not raw:
            raise ConnectionError("connection closed while reading tunnel response")
        line = raw.decode("latin-1")
        if line in ("\n", "\r\n"):
            return code
        if line[:4].lower() == "http":
            match = re.match(r"\s*([+-]?\d+)", line[9:])
            code = int(match.group(1)) if match else 0


def _request_parts(target: Target, options: RequestOptions) -> dict[str, str]:
    if options.proxy:
        scheme = "https" if options.encrypt else "http"
        fullpath = f"{scheme}://{target.hostname}:{target.port}{target.request}"
    else:
        fullpath = target.request
    if not options.protocol or options.get or options.print:
        protocol = "HTTP/1.0"
    else:
        protocol = "HTTP/1.1"
    host = ""
    if "host:" not in options.extra.lower():
        scheme = target.scheme.lower()
        if (scheme == "http" and target.port != 80) or (scheme == "https" and target.port != 443):
            host = f"Host: {target.hostname}:{target.port}\r\n"
        else:
            host = f"Host: {target.hostname}\r\n"
    encoding = ""
    if not (options.get and options.print):
        encoding = f"Accept-Encoding: {options.encoding}\r\n"
    return {
        "line": f"{target.method} {fullpath} {protocol}\r\n",
        "host": host,
        "auth": options.www_auth + options.proxy_auth,
        "cookie": f"Cookie: {options.cookie}\r\n" if options.cookie else "",
        "accept": "" if options.extra[:7].lower() == "accept:" else _ACCEPT,
        "encoding": encoding,
        "uagent": f"User-Agent: {options.uagent}\r\n",
        "connection": "keep-alive" if options.keepalive else "close",
    }


def build_get_request(target: Target, options: RequestOptions) -> bytes:
    """Return the request head for a body-less request."""
    parts = _request_parts(target, options)
    ifmod = (
        f"If-Modified-Since: {options.if_modified_since}\r\n"
        if options.if_modified_since else ""
    )
    ifnon = f"If-None-Match: {options.if_none_match}\r\n" if options.if_none_match else ""
    head = (
        parts["line"] + parts["host"] + parts["auth"] + parts["cookie"]
        + ifmod + ifnon + parts["accept"] + parts["encoding"] + parts["uagent"]
        + options.extra + f"Connection: {parts['connection']}\r\n\r\n"
    )
    return head.encode("utf-8")


def build_post_request(target: Target, options: RequestOptions, body: bytes,
                       content_type: str) -> bytes:
    """Return a complete request carrying ``body`` as ``content_type``."""
    parts = _request_parts(target, options)
    head = (
        parts["line"] + parts["host"] + parts["auth"] + parts["cookie"]
        + parts["accept"] + parts["encoding"] + parts["uagent"] + options.extra
        + f"Connection: {parts['connection']}\r\n"
        + f"Content-Type: {content_type}\r\n"
        + f"Content-Length: {len(body)}\r\n\r\n"
    )
    return head.encode("utf-8") + bytes(body)


def _apply_header(headers: ResponseHeaders, line: str) -> None:
    if line[:4].lower() == "http":
        match = _STATUS_RE.match(line)
        headers.code = int(match.group(1)) if match else 0
        return
    name, sep, value = line.partition(":")
    if not sep:
        return
    name = name.strip().lower()
    value = value.strip()
    if name == "content-type":
        headers.content_type = value
    elif name == "content-encoding":
        headers.content_encoding = value
    elif name == "content-length":
        match = re.match(r"\d+", value)
        headers.content_length = int(match.group(0)) if match else 0
    elif name == "set-cookie":
        headers.cookies.append(value)
    elif name == "connection":
        headers.connection = value
    elif name == "keep-alive":
        for key, number in _KEEPALIVE_RE.findall(value):
            if key.lower() == "timeout":
                headers.keepalive_timeout = int(number)
            else:
                headers.keepalive_max = int(number)
    elif name in ("location", "content-location"):
        headers.location = value
    elif name == "last-modified":
        headers.last_modified = value
    elif name == "etag":
        headers.etag = value
    elif name == "expires":
        headers.expires = value
    elif name == "www-authenticate":
        headers.www_authenticate = value
    elif name == "proxy-authenticate":
        headers.proxy_authenticate = value
    elif name == "transfer-encoding":
        headers.transfer_encoding = value


def read_headers(conn: _Connection) -> ResponseHeaders:
    """Read a response head up to its blank line.

    Raises ConnectionError if the stream ends before the head is complete.
    """
    headers = ResponseHeaders()
    while True:
        raw = _readline(conn)
        if not raw.endswith(b"\n"):
            raise ConnectionError("connection closed while reading headers")
        line = raw.decode("latin-1").rstrip("\n")
        if line.endswith("\r"):
            line = line[:-1]
        if line == "":
            return headers
        _apply_header(headers, line)


def chunk_size(conn: _Connection) -> int | None:
    """Read a chunk-size line and return the size.

    Returns None when the line holds no size, and 0 when the size is too
    large to represent. Raises ConnectionError at end of stream.
    """
    raw = _readline(conn)
    if not raw:
        raise ConnectionError("HTTP: unable to determine chunk size")
    line = raw.decode("latin-1")
    match = _HEX_RE.match(line)
    if match is None:
        return None
    value = int(match.group(0), 16)
    if value > _ULONG_MAX:
        return 0
    return value


def inflate(data: bytes, encoding: str | None) -> bytes:
    """Decompress a gzip or deflate body; other encodings pass through.

    Raises ValueError if the data is not a complete compressed stream.
    """
    if encoding == "gzip":
        wbits = zlib.MAX_WBITS | 32
    elif encoding == "deflate":
        wbits = -zlib.MAX_WBITS
    else:
        return data
    try:
        return zlib.decompress(data, wbits)
    except zlib.error as exc:
        raise ValueError(f"unable to inflate {encoding} data: {exc}") from exc


def _read_chunked(conn: _Connection) -> bytes:
    body = bytearray()
    while True:
        try:
            size = chunk_size(conn)
        except ConnectionError:
            break
        if size == 0:
            _readline(conn)
            break
        if size is None:
            continue
        remaining = size
        while remaining > 0:
            piece = conn.read(remaining)
            if not piece:
                return bytes(body)
            body += piece
            remaining -= len(piece)
    return bytes(body)


def read_body(conn: _Connection, headers: ResponseHeaders, chunked: bool = False) -> bytes:
    """Read a response body and return it, decompressed where possible.

    ``chunked`` allows chunked transfer decoding when the server uses it.
    """
    if headers.content_length == 0:
        return b""
    if headers.content_length is not None:
        body = bytearray()
        while len(body) < headers.content_length:
            piece = conn.read(headers.content_length - len(body))
            if not piece:
                break
            body += piece
        raw = bytes(body)
    elif chunked and headers.chunked:
        raw = _read_chunked(conn)
    else:
        body = bytearray()
        while piece := conn.read(_READ_BLOCK):
            body += piece
        raw = bytes(body)

    if headers.encoding is not None:
        try:
            decoded = inflate(raw, headers.encoding)
        except ValueError:
            decoded = b""
        if decoded:
            return decoded
    return raw