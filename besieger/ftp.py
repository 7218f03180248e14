"""FTP control-channel commands and data transfers."""

from __future__ import annotations

import re
import sys
import threading
from typing import Protocol

ANONYMOUS_USER = "anonymous"
ANONYMOUS_EMAIL = "anonymous@example.com"
SERVICE_UNAVAILABLE = 421
WRITE_FAILED = 500
_COMMAND_LIMIT = 1023
_LOGIN_FIELD_LIMIT = 127

_CODE_RE = re.compile(r"\s*([+-]?\d+)")
_SIZE_RE = re.compile(r"\s*([+-]?\d+)(?!\d)\s*([+-]?\d+)")


class Connection(Protocol):
    """What the session needs from a socket-like object."""

    def read(self, size: int) -> bytes:
        """Return up to ``size`` bytes; an empty result means end of stream."""

    def write(self, data: bytes) -> int:
        """Send ``data`` and return the number of bytes written."""


class FtpError(Exception):
    """Raised when the control or data connection cannot be used."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


def _okay(code: int) -> bool:
    return 100 <= code <= 299


def response_code(line: str) -> int:
    """Return the numeric reply code held in the first three characters of ``line``."""
    match = _CODE_RE.match(line[:3])
    return int(match.group(1)) if match else 0


def parse_pasv_reply(line: str) -> tuple[str, int]:
    """Return the (host, port) announced by a 227 reply.

    Raises ValueError if the reply does not hold six comma-separated numbers.
    """
    rest = line[4:]
    start = next((i for i, ch in enumerate(rest) if ch.isdigit()), None)
    if start is None:
        raise ValueError(f"no address in passive reply: {line!r}")
    pos = start
    numbers: list[int] = []
    for index in range(6):
        value = 0
        while pos < len(rest) and rest[pos].isdigit():
            value = (value * 10 + int(rest[pos])) % 256
            pos += 1
        numbers.append(value)
        if pos < len(rest) and rest[pos] == ",":
            pos += 1
        elif index < 5:
            raise ValueError(f"malformed passive reply: {line!r}")
    host = ".".join(str(n) for n in numbers[:4])
    port = (numbers[4] << 8) + numbers[5]
    return host, port


class FtpSession:
    """Commands sent over an FTP control connection.

    After each command ``code`` holds the server's reply code and
    ``last_line`` the final reply line.
    """

    def __init__(self, conn: Connection, quiet: bool = False) -> None:
        self.conn = conn
        self.quiet = quiet
        self.code = 0
        self.last_line = ""
        self.host = ""
        self.port = 0
        self.size_value = 0

    def _read_line(self) -> tuple[str, bool]:
        """Return one line (newline included) and whether the stream ended."""
        chunks = bytearray()
        while True:
            byte = self.conn.read(1)
            if not byte:
                return chunks.decode("latin-1"), True
            chunks += byte
            if byte == b"\n":
                return chunks.decode("latin-1"), False

    def response(self) -> int:
        """Read a complete (possibly multi-line) reply and return its code."""
        code = 120
        line = ""
        while True:
            while True:
                line, eof = self._read_line()
                if line[:1].isdigit() and line[3:4] != "-":
                    break
                if line == "" and eof:
                    break
            code = response_code(line)
            if line[3:4] == " ":
                break
            if line == "" and eof:
                code = SERVICE_UNAVAILABLE
                break
        self.last_line = line.rstrip("\r\n")
        if code > 499 and not self.quiet:
            print(self.last_line)
        return code

    def request(self, command: str) -> int:
        """Send ``command`` and return the reply code.

        Raises FtpError if the command cannot be written in full.
        """
        wire = (command[:_COMMAND_LIMIT] + "\r\n").encode("latin-1")
        written = self.conn.write(wire)
        if written != len(wire):
            self.code = WRITE_FAILED
            raise FtpError("FTP: unable to write to socket.", WRITE_FAILED)
        self.code = self.response()
        return self.code

    def login(self, username: str | None = None, password: str | None = None) -> bool:
        """Read the greeting and log in, anonymously when no user is given."""
        code = self.response()
        if not _okay(code):
            self.code = code
            if code == SERVICE_UNAVAILABLE:
                sys.stderr.write("[error] FTP: Server responded: 421 - Service unavailable\n")
            else:
                sys.stderr.write(f"[error] FTP: Server responded: {code}\n")
            return False
        user = (username or ANONYMOUS_USER)[:_LOGIN_FIELD_LIMIT]
        code = self.request(f"USER {user}")
        if code != 331 and _okay(code):
            return True
        secret = (password or ANONYMOUS_EMAIL)[:_LOGIN_FIELD_LIMIT]
        code = self.request(f"PASS {secret}")
        return 200 <= code <= 299

    def pasv(self) -> bool:
        """Enter passive mode and record the data address in ``host`` and ``port``."""
        if not _okay(self.request("PASV")):
            return False
        try:
            self.host, self.port = parse_pasv_reply(self.last_line)
        except ValueError:
            return False
        return True

    def cwd(self, path: str) -> bool:
        """Change the working directory."""
        return _okay(self.request(f"CWD {path}"))

    def ascii(self) -> bool:
        """Switch to text transfers."""
        return _okay(self.request("TYPE A"))

    def binary(self) -> bool:
        """Switch to binary transfers."""
        return _okay(self.request("TYPE I"))

    def quit(self) -> bool:
        """End the session."""
        return _okay(self.request("QUIT"))

    def size(self, path: str, file: str) -> bool:
        """Ask for the size of ``path + file``; on success it is kept in ``size_value``."""
        if not self.binary():
            return False
        if not _okay(self.request(f"SIZE {path}{file}")):
            return False
        match = _SIZE_RE.match(self.last_line)
        if match is None:
            return False
        self.size_value = int(match.group(2))
        return True

    def stor(self, file: str, unique: bool = True, ident: int | None = None) -> bool:
        """Start an upload of ``file``, under a per-thread name when ``unique``."""
        if unique:
            ident = threading.get_ident() if ident is None else abs(ident)
            base, _, ext = file.partition(".")
            name = f"{base}-{ident}.{ext}"[: len(file) + 16]
        else:
            name = file
        return _okay(self.request(f"STOR {name}"))

    def retr(self, path: str, file: str) -> bool:
        """Start a download of ``path + file``."""
        return _okay(self.request(f"RETR {path}{file}"))

    def list(self, data_conn: Connection | None, target: str, verbose: bool = False) -> bytes:
        """List ``target`` and return what arrived on the data connection."""
        self.request(f"LIST {target}")
        if self.code != 150:
            return b""
        if data_conn is None:
            raise FtpError(f"unable to read from socket: {self.host}:{self.port}")
        received = bytearray()
        while chunk := data_conn.read(1):
            received += chunk
        if verbose:
            print(received.decode("latin-1"), end="")
        return bytes(received)

    def put(self, data_conn: Connection, data: bytes) -> int:
        """Send ``data`` over the data connection and return its length."""
        if data_conn.write(data) != len(data):
            raise FtpError("FTP: unable to write to socket.")
        return len(data)

    def get(self, data_conn: Connection, size: int) -> bytes:
        """Read up to ``size`` bytes from the data connection."""
        received = bytearray()
        while len(received) < size:
            byte = data_conn.read(1)
            if not byte:
                break
            received += byte
        return bytes(received)