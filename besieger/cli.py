"""Command-line parsing and the version and help screens."""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Iterator, Sequence

from besieger.config import CONTTYPE_SIZE, LOGFILE_SIZE, UAGENT_SIZE, Config
from besieger.settings import VERSION, parse_time

PROGRAM_NAME = "siege"
SHORT_OPTIONS = "VhvqCDNFpgl::ibr:t:f:d:c:m:H:R:A:T:j"

_NO_ARGUMENT = 0
_REQUIRED_ARGUMENT = 1
_OPTIONAL_ARGUMENT = 2

_LONG_OPTIONS: dict[str, tuple[int, str]] = {
    "version": (_NO_ARGUMENT, "V"),
    "help": (_NO_ARGUMENT, "h"),
    "verbose": (_NO_ARGUMENT, "v"),
    "quiet": (_NO_ARGUMENT, "q"),
    "config": (_NO_ARGUMENT, "C"),
    "debug": (_NO_ARGUMENT, "D"),
    "get": (_NO_ARGUMENT, "g"),
    "print": (_NO_ARGUMENT, "p"),
    "concurrent": (_REQUIRED_ARGUMENT, "c"),
    "no-parser": (_NO_ARGUMENT, "N"),
    "no-follow": (_NO_ARGUMENT, "F"),
    "internet": (_NO_ARGUMENT, "i"),
    "benchmark": (_NO_ARGUMENT, "b"),
    "reps": (_REQUIRED_ARGUMENT, "r"),
    "time": (_REQUIRED_ARGUMENT, "t"),
    "delay": (_REQUIRED_ARGUMENT, "d"),
    "log": (_OPTIONAL_ARGUMENT, "l"),
    "file": (_REQUIRED_ARGUMENT, "f"),
    "rc": (_REQUIRED_ARGUMENT, "R"),
    "mark": (_REQUIRED_ARGUMENT, "m"),
    "header": (_REQUIRED_ARGUMENT, "H"),
    "user-agent": (_REQUIRED_ARGUMENT, "A"),
    "content-type": (_REQUIRED_ARGUMENT, "T"),
    "json-output": (_NO_ARGUMENT, "j"),
}

_INT_RE = re.compile(r"\s*([+-]?\d+)")
_FLOAT_RE = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


class _Ambiguous(Exception):
    pass


def _short_table(spec: str) -> dict[str, int]:
    table: dict[str, int] = {}
    pos = 0
    while pos < len(spec):
        ch = spec[pos]
        pos += 1
        if spec[pos:pos + 2] == "::":
            table[ch] = _OPTIONAL_ARGUMENT
            pos += 2
        elif spec[pos:pos + 1] == ":":
            table[ch] = _REQUIRED_ARGUMENT
            pos += 1
        else:
            table[ch] = _NO_ARGUMENT
    return table


_SHORT_TABLE = _short_table(SHORT_OPTIONS)


def _atoi(value: str) -> int:
    match = _INT_RE.match(value)
    return int(match.group(1)) if match else 0


def _atof(value: str) -> float:
    match = _FLOAT_RE.match(value)
    return float(match.group(1)) if match else 0.0


def _warn(message: str) -> None:
    sys.stderr.write(f"{PROGRAM_NAME}: {message}\n")


def _match_long(name: str) -> str | None:
    if name in _LONG_OPTIONS:
        return name
    candidates = [option for option in _LONG_OPTIONS if option.startswith(name)]
    if len(candidates) > 1:
        raise _Ambiguous(name)
    return candidates[0] if candidates else None


def _getopt(argv: Sequence[str]) -> Iterator[tuple[str | None, str | None]]:
    """Yield (option, argument) pairs, and (None, word) for each non-option."""
    args = list(argv)
    require_order = "POSIXLY_CORRECT" in os.environ
    index = 0
    while index < len(args):
        arg = args[index]
        index += 1
        if arg == "--":
            for rest in args[index:]:
                yield None, rest
            return
        if not arg.startswith("-") or arg == "-":
            yield None, arg
            if require_order:
                for rest in args[index:]:
                    yield None, rest
                return
            continue
        if arg.startswith("--"):
            name, eq, value = arg[2:].partition("=")
            try:
                found = _match_long(name)
            except _Ambiguous:
                _warn(f"option `{arg}' is ambiguous")
                continue
            if found is None:
                _warn(f"unrecognized option `--{arg[2:]}'")
                continue
            kind, short = _LONG_OPTIONS[found]
            if eq:
                if kind == _NO_ARGUMENT:
                    _warn(f"option `--{found}' doesn't allow an argument")
                    continue
                yield short, value
            elif kind == _REQUIRED_ARGUMENT:
                if index < len(args):
                    yield short, args[index]
                    index += 1
                else:
                    _warn(f"option `{arg}' requires an argument")
            else:
                yield short, None
            continue
        pos = 1
        while pos < len(arg):
            ch = arg[pos]
            pos += 1
            kind = None if ch == ":" else _SHORT_TABLE.get(ch)
            if kind is None:
                word = "illegal" if require_order else "invalid"
                _warn(f"{word} option -- {ch}")
                continue
            if kind == _NO_ARGUMENT:
                yield ch, None
                continue
            rest = arg[pos:]
            if kind == _OPTIONAL_ARGUMENT:
                yield ch, rest or None
            elif rest:
                yield ch, rest
            elif index < len(args):
                yield ch, args[index]
                index += 1
            else:
                _warn(f"option requires an argument -- {ch}")
            break


def parse_rc_cmdline(argv: Sequence[str] | None = None) -> str:
    """Return the resource file named by -R/--rc, or "" if none was given."""
    argv = sys.argv[1:] if argv is None else argv
    for option, argument in _getopt(argv):
        if option == "R":
            return argument or ""
    return ""


def parse_cmdline(config: Config, argv: Sequence[str] | None = None) -> Config:
    """Apply the command-line switches in ``argv`` to ``config``.

    The last non-option word becomes the URL to hit. Raises ValueError for
    an invalid header, an over-long log file name, or --get without a URL.
    """
    argv = sys.argv[1:] if argv is None else argv
    positionals: list[str] = []
    for option, argument in _getopt(argv):
        value = argument or ""
        if option is None:
            positionals.append(value)
        elif option == "V":
            display_version(config, True)
        elif option == "h":
            display_help(PROGRAM_NAME)
        elif option == "D":
            config.debug = True
        elif option == "C":
            config.config = True
            config.get = False
        elif option == "c":
            config.cusers = _atoi(value)
        elif option == "i":
            config.internet = True
        elif option == "b":
            config.bench = True
        elif option == "d":
            config.delay = max(_atof(value), 0.0)
        elif option == "g":
            config.get = True
        elif option == "p":
            config.print = True
            config.cusers = 1
            config.reps = 1
        elif option == "l":
            config.logging = True
            if argument:
                if len(argument) > LOGFILE_SIZE:
                    raise ValueError(f"-l/--logfile is limited to {LOGFILE_SIZE} in length")
                config.logfile = argument
        elif option == "m":
            config.mark = True
            config.markstr = value
            config.logging = True
        elif option == "q":
            config.quiet = True
        elif option == "v":
            config.verbose = True
        elif option == "r":
            config.reps = -1 if value.lower() == "once" else _atoi(value)
        elif option == "t":
            parse_time(config, value)
        elif option == "f":
            if argument is not None:
                config.file = argument
        elif option == "A":
            config.uagent = value[: UAGENT_SIZE - 1]
        elif option == "T":
            config.conttype = value[: CONTTYPE_SIZE - 1]
        elif option == "N":
            config.parser = False
        elif option == "F":
            config.follow = False
        elif option == "H":
            config.add_header(value)
        elif option == "j":
            config.json_output = True
    if positionals:
        config.url = positionals[-1]
    if config.get and config.url is None:
        raise ValueError("-g/--get requires a commandline URL")
    return config


def display_version(config: Config, full: bool = False) -> str:
    """Write the program name and version to stderr and return the text.

    With ``full`` set and debugging off, exits with status 0 afterwards.
    """
    name = PROGRAM_NAME.upper()
    if config.debug:
        text = f"{name} {VERSION}: debugging enabled\n"
        sys.stderr.write(text)
        return text
    text = f"{name} {VERSION}\n"
    sys.stderr.write(text)
    if full:
        raise SystemExit(0)
    return text


def display_help(program_name: str = PROGRAM_NAME) -> None:
    """Print the usage screen and exit with status 0."""
    sys.stderr.write(f"{PROGRAM_NAME.upper()} {VERSION}\n")
    lines = [
        f"Usage: {program_name} [options]",
        f"       {program_name} [options] URL",
        f"       {program_name} -g URL",
        "Options:",
        "  -V, --version             VERSION, prints the version number.",
        "  -h, --help                HELP, prints this section.",
        "  -C, --config              CONFIGURATION, show the current config.",
        "  -v, --verbose             VERBOSE, prints notification to screen.",
        "  -q, --quiet               QUIET turns verbose off and suppresses output.",
        "  -g, --get                 GET, pull down HTTP headers and display the",
        "                            transaction. Great for application debugging.",
        "  -p, --print               PRINT, like GET only it prints the entire page.",
        "  -c, --concurrent=NUM      CONCURRENT users, default is 10",
        "  -r, --reps=NUM            REPS, number of times to run the test.",
        '  -t, --time=NUMm           TIMED testing where "m" is modifier S, M, or H',
        "                            ex: --time=1H, one hour test.",
        "  -d, --delay=NUM           Time DELAY, random delay before each request",
        "  -b, --benchmark           BENCHMARK: no delays between requests.",
        "  -i, --internet            INTERNET user simulation, hits URLs randomly.",
        "  -f, --file=FILE           FILE, select a specific URLS FILE.",
        f"  -R, --rc=FILE             RC, specify an {program_name}rc file",
        "  -l, --log[=FILE]          LOG to FILE. If FILE is not specified, the",
        f"                            default is used: PREFIX/var/{program_name}.log",
        '  -m, --mark="text"         MARK, mark the log file with a string.',
        "                            between .001 and NUM. (NOT COUNTED IN STATS)",
        '  -H, --header="text"       Add a header to request (can be many)',
        '  -A, --user-agent="text"   Sets User-Agent in request',
        '  -T, --content-type="text" Sets Content-Type in request',
        "  -j, --json-output         JSON OUTPUT, print final stats to stdout as JSON",
        "      --no-parser           NO PARSER, turn off the HTML page parser",
        "      --no-follow           NO FOLLOW, do not follow HTTP redirects",
        "",
    ]
    sys.stdout.write("\n".join(lines) + "\n")
    raise SystemExit(0)