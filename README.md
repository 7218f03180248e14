# besieger

Pieces of an HTTP and FTP load tester, written as a plain Python library
with no third-party dependencies. Python 3.10 or later is required.

## What is in the package

- `besieger.config` — the `Config` dataclass holding every run-time
  setting, `Config.add_header()` for extra request headers, the `Method`
  enum and `is_separator()`.
- `besieger.settings` — the resource-file reader `load_conf()`, the line
  reader `read_config_line()`, `parse_time()`, `init_config()` for
  defaults, `ds_module_check()` for resolving conflicting settings, and
  `show_config()`, which returns the settings report as a string.
  Errors are raised as `ConfigError`.
- `besieger.cli` — `parse_rc_cmdline()` finds the resource file named with
  `-R/--rc`; `parse_cmdline()` applies the other switches to a `Config`;
  `display_version()` and `display_help()` write the version and usage
  screens.
- `besieger.http` — `Target`, `RequestOptions` and `ResponseHeaders`;
  `build_get_request()` and `build_post_request()` produce request bytes;
  `https_tunnel_request()` / `https_tunnel_response()` handle a proxy
  `CONNECT`; `read_headers()`, `chunk_size()`, `read_body()` and
  `inflate()` read responses, including chunked and gzip/deflate bodies.
- `besieger.ftp` — `FtpSession` with `login`, `pasv`, `cwd`, `ascii`,
  `binary`, `size`, `stor`, `retr`, `list`, `put`, `get` and `quit`,
  plus `response_code()` and `parse_pasv_reply()`. Failures to write are
  raised as `FtpError`.
- `besieger.contenttype` — `get_file_extension()`, `get_content_type()`,
  `is_ascii()`, `load_file()` (returns a `PostData` or `None`) and
  `write_file()`.
- `besieger.logfile` — a comma-separated transaction log:
  `create_logfile()`, `file_exists()`, `format_entry()`, `write_to_log()`
  and `mark_log_file()`. Errors are raised as `LogError`.
- `besieger.hashtable` — `HashTable`, a string-keyed chained table using
  the 32-bit FNV-1a hash (`fnv1a_32()`, `bucket_index()`). Adding a key
  that is already present keeps the first value.

The HTTP and FTP code works on any object with `read(size) -> bytes` and
`write(data) -> int` methods, so it can be driven by a socket wrapper or by
an in-memory stream in tests.

## Examples

Content types by file extension:

```python
from besieger.contenttype import get_content_type, is_ascii

get_content_type("report.json")   # "application/json"
get_content_type("unknown.xyz1")  # "application/x-www-form-urlencoded"
is_ascii("notes.txt")             # True
```

The hash table keeps the first value stored under a key:

```python
from besieger.hashtable import HashTable

table = HashTable(16)
table.add("Homer", "D'oh!")
table.add("Homer", "Whoo hoo!")
table.get("Homer")     # "D'oh!"
"Homer" in table       # True
len(table)             # 1
```

Reading FTP replies:

```python
from besieger.ftp import response_code, parse_pasv_reply

response_code("331 User name okay, need password.")           # 331
parse_pasv_reply("227 Entering Passive Mode (127,0,0,1,4,1)")  # ("127.0.0.1", 1025)
```

Building a request:

```python
from besieger.http import Target, RequestOptions, build_get_request

head = build_get_request(
    Target("example.com", 8080, "/index.html"),
    RequestOptions(uagent="besieger", keepalive=True),
)
# b"GET /index.html HTTP/1.1\r\nHost: example.com:8080\r\n..."
```

Parsing the command line into a configuration:

```python
from besieger.config import Config
from besieger.cli import parse_cmdline
from besieger.settings import ds_module_check

config = parse_cmdline(Config(), ["-c", "25", "-t", "1M", "http://localhost/"])
ds_module_check(config)
config.cusers, config.secs, config.url   # (25, 60, "http://localhost/")
```

`-V` and `-h` raise `SystemExit(0)` after writing their screens; an
invalid `-H` header or `-g` without a URL raises `ValueError`.

Appending a run to the transaction log:

```python
from besieger.logfile import write_to_log, mark_log_file

mark_log_file("run.log", "nightly run")
write_to_log("run.log", 120, 10.0, 2048, 6.0, 120, 0, False)
```

If the log file does not exist it is created with a header line first.

## Configuration file

The resource file holds one `option = value` pair per line (a colon works
as the separator too). Lines starting with `#` are comments, and a `#`
later on a line starts a comment except on lines beginning with `login`,
so passwords may contain it. Unknown options are kept as variables and can
be referred to in later lines as `$(name)` or `${name}`; where no such
variable exists, the environment variable of that name is used.

```
concurrent = 25
time = 1M
connection = keep-alive
protocol = HTTP/1.1
header = X-Test: yes
```

`init_config()` looks for the file named by `Config.rc`, then the
`SIEGERC` environment variable, then `~/.siege/siege.conf`, then a
system-wide default. If the `~/.siege` directory is missing it creates it
and runs the external `siege.config` helper program, if one is installed.

## What the package does not do

There is no command to install or run: the package has no entry point
that starts a load test. It does not open network connections itself,
spawn simulated users, schedule requests, parse URLs, manage cookies or
compute authentication headers, and it does not gather or print run
statistics. Callers supply connections, header values and figures, and
the package builds, parses and records them.

## Running the tests

The tests live in `tests/` and run under pytest (install the `test`
extra).