"""Configuration, command-line parsing, HTTP/FTP protocol helpers and transaction logging for a load tester."""

__version__ = "0.1.0"