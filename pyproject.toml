[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "besieger"
version = "0.1.0"
description = "Building blocks for an HTTP and FTP load tester: configuration, command-line parsing, request building, response parsing and transaction logging"
requires-python = ">=3.10"
dependencies = []
keywords = ["http", "ftp", "load-testing", "benchmark", "stress-test", "configuration"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Software Development :: Testing :: Traffic Generation",
    "Topic :: System :: Benchmark",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["besieger"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
