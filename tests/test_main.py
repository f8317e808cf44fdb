"""Tests for command line parsing."""

import pytest

from n8n_mcp import __version__
from n8n_mcp.main import parse_args


def test_defaults():
    args = parse_args([])

    assert args.transport == "stdio"
    assert args.port == 3000


@pytest.mark.parametrize("flag, transport", [("--http", "http"), ("--stateless", "stateless"), ("--stdio", "stdio")])
def test_transport_flags(flag, transport):
    assert parse_args([flag]).transport == transport


def test_host_and_port():
    args = parse_args(["--http", "--host", "127.0.0.1", "--port", "8080"])

    assert args.host == "127.0.0.1"
    assert args.port == 8080


def test_flags_are_exclusive():
    with pytest.raises(SystemExit):
        parse_args(["--http", "--stateless"])


def test_version(capsys):
    with pytest.raises(SystemExit):
        parse_args(["--version"])

    assert __version__ in capsys.readouterr().out
