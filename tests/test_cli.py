"""Tests for the mdata command line."""

from unittest.mock import patch

import pytest

from conftest import response_line
from mdata_client import cli
from mdata_client.client import MetadataClient
from mdata_client.config import Transport
from mdata_client.errors import TransportError


def _run(argv, conn):
    with patch.object(cli.MetadataClient, "open", return_value=MetadataClient(conn)) as opener:
        code = cli.main(argv)
    return code, opener


def test_get_prints_value(scripted, capsys):
    conn = scripted(response_line("SUCCESS", "550e8400-e29b-41d4-a716-446655440000"))
    code, _ = _run(["get", "sdc:uuid"], conn)
    assert code == cli.EXIT_SUCCESS
    assert capsys.readouterr().out == "550e8400-e29b-41d4-a716-446655440000\n"
    assert conn.closed


def test_keys(scripted, capsys):
    conn = scripted(response_line("SUCCESS", "foo\nbar"))
    code, _ = _run(["keys"], conn)
    assert code == 0
    assert capsys.readouterr().out == "foo\nbar\n"


def test_put_prints_nothing(scripted, capsys):
    conn = scripted(response_line("SUCCESS"))
    code, _ = _run(["put", "foo", "bar"], conn)
    assert code == 0
    assert capsys.readouterr().out == ""


def test_delete(scripted):
    conn = scripted(response_line("SUCCESS"))
    code, _ = _run(["delete", "foo"], conn)
    assert code == 0


def test_get_not_found(scripted, capsys):
    conn = scripted(response_line("NOTFOUND"))
    code, _ = _run(["get", "missing"], conn)
    assert code == cli.EXIT_NOTFOUND
    assert "missing" in capsys.readouterr().err
    assert conn.closed


def test_put_reserved_namespace(scripted, capsys):
    conn = scripted()
    code, _ = _run(["put", "sdc:uuid", "x"], conn)
    assert code == cli.EXIT_ERROR
    assert "sdc:" in capsys.readouterr().err


def test_connection_failure(capsys):
    with patch.object(cli.MetadataClient, "open", side_effect=TransportError("no port")):
        code = cli.main(["--socket", "/tmp/none.sock", "keys"])
    assert code == cli.EXIT_ERROR
    assert "no port" in capsys.readouterr().err


def test_usage_error():
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])
    assert excinfo.value.code == cli.EXIT_USAGE


def test_wrong_arity():
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["put", "only-key"])
    assert excinfo.value.code == cli.EXIT_USAGE


def test_config_from_args_overrides():
    parser = cli.build_parser()

    config = cli.config_from_args(parser.parse_args(["--socket", "/x.sock", "keys"]))
    assert config.transport is Transport.UNIX
    assert config.socket.address == "/x.sock"

    config = cli.config_from_args(parser.parse_args(["--tcp", "h:1", "--timeout", "3", "keys"]))
    assert config.transport is Transport.TCP
    assert config.socket.timeout == 3.0

    config = cli.config_from_args(parser.parse_args(["--serial-port", "/dev/ttyS2", "keys"]))
    assert config.transport is Transport.SERIAL
    assert config.serial.port == "/dev/ttyS2"


def test_config_from_args_timeout_applies_to_probed(monkeypatch):
    monkeypatch.setattr("mdata_client.config.os.path.exists", lambda path: True)
    monkeypatch.delenv("MDATA_SOCKET", raising=False)
    monkeypatch.delenv("MDATA_TCP", raising=False)
    monkeypatch.delenv("MDATA_SERIAL_PORT", raising=False)
    monkeypatch.delenv("MDATA_TIMEOUT", raising=False)
    args = cli.build_parser().parse_args(["--timeout", "9", "keys"])
    config = cli.config_from_args(args)
    assert config.transport is Transport.UNIX
    assert config.socket.timeout == 9.0
