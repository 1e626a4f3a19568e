"""Tests for serial and socket connections and the transport factory."""

import socket
from unittest.mock import MagicMock, patch

import pytest
import serial

from mdata_client.config import ClientConfig, Transport, serial_config, socket_config
from mdata_client.errors import ConfigError, TransportError
from mdata_client.transport import open_connection
from mdata_client.transport.base import Connection, ConnectionIO, open_stream
from mdata_client.transport.serial_connection import SerialConnection
from mdata_client.transport.socket_connection import SocketConnection, parse_tcp_address

SERIAL_CLASS = "mdata_client.transport.serial_connection.serial.Serial"


# ─── SERIAL ──────────────────────────────────────────────────────────

def test_serial_open_settings():
    with patch(SERIAL_CLASS) as serial_cls:
        conn = SerialConnection("/dev/ttyS1").open()

    serial_cls.assert_called_once_with(
        port="/dev/ttyS1",
        baudrate=115200,
        bytesize=serial.EIGHTBITS,
        parity=serial.PARITY_NONE,
        stopbits=serial.STOPBITS_ONE,
        timeout=60.0,
    )
    assert isinstance(conn, Connection)


def test_serial_open_failure():
    with patch(SERIAL_CLASS, side_effect=serial.SerialException("no such port")):
        with pytest.raises(TransportError, match="/dev/ttyS9"):
            SerialConnection("/dev/ttyS9").open()


def test_serial_read_drains_buffered_bytes():
    port = MagicMock()
    port.read.side_effect = [b"V", b"2_OK\n"]
    port.in_waiting = 5
    with patch(SERIAL_CLASS, return_value=port):
        conn = SerialConnection("/dev/ttyS1").open()
        assert conn.read(64) == b"V2_OK\n"
    assert port.read.call_args_list[1].args == (5,)


def test_serial_read_respects_size():
    port = MagicMock()
    port.read.side_effect = [b"V", b"2_"]
    port.in_waiting = 100
    with patch(SERIAL_CLASS, return_value=port):
        conn = SerialConnection("/dev/ttyS1").open()
        assert conn.read(3) == b"V2_"
    assert port.read.call_args_list[1].args == (2,)


def test_serial_read_timeout_raises():
    """A read that gets no bytes before the timeout is reported as a timeout."""
    port = MagicMock()
    port.read.return_value = b""
    with patch(SERIAL_CLASS, return_value=port):
        conn = SerialConnection("/dev/ttyS1", timeout=0.5).open()
        with pytest.raises(TimeoutError, match="timed out after 0.5s"):
            conn.read(64)
    port.read.assert_called_once_with(1)


def test_serial_write_flushes_and_close_once():
    port = MagicMock()
    port.write.return_value = 4
    with patch(SERIAL_CLASS, return_value=port):
        conn = SerialConnection("/dev/ttyS1").open()
    assert conn.write(b"abc\n") == 4
    port.flush.assert_called_once()
    conn.set_read_timeout(1.0)
    conn.close()
    conn.close()
    port.close.assert_called_once()
    assert not conn.connected


def test_serial_not_open():
    with pytest.raises(TransportError, match="not open"):
        SerialConnection("/dev/ttyS1").write(b"x")


# ─── SOCKETS ─────────────────────────────────────────────────────────

def test_parse_tcp_address():
    assert parse_tcp_address("127.0.0.1:8080") == ("127.0.0.1", 8080)
    assert parse_tcp_address("[::1]:99") == ("::1", 99)
    with pytest.raises(ConfigError):
        parse_tcp_address("localhost")
    with pytest.raises(ConfigError):
        parse_tcp_address("localhost:http")


def test_socket_rejects_unknown_family():
    with pytest.raises(ConfigError):
        SocketConnection("udp", "x")


def test_tcp_connection_roundtrip():
    with socket.create_server(("127.0.0.1", 0)) as server:
        port = server.getsockname()[1]
        conn = SocketConnection("tcp", f"127.0.0.1:{port}", timeout=2.0).open()
        peer, _ = server.accept()
        with peer:
            assert conn.write(b"ping\n") == 5
            assert peer.recv(5) == b"ping\n"
            peer.sendall(b"pong\n")
            assert conn.read(5) == b"pong\n"
        conn.close()
        conn.close()
        assert not conn.connected


def test_tcp_read_timeout():
    with socket.create_server(("127.0.0.1", 0)) as server:
        port = server.getsockname()[1]
        conn = SocketConnection("tcp", f"127.0.0.1:{port}", timeout=2.0).open()
        peer, _ = server.accept()
        with peer:
            conn.set_read_timeout(0.05)
            with pytest.raises(socket.timeout):
                conn.read(1)
        conn.close()


def test_tcp_dial_failure():
    probe = socket.socket()
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    with pytest.raises(TransportError, match="failed to dial tcp"):
        SocketConnection("tcp", f"127.0.0.1:{port}", timeout=1.0).open()


@pytest.mark.skipif(not hasattr(socket, "AF_UNIX"), reason="no Unix sockets")
def test_unix_connection(tmp_path):
    path = str(tmp_path / "m.sock")
    server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    server.bind(path)
    server.listen(1)
    try:
        conn = SocketConnection("unix", path).open()
        peer, _ = server.accept()
        with peer:
            peer.sendall(b"V2_OK\n")
            assert conn.read(16) == b"V2_OK\n"
        conn.close()
    finally:
        server.close()


@pytest.mark.skipif(not hasattr(socket, "AF_UNIX"), reason="no Unix sockets")
def test_unix_dial_failure(tmp_path):
    with pytest.raises(TransportError, match="unix"):
        SocketConnection("unix", str(tmp_path / "missing.sock")).open()


# ─── FACTORY ─────────────────────────────────────────────────────────

def test_open_connection_serial():
    with patch(SERIAL_CLASS):
        conn = open_connection(serial_config("/dev/ttyS1"))
    assert isinstance(conn, SerialConnection)
    assert conn.port == "/dev/ttyS1"


def test_open_connection_missing_serial_port():
    with pytest.raises(ConfigError, match="serial port"):
        open_connection(serial_config(""))


def test_open_connection_missing_sub_config():
    with pytest.raises(ConfigError):
        open_connection(ClientConfig(Transport.SERIAL))
    with pytest.raises(ConfigError):
        open_connection(ClientConfig(Transport.UNIX))


def test_open_connection_tcp():
    with socket.create_server(("127.0.0.1", 0)) as server:
        port = server.getsockname()[1]
        conn = open_connection(socket_config("tcp", f"127.0.0.1:{port}"))
        assert isinstance(conn, SocketConnection)
        conn.close()


# ─── BUFFERED STREAM ─────────────────────────────────────────────────

def test_connection_io_adapter():
    conn = MagicMock()
    conn.read.side_effect = [b"ab", b"c\n", b""]
    conn.write.side_effect = lambda data: len(data)
    stream = open_stream(conn)

    stream.write(b"hello\n")
    conn.write.assert_not_called()
    stream.flush()
    conn.write.assert_called_once_with(b"hello\n")

    assert stream.readline() == b"abc\n"
    assert stream.readline() == b""


def test_connection_io_does_not_close_connection():
    conn = MagicMock()
    raw = ConnectionIO(conn)
    raw.close()
    conn.close.assert_not_called()
