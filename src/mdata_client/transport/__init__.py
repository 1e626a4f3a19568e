"""Transports: serial line, Unix socket and TCP socket connections."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import ConfigError
from .base import Connection, ConnectionIO, open_stream
from .serial_connection import SerialConnection
from .socket_connection import SocketConnection

if TYPE_CHECKING:
    from ..config import ClientConfig


def open_connection(config: ClientConfig) -> Connection:
    """Open the connection described by *config*.

    Raises:
        ConfigError: If the config is incomplete or names an unknown transport.
        TransportError: If the port or socket cannot be opened.
    """
    from ..config import Transport

    if config.transport is Transport.SERIAL:
        if config.serial is None:
            raise ConfigError("serial config required for serial transport")
        if not config.serial.port:
            raise ConfigError("serial port not specified in config")
        return SerialConnection(
            config.serial.port,
            baudrate=config.serial.baudrate,
            timeout=config.serial.timeout,
        ).open()

    if config.transport in (Transport.TCP, Transport.UNIX):
        if config.socket is None:
            raise ConfigError(
                f"socket config required for {config.transport.value} transport"
            )
        return SocketConnection(
            config.socket.family,
            config.socket.address,
            timeout=config.socket.timeout,
        ).open()

    raise ConfigError(f"unsupported transport: {config.transport}")
