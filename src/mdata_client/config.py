"""Transport configuration and environment probing.

Zones see the metadata service as a Unix socket under ``.zonecontrol``;
hardware-virtualized guests talk to it over a serial port. The
``MDATA_*`` environment variables override what probing finds.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from enum import Enum

from .errors import ConfigError
from .transport.serial_connection import DEFAULT_BAUDRATE, DEFAULT_READ_TIMEOUT
from .transport.socket_connection import DEFAULT_SOCKET_TIMEOUT

logger = logging.getLogger(__name__)

# LX-branded zones first, then native zones
ZONE_SOCKET_PATHS = (
    "/native/.zonecontrol/metadata.sock",
    "/.zonecontrol/metadata.sock",
)

SERIAL_PORTS: dict[str, str] = {
    "linux": "/dev/ttyS1",
    "win32": "COM1",
    "sunos5": "/dev/ttyb",
}


class Transport(str, Enum):
    SERIAL = "serial"
    TCP = "tcp"
    UNIX = "unix"


@dataclass
class SerialConfig:
    port: str = ""
    baudrate: int = DEFAULT_BAUDRATE
    timeout: float = DEFAULT_READ_TIMEOUT


@dataclass
class SocketConfig:
    """Socket endpoint. ``family`` is ``unix`` or ``tcp``."""

    family: str
    address: str
    timeout: float = DEFAULT_SOCKET_TIMEOUT


@dataclass
class ClientConfig:
    transport: Transport
    serial: SerialConfig | None = None
    socket: SocketConfig | None = None

    def describe(self) -> str:
        if self.transport is Transport.SERIAL and self.serial is not None:
            return f"serial {self.serial.port or '(no port)'}"
        if self.socket is not None:
            return f"{self.transport.value} {self.socket.address}"
        return self.transport.value


def serial_config(port: str, timeout: float | None = None) -> ClientConfig:
    return ClientConfig(
        transport=Transport.SERIAL,
        serial=SerialConfig(
            port=port,
            timeout=DEFAULT_READ_TIMEOUT if timeout is None else timeout,
        ),
    )


def socket_config(
    transport: Transport | str,
    address: str,
    timeout: float | None = None,
) -> ClientConfig:
    transport = Transport(transport)
    if transport is Transport.SERIAL:
        raise ConfigError("serial transport has no socket address")
    return ClientConfig(
        transport=transport,
        socket=SocketConfig(
            family=transport.value,
            address=address,
            timeout=DEFAULT_SOCKET_TIMEOUT if timeout is None else timeout,
        ),
    )


def _env_timeout(environ) -> float | None:
    raw = environ.get("MDATA_TIMEOUT")
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"MDATA_TIMEOUT must be a number of seconds, got {raw!r}") from e


def default_serial_port(platform: str | None = None) -> str:
    """Return the metadata serial port for *platform* (default: this one)."""
    platform = platform or sys.platform
    for prefix, port in SERIAL_PORTS.items():
        if platform.startswith(prefix):
            return port
    logger.warning("Unsupported platform %s, serial port left empty", platform)
    return ""


def default_client_config(environ=None) -> ClientConfig:
    """Pick a transport for this guest.

    Order: ``MDATA_SOCKET``, ``MDATA_TCP``, ``MDATA_SERIAL_PORT``
    overrides, then the zone sockets if they exist, then the platform's
    serial port. ``MDATA_TIMEOUT`` overrides the timeout in every case.
    """
    environ = os.environ if environ is None else environ
    timeout = _env_timeout(environ)

    if environ.get("MDATA_SOCKET"):
        return socket_config(Transport.UNIX, environ["MDATA_SOCKET"], timeout)
    if environ.get("MDATA_TCP"):
        return socket_config(Transport.TCP, environ["MDATA_TCP"], timeout)
    if environ.get("MDATA_SERIAL_PORT"):
        return serial_config(environ["MDATA_SERIAL_PORT"], timeout)

    for path in ZONE_SOCKET_PATHS:
        if os.path.exists(path):
            logger.debug("Found zone metadata socket %s", path)
            return socket_config(Transport.UNIX, path, timeout)

    port = default_serial_port()
    logger.debug("No zone socket found, using serial port %r", port)
    return serial_config(port, timeout)
