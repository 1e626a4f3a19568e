"""Socket connections: Unix domain sockets inside zones, TCP for everything else."""

from __future__ import annotations

import logging
import socket

from ..errors import ConfigError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_SOCKET_TIMEOUT = 5.0


def parse_tcp_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` into a (host, port) tuple."""
    host, sep, port = address.rpartition(":")
    if not sep or not host:
        raise ConfigError(f"TCP address must be host:port, got {address!r}")
    try:
        return host.strip("[]"), int(port)
    except ValueError as e:
        raise ConfigError(f"invalid TCP port in {address!r}") from e


class SocketConnection:
    """Connection over a stream socket.

    Args:
        family: ``"unix"`` or ``"tcp"``.
        address: Socket path for ``unix``, ``host:port`` for ``tcp``.
        timeout: Dial timeout and initial read timeout, in seconds.
    """

    def __init__(
        self,
        family: str,
        address: str,
        timeout: float | None = DEFAULT_SOCKET_TIMEOUT,
    ) -> None:
        if family not in ("unix", "tcp"):
            raise ConfigError(f"unsupported socket family: {family!r}")
        self._family = family
        self._address = address
        self._timeout = timeout
        self._sock: socket.socket | None = None

    @property
    def address(self) -> str:
        return self._address

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def open(self) -> SocketConnection:
        """Dial the peer and apply the read timeout.

        Raises:
            TransportError: If the connection cannot be established.
        """
        try:
            if self._family == "unix":
                sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
                sock.settimeout(self._timeout)
                try:
                    sock.connect(self._address)
                except OSError:
                    sock.close()
                    raise
            else:
                sock = socket.create_connection(
                    parse_tcp_address(self._address), timeout=self._timeout
                )
        except OSError as e:
            raise TransportError(
                f"failed to dial {self._family} {self._address}: {e}"
            ) from e

        self._sock = sock
        self.set_read_timeout(self._timeout)
        logger.info("Connected to %s socket %s", self._family, self._address)
        return self

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            raise TransportError(f"{self._family} socket {self._address} is not connected")
        return self._sock

    def write(self, data: bytes) -> int:
        sock = self._require_socket()
        sock.sendall(data)
        return len(data)

    def read(self, size: int) -> bytes:
        return self._require_socket().recv(size)

    def set_read_timeout(self, timeout: float | None) -> None:
        """Set the read deadline; ``None`` or ``0`` blocks indefinitely."""
        self._require_socket().settimeout(timeout or None)

    def close(self) -> None:
        if self._sock is None:
            return
        try:
            self._sock.close()
        finally:
            self._sock = None
            logger.info("Closed %s socket %s", self._family, self._address)
