"""Serial-line connection, used by hardware-virtualized guests.

The host exposes the metadata service on a spare UART (``/dev/ttyS1`` on
Linux guests). The line runs at 115200 baud, 8 data bits, no parity, one
stop bit. The read timeout is fixed when the port is opened.
"""

from __future__ import annotations

import logging

import serial

from ..errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_BAUDRATE = 115200
DEFAULT_READ_TIMEOUT = 60.0


class SerialConnection:
    """Connection over a serial port, backed by pyserial.

    Usage::

        conn = SerialConnection("/dev/ttyS1")
        conn.open()
        conn.write(b"NEGOTIATE V2\\n")
        reply = conn.read(64)
        conn.close()
    """

    def __init__(
        self,
        port: str,
        baudrate: int = DEFAULT_BAUDRATE,
        timeout: float = DEFAULT_READ_TIMEOUT,
    ) -> None:
        self._port_name = port
        self._baudrate = baudrate
        self._timeout = timeout
        self._port: serial.Serial | None = None

    @property
    def port(self) -> str:
        return self._port_name

    @property
    def connected(self) -> bool:
        return self._port is not None and self._port.is_open

    def open(self) -> SerialConnection:
        """Open the port.

        Raises:
            TransportError: If the port cannot be opened.
        """
        try:
            self._port = serial.Serial(
                port=self._port_name,
                baudrate=self._baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self._timeout,
            )
        except (serial.SerialException, OSError) as e:
            raise TransportError(
                f"failed to open serial port {self._port_name}: {e}"
            ) from e
        logger.info("Opened serial port %s at %d baud", self._port_name, self._baudrate)
        return self

    def _require_port(self) -> serial.Serial:
        if self._port is None:
            raise TransportError(f"serial port {self._port_name} is not open")
        return self._port

    def write(self, data: bytes) -> int:
        port = self._require_port()
        written = port.write(data)
        port.flush()
        return written

    def read(self, size: int) -> bytes:
        """Read up to *size* bytes.

        Blocks until at least one byte arrives, then returns whatever else
        is already buffered.

        Raises:
            TimeoutError: If nothing arrives within the read timeout.
        """
        port = self._require_port()
        data = port.read(1)
        if not data:
            raise TimeoutError(
                f"serial read on {self._port_name} timed out after {self._timeout}s"
            )
        if size > 1:
            waiting = min(port.in_waiting, size - 1)
            if waiting:
                data += port.read(waiting)
        return data

    def set_read_timeout(self, timeout: float | None) -> None:
        # Fixed at open time.
        pass

    def close(self) -> None:
        if self._port is None:
            return
        try:
            self._port.close()
        finally:
            self._port = None
            logger.info("Closed serial port %s", self._port_name)
