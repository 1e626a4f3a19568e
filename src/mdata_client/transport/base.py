"""Byte-stream connection contract and the buffered stream built over it."""

from __future__ import annotations

import io
from typing import Protocol, runtime_checkable

DEFAULT_BUFFER_SIZE = 4096


@runtime_checkable
class Connection(Protocol):
    """What the client needs from a transport.

    Serial ports, Unix sockets and TCP sockets all provide these four
    operations; so can an in-memory stub in tests.
    """

    def write(self, data: bytes) -> int: ...

    def read(self, size: int) -> bytes: ...

    def close(self) -> None: ...

    def set_read_timeout(self, timeout: float | None) -> None: ...


class ConnectionIO(io.RawIOBase):
    """Raw I/O adapter so the standard buffered classes can wrap a Connection.

    Closing the adapter does not close the connection; the owner of the
    connection closes it explicitly.
    """

    def __init__(self, connection: Connection) -> None:
        super().__init__()
        self._connection = connection

    def readable(self) -> bool:
        return True

    def writable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        data = self._connection.read(len(buffer))
        n = len(data)
        buffer[:n] = data
        return n

    def write(self, data) -> int:
        return self._connection.write(bytes(data))


def open_stream(
    connection: Connection,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
) -> io.BufferedRWPair:
    """Wrap *connection* in a buffered reader/writer pair."""
    raw = ConnectionIO(connection)
    return io.BufferedRWPair(raw, raw, buffer_size)
