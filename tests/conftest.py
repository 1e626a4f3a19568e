"""Shared fixtures: an in-memory connection that replays scripted replies."""

from __future__ import annotations

import pytest

from mdata_client.protocol.framing import build_frame, encode_frame
from mdata_client.protocol.negotiation import NEGOTIATION_RESPONSE


class ScriptedConnection:
    """Connection stub that serves canned bytes and records what was written.

    Once the scripted bytes run out, ``read`` returns ``b""`` (end of
    stream) or raises ``read_error`` if one was given.
    """

    def __init__(self, *replies: bytes, read_error: Exception | None = None) -> None:
        self._rx = bytearray(b"".join(replies))
        self._read_error = read_error
        self.writes: list[bytes] = []
        self.close_calls = 0
        self.timeouts: list[float | None] = []

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    @property
    def written(self) -> bytes:
        return b"".join(self.writes)

    def feed(self, data: bytes) -> None:
        self._rx.extend(data)

    def write(self, data: bytes) -> int:
        self.writes.append(bytes(data))
        return len(data)

    def read(self, size: int) -> bytes:
        if not self._rx and self._read_error is not None:
            raise self._read_error
        chunk = bytes(self._rx[:size])
        del self._rx[:size]
        return chunk

    def close(self) -> None:
        self.close_calls += 1

    def set_read_timeout(self, timeout: float | None) -> None:
        self.timeouts.append(timeout)


def response_line(code: str, payload: bytes | str = b"") -> bytes:
    """Encode a well-formed response frame."""
    return encode_frame(build_frame(code, payload))


@pytest.fixture
def scripted():
    """Factory for a connection that has already answered the handshake."""

    def factory(*replies: bytes, read_error: Exception | None = None) -> ScriptedConnection:
        return ScriptedConnection(NEGOTIATION_RESPONSE, *replies, read_error=read_error)

    return factory
