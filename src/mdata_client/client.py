"""Synchronous metadata client.

One client owns one connection. Each call sends a single request frame,
waits for a single response line, and returns the decoded payload. There is
no pipelining: a lock keeps at most one request in flight per connection,
which is also why response request IDs are not used for correlation.
"""

from __future__ import annotations

import logging
import threading

from .config import ClientConfig, default_client_config
from .errors import (
    FrameError,
    NegotiationError,
    NotFoundError,
    ReservedNamespaceError,
    ResponseError,
    TransportError,
)
from .protocol.commands import (
    NOTFOUND,
    RESERVED_PREFIX,
    SUCCESS,
    Command,
    build_put_payload,
    is_reserved_key,
)
from .protocol.framing import build_frame, encode_frame, parse_frame
from .protocol.negotiation import negotiate
from .transport import Connection, open_connection, open_stream

logger = logging.getLogger(__name__)


class MetadataClient:
    """Client for the V2 metadata protocol.

    Usage::

        with MetadataClient.open() as client:
            print(client.get("sdc:uuid"))
            client.put("foo", "bar")

    Constructing the client negotiates protocol V2 over *connection*. If
    negotiation fails the connection is closed and ``NegotiationError`` is
    raised.
    """

    def __init__(self, connection: Connection, verify_length: bool = True) -> None:
        self._connection = connection
        self._verify_length = verify_length
        self._stream = open_stream(connection)
        self._lock = threading.Lock()
        self._closed = False

        try:
            supported = negotiate(self._stream)
        except TransportError as e:
            self._close_connection()
            raise NegotiationError(f"protocol negotiation failed: {e}") from e
        if not supported:
            self._close_connection()
            raise NegotiationError("server does not support Version 2 protocol")
        logger.debug("Negotiated protocol V2")

    @classmethod
    def open(
        cls,
        config: ClientConfig | None = None,
        verify_length: bool = True,
    ) -> MetadataClient:
        """Open a connection described by *config* and negotiate over it.

        Without a config the transport is chosen by
        :func:`~mdata_client.config.default_client_config`.
        """
        if config is None:
            config = default_client_config()
        logger.debug("Opening %s", config.describe())
        return cls(open_connection(config), verify_length=verify_length)

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> MetadataClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ─── PUBLIC OPERATIONS ───────────────────────────────────────────

    def get(self, key: str) -> str:
        """Return the value stored under *key*.

        Raises:
            NotFoundError: If the key does not exist.
        """
        return self.send_request(Command.GET, key).decode("utf-8")

    def keys(self) -> str:
        """Return the peer's key listing as text."""
        return self.send_request(Command.KEYS).decode("utf-8")

    def keys_list(self) -> list[str]:
        """Return the key listing split into individual keys."""
        return self.keys().split()

    def delete(self, key: str) -> None:
        """Remove *key* from the store.

        Raises:
            NotFoundError: If the key does not exist.
        """
        self.send_request(Command.DELETE, key)

    def put(self, key: str, value: str) -> None:
        """Store *value* under *key*.

        Raises:
            ReservedNamespaceError: If *key* is in the read-only ``sdc:``
                namespace. Nothing is sent in that case.
        """
        if is_reserved_key(key):
            raise ReservedNamespaceError(
                f"cannot update keys in the read-only {RESERVED_PREFIX} namespace"
            )
        self.send_request(Command.PUT, build_put_payload(key, value))

    # ─── TRANSACTION ─────────────────────────────────────────────────

    def send_request(self, code: Command | str, payload: bytes | str = "") -> bytes:
        """Send one request and return the raw payload of its response.

        Raises:
            TransportError: If the connection fails or times out.
            FrameError: If the response line is malformed or corrupt.
            ResponseError: If the response code is not ``SUCCESS``.
        """
        code = code.value if isinstance(code, Command) else code
        with self._lock:
            if self._closed:
                raise TransportError("client is closed")

            request = build_frame(code, payload)
            logger.debug("Sending %r", request)
            try:
                self._stream.write(encode_frame(request))
            except OSError as e:
                raise TransportError(f"failed to send {request.code} frame: {e}") from e
            try:
                self._stream.flush()
            except OSError as e:
                raise TransportError(f"failed to flush {request.code} frame: {e}") from e
            try:
                line = self._stream.readline()
            except OSError as e:
                raise TransportError(
                    f"failed to read {request.code} response: {e}"
                ) from e

        if not line:
            raise TransportError(f"connection closed before {request.code} response")
        if not line.endswith(b"\n"):
            raise TransportError(
                f"connection closed before a complete {request.code} response "
                f"({len(line)} bytes received)"
            )

        try:
            response = parse_frame(line, verify_length=self._verify_length)
        except FrameError as e:
            raise type(e)(f"failed to parse {request.code} response: {e}") from e
        logger.debug("Received %r", response)

        if response.request_id != request.request_id:
            logger.debug(
                "Response request ID %s does not match request %s",
                response.request_id,
                request.request_id,
            )

        if response.code == NOTFOUND:
            raise NotFoundError(f"{request.code} request failed with code: {NOTFOUND}")
        if response.code != SUCCESS:
            raise ResponseError(
                response.code,
                f"{request.code} request failed with code: {response.code}",
            )
        return response.payload

    def close(self) -> None:
        """Close the connection. Further calls are no-ops."""
        with self._lock:
            self._close_connection()

    def _close_connection(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._connection.close()
