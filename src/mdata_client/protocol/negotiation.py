"""Protocol version handshake.

Before any frame is sent the client writes ``NEGOTIATE V2`` and the peer
must answer exactly ``V2_OK``. Anything else means the peer does not speak
protocol V2.
"""

from __future__ import annotations

import logging
from typing import BinaryIO

from ..errors import TransportError

logger = logging.getLogger(__name__)

NEGOTIATION_REQUEST = b"NEGOTIATE V2\n"
NEGOTIATION_RESPONSE = b"V2_OK\n"


def negotiate(stream: BinaryIO) -> bool:
    """Run the V2 handshake over a buffered stream.

    Args:
        stream: Buffered reader/writer over the connection.

    Returns:
        True if the peer answered exactly ``V2_OK\\n``, else False.

    Raises:
        TransportError: If writing, flushing or reading fails, or the peer
            closes the connection before replying.
    """
    try:
        stream.write(NEGOTIATION_REQUEST)
    except OSError as e:
        raise TransportError(f"failed to send negotiation: {e}") from e
    try:
        stream.flush()
    except OSError as e:
        raise TransportError(f"failed to flush negotiation: {e}") from e
    try:
        response = stream.readline()
    except OSError as e:
        raise TransportError(f"failed to read negotiation response: {e}") from e
    if not response:
        raise TransportError("failed to read negotiation response: connection closed")

    logger.debug("Negotiation response: %r", response)
    return response == NEGOTIATION_RESPONSE
