"""Request codes, response codes and payload builders.

Each request is one frame whose code names the operation; the peer answers
with ``SUCCESS`` or an error code such as ``NOTFOUND``.
"""

from __future__ import annotations

import base64
from enum import Enum

SUCCESS = "SUCCESS"
NOTFOUND = "NOTFOUND"

# Keys under this prefix are owned by the host and read-only for guests.
RESERVED_PREFIX = "sdc:"


class Command(str, Enum):
    """Request codes."""

    GET = "GET"
    PUT = "PUT"
    DELETE = "DELETE"
    KEYS = "KEYS"


def is_reserved_key(key: str) -> bool:
    """Return True if *key* lives in the read-only ``sdc:`` namespace."""
    return key.startswith(RESERVED_PREFIX)


def build_put_payload(key: str, value: str) -> str:
    """Build the text payload of a PUT request.

    Key and value are base64 encoded separately and joined by a single
    space so the peer can split them apart. The frame layer encodes the
    whole payload again when it builds the frame.
    """
    encoded_key = base64.b64encode(key.encode("utf-8")).decode("ascii")
    encoded_value = base64.b64encode(value.encode("utf-8")).decode("ascii")
    return f"{encoded_key} {encoded_value}"
