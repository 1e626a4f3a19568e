"""Protocol layer: V2 framing, CRC, request codes, and version negotiation."""

from .framing import Frame, build_frame, encode_frame, parse_frame
from .commands import Command, build_put_payload
from .negotiation import negotiate
