"""V2 frame builder and parser.

Wire layout, one frame per line::

    V2 <BodyLength> <BodyChecksum> <RequestID> <Code>[ <Base64Payload>]\\n

- BodyLength: decimal length of the canonical body string
- BodyChecksum: CRC-32 of the canonical body, 8 lowercase hex digits
- RequestID: 8 lowercase hex digits from 4 random bytes
- Code: upper-case command (``GET``, ``PUT``...) or response status
- Base64Payload: standard base64 of the payload, omitted when it is empty

The canonical body is ``<RequestID> <Code>[ <Base64Payload>]``; it is both
the checksum input and the length input. The payload is base64 encoded so
the frame never contains embedded newlines or spaces.
"""

from __future__ import annotations

import base64
import binascii
import secrets
from dataclasses import dataclass, replace

from ..errors import FrameChecksumError, FrameConstructionError, FrameFormatError
from ..utils.crc import crc32_hex

PROTOCOL_PREFIX = "V2 "
REQUEST_ID_BYTES = 4
CHECKSUM_LENGTH = 8


def _body_string(request_id: str, code: str, payload: bytes) -> str:
    parts = [request_id, code]
    if payload:
        parts.append(base64.b64encode(payload).decode("ascii"))
    return " ".join(parts)


@dataclass(frozen=True)
class Frame:
    """A single V2 protocol frame.

    Frames are immutable: ``body_length`` and ``body_checksum`` always
    describe ``request_id``, ``code`` and ``payload``. Use
    :meth:`with_payload` or :func:`build_frame` to get a frame with
    different content.
    """

    request_id: str
    code: str
    payload: bytes
    body_length: int
    body_checksum: str

    @property
    def body(self) -> str:
        """The canonical body string covered by the length and checksum."""
        return _body_string(self.request_id, self.code, self.payload)

    def with_payload(self, payload: bytes | str) -> Frame:
        """Return a copy of this frame carrying *payload*, metadata recomputed."""
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        body = _body_string(self.request_id, self.code, payload)
        return replace(
            self,
            payload=payload,
            body_length=len(body),
            body_checksum=crc32_hex(body),
        )

    def __repr__(self) -> str:
        return (
            f"Frame(request_id={self.request_id}, code={self.code}, "
            f"payload={self.payload!r}, length={self.body_length}, "
            f"checksum={self.body_checksum})"
        )


def new_request_id() -> str:
    """Generate a fresh request ID from the system's secure random source.

    Raises:
        FrameConstructionError: If no secure random source is available.
    """
    try:
        return secrets.token_bytes(REQUEST_ID_BYTES).hex()
    except (OSError, NotImplementedError) as e:
        raise FrameConstructionError(f"failed to generate request ID: {e}") from e


def build_frame(
    code: str,
    payload: bytes | str = b"",
    request_id: str | None = None,
) -> Frame:
    """Build a frame for *code* and *payload*.

    Args:
        code: Command or status token; upper-cased before use.
        payload: Raw payload. Text is UTF-8 encoded.
        request_id: Explicit request ID; a random one is generated if omitted.

    Returns:
        A ``Frame`` with its body length and checksum filled in.
    """
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    if request_id is None:
        request_id = new_request_id()
    code = code.upper()
    body = _body_string(request_id, code, payload)
    return Frame(
        request_id=request_id,
        code=code,
        payload=payload,
        body_length=len(body),
        body_checksum=crc32_hex(body),
    )


def encode_frame(frame: Frame) -> bytes:
    """Encode *frame* to its newline-terminated wire form."""
    line = (
        f"{PROTOCOL_PREFIX}{frame.body_length} {frame.body_checksum} "
        f"{frame.body}\n"
    )
    return line.encode("ascii")


def parse_frame(data: bytes | str, verify_length: bool = True) -> Frame:
    """Parse and validate one wire line.

    Args:
        data: The received line, with or without its trailing newline.
        verify_length: Also reject frames whose length field does not
            match the received body.

    Returns:
        The decoded ``Frame``.

    Raises:
        FrameFormatError: If the line does not follow the V2 layout.
        FrameChecksumError: If the checksum (or length) does not match the body.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("ascii")
        except UnicodeDecodeError as e:
            raise FrameFormatError(f"frame contains non-ASCII data: {e}") from e

    if not data.startswith(PROTOCOL_PREFIX):
        raise FrameFormatError("invalid frame prefix")

    if data.endswith("\n"):
        data = data[:-1]
    fields = [f for f in data[len(PROTOCOL_PREFIX):].split(" ") if f]
    if len(fields) < 3:
        raise FrameFormatError("invalid frame format")

    if not (fields[0].isascii() and fields[0].isdigit()):
        raise FrameFormatError(f"invalid body length: {fields[0]!r}")
    body_length = int(fields[0])

    checksum = fields[1]
    if len(checksum) != CHECKSUM_LENGTH:
        raise FrameFormatError(f"invalid checksum format: {checksum!r}")

    body_fields = fields[2:]
    if len(body_fields) < 2:
        raise FrameFormatError("invalid body format")

    request_id, code = body_fields[0], body_fields[1]
    payload = b""
    if len(body_fields) > 2:
        try:
            payload = base64.b64decode(body_fields[2], validate=True)
        except (binascii.Error, ValueError) as e:
            raise FrameFormatError(f"invalid payload encoding: {e}") from e

    body = _body_string(request_id, code, payload)
    actual = crc32_hex(body)
    if actual != checksum:
        raise FrameChecksumError(
            f"checksum mismatch: frame says {checksum}, body is {actual}"
        )
    if verify_length and body_length != len(body):
        raise FrameChecksumError(
            f"body length mismatch: frame says {body_length}, body is {len(body)}"
        )

    return Frame(
        request_id=request_id,
        code=code,
        payload=payload,
        body_length=body_length,
        body_checksum=checksum,
    )
