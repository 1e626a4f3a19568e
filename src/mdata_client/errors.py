"""Exception hierarchy for the metadata client.

Every error raised by this package derives from :class:`MetadataError`, so
callers can catch the whole family at once, or branch on the specific
subclass: transport failures, a failed handshake, a corrupt response frame,
or an application-level response code such as ``NOTFOUND``.
"""

from __future__ import annotations


class MetadataError(Exception):
    """Base class for all metadata client errors."""


class TransportError(MetadataError, ConnectionError):
    """Opening, reading, writing or flushing the connection failed or timed out."""


class NegotiationError(MetadataError):
    """The peer did not confirm protocol V2, or the handshake I/O failed."""


class ConfigError(MetadataError, ValueError):
    """The client configuration cannot produce a connection."""


class FrameConstructionError(MetadataError):
    """A request frame could not be built (no secure random source)."""


class FrameError(MetadataError, ValueError):
    """A response line is malformed or corrupt."""


class FrameFormatError(FrameError):
    """The line does not have the V2 frame layout."""


class FrameChecksumError(FrameError):
    """The frame body does not match its checksum or length field."""


class ResponseError(MetadataError):
    """The peer answered with a code other than ``SUCCESS``.

    Attributes:
        code: The response code sent by the peer, e.g. ``"NOTFOUND"``.
    """

    def __init__(self, code: str, message: str | None = None) -> None:
        self.code = code
        super().__init__(message or f"request failed with code: {code}")


class NotFoundError(ResponseError):
    """The requested key does not exist."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__("NOTFOUND", message)


class ReservedNamespaceError(MetadataError, PermissionError):
    """A write was attempted on a key in the read-only ``sdc:`` namespace."""
