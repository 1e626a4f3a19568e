"""Client for the SmartOS V2 metadata protocol."""

from .client import MetadataClient
from .config import ClientConfig, Transport, default_client_config
from .errors import (
    ConfigError,
    FrameChecksumError,
    FrameConstructionError,
    FrameError,
    FrameFormatError,
    MetadataError,
    NegotiationError,
    NotFoundError,
    ReservedNamespaceError,
    ResponseError,
    TransportError,
)

__version__ = "0.1.0"
