"""MCP server exposing guest metadata operations.

Exposes the get/keys/put/delete operations as tools via the Model Context
Protocol, using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .client import MetadataClient
from .config import socket_config, serial_config
from .errors import MetadataError, ResponseError

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "mdata",
    instructions="Read and write SmartOS guest metadata over the V2 metadata protocol",
)

# Global connection state
_client: MetadataClient | None = None


def _get_client() -> MetadataClient:
    """Get the active metadata client, raising if not connected."""
    if _client is None or _client.closed:
        raise RuntimeError(
            "Not connected to the metadata service. Use the 'connect' tool first."
        )
    return _client


def _error(e: MetadataError) -> dict[str, Any]:
    result: dict[str, Any] = {"error": str(e)}
    if isinstance(e, ResponseError):
        result["code"] = e.code
    return result


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(
    transport: str | None = None,
    address: str | None = None,
    timeout: float | None = None,
) -> dict[str, Any]:
    """Connect to the host's metadata service and negotiate protocol V2.

    Without arguments the transport is probed: zone Unix socket if present,
    otherwise the platform's metadata serial port.

    Args:
        transport: Optional "serial", "unix" or "tcp".
        address: Serial device, socket path, or host:port for the transport.
        timeout: Optional read timeout in seconds.
    """
    global _client
    if _client is not None and not _client.closed:
        return {"connected": True, "message": "Already connected"}

    config = None
    try:
        if transport == "serial":
            config = serial_config(address or "", timeout)
        elif transport is not None:
            config = socket_config(transport, address or "", timeout)
        _client = MetadataClient.open(config)
    except (MetadataError, ValueError) as e:
        logger.warning("Connect failed: %s", e)
        return {"connected": False, "error": str(e)}

    return {"connected": True}


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the connection to the metadata service."""
    global _client
    if _client is None:
        return {"disconnected": True}
    _client.close()
    _client = None
    return {"disconnected": True}


# ─── METADATA TOOLS ───────────────────────────────────────────────────

@mcp.tool()
def get_metadata(key: str) -> dict[str, Any]:
    """Read the value of a metadata key.

    Args:
        key: Metadata key, e.g. "sdc:uuid" or "user-script".
    """
    client = _get_client()
    try:
        value = client.get(key)
    except MetadataError as e:
        return _error(e)
    return {"key": key, "value": value}


@mcp.tool()
def list_keys() -> dict[str, Any]:
    """List the customer-defined metadata keys."""
    client = _get_client()
    try:
        keys = client.keys_list()
    except MetadataError as e:
        return _error(e)
    return {"keys": keys}


@mcp.tool()
def put_metadata(key: str, value: str) -> dict[str, Any]:
    """Store a metadata value. Keys in the "sdc:" namespace are read-only.

    Args:
        key: Metadata key.
        value: New value.
    """
    client = _get_client()
    try:
        client.put(key, value)
    except MetadataError as e:
        return _error(e)
    return {"stored": True, "key": key}


@mcp.tool()
def delete_metadata(key: str) -> dict[str, Any]:
    """Delete a metadata key.

    Args:
        key: Metadata key.
    """
    client = _get_client()
    try:
        client.delete(key)
    except MetadataError as e:
        return _error(e)
    return {"deleted": True, "key": key}


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    try:
        mcp.run(transport="stdio")
    finally:
        if _client is not None:
            _client.close()


if __name__ == "__main__":
    main()
