"""CRC-32 checksum used by the V2 frame body.

This is the reflected IEEE 802.3 variant (polynomial ``0xEDB88320``), the
same one used by gzip and zlib, so :func:`zlib.crc32` computes it directly.
"""

from __future__ import annotations

import zlib

CRC32_POLYNOMIAL = 0xEDB88320


def crc32(data: bytes) -> int:
    """Return the unsigned CRC-32 of *data*."""
    return zlib.crc32(data) & 0xFFFFFFFF


def crc32_hex(data: bytes | str) -> str:
    """Return the CRC-32 of *data* as 8 zero-padded lowercase hex digits."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return f"{crc32(data):08x}"
