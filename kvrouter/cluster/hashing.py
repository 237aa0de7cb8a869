"""
Key Hashing Module

Maps keys to one of the 16384 cluster hash slots the same way the store
does, so the router and the nodes agree on slot ownership.

Hash tags:
    If a key contains "{" followed later by a non-adjacent "}", only the
    text between the first such pair is hashed. "user:{42}:name" and
    "user:{42}:email" therefore land in the same slot. Empty braces
    ("{}foo") are not a tag and the whole key is hashed.
"""

from binascii import crc_hqx
from typing import Any

from ..config.settings import settings


def crc16(data: bytes) -> int:
    """CRC16-CCITT (XMODEM): polynomial 0x1021, initial value 0."""
    return crc_hqx(data, 0)


def _to_bytes(key: Any) -> bytes:
    if isinstance(key, bytes):
        return key
    if isinstance(key, (bytearray, memoryview)):
        return bytes(key)
    return str(key).encode("utf-8")


def hash_slot(key: Any) -> int:
    """
    Calculate the hash slot for a key.

    Args:
        key: str, bytes or any scalar (converted with str())

    Returns:
        Slot number in [0, 16383]

    Examples:
        >>> hash_slot("foo")
        12182
        >>> hash_slot("foo{bar}baz") == hash_slot("bar")
        True
    """
    data = _to_bytes(key)

    start = data.find(b"{")
    if start > -1:
        end = data.find(b"}", start + 1)
        if end > -1 and end != start + 1:
            data = data[start + 1:end]

    return crc16(data) % settings.HASH_SLOTS
