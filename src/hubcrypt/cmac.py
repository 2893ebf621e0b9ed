"""
Truncated AES-CMAC authentication tags.

Advertisements carry only the first 4 bytes of the 16-byte AES-CMAC
(RFC 4493) so the header fits in a BLE payload.
"""

from cryptography.hazmat.primitives import cmac, constant_time
from cryptography.hazmat.primitives.ciphers import algorithms

from .types import (
    AUTH_TAG_SIZE,
    InvalidTagLengthError,
    validate_key_size,
)


def compute_full_cmac(key: bytes, data: bytes) -> bytes:
    """
    Compute the full 16-byte AES-CMAC of data.

    Args:
        key: AES key (16 or 32 bytes)
        data: Message to authenticate

    Returns:
        The untruncated 16-byte MAC

    Raises:
        InvalidKeySizeError: If the key length is invalid
    """
    validate_key_size(key)

    mac = cmac.CMAC(algorithms.AES(key))
    mac.update(data)
    return mac.finalize()


def compute_auth_tag(key: bytes, data: bytes) -> bytes:
    """
    Compute the 4-byte truncated AES-CMAC tag of data.

    Args:
        key: AES key (16 or 32 bytes)
        data: Message to authenticate

    Returns:
        The first 4 bytes of the full MAC

    Raises:
        InvalidKeySizeError: If the key length is invalid
    """
    return compute_full_cmac(key, data)[:AUTH_TAG_SIZE]


def verify_auth_tag(key: bytes, data: bytes, tag: bytes) -> bool:
    """
    Verify a truncated tag against data.

    The comparison runs in constant time.

    Args:
        key: AES key (16 or 32 bytes)
        data: Authenticated message
        tag: Tag to check (4 bytes)

    Returns:
        True if the tag matches, False otherwise

    Raises:
        InvalidTagLengthError: If the tag is not 4 bytes
        InvalidKeySizeError: If the key length is invalid
    """
    if len(tag) != AUTH_TAG_SIZE:
        raise InvalidTagLengthError(len(tag))

    expected = compute_auth_tag(key, data)
    return constant_time.bytes_eq(expected, bytes(tag))
