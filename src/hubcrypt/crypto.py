"""Encryption and decryption for Hubble BLE packets."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from .aes_ctr import aes_ctr_decrypt, aes_ctr_encrypt
from .cmac import compute_auth_tag, verify_auth_tag
from .kdf import full_encryption_key_derivation, full_nonce_derivation
from .models import DecryptedPacket, Device, EncryptedPacket
from .packet import assemble_packet, build_header, counter_to_time, parse_packet, time_to_counter
from .types import (
    DEFAULT_SEARCH_WINDOW_DAYS,
    MAX_TIME_COUNTER,
    AuthenticationError,
    DecryptionFailedError,
    DecryptResult,
    ParsedPacket,
    validate_key_size,
)

logger = logging.getLogger(__name__)

PacketInput = Union[EncryptedPacket, bytes]


@dataclass(frozen=True)
class DecryptOptions:
    """Configuration for the time counter search."""
    search_window_days: int = DEFAULT_SEARCH_WINDOW_DAYS
    # Falls back to the packet's timestamp, then the current time
    expected_time: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.search_window_days < 0:
            raise ValueError(
                f"Search window must be non-negative, got {self.search_window_days}"
            )


def encrypt_packet(
    key: bytes,
    plaintext: bytes,
    time_counter: int,
    sequence_number: int,
) -> bytes:
    """
    Encrypt a payload into wire format.

    Args:
        key: Device master key (16 or 32 bytes)
        plaintext: Payload to encrypt
        time_counter: Days since the Unix epoch
        sequence_number: Sequence counter (0-1023)

    Returns:
        Encoded packet bytes
    """
    validate_key_size(key)
    header = build_header(sequence_number)

    encryption_key = full_encryption_key_derivation(key, time_counter, sequence_number)
    nonce = full_nonce_derivation(key, time_counter, sequence_number)

    ciphertext = aes_ctr_encrypt(encryption_key, nonce, plaintext)
    auth_tag = compute_auth_tag(encryption_key, header)

    return assemble_packet(header, auth_tag, ciphertext)


def try_decrypt(key: bytes, parsed: ParsedPacket, time_counter: int) -> Optional[DecryptResult]:
    """
    Attempt decryption with a single time counter.

    Args:
        key: Device master key
        parsed: Parsed packet
        time_counter: Candidate time counter

    Returns:
        DecryptResult if the tag verifies, None otherwise

    Raises:
        InvalidKeySizeError: If the key length is invalid
        KeyDerivationError: If key derivation fails
    """
    validate_key_size(key)
    encryption_key = _authenticate(key, parsed, time_counter)
    if encryption_key is None:
        return None

    nonce = full_nonce_derivation(key, time_counter, parsed.sequence_number)
    plaintext = aes_ctr_decrypt(encryption_key, nonce, parsed.encrypted_payload)

    return DecryptResult(
        payload=plaintext,
        time_counter=time_counter,
        seq_counter=parsed.sequence_number,
    )


def decrypt(
    key: bytes,
    packet: PacketInput,
    options: Optional[DecryptOptions] = None,
) -> DecryptResult:
    """
    Decrypt a packet, searching for its time counter.

    Candidates from base - window to base + window are tried in ascending
    order and the first one that authenticates wins.

    Args:
        key: Device master key (16 or 32 bytes)
        packet: Captured packet or raw payload bytes
        options: Search configuration

    Returns:
        DecryptResult for the matching counter

    Raises:
        InvalidKeySizeError: If the key length is invalid
        PacketTooShortError: If the payload is shorter than 10 bytes
        DecryptionFailedError: If no counter in the window authenticates
    """
    validate_key_size(key)
    parsed, candidates = _prepare_search(packet, options)

    for time_counter in candidates:
        result = try_decrypt(key, parsed, time_counter)
        if result is not None:
            logger.debug("Packet authenticated with time counter %d", time_counter)
            return result

    logger.debug(
        "No time counter in %d..%d authenticated the packet",
        candidates.start,
        candidates.stop - 1,
    )
    raise DecryptionFailedError()


def find_time_counter(
    key: bytes,
    packet: PacketInput,
    options: Optional[DecryptOptions] = None,
) -> int:
    """
    Find the time counter that authenticates a packet, without decrypting.

    Args:
        key: Device master key (16 or 32 bytes)
        packet: Captured packet or raw payload bytes
        options: Search configuration

    Returns:
        The matching time counter

    Raises:
        InvalidKeySizeError: If the key length is invalid
        PacketTooShortError: If the payload is shorter than 10 bytes
        DecryptionFailedError: If no counter in the window authenticates
    """
    validate_key_size(key)
    parsed, candidates = _prepare_search(packet, options)

    for time_counter in candidates:
        if _authenticate(key, parsed, time_counter) is not None:
            logger.debug("Packet authenticated with time counter %d", time_counter)
            return time_counter

    logger.debug(
        "No time counter in %d..%d authenticated the packet",
        candidates.start,
        candidates.stop - 1,
    )
    raise DecryptionFailedError()


def decrypt_with_known_counter(key: bytes, packet: PacketInput, time_counter: int) -> DecryptResult:
    """
    Decrypt a packet whose time counter is already known.

    Args:
        key: Device master key (16 or 32 bytes)
        packet: Captured packet or raw payload bytes
        time_counter: Time counter to use

    Returns:
        DecryptResult

    Raises:
        InvalidKeySizeError: If the key length is invalid
        PacketTooShortError: If the payload is shorter than 10 bytes
        AuthenticationError: If the tag does not verify
    """
    validate_key_size(key)
    payload, _ = _unpack(packet)
    parsed = parse_packet(payload)

    result = try_decrypt(key, parsed, time_counter)
    if result is None:
        raise AuthenticationError("Authentication tag mismatch")
    return result


def decrypt_for_device(
    device: Device,
    packet: EncryptedPacket,
    options: Optional[DecryptOptions] = None,
) -> DecryptedPacket:
    """
    Decrypt a captured packet with a device's master key.

    Args:
        device: Device whose key to use
        packet: Captured packet
        options: Search configuration

    Returns:
        DecryptedPacket tagged with the device ID

    Raises:
        DecryptionFailedError: If no counter in the window authenticates
    """
    result = decrypt(device.master_key(), packet, options)
    timestamp = packet.timestamp or counter_to_time(result.time_counter)

    return DecryptedPacket(
        device_id=device.id,
        payload=result.payload,
        time_counter=result.time_counter,
        timestamp=timestamp,
        location=packet.location,
    )


def _authenticate(key: bytes, parsed: ParsedPacket, time_counter: int) -> Optional[bytes]:
    """Return the encryption key if the packet's tag verifies under time_counter."""
    encryption_key = full_encryption_key_derivation(key, time_counter, parsed.sequence_number)
    if verify_auth_tag(encryption_key, parsed.auth_data, parsed.auth_tag):
        return encryption_key
    return None


def _unpack(packet: PacketInput) -> tuple[bytes, Optional[datetime]]:
    """Split a packet input into payload bytes and capture time."""
    if isinstance(packet, EncryptedPacket):
        return packet.payload, packet.timestamp
    return bytes(packet), None


def _prepare_search(
    packet: PacketInput,
    options: Optional[DecryptOptions],
) -> tuple[ParsedPacket, range]:
    """Parse the packet and compute the candidate time counters."""
    options = options or DecryptOptions()
    payload, captured_at = _unpack(packet)
    parsed = parse_packet(payload)

    expected_time = options.expected_time or captured_at or datetime.now(timezone.utc)
    base_counter = time_to_counter(expected_time)

    min_counter = max(0, base_counter - options.search_window_days)
    max_counter = min(MAX_TIME_COUNTER, base_counter + options.search_window_days)
    logger.debug(
        "Searching time counters %d..%d for sequence number %d",
        min_counter,
        max_counter,
        parsed.sequence_number,
    )
    return parsed, range(min_counter, max_counter + 1)
