"""Packet encoding and decoding for Hubble BLE advertisements."""

from datetime import datetime, timezone

from .types import (
    AUTH_TAG_OFFSET,
    AUTH_TAG_SIZE,
    HEADER_SIZE,
    MAX_SEQUENCE_NUMBER,
    MAX_TIME_COUNTER,
    MIN_PACKET_SIZE,
    PAYLOAD_OFFSET,
    RESERVED_SIZE,
    SECONDS_PER_DAY,
    SEQUENCE_NUMBER_MASK,
    InvalidTagLengthError,
    PacketTooShortError,
    ParsedPacket,
)


def parse_packet(raw: bytes) -> ParsedPacket:
    """
    Decode raw advertisement bytes.

    Format (10-byte header + ciphertext):
        [0..1]  sequence field (big-endian, low 10 bits used)
        [2..5]  reserved
        [6..9]  auth tag (4 bytes)
        [10+]   encrypted payload (variable, may be empty)

    High bits of the sequence field are discarded, not rejected.

    Args:
        raw: Packet bytes

    Returns:
        Decoded ParsedPacket

    Raises:
        PacketTooShortError: If raw is shorter than 10 bytes
    """
    raw = bytes(raw)
    if len(raw) < MIN_PACKET_SIZE:
        raise PacketTooShortError(len(raw))

    sequence_field = int.from_bytes(raw[0:HEADER_SIZE], byteorder="big")

    return ParsedPacket(
        sequence_number=sequence_field & SEQUENCE_NUMBER_MASK,
        auth_tag=raw[AUTH_TAG_OFFSET:PAYLOAD_OFFSET],
        encrypted_payload=raw[PAYLOAD_OFFSET:],
        raw_packet=raw,
    )


def build_header(sequence_number: int) -> bytes:
    """
    Build the 6-byte authenticated header for a sequence number.

    Args:
        sequence_number: Sequence counter (0-1023)

    Returns:
        Sequence field followed by zeroed reserved bytes
    """
    if not 0 <= sequence_number <= MAX_SEQUENCE_NUMBER:
        raise ValueError(
            f"Sequence number must be in [0, {MAX_SEQUENCE_NUMBER}], got {sequence_number}"
        )
    return sequence_number.to_bytes(HEADER_SIZE, byteorder="big") + bytes(RESERVED_SIZE)


def assemble_packet(header: bytes, auth_tag: bytes, ciphertext: bytes) -> bytes:
    """
    Concatenate header, tag and ciphertext into wire format.

    Args:
        header: 6-byte header from build_header
        auth_tag: 4-byte truncated CMAC over the header
        ciphertext: Encrypted payload

    Returns:
        Encoded packet bytes
    """
    if len(header) != AUTH_TAG_OFFSET:
        raise ValueError(f"Header must be {AUTH_TAG_OFFSET} bytes, got {len(header)}")
    if len(auth_tag) != AUTH_TAG_SIZE:
        raise InvalidTagLengthError(len(auth_tag))

    return bytes(header) + bytes(auth_tag) + bytes(ciphertext)


def time_to_counter(t: datetime) -> int:
    """
    Convert a timestamp to a time counter (whole days since the Unix epoch).

    Naive datetimes are taken to be UTC.
    """
    if t.tzinfo is None:
        t = t.replace(tzinfo=timezone.utc)

    counter = int(t.timestamp()) // SECONDS_PER_DAY
    if not 0 <= counter <= MAX_TIME_COUNTER:
        raise ValueError(f"Time {t.isoformat()} is outside the time counter range")
    return counter


def counter_to_time(counter: int) -> datetime:
    """Convert a time counter to midnight UTC of that day."""
    return datetime.fromtimestamp(counter * SECONDS_PER_DAY, tz=timezone.utc)
