"""Type definitions for Hubble packet decryption."""

from dataclasses import dataclass


# Key and primitive constants
AES128_KEY_SIZE = 16
AES256_KEY_SIZE = 32
VALID_KEY_SIZES = (AES128_KEY_SIZE, AES256_KEY_SIZE)
AUTH_TAG_SIZE = 4
NONCE_SIZE = 12
BLOCK_SIZE = 16

# Packet layout constants
HEADER_SIZE = 2
RESERVED_SIZE = 4
AUTH_TAG_OFFSET = HEADER_SIZE + RESERVED_SIZE  # 6
PAYLOAD_OFFSET = AUTH_TAG_OFFSET + AUTH_TAG_SIZE  # 10
MIN_PACKET_SIZE = PAYLOAD_OFFSET
SEQUENCE_NUMBER_MASK = 0x3FF
MAX_SEQUENCE_NUMBER = SEQUENCE_NUMBER_MASK

# Time counter constants
SECONDS_PER_DAY = 86400
MAX_TIME_COUNTER = 0xFFFFFFFF
DEFAULT_SEARCH_WINDOW_DAYS = 2

# Key schedule labels
NONCE_KEY_LABEL = "NonceKey"
NONCE_LABEL = "Nonce"
ENCRYPTION_KEY_LABEL = "EncryptionKey"
KEY_LABEL = "Key"


@dataclass(frozen=True)
class ParsedPacket:
    """Decoded view of an encrypted advertisement payload.

    Wire format (10-byte header + ciphertext):
        [0..1]  big-endian uint16, low 10 bits are the sequence number
        [2..5]  reserved (zero-filled, authenticated)
        [6..9]  truncated AES-CMAC tag
        [10..]  AES-CTR ciphertext
    """

    sequence_number: int
    auth_tag: bytes  # 4 bytes
    encrypted_payload: bytes  # variable, possibly empty
    raw_packet: bytes

    @property
    def auth_data(self) -> bytes:
        """Bytes covered by the authentication tag."""
        return self.raw_packet[:AUTH_TAG_OFFSET]

    @property
    def format_bits(self) -> int:
        """Upper 6 bits of the header, ignored by the decryption engine."""
        return int.from_bytes(self.raw_packet[:HEADER_SIZE], byteorder="big") >> 10


@dataclass(frozen=True)
class DecryptResult:
    """Result of a successful decryption."""
    payload: bytes
    time_counter: int
    seq_counter: int


# Exception types
class HubCryptError(Exception):
    """Base exception for hubcrypt errors."""
    pass


class InvalidKeySizeError(HubCryptError):
    """Key is not 16 or 32 bytes."""

    def __init__(self, size: int) -> None:
        self.size = size
        super().__init__(f"Key must be 16 or 32 bytes, got {size}")


class InvalidNonceSizeError(HubCryptError):
    """Nonce is not 12 bytes."""

    def __init__(self, size: int) -> None:
        self.size = size
        super().__init__(f"Nonce must be {NONCE_SIZE} bytes, got {size}")


class InvalidTagLengthError(HubCryptError):
    """Authentication tag is not 4 bytes."""

    def __init__(self, size: int) -> None:
        self.size = size
        super().__init__(f"Tag must be {AUTH_TAG_SIZE} bytes, got {size}")


class PacketTooShortError(HubCryptError):
    """Packet is shorter than the fixed header."""

    def __init__(self, size: int) -> None:
        self.size = size
        super().__init__(
            f"Packet too short: got {size} bytes, need at least {MIN_PACKET_SIZE}"
        )


class AuthenticationError(HubCryptError):
    """Authentication tag mismatch."""
    pass


class DecryptionFailedError(HubCryptError):
    """No time counter in the search window authenticated the packet."""

    def __init__(self) -> None:
        super().__init__("Decryption failed: no valid time counter found")


class KeyDerivationError(HubCryptError):
    """Key derivation failed."""
    pass


class NotHubblePacketError(HubCryptError):
    """Advertisement does not carry a Hubble payload."""
    pass


class InvalidDeviceKeyError(HubCryptError):
    """Device key is not valid base64."""
    pass


def validate_key_size(key: bytes) -> None:
    """Raise InvalidKeySizeError unless key is an AES-128 or AES-256 key."""
    if len(key) not in VALID_KEY_SIZES:
        raise InvalidKeySizeError(len(key))
