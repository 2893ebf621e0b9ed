"""
hubcrypt - Decryption of Hubble BLE advertisements

Python implementation of the Hubble packet format: SP 800-108 AES-CMAC key
derivation, truncated AES-CMAC authentication and AES-CTR encryption.
"""

from .cmac import compute_auth_tag, verify_auth_tag, compute_full_cmac
from .aes_ctr import aes_ctr_encrypt, aes_ctr_decrypt, aes_ctr_transform
from .kdf import (
    sp800_108_counter_kdf,
    derive_key,
    derive_nonce_key,
    derive_nonce,
    derive_encryption_key_intermediate,
    derive_encryption_key,
    full_nonce_derivation,
    full_encryption_key_derivation,
)
from .packet import (
    parse_packet,
    build_header,
    assemble_packet,
    time_to_counter,
    counter_to_time,
)
from .crypto import (
    DecryptOptions,
    encrypt_packet,
    try_decrypt,
    decrypt,
    find_time_counter,
    decrypt_with_known_counter,
    decrypt_for_device,
)
from .models import (
    EncryptionType,
    Location,
    EncryptedPacket,
    DecryptedPacket,
    Device,
)
from .advertisement import (
    HUBBLE_SERVICE_UUID,
    RawAdvertisement,
    is_hubble_uuid,
    contains_hubble_service,
    parse_advertisement,
)
from .types import (
    ParsedPacket,
    DecryptResult,
    AUTH_TAG_SIZE,
    NONCE_SIZE,
    MIN_PACKET_SIZE,
    SECONDS_PER_DAY,
    DEFAULT_SEARCH_WINDOW_DAYS,
    HubCryptError,
    InvalidKeySizeError,
    InvalidNonceSizeError,
    InvalidTagLengthError,
    InvalidDeviceKeyError,
    PacketTooShortError,
    AuthenticationError,
    DecryptionFailedError,
    KeyDerivationError,
    NotHubblePacketError,
)

__version__ = "0.1.0"

__all__ = [
    # CMAC
    "compute_auth_tag",
    "verify_auth_tag",
    "compute_full_cmac",
    # AES-CTR
    "aes_ctr_encrypt",
    "aes_ctr_decrypt",
    "aes_ctr_transform",
    # KDF
    "sp800_108_counter_kdf",
    "derive_key",
    "derive_nonce_key",
    "derive_nonce",
    "derive_encryption_key_intermediate",
    "derive_encryption_key",
    "full_nonce_derivation",
    "full_encryption_key_derivation",
    # Packet
    "parse_packet",
    "build_header",
    "assemble_packet",
    "time_to_counter",
    "counter_to_time",
    # Crypto
    "DecryptOptions",
    "encrypt_packet",
    "try_decrypt",
    "decrypt",
    "find_time_counter",
    "decrypt_with_known_counter",
    "decrypt_for_device",
    # Models
    "EncryptionType",
    "Location",
    "EncryptedPacket",
    "DecryptedPacket",
    "Device",
    # Advertisement
    "HUBBLE_SERVICE_UUID",
    "RawAdvertisement",
    "is_hubble_uuid",
    "contains_hubble_service",
    "parse_advertisement",
    # Types
    "ParsedPacket",
    "DecryptResult",
    # Constants
    "AUTH_TAG_SIZE",
    "NONCE_SIZE",
    "MIN_PACKET_SIZE",
    "SECONDS_PER_DAY",
    "DEFAULT_SEARCH_WINDOW_DAYS",
    # Errors
    "HubCryptError",
    "InvalidKeySizeError",
    "InvalidNonceSizeError",
    "InvalidTagLengthError",
    "InvalidDeviceKeyError",
    "PacketTooShortError",
    "AuthenticationError",
    "DecryptionFailedError",
    "KeyDerivationError",
    "NotHubblePacketError",
]
