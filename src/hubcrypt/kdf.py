"""Key derivation for Hubble packets.

NIST SP 800-108 KDF in counter mode with AES-CMAC as the PRF:

    K(i) = CMAC(key, [i]_32 || label || 0x00 || context || [L]_32)

where [i]_32 is a big-endian block counter starting at 1 and [L]_32 is the
output length in bits.

Two-stage key schedule, both chains rooted in the device master key:
    - Nonce: master key -> NonceKey(time counter) -> Nonce(sequence counter)
    - Encryption key: master key -> EncryptionKey(time counter) -> Key(sequence counter)
"""

from cryptography.hazmat.primitives.ciphers import algorithms
from cryptography.hazmat.primitives.kdf.kbkdf import CounterLocation, KBKDFCMAC, Mode

from .types import (
    NONCE_SIZE,
    NONCE_KEY_LABEL,
    NONCE_LABEL,
    ENCRYPTION_KEY_LABEL,
    KEY_LABEL,
    HubCryptError,
    KeyDerivationError,
    validate_key_size,
)


def sp800_108_counter_kdf(key: bytes, label: str, context: str, output_length: int) -> bytes:
    """Derive output_length bytes from key, label and context.

    Args:
        key: PRF key (16 or 32 bytes).
        label: Purpose string.
        context: Context string.
        output_length: Number of bytes to produce.

    Returns:
        Derived key material.

    Raises:
        InvalidKeySizeError: If the key length is invalid.
    """
    validate_key_size(key)
    if output_length <= 0:
        raise ValueError(f"Output length must be positive, got {output_length}")

    kdf = KBKDFCMAC(
        algorithm=algorithms.AES,
        mode=Mode.CounterMode,
        length=output_length,
        rlen=4,
        llen=4,
        location=CounterLocation.BeforeFixed,
        label=label.encode("utf-8"),
        context=context.encode("utf-8"),
        fixed=None,
    )
    return kdf.derive(key)


def derive_key(key: bytes, output_length: int, label: str, counter: int) -> bytes:
    """Derive key material with a numeric counter as context.

    The counter is encoded as its base-10 string, which is what other
    Hubble implementations use on the wire.

    Args:
        key: PRF key (16 or 32 bytes).
        output_length: Number of bytes to produce.
        label: Purpose string.
        counter: Non-negative counter value.

    Returns:
        Derived key material.
    """
    if counter < 0:
        raise ValueError(f"Counter must be non-negative, got {counter}")
    return sp800_108_counter_kdf(key, label, str(counter), output_length)


def derive_nonce_key(master_key: bytes, time_counter: int) -> bytes:
    """Derive the intermediate nonce key for a day."""
    return derive_key(master_key, len(master_key), NONCE_KEY_LABEL, time_counter)


def derive_nonce(nonce_key: bytes, seq_counter: int) -> bytes:
    """Derive the 12-byte nonce for a message."""
    return derive_key(nonce_key, NONCE_SIZE, NONCE_LABEL, seq_counter)


def derive_encryption_key_intermediate(master_key: bytes, time_counter: int) -> bytes:
    """Derive the intermediate encryption key for a day."""
    return derive_key(master_key, len(master_key), ENCRYPTION_KEY_LABEL, time_counter)


def derive_encryption_key(intermediate_key: bytes, seq_counter: int) -> bytes:
    """Derive the final encryption key for a message."""
    return derive_key(intermediate_key, len(intermediate_key), KEY_LABEL, seq_counter)


def full_nonce_derivation(master_key: bytes, time_counter: int, seq_counter: int) -> bytes:
    """Run both stages of the nonce chain.

    Args:
        master_key: Device master key (16 or 32 bytes).
        time_counter: Days since the Unix epoch.
        seq_counter: Sequence number from the packet header.

    Returns:
        12-byte nonce.

    Raises:
        KeyDerivationError: If either stage fails.
    """
    try:
        nonce_key = derive_nonce_key(master_key, time_counter)
    except (HubCryptError, ValueError) as e:
        raise KeyDerivationError(f"Failed to derive nonce key: {e}") from e

    try:
        nonce = derive_nonce(nonce_key, seq_counter)
    except (HubCryptError, ValueError) as e:
        raise KeyDerivationError(f"Failed to derive nonce: {e}") from e

    if len(nonce) != NONCE_SIZE:
        raise KeyDerivationError(f"Derived nonce is {len(nonce)} bytes, expected {NONCE_SIZE}")
    return nonce


def full_encryption_key_derivation(master_key: bytes, time_counter: int, seq_counter: int) -> bytes:
    """Run both stages of the encryption key chain.

    Args:
        master_key: Device master key (16 or 32 bytes).
        time_counter: Days since the Unix epoch.
        seq_counter: Sequence number from the packet header.

    Returns:
        Encryption key, same length as master_key.

    Raises:
        KeyDerivationError: If either stage fails.
    """
    try:
        intermediate_key = derive_encryption_key_intermediate(master_key, time_counter)
    except (HubCryptError, ValueError) as e:
        raise KeyDerivationError(f"Failed to derive intermediate key: {e}") from e

    try:
        encryption_key = derive_encryption_key(intermediate_key, seq_counter)
    except (HubCryptError, ValueError) as e:
        raise KeyDerivationError(f"Failed to derive encryption key: {e}") from e

    if len(encryption_key) != len(master_key):
        raise KeyDerivationError(
            f"Derived encryption key is {len(encryption_key)} bytes, expected {len(master_key)}"
        )
    return encryption_key
