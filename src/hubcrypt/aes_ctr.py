"""AES in counter mode."""

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .types import (
    BLOCK_SIZE,
    NONCE_SIZE,
    InvalidNonceSizeError,
    validate_key_size,
)


def aes_ctr_transform(key: bytes, counter_block: bytes, data: bytes) -> bytes:
    """
    XOR data with the AES-CTR keystream starting at counter_block.

    Args:
        key: AES key (16 or 32 bytes)
        counter_block: Full 16-byte initial counter block
        data: Plaintext or ciphertext

    Returns:
        Transformed bytes, same length as data
    """
    validate_key_size(key)
    if len(counter_block) != BLOCK_SIZE:
        raise ValueError(f"Counter block must be {BLOCK_SIZE} bytes, got {len(counter_block)}")

    encryptor = Cipher(algorithms.AES(key), modes.CTR(bytes(counter_block))).encryptor()
    return encryptor.update(data) + encryptor.finalize()


def aes_ctr_decrypt(key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
    """
    Decrypt ciphertext with AES-CTR.

    The 16-byte counter block is the 12-byte nonce followed by a 4-byte
    big-endian block counter starting at 0.

    Args:
        key: AES key (16 or 32 bytes)
        nonce: 12-byte nonce
        ciphertext: Data to decrypt

    Returns:
        Plaintext bytes

    Raises:
        InvalidKeySizeError: If the key length is invalid
        InvalidNonceSizeError: If the nonce is not 12 bytes
    """
    validate_key_size(key)
    if len(nonce) != NONCE_SIZE:
        raise InvalidNonceSizeError(len(nonce))

    counter_block = bytes(nonce) + bytes(BLOCK_SIZE - NONCE_SIZE)
    return aes_ctr_transform(key, counter_block, ciphertext)


def aes_ctr_encrypt(key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
    """Encrypt plaintext with AES-CTR (the same operation as decryption)."""
    return aes_ctr_decrypt(key, nonce, plaintext)
