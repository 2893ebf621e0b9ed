"""Models for captured packets, decrypted packets and devices."""

import base64
import binascii
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .types import (
    AES128_KEY_SIZE,
    AES256_KEY_SIZE,
    InvalidDeviceKeyError,
    InvalidKeySizeError,
)


class EncryptionType(Enum):
    """Encryption scheme a device is provisioned with."""
    AES_256_CTR = "AES-256-CTR"
    AES_128_CTR = "AES-128-CTR"

    @property
    def key_size(self) -> int:
        """Master key length in bytes for this scheme."""
        if self is EncryptionType.AES_128_CTR:
            return AES128_KEY_SIZE
        return AES256_KEY_SIZE


@dataclass
class Location:
    """Where a packet was captured."""
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0
    horizontal_accuracy: float = 0.0
    vertical_accuracy: float = 0.0
    timestamp: Optional[datetime] = None
    fake: bool = False


@dataclass
class EncryptedPacket:
    """A raw BLE advertisement payload as captured by a scanner."""
    payload: bytes
    rssi: int = 0
    timestamp: Optional[datetime] = None
    location: Location = field(default_factory=Location)

    def payload_hex(self) -> str:
        """Returns the payload as a hex string."""
        return self.payload.hex()

    def to_ingest_advertisement(self) -> dict:
        """
        Returns the advertisement in the cloud ingestion format.

        The payload is uploaded still encrypted, base64-encoded.
        """
        timestamp = int(self.timestamp.timestamp()) if self.timestamp else 0
        return {
            "payload": base64.b64encode(self.payload).decode("ascii"),
            "rssi": self.rssi,
            "timestamp": timestamp,
        }


@dataclass
class DecryptedPacket:
    """A successfully decrypted packet."""
    device_id: str
    payload: bytes
    time_counter: int
    timestamp: datetime
    location: Location = field(default_factory=Location)

    def payload_hex(self) -> str:
        """Returns the decrypted payload as a hex string."""
        return self.payload.hex()


@dataclass
class Device:
    """A registered device and its provisioned master key."""
    id: str
    key: str  # Base64-encoded master key
    name: str = ""
    encryption: EncryptionType = EncryptionType.AES_256_CTR
    tags: dict[str, str] = field(default_factory=dict)

    def master_key(self) -> bytes:
        """
        Decode the master key.

        Returns:
            Raw key bytes

        Raises:
            InvalidDeviceKeyError: If the key is not valid base64
            InvalidKeySizeError: If the key length does not match the
                device's encryption type
        """
        try:
            key = base64.b64decode(self.key, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidDeviceKeyError(f"Invalid key for device {self.id}: {e}") from e

        if len(key) != self.encryption.key_size:
            raise InvalidKeySizeError(len(key))
        return key
