"""Extraction of Hubble payloads from raw BLE advertisements."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .models import EncryptedPacket, Location
from .types import NotHubblePacketError


# Hubble BLE service UUID (16-bit 0xFCA6)
HUBBLE_SERVICE_UUID16 = 0xFCA6
HUBBLE_SERVICE_UUID = "0000fca6-0000-1000-8000-00805f9b34fb"

MIN_PAYLOAD_LENGTH = 8

_SHORT_UUID_FORMS = (f"{HUBBLE_SERVICE_UUID16:04x}", f"0x{HUBBLE_SERVICE_UUID16:04x}")


@dataclass
class RawAdvertisement:
    """A BLE advertisement as reported by the scanner."""
    local_name: str = ""
    service_uuids: list[str] = field(default_factory=list)
    service_data: dict[str, bytes] = field(default_factory=dict)
    manufacturer_data: bytes = b""
    rssi: int = 0
    address: str = ""
    timestamp: Optional[datetime] = None


def is_hubble_uuid(uuid: str) -> bool:
    """Check whether a UUID string names the Hubble service (full or 16-bit form)."""
    normalized = uuid.lower()
    return normalized == HUBBLE_SERVICE_UUID or normalized in _SHORT_UUID_FORMS


def contains_hubble_service(adv: RawAdvertisement) -> bool:
    """
    Check if an advertisement carries the Hubble service.

    Args:
        adv: Advertisement to check

    Returns:
        True if the service UUID list or service data mentions Hubble
    """
    if any(is_hubble_uuid(uuid) for uuid in adv.service_uuids):
        return True
    return any(is_hubble_uuid(uuid) for uuid in adv.service_data)


def parse_advertisement(
    adv: RawAdvertisement,
    location: Optional[Location] = None,
) -> EncryptedPacket:
    """
    Extract the encrypted Hubble payload from an advertisement.

    Hubble service data is preferred; manufacturer data is the fallback.

    Args:
        adv: Advertisement from the scanner
        location: Where the advertisement was captured

    Returns:
        EncryptedPacket carrying the payload, RSSI and receive time

    Raises:
        NotHubblePacketError: If no payload of at least 8 bytes is present
    """
    location = location or Location()

    for uuid, data in adv.service_data.items():
        if is_hubble_uuid(uuid) and len(data) >= MIN_PAYLOAD_LENGTH:
            return EncryptedPacket(
                payload=bytes(data),
                rssi=adv.rssi,
                timestamp=adv.timestamp,
                location=location,
            )

    if len(adv.manufacturer_data) >= MIN_PAYLOAD_LENGTH:
        return EncryptedPacket(
            payload=bytes(adv.manufacturer_data),
            rssi=adv.rssi,
            timestamp=adv.timestamp,
            location=location,
        )

    raise NotHubblePacketError("Not a Hubble BLE packet")
