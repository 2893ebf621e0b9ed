"""Tests for packet encryption and the decryption search."""

from datetime import datetime, timedelta, timezone

import pytest
from hubcrypt.aes_ctr import aes_ctr_encrypt
from hubcrypt.cmac import compute_auth_tag
from hubcrypt.crypto import (
    DecryptOptions,
    encrypt_packet,
    try_decrypt,
    decrypt,
    find_time_counter,
    decrypt_with_known_counter,
)
from hubcrypt.kdf import full_encryption_key_derivation, full_nonce_derivation
from hubcrypt.models import EncryptedPacket
from hubcrypt.packet import assemble_packet, build_header, counter_to_time, parse_packet, time_to_counter
from hubcrypt.types import (
    MIN_PACKET_SIZE,
    AuthenticationError,
    DecryptionFailedError,
    InvalidKeySizeError,
    PacketTooShortError,
)
from .test_vectors import MASTER_KEY_128, MASTER_KEY_256, TIME_COUNTER, SEQ_COUNTER, PLAINTEXT


def _options(counter: int, window: int = 2) -> DecryptOptions:
    """Options expecting the given day."""
    return DecryptOptions(search_window_days=window, expected_time=counter_to_time(counter))


class TestEncryptPacket:
    """Test the encrypt-direction codec."""

    def test_matches_manual_construction(self) -> None:
        """Packet equals header || CMAC(header) || AES-CTR(plaintext)."""
        encryption_key = full_encryption_key_derivation(MASTER_KEY_256, TIME_COUNTER, SEQ_COUNTER)
        nonce = full_nonce_derivation(MASTER_KEY_256, TIME_COUNTER, SEQ_COUNTER)
        header = build_header(SEQ_COUNTER)
        expected = assemble_packet(
            header,
            compute_auth_tag(encryption_key, header),
            aes_ctr_encrypt(encryption_key, nonce, PLAINTEXT),
        )

        assert encrypt_packet(MASTER_KEY_256, PLAINTEXT, TIME_COUNTER, SEQ_COUNTER) == expected

    def test_layout(self) -> None:
        """Packet is 10 bytes plus the payload length."""
        packet = encrypt_packet(MASTER_KEY_128, PLAINTEXT, TIME_COUNTER, SEQ_COUNTER)
        parsed = parse_packet(packet)

        assert len(packet) == MIN_PACKET_SIZE + len(PLAINTEXT)
        assert parsed.sequence_number == SEQ_COUNTER
        assert parsed.encrypted_payload != PLAINTEXT

    def test_rejects_invalid_key(self) -> None:
        """Master key must be 16 or 32 bytes."""
        with pytest.raises(InvalidKeySizeError):
            encrypt_packet(bytes(24), PLAINTEXT, TIME_COUNTER, SEQ_COUNTER)


class TestDecrypt:
    """Test decryption with a time counter search."""

    def test_hello_hubble(self) -> None:
        """Incrementing 32-byte key, T=20000, S=42 round trips."""
        packet = EncryptedPacket(
            payload=encrypt_packet(MASTER_KEY_256, PLAINTEXT, TIME_COUNTER, SEQ_COUNTER),
            timestamp=counter_to_time(TIME_COUNTER),
        )

        result = decrypt(MASTER_KEY_256, packet, DecryptOptions(search_window_days=1))

        assert result.payload == PLAINTEXT
        assert result.time_counter == TIME_COUNTER
        assert result.seq_counter == SEQ_COUNTER

    @pytest.mark.parametrize("master_key", [MASTER_KEY_128, MASTER_KEY_256])
    @pytest.mark.parametrize("seq_counter", [0, 1, 512, 1023])
    def test_round_trip(self, master_key: bytes, seq_counter: int) -> None:
        """Both key sizes and the full sequence range decrypt."""
        raw = encrypt_packet(master_key, b"payload", TIME_COUNTER, seq_counter)

        result = decrypt(master_key, raw, _options(TIME_COUNTER))

        assert result.payload == b"payload"
        assert result.seq_counter == seq_counter

    def test_empty_payload(self) -> None:
        """A 10-byte packet authenticates and decrypts to nothing."""
        raw = encrypt_packet(MASTER_KEY_128, b"", TIME_COUNTER, SEQ_COUNTER)

        result = decrypt(MASTER_KEY_128, raw, _options(TIME_COUNTER))

        assert len(raw) == MIN_PACKET_SIZE
        assert result.payload == b""

    @pytest.mark.parametrize("offset", [-2, -1, 0, 1, 2])
    def test_within_window(self, offset: int) -> None:
        """Counters up to W days away are found."""
        actual = TIME_COUNTER + offset
        raw = encrypt_packet(MASTER_KEY_128, b"test payload", actual, 100)

        result = decrypt(MASTER_KEY_128, raw, _options(TIME_COUNTER, window=2))

        assert result.payload == b"test payload"
        assert result.time_counter == actual

    @pytest.mark.parametrize("offset", [-4, -3, 3, 4])
    def test_outside_window(self, offset: int) -> None:
        """Counters W+1 or more days away fail."""
        raw = encrypt_packet(MASTER_KEY_128, b"test payload", TIME_COUNTER + offset, 100)

        with pytest.raises(DecryptionFailedError):
            decrypt(MASTER_KEY_128, raw, _options(TIME_COUNTER, window=2))

    def test_zero_window(self) -> None:
        """A zero window tries only the expected day."""
        raw = encrypt_packet(MASTER_KEY_128, PLAINTEXT, TIME_COUNTER, SEQ_COUNTER)

        assert decrypt(MASTER_KEY_128, raw, _options(TIME_COUNTER, window=0)).payload == PLAINTEXT
        with pytest.raises(DecryptionFailedError):
            decrypt(MASTER_KEY_128, raw, _options(TIME_COUNTER + 1, window=0))

    def test_uses_packet_timestamp(self) -> None:
        """Packet capture time is the default expected time."""
        packet = EncryptedPacket(
            payload=encrypt_packet(MASTER_KEY_128, PLAINTEXT, TIME_COUNTER, SEQ_COUNTER),
            timestamp=counter_to_time(TIME_COUNTER) + timedelta(hours=13),
        )

        assert decrypt(MASTER_KEY_128, packet, DecryptOptions(search_window_days=0)).payload == PLAINTEXT

    def test_expected_time_overrides_packet_timestamp(self) -> None:
        """Explicit expected time takes precedence over capture time."""
        packet = EncryptedPacket(
            payload=encrypt_packet(MASTER_KEY_128, PLAINTEXT, TIME_COUNTER, SEQ_COUNTER),
            timestamp=counter_to_time(TIME_COUNTER + 10),
        )

        result = decrypt(MASTER_KEY_128, packet, _options(TIME_COUNTER, window=0))
        assert result.time_counter == TIME_COUNTER

    def test_no_timestamp_uses_current_time(self) -> None:
        """Without any timestamp the current UTC day is searched."""
        today = time_to_counter(datetime.now(timezone.utc))
        packet = EncryptedPacket(payload=encrypt_packet(MASTER_KEY_128, PLAINTEXT, today, SEQ_COUNTER))

        result = decrypt(MASTER_KEY_128, packet)

        assert result.payload == PLAINTEXT
        assert result.time_counter == today

    def test_wrong_key(self) -> None:
        """Another device's key does not authenticate."""
        raw = encrypt_packet(MASTER_KEY_128, PLAINTEXT, TIME_COUNTER, SEQ_COUNTER)

        with pytest.raises(DecryptionFailedError):
            decrypt(bytes(16), raw, _options(TIME_COUNTER))

    @pytest.mark.parametrize("index", range(10))
    def test_tampered_header_or_tag(self, index: int) -> None:
        """Flipping a bit in the header, reserved bytes or tag is rejected."""
        raw = bytearray(encrypt_packet(MASTER_KEY_128, PLAINTEXT, TIME_COUNTER, SEQ_COUNTER))
        raw[index] ^= 0x01

        with pytest.raises(DecryptionFailedError):
            decrypt(MASTER_KEY_128, bytes(raw), _options(TIME_COUNTER))

    def test_rejects_invalid_key_size(self) -> None:
        """Key size is validated before the search."""
        with pytest.raises(InvalidKeySizeError):
            decrypt(bytes(24), bytes(MIN_PACKET_SIZE), _options(TIME_COUNTER))

    def test_rejects_short_packet(self) -> None:
        """Packet length is validated before the search."""
        with pytest.raises(PacketTooShortError):
            decrypt(MASTER_KEY_128, bytes(MIN_PACKET_SIZE - 1), _options(TIME_COUNTER))

    def test_window_clamped_at_epoch(self) -> None:
        """Search near day zero does not go negative."""
        raw = encrypt_packet(MASTER_KEY_128, PLAINTEXT, 0, SEQ_COUNTER)

        result = decrypt(MASTER_KEY_128, raw, _options(1, window=5))
        assert result.time_counter == 0


class TestDecryptOptions:
    """Test search configuration."""

    def test_defaults(self) -> None:
        """Default window is two days with no expected time."""
        options = DecryptOptions()
        assert options.search_window_days == 2
        assert options.expected_time is None

    def test_immutable(self) -> None:
        """Options cannot be changed after construction."""
        options = DecryptOptions()
        with pytest.raises(AttributeError):
            options.search_window_days = 5

    def test_rejects_negative_window(self) -> None:
        """Negative windows are rejected."""
        with pytest.raises(ValueError):
            DecryptOptions(search_window_days=-1)


class TestTryDecrypt:
    """Test a single candidate counter."""

    def test_match(self) -> None:
        """Correct counter yields a result."""
        parsed = parse_packet(encrypt_packet(MASTER_KEY_128, PLAINTEXT, TIME_COUNTER, SEQ_COUNTER))

        result = try_decrypt(MASTER_KEY_128, parsed, TIME_COUNTER)

        assert result is not None
        assert result.payload == PLAINTEXT

    def test_mismatch_returns_none(self) -> None:
        """Wrong counter is a plain None, not an exception."""
        parsed = parse_packet(encrypt_packet(MASTER_KEY_128, PLAINTEXT, TIME_COUNTER, SEQ_COUNTER))
        assert try_decrypt(MASTER_KEY_128, parsed, TIME_COUNTER + 1) is None

    def test_rejects_invalid_key_size(self) -> None:
        """Key size is validated before any derivation."""
        parsed = parse_packet(encrypt_packet(MASTER_KEY_128, PLAINTEXT, TIME_COUNTER, SEQ_COUNTER))

        with pytest.raises(InvalidKeySizeError):
            try_decrypt(bytes(24), parsed, TIME_COUNTER)


class TestDecryptWithKnownCounter:
    """Test decryption without a search."""

    def test_success(self) -> None:
        """Known counter decrypts."""
        raw = encrypt_packet(MASTER_KEY_128, b"known counter test", TIME_COUNTER, 50)

        result = decrypt_with_known_counter(MASTER_KEY_128, EncryptedPacket(payload=raw), TIME_COUNTER)

        assert result.payload == b"known counter test"
        assert result.time_counter == TIME_COUNTER
        assert result.seq_counter == 50

    def test_wrong_counter(self) -> None:
        """Wrong counter surfaces an authentication failure."""
        raw = encrypt_packet(MASTER_KEY_128, b"encrypted", TIME_COUNTER, 50)

        with pytest.raises(AuthenticationError):
            decrypt_with_known_counter(MASTER_KEY_128, raw, TIME_COUNTER + 10)

    def test_rejects_invalid_key_size(self) -> None:
        """Key size is validated."""
        with pytest.raises(InvalidKeySizeError):
            decrypt_with_known_counter(bytes(24), bytes(MIN_PACKET_SIZE), 19000)

    def test_rejects_short_packet(self) -> None:
        """Packet length is validated."""
        with pytest.raises(PacketTooShortError):
            decrypt_with_known_counter(MASTER_KEY_128, bytes(MIN_PACKET_SIZE - 1), 19000)


class TestFindTimeCounter:
    """Test counter search without decryption."""

    def test_success(self) -> None:
        """Finds the day the packet was encrypted on."""
        raw = encrypt_packet(MASTER_KEY_128, b"payload", TIME_COUNTER + 1, 75)
        packet = EncryptedPacket(payload=raw, timestamp=counter_to_time(TIME_COUNTER + 1))

        assert find_time_counter(MASTER_KEY_128, packet, DecryptOptions(search_window_days=1)) == TIME_COUNTER + 1

    def test_agrees_with_decrypt(self) -> None:
        """Found counter decrypts with decrypt_with_known_counter."""
        raw = encrypt_packet(MASTER_KEY_256, PLAINTEXT, TIME_COUNTER - 2, SEQ_COUNTER)

        counter = find_time_counter(MASTER_KEY_256, raw, _options(TIME_COUNTER))

        assert counter == TIME_COUNTER - 2
        assert decrypt_with_known_counter(MASTER_KEY_256, raw, counter).payload == PLAINTEXT

    def test_not_found(self) -> None:
        """Random tag never authenticates."""
        raw = bytes(6) + b"\xFF\xFF\xFF\xFF" + bytes(4)

        with pytest.raises(DecryptionFailedError):
            find_time_counter(MASTER_KEY_128, raw, _options(TIME_COUNTER, window=1))

    def test_rejects_short_packet(self) -> None:
        """Packet length is validated."""
        with pytest.raises(PacketTooShortError):
            find_time_counter(MASTER_KEY_128, bytes(MIN_PACKET_SIZE - 1))

    def test_rejects_invalid_key_size(self) -> None:
        """Key size is validated."""
        with pytest.raises(InvalidKeySizeError):
            find_time_counter(bytes(24), bytes(MIN_PACKET_SIZE))
