"""Tests for message identifier hash derivation."""
from sap.checksum import compute_message_id_hash


def test_hash_of_empty_payload():
    """CRC-32 of nothing is zero."""
    assert compute_message_id_hash(b'') == 0


def test_hash_is_low_16_bits_of_crc32():
    """The standard CRC-32 check value 0xCBF43926 truncates to 0x3926."""
    assert compute_message_id_hash(b'123456789') == 0x3926


def test_hash_is_deterministic():
    """Same payload should always give the same hash."""
    payload = b'v=0\r\ns=session\r\n'
    assert compute_message_id_hash(payload) == compute_message_id_hash(payload)


def test_hash_changes_with_payload():
    """Modifying the session description should change the hash."""
    assert compute_message_id_hash(b'v=0\r\ns=one\r\n') != \
        compute_message_id_hash(b'v=0\r\ns=two\r\n')


def test_hash_fits_in_16_bits():
    """Hash must fit the 16-bit header field."""
    for size in range(0, 200, 7):
        assert 0 <= compute_message_id_hash(bytes(range(size))) <= 0xFFFF
