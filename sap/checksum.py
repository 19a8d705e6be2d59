"""Message identifier hash derivation for SAP announcements."""

import zlib

from sap.constants import MAX_MESSAGE_ID_HASH


def compute_message_id_hash(payload):
    """
    Derive a 16-bit message identifier hash from a payload.

    The CRC-32 (IEEE) of the payload truncated to its low 16 bits. Any
    change to the session description changes the hash, which is what
    listeners use to spot a new version of an announcement.

    Args:
        payload (bytes): Session description

    Returns:
        int: 0 to 65535

    Example:
        >>> compute_message_id_hash(b'')
        0
    """
    return zlib.crc32(payload) & MAX_MESSAGE_ID_HASH
