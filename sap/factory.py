"""
Convenience constructor for outgoing SAP packets.
"""

import ipaddress

from sap.checksum import compute_message_id_hash
from sap.constants import PROTOCOL_VERSION
from sap.header import AddressType, Header, MessageType
from sap.packet import Packet


def new_packet(payload, originating_source, message_type=MessageType.ANNOUNCEMENT,
               payload_type=''):
    """
    Build an unencrypted, uncompressed, unauthenticated SAP packet.

    The address type follows the originating source (IPv4-mapped IPv6
    addresses are sent as IPv4) and the message id hash is computed
    from the payload.

    Args:
        payload (bytes): Session description, typically SDP
        originating_source: Announcer address as a string, an ipaddress
            object or a (host, port) socket address
        message_type (MessageType): Announcement or deletion
        payload_type (str): MIME type, '' to omit it (application/sdp)

    Returns:
        Packet: Ready to encode()

    Raises:
        ValueError: If originating_source is not an IP address

    Example:
        >>> packet = new_packet(b'v=0\\r\\n', '192.0.2.1')
        >>> packet.header.address_type
        <AddressType.IPV4: 0>
    """
    if isinstance(originating_source, tuple):
        originating_source = originating_source[0]

    address = ipaddress.ip_address(originating_source)
    if address.version == 6 and address.ipv4_mapped is not None:
        address = address.ipv4_mapped

    header = Header(
        version=PROTOCOL_VERSION,
        address_type=AddressType.IPV4 if address.version == 4 else AddressType.IPV6,
        message_type=message_type,
        message_id_hash=compute_message_id_hash(payload),
        originating_source=address.packed,
        payload_type=payload_type,
    )

    return Packet(header=header, payload=payload)
