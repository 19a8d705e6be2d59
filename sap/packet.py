"""
Packet layer for SAP (Session Announcement Protocol).

A packet is a header followed by an opaque payload, usually an SDP
session description:

┌──────────────────────────────┬──────────────────────┐
│           Header             │       Payload        │
│ (variable, see header.py)    │     (N bytes)        │
└──────────────────────────────┴──────────────────────┘
"""

import ipaddress
import logging
from dataclasses import dataclass, field, replace

from sap.checksum import compute_message_id_hash
from sap.errors import BufferTooSmallForHeader, BufferTooSmallForPayload, PacketError
from sap.header import Header

logger = logging.getLogger(__name__)


@dataclass
class Packet:
    """A SAP header plus its payload."""
    header: Header = field(default_factory=Header)
    payload: bytes = b''

    def __post_init__(self):
        self.payload = bytes(self.payload)

    def __str__(self):
        header = self.header
        lines = [
            "SAP PACKET:",
            f"\tVersion: {header.version}",
            f"\tAddressType: {header.address_type.name}",
            f"\tReserved: {header.reserved}",
            f"\tMessageType: {header.message_type.name}",
            f"\tEncrypted: {int(header.encrypted)}",
            f"\tCompressed: {int(header.compressed)}",
            f"\tAuthenticationLength: {header.authentication_length}",
            f"\tAuthenticationData: {header.authentication_data}",
            f"\tMessageIDHash: {header.message_id_hash}",
            f"\tOriginatingSource: {_format_source(header.originating_source)}",
            f"\tPayload Type: {header.payload_type}",
            f"\tPayload Length: {len(self.payload)}",
        ]
        return '\n'.join(lines) + '\n'

    def size(self):
        """Number of bytes encode() produces: header plus payload."""
        return self.header.size() + len(self.payload)

    def encode(self):
        """
        Serialize the packet.

        If the header's message id hash is 0 it is derived from the
        payload; the packet's own header is left unchanged.

        Returns:
            bytes: Serialized packet (size() bytes)
        """
        buffer = bytearray(self.size())
        written = self.encode_into(buffer)
        return bytes(buffer[:written])

    def encode_into(self, buffer):
        """
        Serialize the packet into the start of a writable buffer.

        On error the buffer may hold a partial header and must be discarded.

        Args:
            buffer (bytearray | memoryview): Destination, at least size() bytes

        Returns:
            int: Number of bytes written

        Raises:
            BufferTooSmallForHeader: If the header does not fit
            BufferTooSmallForPayload: If the header fits but the payload does not
            InvalidOriginatingSourceError, ValueError: If the header is invalid
        """
        header_size = self.header.size()
        if len(buffer) < header_size:
            raise BufferTooSmallForHeader(
                f"Header needs {header_size} bytes, buffer has {len(buffer)}"
            )

        header = self.header
        if header.message_id_hash == 0:
            # 0 means unset; a chosen hash of 0 cannot be told apart
            header = replace(header, message_id_hash=compute_message_id_hash(self.payload))
            logger.debug("Derived message id hash %d from payload", header.message_id_hash)

        written = header.encode_into(buffer)

        if len(buffer) < header_size + len(self.payload):
            raise BufferTooSmallForPayload(
                f"Packet needs {header_size + len(self.payload)} bytes, "
                f"buffer has {len(buffer)}"
            )

        buffer[written:written + len(self.payload)] = self.payload
        return written + len(self.payload)

    @classmethod
    def decode(cls, data):
        """
        Parse a packet.

        Args:
            data (bytes): Raw datagram

        Returns:
            Packet: Header plus everything after it as the payload
                (empty if the datagram is exactly one header long)

        Raises:
            PacketError: If the header is truncated or malformed
        """
        try:
            header = Header.decode(data)
        except PacketError as e:
            logger.debug("Rejected %d byte SAP packet: %s", len(data), e)
            raise

        header_size = header.size()
        payload = b''
        if len(data) > header_size:
            payload = bytes(data[header_size:])

        packet = cls(header=header, payload=payload)
        logger.debug(
            "Decoded SAP %s from %s (hash %d, %d byte payload)",
            header.message_type.name.lower(),
            _format_source(header.originating_source),
            header.message_id_hash,
            len(payload)
        )
        return packet

    def clone(self):
        """Return a deep copy sharing no storage with this packet."""
        return Packet(header=self.header.clone(), payload=bytes(self.payload))


def _format_source(source):
    try:
        return str(ipaddress.ip_address(source))
    except ValueError:
        return source.hex()
