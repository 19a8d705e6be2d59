"""
Header layer for SAP (Session Announcement Protocol).

Handles header serialization (Python → bytes) and
deserialization (bytes → Python).

Header format (RFC 2974, section 6):

     0                   1                   2                   3
     0 1 2 3 4 5 6 7 8 9 0 1 2 3 4 5 6 7 8 9 0 1 2 3 4 5 6 7 8 9 0 1
    +-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+
    | V=1 |A|R|T|E|C|   auth len    |         msg id hash           |
    +-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+
    |                                                               |
    :                originating source (32 or 128 bits)            :
    :                                                               :
    +-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+
    |                    optional authentication data               |
    :                              ....                             :
    *-*-*-*-*-*-*-*-*-*-*-*-*-*-*-*-*-*-*-*-*-*-*-*-*-*-*-*-*-*-*-*-*
    |                      optional payload type                    |
    +                                         +-+- - - - - - - - - -+
    |                                         |0|     payload       |
    + - - - - - - - - - - - - - - - - - - - - +-+- - - - - - - - - -|

The version is treated as the full 3-bit field drawn above, so any value
0-7 round-trips even though only 1 is valid on the wire today.
"""

import ipaddress
import logging
import struct
from dataclasses import dataclass, field, replace
from enum import IntEnum

from sap.constants import *
from sap.errors import (
    BufferTooSmallForAuthData,
    BufferTooSmallForAuthLength,
    BufferTooSmallForFlags,
    BufferTooSmallForIPv4,
    BufferTooSmallForIPv6,
    BufferTooSmallForMessageIdHash,
    InvalidOriginatingSourceError,
    MissingTrailingZeroError,
    ShortBufferError,
)
from sap.mediatype import parse_media_type

logger = logging.getLogger(__name__)


class AddressType(IntEnum):
    """The A bit: width of the originating source."""
    IPV4 = 0
    IPV6 = 1


class MessageType(IntEnum):
    """The T bit."""
    ANNOUNCEMENT = 0
    DELETION = 1


ADDRESS_WIDTHS = {
    AddressType.IPV4: IPV4_SIZE,
    AddressType.IPV6: IPV6_SIZE,
}


def _pack_address(address):
    """Turn bytes, a string or an ipaddress object into packed address bytes."""
    if address is None:
        return b''
    if isinstance(address, (bytes, bytearray, memoryview)):
        return bytes(address)
    if isinstance(address, str):
        address = ipaddress.ip_address(address)
    return address.packed


@dataclass
class Header:
    """
    A SAP header.

    ``originating_source`` is stored as packed network-order bytes; a
    string or ``ipaddress`` object passed to the constructor is packed.
    ``payload_type`` is kept exactly as it appears on the wire, and the
    empty string means the field is omitted (implicitly application/sdp).
    """
    version: int = PROTOCOL_VERSION
    address_type: AddressType = AddressType.IPV4
    reserved: int = 0
    message_type: MessageType = MessageType.ANNOUNCEMENT
    encrypted: bool = False
    compressed: bool = False
    authentication_length: int = 0
    authentication_data: list = field(default_factory=list)
    message_id_hash: int = 0
    originating_source: bytes = b''
    payload_type: str = ''

    def __post_init__(self):
        self.address_type = AddressType(self.address_type)
        self.message_type = MessageType(self.message_type)
        self.encrypted = bool(self.encrypted)
        self.compressed = bool(self.compressed)
        self.authentication_data = list(self.authentication_data)
        self.originating_source = _pack_address(self.originating_source)

    @property
    def source_address(self):
        """Originating source as an ``ipaddress`` object."""
        return ipaddress.ip_address(self.originating_source)

    @property
    def media_type(self):
        """Lower-cased ``type/subtype`` of the payload, application/sdp if omitted."""
        if not self.payload_type:
            return DEFAULT_PAYLOAD_TYPE
        media_type, _ = parse_media_type(self.payload_type)
        return media_type

    def size(self):
        """Number of bytes encode() produces for this header."""
        # NOTE: must stay in step with encode_into()
        size = FIXED_HEADER_SIZE
        size += AUTH_WORD_SIZE * self.authentication_length
        size += ADDRESS_WIDTHS[self.address_type]

        if self.payload_type:
            size += len(self.payload_type.encode('utf-8')) + TRAILING_ZERO_SIZE

        return size

    def _validate(self):
        """
        Check every field fits its wire slot.

        Raises:
            ValueError: If a numeric field is out of range or the
                authentication data disagrees with its length
            InvalidOriginatingSourceError: If the address is neither
                4 nor 16 bytes, or does not match address_type
            MediaTypeError: If payload_type is not an ASCII media type
        """
        if not 0 <= self.version <= VERSION_MASK:
            raise ValueError(f"Version must be 0-{VERSION_MASK}, got {self.version}")

        if self.reserved not in (0, 1):
            raise ValueError(f"Reserved bit must be 0 or 1, got {self.reserved}")

        if not 0 <= self.authentication_length <= MAX_AUTH_LENGTH:
            raise ValueError(
                f"Authentication length must be 0-{MAX_AUTH_LENGTH}, "
                f"got {self.authentication_length}"
            )

        if len(self.authentication_data) != self.authentication_length:
            raise ValueError(
                f"Authentication length is {self.authentication_length} but "
                f"{len(self.authentication_data)} authentication words were given"
            )

        for word in self.authentication_data:
            if not 0 <= word <= MAX_AUTH_WORD:
                raise ValueError(f"Authentication word out of range: {word}")

        if not 0 <= self.message_id_hash <= MAX_MESSAGE_ID_HASH:
            raise ValueError(
                f"Message id hash must be 0-{MAX_MESSAGE_ID_HASH}, "
                f"got {self.message_id_hash}"
            )

        # Width comes from the address itself, not from the A bit
        width = len(self.originating_source)
        if width == IPV4_SIZE:
            source_type = AddressType.IPV4
        elif width == IPV6_SIZE:
            source_type = AddressType.IPV6
        else:
            raise InvalidOriginatingSourceError(
                f"Originating source must be {IPV4_SIZE} or {IPV6_SIZE} bytes, got {width}"
            )

        if source_type != self.address_type:
            raise InvalidOriginatingSourceError(
                f"Originating source is {source_type.name} "
                f"but address type is {self.address_type.name}"
            )

        if '\x00' in self.payload_type:
            raise ValueError("Payload type must not contain a zero byte")

        # Must read back as a payload type, not as part of the payload
        if self.payload_type:
            parse_media_type(self.payload_type)

    def encode(self):
        """
        Serialize the header.

        Returns:
            bytes: Serialized header (size() bytes)

        Raises:
            ValueError, InvalidOriginatingSourceError: See encode_into()
        """
        buffer = bytearray(self.size())
        written = self.encode_into(buffer)
        return bytes(buffer[:written])

    def encode_into(self, buffer):
        """
        Serialize the header into the start of a writable buffer.

        The whole header is validated before anything is written.

        Args:
            buffer (bytearray | memoryview): Destination, at least size() bytes

        Returns:
            int: Number of bytes written

        Raises:
            ShortBufferError: If buffer is smaller than size()
            InvalidOriginatingSourceError: If the address width is wrong
            MediaTypeError: If payload_type is not an ASCII media type
            ValueError: If another field is out of range
        """
        size = self.size()
        if len(buffer) < size:
            raise ShortBufferError(
                f"Header needs {size} bytes, buffer has {len(buffer)}"
            )

        self._validate()

        flags = (
            (self.version << VERSION_SHIFT)
            | (self.address_type << ADDRESS_TYPE_SHIFT)
            | (self.reserved << RESERVED_SHIFT)
            | (self.message_type << MESSAGE_TYPE_SHIFT)
            | (int(self.encrypted) << ENCRYPTED_SHIFT)
            | (int(self.compressed) << COMPRESSED_SHIFT)
        )

        # 'B' = flags, 'B' = auth length, 'H' = msg id hash
        struct.pack_into(
            '!BBH',
            buffer,
            0,
            flags,
            self.authentication_length,
            self.message_id_hash
        )
        position = FIXED_HEADER_SIZE

        # Originating source
        source = self.originating_source
        buffer[position:position + len(source)] = source
        position += len(source)

        # Authentication data, one 32-bit word at a time
        if self.authentication_data:
            struct.pack_into(
                f'!{self.authentication_length}I',
                buffer,
                position,
                *self.authentication_data
            )
            position += AUTH_WORD_SIZE * self.authentication_length

        # Omitted payload type means application/sdp
        if self.payload_type:
            payload_type = self.payload_type.encode('ascii')
            buffer[position:position + len(payload_type)] = payload_type
            position += len(payload_type)

            buffer[position] = 0
            position += TRAILING_ZERO_SIZE

        return position

    @classmethod
    def decode(cls, data):
        """
        Parse a header from the start of a buffer.

        Bytes after the header are ignored; they belong to the payload.

        Args:
            data (bytes): Raw packet data

        Returns:
            Header: The parsed header

        Raises:
            BufferTooSmallError: A subclass naming the first missing region
            MissingTrailingZeroError: If the payload type has no NUL
            MediaTypeError: If the payload type is not a valid media type
        """
        data = bytes(data)
        position = 0

        if len(data) < FLAGS_SIZE:
            raise BufferTooSmallForFlags()

        flags = data[position]
        position += FLAGS_SIZE

        if len(data) - position < AUTH_LENGTH_SIZE:
            raise BufferTooSmallForAuthLength()

        authentication_length = data[position]
        position += AUTH_LENGTH_SIZE

        if len(data) - position < MESSAGE_ID_HASH_SIZE:
            raise BufferTooSmallForMessageIdHash()

        (message_id_hash,) = struct.unpack_from('!H', data, position)
        position += MESSAGE_ID_HASH_SIZE

        address_type = AddressType((flags >> ADDRESS_TYPE_SHIFT) & ONE_BIT_MASK)
        width = ADDRESS_WIDTHS[address_type]
        if len(data) - position < width:
            if address_type == AddressType.IPV4:
                raise BufferTooSmallForIPv4()
            raise BufferTooSmallForIPv6()

        originating_source = data[position:position + width]
        position += width

        authentication_data = []
        if authentication_length:
            auth_size = AUTH_WORD_SIZE * authentication_length
            if len(data) - position < auth_size:
                raise BufferTooSmallForAuthData()

            authentication_data = list(
                struct.unpack_from(f'!{authentication_length}I', data, position)
            )
            position += auth_size

        return cls(
            version=(flags >> VERSION_SHIFT) & VERSION_MASK,
            address_type=address_type,
            reserved=(flags >> RESERVED_SHIFT) & ONE_BIT_MASK,
            message_type=MessageType((flags >> MESSAGE_TYPE_SHIFT) & ONE_BIT_MASK),
            encrypted=bool((flags >> ENCRYPTED_SHIFT) & ONE_BIT_MASK),
            compressed=bool((flags >> COMPRESSED_SHIFT) & ONE_BIT_MASK),
            authentication_length=authentication_length,
            authentication_data=authentication_data,
            message_id_hash=message_id_hash,
            originating_source=originating_source,
            payload_type=cls._decode_payload_type(data, position),
        )

    @staticmethod
    def _decode_payload_type(data, position):
        """
        Work out whether a payload type sits at data[position:].

        The field is optional and carries no presence flag. If fewer than
        three bytes remain, or they start with "v=0", we are already in an
        SDP payload and the type is omitted. Otherwise the bytes up to the
        next NUL must parse as a media type. A parse failure is an error,
        never "field omitted": a non-SDP payload without a payload type is
        indistinguishable from a corrupt header, so it is rejected.

        Returns:
            str: The payload type as written, or '' if omitted
        """
        remaining = data[position:]
        if len(remaining) < len(SDP_PREFIX) or remaining.startswith(SDP_PREFIX):
            logger.debug("Payload type omitted, assuming %s", DEFAULT_PAYLOAD_TYPE)
            return ''

        end = remaining.find(TRAILING_ZERO)
        if end < 0:
            raise MissingTrailingZeroError()

        candidate = remaining[:end]
        parse_media_type(candidate)
        return candidate.decode('ascii')

    def clone(self):
        """
        Return a deep copy.

        The authentication word list is copied; the address is immutable
        bytes, rebuilt so no caller-held buffer is shared.
        """
        return replace(
            self,
            authentication_data=list(self.authentication_data),
            originating_source=bytes(self.originating_source),
        )
