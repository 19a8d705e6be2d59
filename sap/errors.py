"""
Exceptions raised by the SAP codec.

Every failure is its own class so callers can tell exactly which region of
a buffer was missing. All of them derive from PacketError; catching that is
enough to reject a datagram.
"""


class PacketError(Exception):
    """Raised when packet parsing or validation fails."""
    default_message = 'malformed SAP packet'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


class BufferTooSmallError(PacketError):
    """Base class for every "buffer too small for X" condition."""
    default_message = 'buffer too small'


class BufferTooSmallForFlags(BufferTooSmallError):
    default_message = 'buffer too small for flags'


class BufferTooSmallForAuthLength(BufferTooSmallError):
    default_message = 'buffer too small for authentication length'


class BufferTooSmallForAuthData(BufferTooSmallError):
    default_message = 'buffer too small for authentication data'


class BufferTooSmallForMessageIdHash(BufferTooSmallError):
    default_message = 'buffer too small for message id hash'


class BufferTooSmallForIPv4(BufferTooSmallError):
    default_message = 'buffer too small for IPv4 address'


class BufferTooSmallForIPv6(BufferTooSmallError):
    default_message = 'buffer too small for IPv6 address'


class BufferTooSmallForPayload(BufferTooSmallError):
    default_message = 'buffer too small for the payload'


class BufferTooSmallForPayloadType(BufferTooSmallError):
    default_message = 'buffer too small for the payload type'


class MissingTrailingZeroError(BufferTooSmallForPayloadType):
    """The payload type runs to the end of the buffer without its NUL."""
    default_message = "didn't find the trailing zero byte of the payload type"


class BufferTooSmallForHeader(BufferTooSmallError):
    default_message = 'buffer too small for the header'


class ShortBufferError(BufferTooSmallError):
    """Destination buffer cannot hold the encoded header."""
    default_message = 'short buffer'


class InvalidOriginatingSourceError(PacketError, ValueError):
    """Originating source is not a 4 or 16 byte address, or disagrees with the A bit."""
    default_message = 'invalid IP in the originating source field of the header'


class MediaTypeError(PacketError, ValueError):
    """Payload type is not a well-formed MIME media type."""
    default_message = 'invalid media type'
