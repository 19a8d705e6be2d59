"""
Protocol constants for SAP (Session Announcement Protocol, RFC 2974).

Defines the flags byte layout, field sizes and payload-type defaults.
All multi-byte integers use big-endian (network byte order).
"""

# Protocol version (RFC 2974 mandates 1)
PROTOCOL_VERSION = 1

# Flags byte: [V V V A R T E C], most-significant bit first
VERSION_SHIFT = 5       # 3-bit version number
ADDRESS_TYPE_SHIFT = 4  # 0 = IPv4, 1 = IPv6
RESERVED_SHIFT = 3      # senders write 0, listeners ignore
MESSAGE_TYPE_SHIFT = 2  # 0 = announcement, 1 = deletion
ENCRYPTED_SHIFT = 1
COMPRESSED_SHIFT = 0

VERSION_MASK = 0x07     # version is 3 bits wide
ONE_BIT_MASK = 0x01

# Field sizes (in bytes)
FLAGS_SIZE = 1
AUTH_LENGTH_SIZE = 1
MESSAGE_ID_HASH_SIZE = 2
AUTH_WORD_SIZE = 4      # authentication data is a run of 32-bit words
IPV4_SIZE = 4
IPV6_SIZE = 16
TRAILING_ZERO_SIZE = 1  # NUL terminating the payload type

# Flags + auth length + msg id hash
FIXED_HEADER_SIZE = FLAGS_SIZE + AUTH_LENGTH_SIZE + MESSAGE_ID_HASH_SIZE  # 4 bytes

# Field limits
MAX_AUTH_LENGTH = 0xFF
MAX_MESSAGE_ID_HASH = 0xFFFF
MAX_AUTH_WORD = 0xFFFFFFFF

# Payload type
DEFAULT_PAYLOAD_TYPE = 'application/sdp'  # implied when the field is omitted
SDP_PREFIX = b'v=0'                       # every SDP description starts with this
TRAILING_ZERO = b'\x00'
