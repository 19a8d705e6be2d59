"""Tests for SAP packet serialization/parsing."""
import pytest

from sap.checksum import compute_message_id_hash
from sap.errors import (
    BufferTooSmallForFlags,
    BufferTooSmallForHeader,
    BufferTooSmallForPayload,
    InvalidOriginatingSourceError,
    MediaTypeError,
)
from sap.header import AddressType, Header, MessageType
from sap.packet import Packet

SDP = (
    b'v=0\r\n'
    b'o=jdoe 2890844526 2890842807 IN IP4 192.0.2.1\r\n'
    b's=SDP Seminar\r\n'
    b'c=IN IP4 224.2.17.12/127\r\n'
    b't=2873397496 2873404696\r\n'
    b'm=audio 49170 RTP/AVP 0\r\n'
)


def make_packet(payload=b'', **fields):
    """Packet with an IPv4 test header."""
    address_type = fields.setdefault('address_type', AddressType.IPV4)
    if 'originating_source' not in fields:
        if address_type == AddressType.IPV4:
            fields['originating_source'] = '192.0.2.1'
        else:
            fields['originating_source'] = '2001:db8::68'

    length = fields.setdefault('authentication_length', 0)
    fields.setdefault('authentication_data', list(range(1, length + 1)))
    fields.setdefault('message_id_hash', 12345)
    return Packet(header=Header(**fields), payload=payload)


def test_packet_size():
    """size() is header size plus payload length."""
    assert make_packet().size() == 8
    assert make_packet(payload=b'\x10\x04').size() == 10
    assert make_packet(payload=SDP, payload_type='application/sdp').size() == \
        8 + 16 + len(SDP)


@pytest.mark.parametrize('payload, fields', [
    (SDP, {}),
    (SDP, {'payload_type': 'application/sdp'}),
    (SDP, {'address_type': AddressType.IPV6, 'authentication_length': 5}),
    (b'{"session": 1}', {'payload_type': 'application/json'}),
    (b'v=0\x00\x01\x02binary after sdp marker', {}),
    (SDP, {'message_type': MessageType.DELETION}),
])
def test_packet_roundtrip(payload, fields):
    """Should be able to encode and decode a packet byte for byte."""
    packet = make_packet(payload=payload, **fields)

    data = packet.encode()
    parsed = Packet.decode(data)

    assert len(data) == packet.size()
    assert parsed == packet
    assert parsed.payload == payload


def test_header_only_packet_has_empty_payload():
    """A datagram holding exactly one header decodes with no payload."""
    packet = make_packet(payload_type='application/sdp')

    parsed = Packet.decode(packet.encode())

    assert parsed.payload == b''
    assert parsed.header == packet.header


def test_decode_rejects_empty_buffer():
    """Header errors propagate from Packet.decode."""
    with pytest.raises(BufferTooSmallForFlags):
        Packet.decode(b'')


def test_decode_rejects_non_sdp_payload_without_type():
    """A non-SDP payload with no payload type is ambiguous and rejected."""
    data = make_packet().header.encode() + b'hello\x00world'

    with pytest.raises(MediaTypeError):
        Packet.decode(data)


def test_encode_derives_missing_message_id_hash():
    """A zero hash is replaced by a checksum of the payload on the wire only."""
    packet = make_packet(payload=SDP, message_id_hash=0)

    data = packet.encode()

    expected = compute_message_id_hash(SDP)
    assert int.from_bytes(data[2:4], 'big') == expected
    assert Packet.decode(data).header.message_id_hash == expected
    assert packet.header.message_id_hash == 0


def test_encode_keeps_explicit_message_id_hash():
    """A non-zero hash is written as given."""
    data = make_packet(payload=SDP, message_id_hash=0xBEEF).encode()

    assert data[2:4] == b'\xbe\xef'


def test_encode_into_returns_total_written():
    """encode_into should report header plus payload bytes."""
    packet = make_packet(payload=SDP)
    buffer = bytearray(packet.size() + 10)

    written = packet.encode_into(buffer)

    assert written == packet.size()
    assert bytes(buffer[:written]) == packet.encode()


def test_encode_into_rejects_buffer_too_small_for_header():
    """The header must fit before anything else happens."""
    with pytest.raises(BufferTooSmallForHeader):
        make_packet(payload=SDP).encode_into(bytearray(7))


def test_encode_into_rejects_buffer_too_small_for_payload():
    """A buffer that fits the header but not the payload is rejected."""
    packet = make_packet(payload=b'\x10\x04')

    with pytest.raises(BufferTooSmallForPayload):
        packet.encode_into(bytearray(9))


def test_encode_rejects_invalid_header():
    """Header validation errors surface from Packet.encode."""
    packet = make_packet(payload=SDP, originating_source=b'\x00\x00\x00')

    with pytest.raises(InvalidOriginatingSourceError):
        packet.encode()


def test_clone_is_deep_copy():
    """A clone shares no mutable state with the original."""
    original = make_packet(payload=SDP, authentication_length=3)

    clone = original.clone()

    assert clone == original
    assert clone.header is not original.header
    assert clone.header.authentication_data is not original.header.authentication_data

    clone.header.authentication_data[0] = 42
    clone.header.payload_type = 'text/plain'
    clone.payload = b'changed'

    assert original.header.authentication_data == [1, 2, 3]
    assert original.header.payload_type == ''
    assert original.payload == SDP


def test_payload_is_copied_from_caller_buffer():
    """Mutating the caller's bytearray must not change the packet."""
    payload = bytearray(SDP)
    packet = make_packet(payload=payload)

    payload[0:3] = b'xxx'

    assert packet.payload == SDP


def test_str_lists_fields():
    """The debug string should show every header field and the payload length."""
    text = str(make_packet(payload=b'\x10\x04', payload_type='application/sdp'))

    assert text.startswith('SAP PACKET:')
    assert 'OriginatingSource: 192.0.2.1' in text
    assert 'MessageIDHash: 12345' in text
    assert 'Payload Type: application/sdp' in text
    assert 'Payload Length: 2' in text
