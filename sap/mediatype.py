"""
MIME media-type parsing for the SAP payload type field.

Accepts ``type/subtype`` optionally followed by ``; name=value`` parameters,
where a value is either a token or a quoted string (RFC 2045, section 5.1).
"""

from sap.errors import MediaTypeError

# RFC 2045 tspecials; a token is any visible ASCII character outside this set
TSPECIALS = frozenset('()<>@,;:\\"/[]?=')
WHITESPACE = ' \t\r\n\v\f'  # all ASCII whitespace


def _is_token_char(char):
    return '!' <= char <= '~' and char not in TSPECIALS


def _is_token(text):
    return bool(text) and all(_is_token_char(c) for c in text)


def _skip_whitespace(value, pos):
    while pos < len(value) and value[pos] in WHITESPACE:
        pos += 1
    return pos


def _consume_token(value, pos):
    start = pos
    while pos < len(value) and _is_token_char(value[pos]):
        pos += 1
    return value[start:pos], pos


def _consume_quoted_string(value, pos):
    # value[pos] is the opening quote
    chars = []
    pos += 1
    while pos < len(value):
        char = value[pos]
        if char == '"':
            return ''.join(chars), pos + 1
        if char == '\\' and pos + 1 < len(value):
            pos += 1
            char = value[pos]
        chars.append(char)
        pos += 1
    raise MediaTypeError(f"Unterminated quoted string in media type: {value!r}")


def parse_media_type(value):
    """
    Parse a MIME media type such as ``application/sdp; charset=utf-8``.

    Args:
        value (str | bytes): The candidate media type. Bytes must be ASCII.

    Returns:
        tuple: (media_type, params) where media_type is the lower-cased
            ``type/subtype`` and params maps lower-cased parameter names
            to their values.

    Raises:
        MediaTypeError: If value is not a well-formed media type
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        try:
            value = bytes(value).decode('ascii')
        except UnicodeDecodeError:
            raise MediaTypeError(f"Media type is not ASCII: {bytes(value)!r}")
    elif not value.isascii():
        raise MediaTypeError(f"Media type is not ASCII: {value!r}")

    end = value.find(';')
    if end < 0:
        end = len(value)

    head = value[:end].strip(WHITESPACE)
    if not head:
        raise MediaTypeError("No media type")

    main_type, slash, sub_type = head.partition('/')
    if not slash:
        raise MediaTypeError(f"Expected slash after first token: {head!r}")
    if not _is_token(main_type) or not _is_token(sub_type):
        raise MediaTypeError(f"Invalid media type: {head!r}")

    params = {}
    pos = end
    while True:
        pos = _skip_whitespace(value, pos)
        if pos == len(value):
            break
        if value[pos] != ';':
            raise MediaTypeError(f"Invalid media parameter in {value!r}")

        pos = _skip_whitespace(value, pos + 1)
        if pos == len(value):
            # trailing semicolon
            break

        name, pos = _consume_token(value, pos)
        if not name:
            raise MediaTypeError(f"Invalid media parameter in {value!r}")

        pos = _skip_whitespace(value, pos)
        if pos == len(value) or value[pos] != '=':
            raise MediaTypeError(f"Media parameter {name!r} has no value")
        pos = _skip_whitespace(value, pos + 1)

        if pos < len(value) and value[pos] == '"':
            param_value, pos = _consume_quoted_string(value, pos)
        else:
            param_value, pos = _consume_token(value, pos)
            if not param_value:
                raise MediaTypeError(f"Media parameter {name!r} has no value")

        name = name.lower()
        if name in params:
            raise MediaTypeError(f"Duplicate media parameter: {name!r}")
        params[name] = param_value

    return head.lower(), params
