"""
bignum.py - Arbitrary precision integers (Z and Mutez)

Both encodings are little-endian groups of data bits with bit 7 of each
byte as the continuation flag:

    Mutez: every byte carries 7 data bits.
    Z:     the first byte carries 6 data bits and bit 6 is the sign;
           following bytes carry 7 data bits.

Decoded values are rendered as lowercase hex strings without leading
zeros ("-" prefixed for negative Z), which is how they appear in the
dissection tree.
"""

from .chunked import ChunkedBuffer, Cursor


def _read_byte(buf: ChunkedBuffer, cursor: Cursor) -> int:
    return buf.bounded_read(cursor, 1)[0]


def _read_groups(buf: ChunkedBuffer, cursor: Cursor, result: int, shift: int) -> int:
    """Accumulate 7-bit groups until a byte without continuation flag."""
    while True:
        byte = _read_byte(buf, cursor)
        result |= (byte & 0x7F) << shift
        if not (byte & 0x80):
            return result
        shift += 7


def read_z(buf: ChunkedBuffer, cursor: Cursor) -> str:
    """Decode a signed Z number at ``cursor``."""
    byte = _read_byte(buf, cursor)
    negative = bool(byte & 0x40)
    value = byte & 0x3F
    if byte & 0x80:
        value = _read_groups(buf, cursor, value, 6)
    text = format(value, 'x')
    return '-' + text if negative else text


def read_mutez(buf: ChunkedBuffer, cursor: Cursor) -> str:
    """Decode an unsigned Mutez number at ``cursor``."""
    return format(_read_groups(buf, cursor, 0, 0), 'x')


def encode_mutez(value: int) -> bytes:
    """Encode a non-negative integer as Mutez."""
    if value < 0:
        raise ValueError(f"Mutez cannot be negative: {value}")
    result = []
    while value > 0x7F:
        result.append((value & 0x7F) | 0x80)
        value >>= 7
    result.append(value)
    return bytes(result)


def encode_z(value: int) -> bytes:
    """Encode a signed integer as Z."""
    magnitude = abs(value)
    first = magnitude & 0x3F
    if value < 0:
        first |= 0x40
    magnitude >>= 6
    if not magnitude:
        return bytes([first])
    return bytes([first | 0x80]) + encode_mutez(magnitude)
