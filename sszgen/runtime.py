"""Support code imported by generated encoding modules.

Generated ``unmarshal_*`` routines raise the DecodeError subclasses below
for truncated or inconsistent input; ``marshal_*`` routines raise
EncodeError subclasses for values that do not fit their declared shape.
"""

import struct

BYTES_PER_LENGTH_OFFSET = 4

OFFSET = struct.Struct('<I')

class DecodeError(ValueError):
    pass

class BufferTooShort(DecodeError):
    pass

class InvalidOffset(DecodeError):
    pass

class DecodeOverrun(DecodeError):
    pass

class InvalidBoolean(DecodeError):
    pass

class InvalidBitfield(DecodeError):
    pass

class EncodeError(ValueError):
    pass

class InvalidLength(EncodeError):
    pass

def fixed_bytes(value, length):
    value = bytes(value)
    if len(value) != length:
        raise InvalidLength(f'expected {length} bytes, got {len(value)}')
    return value

def fixed_count(items, count):
    if len(items) != count:
        raise InvalidLength(f'expected {count} items, got {len(items)}')
    return items

def encode_uint(value, size):
    if value < 0 or value >> (8 * size):
        raise InvalidLength(f'{value} does not fit in an unsigned {8 * size} bit integer')
    return value.to_bytes(size, 'little')

def encode_offset(offset):
    if offset >> (8 * BYTES_PER_LENGTH_OFFSET):
        raise InvalidLength(f'offset {offset} does not fit in {BYTES_PER_LENGTH_OFFSET} bytes')
    return OFFSET.pack(offset)

def encode_bool(value):
    return b'\x01' if value else b'\x00'

def decode_bool(value):
    if value > 1:
        raise InvalidBoolean(f'invalid boolean byte {value:#04x}')
    return value == 1

def join_variable(chunks):
    """Encode already marshaled variable-size items behind an offset table."""
    out = bytearray()
    offset = BYTES_PER_LENGTH_OFFSET * len(chunks)

    for chunk in chunks:
        out += encode_offset(offset)
        offset += len(chunk)

    for chunk in chunks:
        out += chunk

    return bytes(out)

def item_count(length, item_size):
    if length % item_size:
        raise DecodeOverrun(f'{length} bytes do not split into {item_size} byte items')
    return length // item_size

def read_offsets(buf, start, end, count = None):
    """Return the (start, end) bounds of each item of a variable-size
    collection encoded in buf[start:end].

    With count set the collection is a fixed array and must hold exactly
    that many items.
    """
    length = end - start

    if length == 0:
        if count:
            raise BufferTooShort(f'expected {count} items, got an empty buffer')
        return []

    if length < BYTES_PER_LENGTH_OFFSET:
        raise BufferTooShort(f'{length} bytes cannot hold an offset table')

    first = OFFSET.unpack_from(buf, start)[0]
    if first == 0 or first % BYTES_PER_LENGTH_OFFSET or first > length:
        raise InvalidOffset(f'invalid first offset {first} for {length} bytes')

    n = first // BYTES_PER_LENGTH_OFFSET
    if count is not None and n != count:
        raise InvalidOffset(f'expected {count} items, offset table holds {n}')

    offsets = [first]
    for i in range(1, n):
        offset = OFFSET.unpack_from(buf, start + i * BYTES_PER_LENGTH_OFFSET)[0]
        if offset < offsets[-1] or offset > length:
            raise InvalidOffset(f'offset {offset} of item {i} is out of order or out of bounds')
        offsets.append(offset)
    offsets.append(length)

    return [(start + offsets[i], start + offsets[i + 1]) for i in range(n)]

def bitlist_length(value):
    return 8 * (len(value) - 1) + value[-1].bit_length() - 1

def encode_bitvector(value, n_bits):
    value = fixed_bytes(value, (n_bits + 7) // 8)
    if n_bits % 8 and value[-1] >> (n_bits % 8):
        raise InvalidLength(f'bits set beyond the {n_bits} bit length')
    return value

def decode_bitvector(buf, n_bits):
    value = bytes(buf)
    if n_bits % 8 and value[-1] >> (n_bits % 8):
        raise InvalidBitfield(f'bits set beyond the {n_bits} bit length')
    return value

def encode_bitlist(value, limit = None):
    value = bytes(value)
    if not value or value[-1] == 0:
        raise InvalidLength('bitlist is missing its length delimiter bit')
    if limit is not None and bitlist_length(value) > limit:
        raise InvalidLength(f'bitlist holds {bitlist_length(value)} bits, limit is {limit}')
    return value

def decode_bitlist(buf, limit = None):
    value = bytes(buf)
    if not value or value[-1] == 0:
        raise InvalidBitfield('bitlist is missing its length delimiter bit')
    if limit is not None and bitlist_length(value) > limit:
        raise InvalidBitfield(f'bitlist holds {bitlist_length(value)} bits, limit is {limit}')
    return value
