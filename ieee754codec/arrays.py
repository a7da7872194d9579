#
# Contiguous arrays of binary interchange encodings
#

from .binary import IEEEdouble, bits_to_float, byte_view, byteorder
from .native import as_binary, float_to_bytes

__all__ = ('encode_array', 'decode_array', 'iter_decode',
           'float_array_to_bytes', 'float_array_from_bytes')


def encode_array(values, fmt=IEEEdouble, endianness='little'):
    '''Return the concatenated encodings of values, each of which must be a value of fmt (or
    a float when fmt is IEEEdouble).'''
    return b''.join(fmt.encode(as_binary(value), endianness) for value in values)


def _decode_all(raw, fmt, endianness):
    size = fmt.byte_size
    for offset in range(0, len(raw), size):
        yield fmt.decode(raw[offset: offset + size], endianness)


def iter_decode(raw, fmt=IEEEdouble, endianness='little'):
    '''Return an iterator over the values encoded in raw, decoding them one at a time.
    Raises ValueError at once if raw's length in bytes is not a multiple of the format's
    size.'''
    raw = byte_view(raw)
    if len(raw) % fmt.byte_size:
        raise ValueError(f'buffer of {len(raw):,d} bytes is not a whole number of '
                         f'{fmt.byte_size}-byte values')
    return _decode_all(raw, fmt, endianness)


def decode_array(raw, fmt=IEEEdouble, endianness='little'):
    '''Return a list of the values encoded in raw, or None if its length in bytes is not a
    multiple of the format's size.  An empty buffer decodes to an empty list.'''
    raw = byte_view(raw)
    if len(raw) % fmt.byte_size:
        return None
    return list(_decode_all(raw, fmt, endianness))


def float_array_to_bytes(values, endianness='little'):
    '''Return the binary64 encodings of a sequence of floats.  Raises TypeError for any
    other type, ints included.'''
    return b''.join(float_to_bytes(value, endianness) for value in values)


def float_array_from_bytes(raw, endianness='little'):
    '''Return a list of the floats encoded in raw, or None if its length in bytes is not a
    multiple of 8.'''
    raw = byte_view(raw)
    if len(raw) % 8:
        return None
    order = byteorder(endianness)
    return [bits_to_float(int.from_bytes(raw[offset: offset + 8], order))
            for offset in range(0, len(raw), 8)]
