#
# Value-level operations on Python floats and Binary values
#
# Python floats are binary64.  Every function here accepts a float or a Binary; those
# returning one of their operands, or a value derived from it bit by bit, return a float
# when given floats.
#

from .binary import (
    Binary, IEEEdouble, NaNPayload, bits_to_float, byte_view, byteorder, float_to_bits,
    EQUAL_TO, NOT_EQUAL_TO, LESS, LESS_OR_EQUAL, GREATER, GREATER_OR_EQUAL,
    OP_MINIMUM, OP_MAXIMUM, OP_MINIMUM_NUMBER, OP_MAXIMUM_NUMBER,
    OP_MINIMUM_MAGNITUDE, OP_MAXIMUM_MAGNITUDE,
    OP_MINIMUM_MAGNITUDE_NUMBER, OP_MAXIMUM_MAGNITUDE_NUMBER,
)
from .context import ROUND_DOWN, ROUND_HALF_EVEN, get_context

__all__ = ('as_binary', 'float_to_bytes', 'float_from_bytes', 'encode', 'decode', 'convert',
           'classify', 'is_normal', 'is_finite', 'is_zero', 'is_subnormal', 'is_infinite',
           'is_nan', 'is_signaling', 'is_sign_minus', 'is_canonical', 'radix',
           'negate', 'absolute', 'copy_sign',
           'encode_quiet_nan', 'encode_signaling_nan', 'encode_nan', 'extract_payload',
           'decode_nan',
           'is_equal', 'is_not_equal', 'is_less', 'is_less_equal', 'is_greater',
           'is_greater_equal', 'signaling_equal', 'signaling_not_equal', 'signaling_less',
           'signaling_less_equal', 'signaling_greater', 'signaling_greater_equal',
           'total_order', 'total_order_mag', 'total_order_key',
           'minimum', 'maximum', 'minimum_number', 'maximum_number', 'minimum_magnitude',
           'maximum_magnitude', 'minimum_magnitude_number', 'maximum_magnitude_number',
           'next_up', 'next_down', 'next_after', 'scaleb', 'logb_integral',
           'INT64_MIN', 'INT64_MAX', 'UINT64_MAX', 'to_int', 'to_int_truncating', 'to_uint',
           'from_int', 'int_to_float')


def as_binary(value):
    '''Return value as a Binary.  A float becomes the IEEEdouble value with its bits.'''
    if isinstance(value, Binary):
        return value
    if isinstance(value, float):
        return IEEEdouble.from_bits(float_to_bits(value))
    raise TypeError(f'expected a float or Binary, not {type(value).__name__}')


def _like(result, *operands):
    '''Return result as a float if all operands are floats.'''
    if all(isinstance(operand, float) for operand in operands):
        return bits_to_float(result.bits)
    return result


#
# Codec
#

def float_to_bytes(value, endianness='little'):
    '''Return the 8-byte binary64 encoding of a float.'''
    if not isinstance(value, float):
        raise TypeError(f'expected a float, not {type(value).__name__}')
    return float_to_bits(value).to_bytes(8, byteorder(endianness))


def float_from_bytes(raw, endianness='little'):
    '''Return the float encoded by 8 bytes, or None if raw is some other length.'''
    raw = byte_view(raw)
    if len(raw) != 8:
        return None
    return bits_to_float(int.from_bytes(raw, byteorder(endianness)))


def encode(value, fmt=None, endianness='little', context=None):
    '''Return the encoding of value.  If fmt is given and differs from the value's format, the
    value is first converted to fmt, rounding as per context.

    Without a context the conversion rounds in the current rounding direction but raises
    flags only on a private copy, leaving the process-wide flags untouched.
    '''
    value = as_binary(value)
    if fmt is not None and fmt != value.fmt:
        value = fmt.convert(value, context or get_context().copy())
    return value.fmt.encode(value, endianness)


def decode(raw, fmt=IEEEdouble, endianness='little'):
    '''Return the Binary value encoded by raw, or None if raw is not fmt.byte_size long.'''
    return fmt.decode(raw, endianness)


def convert(value, fmt, context=None):
    return fmt.convert(as_binary(value), context)


#
# Classification
#

def classify(value):
    return as_binary(value).classify()


def is_normal(value):
    return as_binary(value).is_normal()


def is_finite(value):
    return as_binary(value).is_finite()


def is_zero(value):
    return as_binary(value).is_zero()


def is_subnormal(value):
    return as_binary(value).is_subnormal()


def is_infinite(value):
    return as_binary(value).is_infinite()


def is_nan(value):
    return as_binary(value).is_nan()


def is_signaling(value):
    return as_binary(value).is_snan()


def is_sign_minus(value):
    return as_binary(value).is_sign_minus()


def is_canonical(value):
    return as_binary(value).is_canonical()


def radix(value):
    return as_binary(value).radix()


#
# Sign operations.  Only the sign bit is touched, for NaNs too, and nothing is signalled.
#

def negate(value):
    return _like(as_binary(value).copy_negate(), value)


def absolute(value):
    return _like(as_binary(value).copy_abs(), value)


def copy_sign(magnitude, sign):
    '''Return magnitude with the sign bit of sign.'''
    return _like(as_binary(magnitude).copy_sign(as_binary(sign)), magnitude)


#
# NaN payloads
#

def encode_quiet_nan(payload=0, fmt=IEEEdouble, sign=False):
    '''Return a quiet NaN.  High payload bits that do not fit are dropped.'''
    return fmt.make_nan(sign, False, payload)


def encode_signaling_nan(payload=1, fmt=IEEEdouble, sign=False):
    '''Return a signalling NaN.  A payload that masks to zero becomes 1; a zero payload
    would encode an infinity.'''
    return fmt.make_nan(sign, True, payload)


def encode_nan(nan, fmt=IEEEdouble, sign=False):
    '''Return the NaN a NaNPayload describes.'''
    return fmt.make_nan(sign, nan.signaling, nan.payload)


def extract_payload(value):
    '''Return the whole trailing significand field of a NaN, quiet bit included, or None if
    value is not a NaN.'''
    value = as_binary(value)
    if not value.is_nan():
        return None
    return value.fraction


def decode_nan(value):
    '''Return a NaNPayload for a NaN, or None if value is not a NaN.  Unlike
    extract_payload() the payload excludes the quiet bit, which NaNPayload.signaling
    carries instead.'''
    value = as_binary(value)
    if not value.is_nan():
        return None
    return NaNPayload(value.is_snan(), value.nan_payload())


#
# Comparisons.  Float pairs use Python's operators, which implement the quiet predicates.
#

def _relation(lhs, rhs, results):
    return as_binary(lhs)._compare_quiet(as_binary(rhs)) in results


def is_equal(lhs, rhs):
    if isinstance(lhs, float) and isinstance(rhs, float):
        return lhs == rhs
    return _relation(lhs, rhs, EQUAL_TO)


def is_not_equal(lhs, rhs):
    if isinstance(lhs, float) and isinstance(rhs, float):
        return lhs != rhs
    return _relation(lhs, rhs, NOT_EQUAL_TO)


def is_less(lhs, rhs):
    if isinstance(lhs, float) and isinstance(rhs, float):
        return lhs < rhs
    return _relation(lhs, rhs, LESS)


def is_less_equal(lhs, rhs):
    if isinstance(lhs, float) and isinstance(rhs, float):
        return lhs <= rhs
    return _relation(lhs, rhs, LESS_OR_EQUAL)


def is_greater(lhs, rhs):
    if isinstance(lhs, float) and isinstance(rhs, float):
        return lhs > rhs
    return _relation(lhs, rhs, GREATER)


def is_greater_equal(lhs, rhs):
    if isinstance(lhs, float) and isinstance(rhs, float):
        return lhs >= rhs
    return _relation(lhs, rhs, GREATER_OR_EQUAL)


# The signalling predicates signal InvalidComparison for any NaN operand.

def _signaling_relation(lhs, rhs, results, context):
    return as_binary(lhs).compare_signal(as_binary(rhs), context) in results


def signaling_equal(lhs, rhs, context=None):
    return _signaling_relation(lhs, rhs, EQUAL_TO, context)


def signaling_not_equal(lhs, rhs, context=None):
    return _signaling_relation(lhs, rhs, NOT_EQUAL_TO, context)


def signaling_less(lhs, rhs, context=None):
    return _signaling_relation(lhs, rhs, LESS, context)


def signaling_less_equal(lhs, rhs, context=None):
    return _signaling_relation(lhs, rhs, LESS_OR_EQUAL, context)


def signaling_greater(lhs, rhs, context=None):
    return _signaling_relation(lhs, rhs, GREATER, context)


def signaling_greater_equal(lhs, rhs, context=None):
    return _signaling_relation(lhs, rhs, GREATER_OR_EQUAL, context)


def total_order(lhs, rhs):
    '''IEEE totalOrder: True if lhs orders at or before rhs.'''
    return as_binary(lhs).compare_total(as_binary(rhs))


def total_order_mag(lhs, rhs):
    return as_binary(lhs).compare_total_mag(as_binary(rhs))


def total_order_key(value):
    '''A sort key ordering values of one format by totalOrder.'''
    return as_binary(value).total_order_key()


#
# Minimum and maximum
#

def _min_max(op, lhs, rhs):
    return _like(as_binary(lhs).min_max(op, as_binary(rhs)), lhs, rhs)


def minimum(lhs, rhs):
    return _min_max(OP_MINIMUM, lhs, rhs)


def maximum(lhs, rhs):
    return _min_max(OP_MAXIMUM, lhs, rhs)


def minimum_number(lhs, rhs):
    return _min_max(OP_MINIMUM_NUMBER, lhs, rhs)


def maximum_number(lhs, rhs):
    return _min_max(OP_MAXIMUM_NUMBER, lhs, rhs)


def minimum_magnitude(lhs, rhs):
    return _min_max(OP_MINIMUM_MAGNITUDE, lhs, rhs)


def maximum_magnitude(lhs, rhs):
    return _min_max(OP_MAXIMUM_MAGNITUDE, lhs, rhs)


def minimum_magnitude_number(lhs, rhs):
    return _min_max(OP_MINIMUM_MAGNITUDE_NUMBER, lhs, rhs)


def maximum_magnitude_number(lhs, rhs):
    return _min_max(OP_MAXIMUM_MAGNITUDE_NUMBER, lhs, rhs)


#
# Adjacent values
#

def next_up(value, context=None):
    return _like(as_binary(value).next_up(context), value)


def next_down(value, context=None):
    return _like(as_binary(value).next_down(context), value)


def next_after(value, target, context=None):
    return _like(as_binary(value).next_after(as_binary(target), context), value, target)


#
# Scaling
#

def scaleb(value, N, context=None):
    '''Return value * 2^N rounded to its format.  NaNs, infinities and zeroes are returned
    unchanged, except that signalling NaNs are quietened.'''
    return _like(as_binary(value).scaleb(N, context), value)


def logb_integral(value, context=None):
    '''Return the exponent of value's leading significand bit as an int.  Zeroes, infinities
    and NaNs signal InvalidLogBIntegral.'''
    return as_binary(value).logb_integral(context)


#
# Integer conversions.  Results that are NaN, infinite or out of range are None.
#

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
UINT64_MAX = (1 << 64) - 1


def to_int(value, rounding=ROUND_HALF_EVEN, min_int=INT64_MIN, max_int=INT64_MAX):
    '''Return value rounded to an int, by default ties-to-even into the signed 64-bit
    range.'''
    return as_binary(value).convert_to_integer(min_int, max_int, rounding)


def to_int_truncating(value, min_int=INT64_MIN, max_int=INT64_MAX):
    return to_int(value, ROUND_DOWN, min_int, max_int)


def to_uint(value, rounding=ROUND_HALF_EVEN, max_int=UINT64_MAX):
    '''As to_int() with the range [0, max_int].  Values that round to -0 give 0.'''
    return to_int(value, rounding, 0, max_int)


def from_int(value, fmt=IEEEdouble, context=None):
    '''Return an int as a Binary value of fmt, rounding as per context.'''
    return fmt.from_int(value, context)


def int_to_float(value, context=None):
    '''Return an int as a float, rounding as per context.  Ints beyond the binary64 range
    overflow.'''
    return bits_to_float(IEEEdouble.from_int(value, context).bits)
