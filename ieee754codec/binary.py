#
# IEEE-754 binary interchange formats, the bit-exact encoding of their values, and the
# quiet operations on those values
#

import sys
from collections import namedtuple
from enum import Enum
from fractions import Fraction
from math import floor, log10, log2
from struct import Struct
from typing import NamedTuple

import attr

from .context import (
    Compare, Inexact, InvalidComparison, InvalidLogBIntegral, Overflow, SignallingNaNOperand,
    UnderflowExact, UnderflowInexact, get_context, ROUND_HALF_UP, ROUNDING_MODES,
)
from .rounding import Lost, rounds_away, shift_right
from .text import DefaultHexFormat

__all__ = ('BinaryFormat', 'Binary', 'BinaryTuple', 'Endianness', 'NumberKind', 'NumberClass',
           'NaNPayload', 'Extremum', 'Selection', 'NaNPolicy', 'MinMaxOp',
           'OP_MINIMUM', 'OP_MAXIMUM', 'OP_MINIMUM_NUMBER', 'OP_MAXIMUM_NUMBER',
           'OP_MINIMUM_MAGNITUDE', 'OP_MAXIMUM_MAGNITUDE',
           'OP_MINIMUM_MAGNITUDE_NUMBER', 'OP_MAXIMUM_MAGNITUDE_NUMBER',
           'float_to_bits', 'bits_to_float', 'byteorder', 'host_endianness', 'byte_view',
           'IEEEhalf', 'IEEEsingle', 'IEEEdouble', 'IEEEquad')


# Names of the operations that can signal, as they appear first in an op_tuple
OP_CONVERT = 'convert'
OP_FROM_FLOAT = 'from_float'
OP_FROM_INT = 'from_int'
OP_COMPARE = 'compare'
OP_NEXT_UP = 'next_up'
OP_NEXT_DOWN = 'next_down'
OP_NEXT_AFTER = 'next_after'
OP_ROUND_TO_INTEGRAL = 'round_to_integral'
OP_ROUND_TO_INTEGRAL_EXACT = 'round_to_integral_exact'
OP_SCALEB = 'scaleb'
OP_LOGB_INTEGRAL = 'logb_integral'


class Endianness(Enum):
    LITTLE = 'little'
    BIG = 'big'


host_endianness = Endianness(sys.byteorder)


def byteorder(endianness):
    '''Return 'little' or 'big' for an Endianness or either of those strings.'''
    try:
        return Endianness(endianness).value
    except ValueError:
        raise ValueError(f'unknown endianness: {endianness!r}') from None


#
# The host float bit-cast.  Python floats are IEEE binary64; packing and unpacking with
# struct copies the 8 bytes without any arithmetic, so signalling NaNs and payloads survive.
#

_double = Struct('<d')
_uint64 = Struct('<Q')


def float_to_bits(value):
    '''Return the binary64 bit pattern of a Python float as an integer.'''
    return _uint64.unpack(_double.pack(value))[0]


def bits_to_float(bits):
    '''Return the Python float with the given binary64 bit pattern.'''
    return _double.unpack(_uint64.pack(bits))[0]


def byte_view(raw):
    '''Return a memoryview of the bytes of raw, an object supporting the buffer protocol.  A
    view of a typed buffer such as an array.array is recast so that its length counts bytes
    rather than items.'''
    return memoryview(raw).cast('B')


BinaryTuple = namedtuple('BinaryTuple', 'sign exponent fraction')


#
# Classification
#

class NumberKind(Enum):
    SIGNALING_NAN = 'signalingNaN'
    QUIET_NAN = 'quietNaN'
    INFINITY = 'infinity'
    NORMAL = 'normal'
    SUBNORMAL = 'subnormal'
    ZERO = 'zero'


_NAN_KINDS = (NumberKind.SIGNALING_NAN, NumberKind.QUIET_NAN)
_CLASS_NAMES = {
    NumberKind.INFINITY: 'Infinity',
    NumberKind.NORMAL: 'Normal',
    NumberKind.SUBNORMAL: 'Subnormal',
    NumberKind.ZERO: 'Zero',
}


@attr.s(slots=True, frozen=True, eq=False, repr=False)
class NumberClass:
    '''The class of a floating point value: a kind and a sign.

    The sign of a NaN is recorded but, as IEEE-754 partitions values into ten classes with
    NaNs unsigned, it takes no part in equality.
    '''

    kind = attr.ib(validator=attr.validators.instance_of(NumberKind))
    sign = attr.ib(default=False, converter=bool)

    @classmethod
    def positive(cls, kind):
        return cls(kind, False)

    @classmethod
    def negative(cls, kind):
        return cls(kind, True)

    @classmethod
    def nan(cls, signaling=False, sign=False):
        return cls(NumberKind.SIGNALING_NAN if signaling else NumberKind.QUIET_NAN, sign)

    def is_nan(self):
        return self.kind in _NAN_KINDS

    def _key(self):
        return self.kind, (not self.is_nan() and self.sign)

    def __eq__(self, other):
        if not isinstance(other, NumberClass):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __str__(self):
        '''The IEEE-754 class name, e.g. sNaN, NaN, -Infinity or +Subnormal.'''
        if self.kind == NumberKind.SIGNALING_NAN:
            return 'sNaN'
        if self.kind == NumberKind.QUIET_NAN:
            return 'NaN'
        return ('-' if self.sign else '+') + _CLASS_NAMES[self.kind]

    def __repr__(self):
        return f'NumberClass({self.kind.name}, sign={self.sign})'


def _non_negative(instance, attribute, value):
    if not isinstance(value, int) or value < 0:
        raise ValueError(f'{attribute.name} must be a non-negative integer: {value!r}')


@attr.s(slots=True, frozen=True)
class NaNPayload:
    '''A decoded NaN: whether it signals, and its payload excluding the quiet bit.'''

    signaling = attr.ib(converter=bool)
    payload = attr.ib(validator=_non_negative)


#
# Minimum and maximum operation selection
#

class Extremum(Enum):
    MINIMUM = 'minimum'
    MAXIMUM = 'maximum'


class Selection(Enum):
    VALUE = 'value'
    MAGNITUDE = 'magnitude'


class NaNPolicy(Enum):
    # Any NaN operand gives a NaN
    PROPAGATE = 'propagate'
    # A NaN loses against a number
    NUMBER = 'number'


@attr.s(slots=True, frozen=True)
class MinMaxOp:
    '''One of the eight IEEE-754 2019 minimum / maximum operations.'''

    extremum = attr.ib(validator=attr.validators.instance_of(Extremum))
    selection = attr.ib(default=Selection.VALUE,
                        validator=attr.validators.instance_of(Selection))
    nan_policy = attr.ib(default=NaNPolicy.PROPAGATE,
                         validator=attr.validators.instance_of(NaNPolicy))

    def op_name(self):
        mag = '_magnitude' if self.selection is Selection.MAGNITUDE else ''
        num = '_number' if self.nan_policy is NaNPolicy.NUMBER else ''
        return f'{self.extremum.value}{mag}{num}'


OP_MINIMUM = MinMaxOp(Extremum.MINIMUM)
OP_MAXIMUM = MinMaxOp(Extremum.MAXIMUM)
OP_MINIMUM_NUMBER = MinMaxOp(Extremum.MINIMUM, nan_policy=NaNPolicy.NUMBER)
OP_MAXIMUM_NUMBER = MinMaxOp(Extremum.MAXIMUM, nan_policy=NaNPolicy.NUMBER)
OP_MINIMUM_MAGNITUDE = MinMaxOp(Extremum.MINIMUM, Selection.MAGNITUDE)
OP_MAXIMUM_MAGNITUDE = MinMaxOp(Extremum.MAXIMUM, Selection.MAGNITUDE)
OP_MINIMUM_MAGNITUDE_NUMBER = MinMaxOp(Extremum.MINIMUM, Selection.MAGNITUDE, NaNPolicy.NUMBER)
OP_MAXIMUM_MAGNITUDE_NUMBER = MinMaxOp(Extremum.MAXIMUM, Selection.MAGNITUDE, NaNPolicy.NUMBER)


#
# Comparison results.  The tuples are the results for which each relation holds.
#

_REVERSED = {
    Compare.LESS_THAN: Compare.GREATER_THAN,
    Compare.EQUAL: Compare.EQUAL,
    Compare.GREATER_THAN: Compare.LESS_THAN,
}

EQUAL_TO = (Compare.EQUAL, )
NOT_EQUAL_TO = (Compare.LESS_THAN, Compare.GREATER_THAN, Compare.UNORDERED)
LESS = (Compare.LESS_THAN, )
LESS_OR_EQUAL = (Compare.LESS_THAN, Compare.EQUAL)
GREATER = (Compare.GREATER_THAN, )
GREATER_OR_EQUAL = (Compare.GREATER_THAN, Compare.EQUAL)


def _three_way(lhs, rhs):
    '''Compare two ordered Python values.'''
    if lhs == rhs:
        return Compare.EQUAL
    return Compare.LESS_THAN if lhs < rhs else Compare.GREATER_THAN


class BinaryFormat(NamedTuple):
    '''The layout of an IEEE-754 binary interchange format.  Build one with from_triple(),
    from_pair() or from_IEEE(), which derive all but the first three fields.

    From most to least significant bit an encoding holds a sign bit, a biased exponent field
    of e_width bits and a trailing significand ("fraction") field of precision - 1 bits.  The
    exponent field is all zeroes for zeroes and subnormals and all ones for infinities and
    NaNs.  Between those it encodes a normal number, whose significand has an implicit
    leading 1.
    '''

    precision: int          # significand bits, the implicit integer bit included
    e_max: int              # exponent of the largest finite numbers
    e_min: int              # exponent of the smallest normal numbers, 1 - e_max

    e_bias: int
    e_width: int
    fraction_bits: int
    fmt_width: int
    byte_size: int
    int_bit: int            # the implicit bit, one above the fraction field
    quiet_bit: int          # MSB of the fraction field; set in quiet NaNs
    max_significand: int
    max_exponent: int       # the all-ones exponent field
    sign_mask: int
    fraction_mask: int
    decimal_precision: int  # significant decimal digits that round-trip every value
    logb_inf: int           # what logb_integral() returns for infinities

    @classmethod
    def from_triple(cls, precision, e_max, e_min):
        '''Return the format with the given precision and exponent range.  Raises ValueError
        unless they describe a format whose encoding fills a whole number of bytes.'''
        if not all(isinstance(arg, int) for arg in (precision, e_max, e_min)):
            raise TypeError('precision, e_max and e_min must be integers')
        if precision < 3:
            raise ValueError(f'a precision of {precision} bits is too small')
        if e_max < 2 or e_min != 1 - e_max:
            raise ValueError(f'[{e_min}, {e_max}] is not a valid exponent range')
        e_width = e_max.bit_length() + 1
        if e_max != (1 << (e_width - 1)) - 1:
            raise ValueError(f'e_max={e_max} is not the bias of an exponent field')
        fraction_bits = precision - 1
        fmt_width = 1 + e_width + fraction_bits
        if fmt_width % 8:
            raise ValueError(f'a {fmt_width}-bit encoding is not a whole number of bytes')

        int_bit = 1 << fraction_bits
        return cls(
            precision, e_max, e_min,
            e_bias=e_max,
            e_width=e_width,
            fraction_bits=fraction_bits,
            fmt_width=fmt_width,
            byte_size=fmt_width // 8,
            int_bit=int_bit,
            quiet_bit=int_bit >> 1,
            max_significand=(int_bit << 1) - 1,
            max_exponent=(1 << e_width) - 1,
            sign_mask=1 << (fmt_width - 1),
            fraction_mask=int_bit - 1,
            decimal_precision=2 + floor(precision * log10(2)),
            # IEEE-754 wants logb of zero, infinity and NaN beyond ±2 * (e_max + p - 1)
            logb_inf=2 * (e_max + fraction_bits) + 1,
        )

    @classmethod
    def from_pair(cls, precision, e_width):
        '''The format with the given precision and exponent field width.'''
        e_max = (1 << (e_width - 1)) - 1
        return cls.from_triple(precision, e_max, 1 - e_max)

    @classmethod
    def from_IEEE(cls, fmt_width):
        '''The interchange format IEEE-754 defines for an encoding of fmt_width bits: 16, 32,
        64 or a multiple of 32 from 128 up.'''
        if fmt_width == 16:
            return cls.from_pair(11, 5)
        if fmt_width == 32:
            return cls.from_pair(24, 8)
        if fmt_width == 64 or (fmt_width >= 128 and fmt_width % 32 == 0):
            # p = k - round(4 * log2(k)) + 13 from table 3.5 of IEEE-754 2019
            precision = fmt_width - round(4 * log2(fmt_width)) + 13
            return cls.from_pair(precision, fmt_width - precision)
        raise ValueError(f'IEEE-754 has no {fmt_width}-bit binary interchange format')

    @property
    def logb_zero(self):
        return -self.logb_inf

    @property
    def logb_nan(self):
        return -self.logb_inf - 1

    @property
    def epsilon(self):
        '''The gap between 1 and the next larger value.'''
        return Binary(self, False, self.e_bias - self.fraction_bits, 0)

    def __repr__(self):
        return f'BinaryFormat(precision={self.precision}, e_max={self.e_max}, e_min={self.e_min})'

    # e_min and the derived fields follow from these two
    def __eq__(self, other):
        if not isinstance(other, BinaryFormat):
            return False
        return self.precision == other.precision and self.e_max == other.e_max

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((self.precision, self.e_max))

    ##
    ## Special values, each with the given sign
    ##

    def make_zero(self, sign):
        return Binary(self, sign, 0, 0)

    def make_one(self, sign):
        return Binary(self, sign, self.e_bias, 0)

    def make_infinity(self, sign):
        return Binary(self, sign, self.max_exponent, 0)

    def make_largest_finite(self, sign):
        return Binary(self, sign, self.max_exponent - 1, self.fraction_mask)

    def make_smallest_normal(self, sign):
        return Binary(self, sign, 1, 0)

    def make_smallest_subnormal(self, sign):
        return Binary(self, sign, 0, 1)

    def make_nan(self, sign, is_signalling, payload):
        '''Return a NaN.  payload excludes the quiet bit.

        Payload bits that do not fit are silently dropped, and a signalling NaN with a payload
        of zero gets a payload of one, as an all-zeroes fraction field would be an infinity.
        '''
        if payload < 0:
            raise ValueError(f'NaN payload cannot be negative: {payload}')
        payload &= self.quiet_bit - 1
        if is_signalling:
            fraction = payload or 1
        else:
            fraction = self.quiet_bit | payload
        return Binary(self, sign, self.max_exponent, fraction)

    def make_overflow_value(self, rounding, sign):
        '''The value delivered when a result of the given sign overflows: infinity, unless
        the rounding direction is toward zero for that sign, in which case the largest
        finite number.'''
        if rounds_away(rounding, Lost.OVER_HALF, sign, False):
            return self.make_infinity(sign)
        return self.make_largest_finite(sign)

    def from_bits(self, bits):
        '''Return the value whose encoding, read as an unsigned integer, is bits.'''
        if not 0 <= bits < (self.sign_mask << 1):
            raise ValueError(f'{bits:#x} is not a {self.fmt_width}-bit pattern')
        return Binary(self, bits & self.sign_mask,
                      (bits & ~self.sign_mask) >> self.fraction_bits,
                      bits & self.fraction_mask)

    def _exact_integer(self, magnitude, sign):
        '''Return the integer magnitude with the given sign.  It must be representable.'''
        if not magnitude:
            return self.make_zero(sign)
        top = magnitude.bit_length() - 1
        # Bits shifted out below the integer bit are zero for representable integers
        fraction = (magnitude << self.fraction_bits >> top) & self.fraction_mask
        return Binary(self, sign, self.e_bias + top, fraction)

    def _nan_result(self, nans):
        '''The quiet NaN delivered by an operation given these NaN operands: the first whose
        payload survives conversion to this format, or the first.'''
        nan = next((nan for nan in nans if nan.nan_payload() < self.quiet_bit), nans[0])
        return self.make_nan(nan.sign, False, nan.nan_payload())

    def _nan_operands(self, op_tuple, context):
        '''Return the result of an operation with NaN operands, signalling
        SignallingNaNOperand if any of them signals.'''
        nans = [operand for operand in op_tuple[1:]
                if isinstance(operand, Binary) and operand.is_nan()]
        result = self._nan_result(nans)
        if any(nan.is_snan() for nan in nans):
            return SignallingNaNOperand(op_tuple, result).signal(context)
        return result

    def _round(self, sign, exponent, significand, op_tuple, context):
        '''Return ±significand * 2^exponent correctly rounded to this format as the context's
        rounding direction specifies, signalling Overflow, Underflow and Inexact as
        appropriate.'''
        if not significand:
            return self.make_zero(sign)
        context = context or get_context()
        exponent_in, significand_in = exponent, significand

        # Keep precision bits, but never let the LSB drop below that of the subnormals
        lsb_min = self.e_min - self.fraction_bits
        shift = max(significand.bit_length() - self.precision, lsb_min - exponent)
        significand, lost = shift_right(significand, shift)
        exponent += shift
        tiny_before = significand < self.int_bit

        if rounds_away(context.rounding, lost, sign, significand & 1):
            significand += 1
            if significand > self.max_significand:
                # Carry out of the top: 2^precision halves exactly
                significand >>= 1
                exponent += 1

        # exponent is that of the LSB; a normal number's leading bit is fraction_bits higher
        if exponent + self.fraction_bits > self.e_max:
            result = self.make_overflow_value(context.rounding, sign)
            return Overflow(op_tuple, result).signal(context)

        if significand < self.int_bit:
            result = Binary(self, sign, 0, significand)
        else:
            result = Binary(self, sign, exponent + self.fraction_bits + self.e_bias,
                            significand & self.fraction_mask)

        tiny = tiny_before
        if tiny and context.tininess_after:
            tiny = self._tiny_after_rounding(sign, exponent_in, significand_in, context.rounding)
        if lost == Lost.NOTHING:
            return UnderflowExact(op_tuple, result).signal(context) if tiny else result
        signal = UnderflowInexact if tiny else Inexact
        return signal(op_tuple, result).signal(context)

    def _tiny_after_rounding(self, sign, exponent, significand, rounding):
        '''Return True if ±significand * 2^exponent, rounded to precision bits as if the
        exponent range were unbounded, is below the smallest normal magnitude.'''
        shift = significand.bit_length() - self.precision
        significand, lost = shift_right(significand, shift)
        if rounds_away(rounding, lost, sign, significand & 1):
            significand += 1
        return exponent + shift + significand.bit_length() - 1 < self.e_min

    def _next_up(self, value, context, flip_sign):
        '''Return the least value that compares greater than value; next_down() is this with
        signs flipped on the way in and out.  Infinities in the direction of travel are
        returned unchanged and NaNs are quietened.'''
        assert value.fmt == self
        if value.is_nan():
            op_tuple = (OP_NEXT_DOWN if flip_sign else OP_NEXT_UP, value)
            return self._nan_operands(op_tuple, context)

        sign = value.sign ^ flip_sign
        magnitude = value.bits & ~self.sign_mask
        # Encodings of magnitudes are ordered, so adjacent values are one apart, across the
        # subnormal boundary and from the largest finite number to infinity.
        if not sign:
            if value.e_biased != self.max_exponent:
                magnitude += 1
        elif magnitude:
            magnitude -= 1
        else:
            # -0 steps up to the smallest positive subnormal
            sign, magnitude = False, 1

        return self.from_bits(magnitude).set_sign(sign ^ flip_sign)

    ##
    ## Codec
    ##

    def pack(self, sign, exponent, fraction, endianness='little'):
        '''Return the encoding with the given fields as bytes in the given byte order.
        exponent is the biased exponent field and fraction the trailing significand field.'''
        if not 0 <= exponent <= self.max_exponent:
            raise ValueError(f'biased exponent {exponent} does not fit in {self.e_width} bits')
        if not 0 <= fraction <= self.fraction_mask:
            raise ValueError(f'fraction {fraction:#x} does not fit in {self.fraction_bits} bits')
        bits = (self.sign_mask if sign else 0) | (exponent << self.fraction_bits) | fraction
        return bits.to_bytes(self.byte_size, byteorder(endianness))

    def unpack(self, raw, endianness='little'):
        '''Split an encoding into a BinaryTuple of its three fields.  Raises ValueError if raw
        is not byte_size bytes long.'''
        raw = byte_view(raw)
        if len(raw) != self.byte_size:
            raise ValueError(f'a {self.byte_size}-byte encoding is needed, not {len(raw)} bytes')
        bits = int.from_bytes(raw, byteorder(endianness))
        return BinaryTuple(bits >= self.sign_mask,
                           (bits >> self.fraction_bits) & self.max_exponent,
                           bits & self.fraction_mask)

    def encode(self, value, endianness='little'):
        '''Return the encoding of a value of this format.'''
        if not isinstance(value, Binary) or value.fmt != self:
            raise ValueError(f'{value!r} is not a value of {self!r}')
        return self.pack(value.sign, value.e_biased, value.fraction, endianness)

    def decode(self, raw, endianness='little'):
        '''Return the value encoded by raw, or None if raw is not of the format's size.  Every
        bit pattern of that size is a value.'''
        raw = byte_view(raw)
        if len(raw) != self.byte_size:
            return None
        return Binary(self, *self.unpack(raw, endianness))

    ##
    ## Conversions into this format
    ##

    def convert(self, value, context=None):
        '''Return value, of any format, converted to this one and rounded per the context.  A
        signalling NaN signals SignallingNaNOperand and converts to a quiet NaN.'''
        return self._convert(value, (OP_CONVERT, value), context)

    def _convert(self, value, op_tuple, context):
        if value.is_nan():
            result = self.make_nan(value.sign, False, value.nan_payload())
            if value.is_snan():
                return SignallingNaNOperand(op_tuple, result).signal(context)
            return result
        if value.fmt == self:
            return value
        if value.is_infinite():
            return self.make_infinity(value.sign)
        if value.is_zero():
            return self.make_zero(value.sign)
        return self._round(value.sign, value.exponent_int(), value.significand(),
                           op_tuple, context)

    def from_float(self, value, context=None):
        '''Return a Python float as a value of this format.  Into IEEEdouble this is a bit
        copy, so signalling NaNs stay signalling.'''
        if not isinstance(value, float):
            raise TypeError(f'from_float requires a float, not {type(value).__name__}')
        double = IEEEdouble.from_bits(float_to_bits(value))
        if self == IEEEdouble:
            return double
        return self._convert(double, (OP_FROM_FLOAT, value), context)

    def from_int(self, value, context=None):
        '''Return an integer converted to this format, rounded per the context.  Zero
        converts to +0; integers too large for the format overflow.'''
        if not isinstance(value, int):
            raise TypeError(f'from_int requires an integer, not {type(value).__name__}')
        return self._round(value < 0, 0, abs(value), (OP_FROM_INT, value), context)


class Binary(namedtuple('Binary', 'fmt sign e_biased fraction')):
    '''An immutable value of a BinaryFormat, held as the fields of its encoding.

    sign is a bool.  e_biased is the biased exponent field and fraction the trailing
    significand field, without the implicit integer bit.  A NaN's fraction is its quiet bit
    followed by its payload.  Every combination of in-range fields is a value.
    '''

    __slots__ = ()

    def __new__(cls, fmt, sign, e_biased, fraction):
        if not isinstance(fmt, BinaryFormat):
            raise TypeError(f'fmt must be a BinaryFormat, not {type(fmt).__name__}')
        if not (isinstance(e_biased, int) and isinstance(fraction, int)):
            raise TypeError('the exponent and fraction fields must be integers')
        if not 0 <= e_biased <= fmt.max_exponent:
            raise ValueError(f'biased exponent {e_biased:,d} is out of range for {fmt!r}')
        if not 0 <= fraction <= fmt.fraction_mask:
            raise ValueError(f'fraction {fraction:#x} is out of range for {fmt!r}')
        return super().__new__(cls, fmt, bool(sign), e_biased, fraction)

    @property
    def bits(self):
        '''The encoding read as an unsigned integer.'''
        return ((self.fmt.sign_mask if self.sign else 0)
                | (self.e_biased << self.fmt.fraction_bits) | self.fraction)

    def pack(self, endianness='little'):
        return self.fmt.encode(self, endianness)

    ##
    ## Classification.  The exponent field separates zeroes and subnormals (all zeroes),
    ## normal numbers, and infinities and NaNs (all ones); the fraction field does the rest.
    ##

    def is_zero(self):
        return self.e_biased == 0 and not self.fraction

    def is_subnormal(self):
        return self.e_biased == 0 and bool(self.fraction)

    def is_normal(self):
        return 0 < self.e_biased < self.fmt.max_exponent

    def is_finite(self):
        return self.e_biased < self.fmt.max_exponent

    def is_infinite(self):
        return self.e_biased == self.fmt.max_exponent and not self.fraction

    def is_nan(self):
        return self.e_biased == self.fmt.max_exponent and bool(self.fraction)

    def is_qnan(self):
        return self.is_nan() and bool(self.fraction & self.fmt.quiet_bit)

    def is_snan(self):
        return self.is_nan() and not self.fraction & self.fmt.quiet_bit

    is_signaling = is_snan

    def is_sign_minus(self):
        '''True if the sign bit is set, for zeroes and NaNs too.'''
        return self.sign

    is_negative = is_sign_minus

    def is_canonical(self):
        '''Binary interchange formats have a single encoding for each value.'''
        return True

    def radix(self):
        return 2

    def classify(self):
        '''Return the NumberClass of the value.'''
        if self.is_nan():
            return NumberClass.nan(self.is_snan(), self.sign)
        if self.is_infinite():
            kind = NumberKind.INFINITY
        elif self.is_normal():
            kind = NumberKind.NORMAL
        elif self.fraction:
            kind = NumberKind.SUBNORMAL
        else:
            kind = NumberKind.ZERO
        return NumberClass(kind, self.sign)

    def number_class(self):
        '''The class name, e.g. '-Normal' or 'sNaN'.'''
        return str(self.classify())

    ##
    ## Decomposition
    ##

    def as_tuple(self):
        '''Return a BinaryTuple (sign, exponent, significand).

        A finite value's magnitude is significand * 2^exponent with an integer significand,
        both being zero for zeroes.  Infinities have exponent 'I' and significand 0; NaNs
        have exponent 'Q' when quiet, 'S' when signalling, and their payload as significand.
        '''
        if self.is_finite():
            if self.is_zero():
                return BinaryTuple(self.sign, 0, 0)
            return BinaryTuple(self.sign, self.exponent_int(), self.significand())
        if self.is_infinite():
            return BinaryTuple(self.sign, 'I', 0)
        return BinaryTuple(self.sign, 'Q' if self.is_qnan() else 'S', self.nan_payload())

    def nan_payload(self):
        '''The payload of a NaN: its fraction field without the quiet bit.'''
        if not self.is_nan():
            raise RuntimeError(f'{self!r} is not a NaN')
        return self.fraction & ~self.fmt.quiet_bit

    def significand(self):
        '''A finite value's significand as an integer, including the integer bit of normal
        numbers.'''
        return (self.fraction | self.fmt.int_bit) if self.e_biased else self.fraction

    def exponent(self):
        '''The exponent of a finite value's leading significand bit position, e_min for
        zeroes and subnormals.'''
        assert self.is_finite()
        return (self.e_biased or 1) - self.fmt.e_bias

    def exponent_int(self):
        '''The exponent to scale significand(), read as an integer, by.'''
        return self.exponent() - self.fmt.fraction_bits

    def as_integer_ratio(self):
        '''Return the lowest-terms (numerator, denominator) of a finite value; the
        denominator is positive.'''
        if self.is_nan():
            raise ValueError('cannot convert a NaN to an integer ratio')
        if self.is_infinite():
            raise OverflowError('cannot convert an infinity to an integer ratio')
        exponent = self.exponent_int()
        if exponent >= 0:
            ratio = Fraction(self.significand() << exponent)
        else:
            ratio = Fraction(self.significand(), 1 << -exponent)
        if self.sign:
            ratio = -ratio
        return ratio.numerator, ratio.denominator

    ##
    ## Sign bit operations.  These are quiet and treat NaNs like any other value.
    ##

    def set_sign(self, sign):
        '''Return this value with the given sign bit.'''
        sign = bool(sign)
        if sign is self.sign:
            return self
        return Binary(self.fmt, sign, self.e_biased, self.fraction)

    def copy_abs(self):
        return self.set_sign(False)

    def copy_negate(self):
        return self.set_sign(not self.sign)

    def copy_sign(self, y):
        '''Return this value with the sign of y, a value of the same format (or a float when
        that format is IEEEdouble).'''
        if isinstance(y, float):
            y = IEEEdouble.from_float(y)
        if y.fmt != self.fmt:
            raise ValueError('copy_sign requires both operands have the same format')
        return self.set_sign(y.sign)

    ##
    ## NaN payloads as floating point integers
    ##

    def payload(self):
        '''IEEE getPayload: a NaN's payload as a floating point integer of this format, or -1
        for other values.'''
        if self.is_nan():
            return self.fmt._exact_integer(self.nan_payload(), False)
        return self.fmt.make_one(True)

    def _integral_value(self):
        '''Our value as an int if it is a non-negative finite integer, else None.  -0 is
        excluded.'''
        if self.sign or not self.is_finite():
            return None
        numerator, denominator = self.as_integer_ratio()
        return numerator if denominator == 1 else None

    def _with_payload(self, is_signalling):
        payload = self._integral_value()
        if payload is not None and is_signalling <= payload < self.fmt.quiet_bit:
            return self.fmt.make_nan(False, is_signalling, payload)
        return self.fmt.make_zero(False)

    def set_payload(self):
        '''IEEE setPayload: the quiet NaN whose payload is our value, which must be a
        non-negative floating point integer that fits.  Other values give +0.'''
        return self._with_payload(False)

    def set_payload_signalling(self):
        '''IEEE setPayloadSignaling: as set_payload() but for a signalling NaN, for which a
        payload of zero is not available.'''
        return self._with_payload(True)

    ##
    ## Comparisons.  Operands of the comparison predicates can be of different formats.
    ##

    def _compare_magnitude(self, rhs):
        '''Compare |self| with |rhs|; neither is a NaN.'''
        if self.is_infinite() or rhs.is_infinite():
            return _three_way(self.is_infinite(), rhs.is_infinite())
        lhs_sig, rhs_sig = self.significand(), rhs.significand()
        if not (lhs_sig and rhs_sig):
            return _three_way(lhs_sig, rhs_sig)

        # The positions of the leading bits decide unless they coincide, when the
        # significands aligned at their leading bits do
        lhs_len, rhs_len = lhs_sig.bit_length(), rhs_sig.bit_length()
        lhs_top = self.exponent_int() + lhs_len
        rhs_top = rhs.exponent_int() + rhs_len
        if lhs_top != rhs_top:
            return _three_way(lhs_top, rhs_top)
        width = max(lhs_len, rhs_len)
        return _three_way(lhs_sig << (width - lhs_len), rhs_sig << (width - rhs_len))

    def _compare_quiet(self, rhs, order_zeroes=False):
        '''Return the Compare result of self against rhs, without signalling.  If order_zeroes
        then -0 is less than +0.'''
        if self.is_nan() or rhs.is_nan():
            return Compare.UNORDERED
        if self.is_zero() and rhs.is_zero() and not order_zeroes:
            return Compare.EQUAL
        if self.sign != rhs.sign:
            return Compare.LESS_THAN if self.sign else Compare.GREATER_THAN
        result = self._compare_magnitude(rhs)
        return _REVERSED[result] if self.sign else result

    def _compare(self, rhs, context, signalling):
        result = self._compare_quiet(rhs)
        if result != Compare.UNORDERED:
            return result
        if signalling:
            return InvalidComparison((OP_COMPARE, self, rhs), result).signal(context)
        if self.is_snan() or rhs.is_snan():
            return SignallingNaNOperand((OP_COMPARE, self, rhs), result).signal(context)
        return result

    def compare(self, rhs, context=None):
        '''IEEE compareQuiet: the Compare result of self against rhs.  Only signalling NaN
        operands signal.'''
        return self._compare(rhs, context, False)

    def compare_signal(self, rhs, context=None):
        '''IEEE compareSignaling: as compare(), but any NaN operand signals
        InvalidComparison.'''
        return self._compare(rhs, context, True)

    def total_order_key(self):
        '''An integer that sorts as this value does under totalOrder.

        Encodings of positive values already sort that way.  Those of negative values sort by
        magnitude, so their magnitudes map below every positive key in reverse.
        '''
        if self.sign:
            return -1 - (self.bits ^ self.fmt.sign_mask)
        return self.bits

    def compare_total(self, rhs):
        '''IEEE totalOrder: True if self orders at or before rhs, of the same format.

        The order is -NaN < -Infinity < negative numbers < -0 < +0 < positive numbers
        < +Infinity < +NaN.  Positive NaNs order signalling before quiet and then by payload;
        negative NaNs the reverse.
        '''
        if self.fmt != rhs.fmt:
            raise ValueError('total order requires both operands have the same format')
        return self.total_order_key() <= rhs.total_order_key()

    def compare_total_mag(self, rhs):
        '''IEEE totalOrderMag: totalOrder of the absolute values.'''
        return self.copy_abs().compare_total(rhs.copy_abs())

    ##
    ## Minimum and maximum.  These are quiet: NaN results are quiet and no flags are raised.
    ##

    def min_max(self, op, rhs):
        '''Apply the minimum or maximum operation op, a MinMaxOp, to self and rhs.'''
        if self.fmt != rhs.fmt:
            raise ValueError(f'{op.op_name()} requires both operands have the same format')

        if self.is_nan() or rhs.is_nan():
            if op.nan_policy is NaNPolicy.NUMBER:
                if not rhs.is_nan():
                    return rhs
                if not self.is_nan():
                    return self
            return self.fmt._nan_result([nan for nan in (self, rhs) if nan.is_nan()])

        if op.selection is Selection.MAGNITUDE:
            comp = self._compare_magnitude(rhs)
            # If magnitudes are equal, compare the signed values
            if comp == Compare.EQUAL:
                comp = self._compare_quiet(rhs, True)
        else:
            comp = self._compare_quiet(rhs, True)

        if op.extremum is Extremum.MAXIMUM:
            return rhs if comp == Compare.LESS_THAN else self
        return rhs if comp == Compare.GREATER_THAN else self

    def minimum(self, rhs):
        return self.min_max(OP_MINIMUM, rhs)

    def maximum(self, rhs):
        return self.min_max(OP_MAXIMUM, rhs)

    def minimum_number(self, rhs):
        return self.min_max(OP_MINIMUM_NUMBER, rhs)

    def maximum_number(self, rhs):
        return self.min_max(OP_MAXIMUM_NUMBER, rhs)

    def minimum_magnitude(self, rhs):
        return self.min_max(OP_MINIMUM_MAGNITUDE, rhs)

    def maximum_magnitude(self, rhs):
        return self.min_max(OP_MAXIMUM_MAGNITUDE, rhs)

    def minimum_magnitude_number(self, rhs):
        return self.min_max(OP_MINIMUM_MAGNITUDE_NUMBER, rhs)

    def maximum_magnitude_number(self, rhs):
        return self.min_max(OP_MAXIMUM_MAGNITUDE_NUMBER, rhs)

    ##
    ## General computational operations
    ##

    def next_up(self, context=None):
        '''IEEE nextUp: the least value greater than this one.  +Infinity is unchanged.'''
        return self.fmt._next_up(self, context, False)

    def next_down(self, context=None):
        '''IEEE nextDown, -next_up(-x): the greatest value less than this one.'''
        return self.fmt._next_up(self, context, True)

    def next_after(self, target, context=None):
        '''The adjacent value in the direction of target, of the same format.  If the two
        compare equal the result is target, so -0 towards +0 gives +0.'''
        if self.fmt != target.fmt:
            raise ValueError('next_after requires both operands have the same format')
        comp = self._compare_quiet(target)
        if comp == Compare.UNORDERED:
            return self.fmt._nan_operands((OP_NEXT_AFTER, self, target), context)
        if comp == Compare.EQUAL:
            return target
        if comp == Compare.LESS_THAN:
            return self.next_up(context)
        return self.next_down(context)

    def _integral_magnitude(self, rounding):
        '''Return (magnitude, is_exact): our finite magnitude rounded to an integer.'''
        magnitude, lost = shift_right(self.significand(), -self.exponent_int())
        if rounds_away(rounding, lost, self.sign, magnitude & 1):
            magnitude += 1
        return magnitude, lost == Lost.NOTHING

    def _round_to_integral(self, op_tuple, rounding, context, exact):
        if rounding not in ROUNDING_MODES and rounding != ROUND_HALF_UP:
            raise ValueError(f'unknown rounding direction: {rounding!r}')
        if self.is_nan():
            return self.fmt._nan_operands(op_tuple, context)
        if self.is_infinite():
            return self
        magnitude, is_exact = self._integral_magnitude(rounding)
        result = self.fmt._exact_integer(magnitude, self.sign)
        if exact and not is_exact:
            return Inexact(op_tuple, result).signal(context)
        return result

    def round_to_integral(self, rounding, context=None):
        '''Return the value rounded to an integer of the same format in the given direction,
        which may be ROUND_HALF_UP.  Only signalling NaNs signal.'''
        op_tuple = (OP_ROUND_TO_INTEGRAL, self, rounding)
        return self._round_to_integral(op_tuple, rounding, context, False)

    def round_to_integral_exact(self, context=None):
        '''Return the value rounded to an integer of the same format in the context's
        direction, signalling Inexact if that changed it.'''
        context = context or get_context()
        op_tuple = (OP_ROUND_TO_INTEGRAL_EXACT, self)
        return self._round_to_integral(op_tuple, context.rounding, context, True)

    def convert_to_integer(self, min_int, max_int, rounding):
        '''Return the value rounded in the given direction, which may be ROUND_HALF_UP, to a
        Python int in the inclusive range [min_int, max_int].  If min_int == max_int the
        range is unbounded.

        Returns None for NaNs, infinities and results outside the range.  Nothing is
        signalled.
        '''
        if not (isinstance(min_int, int) and isinstance(max_int, int)):
            raise TypeError('min_int and max_int must be integers')
        if not min_int <= 0 <= max_int:
            raise ValueError('zero must lie between min_int and max_int')
        if rounding not in ROUNDING_MODES and rounding != ROUND_HALF_UP:
            raise ValueError(f'unknown rounding direction: {rounding!r}')
        if not self.is_finite():
            return None
        magnitude, _ = self._integral_magnitude(rounding)
        result = -magnitude if self.sign else magnitude
        if min_int != max_int and not min_int <= result <= max_int:
            return None
        return result

    def scaleb(self, N, context=None):
        '''Return self * 2^N rounded to our format.  Zeroes and infinities are unchanged.'''
        if not isinstance(N, int):
            raise TypeError('scaleb requires an integer')
        op_tuple = (OP_SCALEB, self, N)
        if self.is_nan():
            return self.fmt._nan_operands(op_tuple, context)
        if self.is_infinite() or self.is_zero():
            return self
        return self.fmt._round(self.sign, self.exponent_int() + N, self.significand(),
                               op_tuple, context)

    def logb_integral(self, context=None):
        '''IEEE logB as an int: the exponent of the leading significand bit, with subnormals
        treated as if normalized, so that 1 <= |scaleb(x, -logb(x))| < 2.

        Zeroes, infinities and NaNs signal InvalidLogBIntegral, whose default result is
        fmt.logb_zero, fmt.logb_inf or fmt.logb_nan respectively.
        '''
        if self.is_finite() and not self.is_zero():
            return self.exponent_int() + self.significand().bit_length() - 1
        if self.is_nan():
            result = self.fmt.logb_nan
        elif self.is_infinite():
            result = self.fmt.logb_inf
        else:
            result = self.fmt.logb_zero
        return InvalidLogBIntegral((OP_LOGB_INTEGRAL, self), result).signal(context)

    def to_string(self, text_format=None):
        '''The value as hexadecimal text.'''
        return (text_format or DefaultHexFormat).format(self)

    def __repr__(self):
        return self.to_string()

    def __str__(self):
        return self.to_string()

    ##
    ## The Python numeric protocol.  Unary operators are the quiet sign bit operations;
    ## comparisons with Binary, float and int operands are quiet.
    ##

    def __abs__(self):
        return self.copy_abs()

    def __neg__(self):
        return self.copy_negate()

    def __pos__(self):
        return self

    def _rich_compare(self, other, results):
        compare = _compare_any(self, other)
        if compare is None:
            return NotImplemented
        return compare in results

    def __eq__(self, other):
        return self._rich_compare(other, EQUAL_TO)

    def __ne__(self, other):
        return self._rich_compare(other, NOT_EQUAL_TO)

    def __lt__(self, other):
        return self._rich_compare(other, LESS)

    def __le__(self, other):
        return self._rich_compare(other, LESS_OR_EQUAL)

    def __gt__(self, other):
        return self._rich_compare(other, GREATER)

    def __ge__(self, other):
        return self._rich_compare(other, GREATER_OR_EQUAL)

    def __bool__(self):
        return not self.is_zero()

    def __float__(self):
        '''IEEEdouble values convert bit for bit; others are converted to it first.'''
        double = self if self.fmt == IEEEdouble else IEEEdouble.convert(self)
        return bits_to_float(double.bits)

    def __hash__(self):
        '''Equal to the hash of an equal int, float or Fraction.'''
        if self.is_snan():
            raise TypeError('cannot hash a signalling NaN')
        if self.is_nan():
            return 0
        if self.is_infinite():
            return hash(float('-inf') if self.sign else float('inf'))
        return hash(Fraction(*self.as_integer_ratio()))


def _compare_any(value, other):
    '''Quietly compare a Binary with a Binary, float or int.  None for other types.'''
    if isinstance(other, float):
        other = IEEEdouble.from_float(other)
    if isinstance(other, Binary):
        return value._compare_quiet(other)
    if not isinstance(other, int):
        return None
    if not value.is_finite():
        # Infinities and NaNs relate to every integer as they do to zero
        return value._compare_quiet(value.fmt.make_zero(False))
    numerator, denominator = value.as_integer_ratio()
    return _three_way(numerator, other * denominator)


IEEEhalf = BinaryFormat.from_IEEE(16)
IEEEsingle = BinaryFormat.from_IEEE(32)
IEEEdouble = BinaryFormat.from_IEEE(64)
IEEEquad = BinaryFormat.from_IEEE(128)
