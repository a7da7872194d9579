#
# Rounding a significand that has been shifted right, losing low-order bits
#

from enum import IntEnum

from .context import ROUND_CEILING, ROUND_DOWN, ROUND_FLOOR, ROUND_HALF_EVEN, ROUND_HALF_UP

__all__ = ('Lost', 'lost_fraction', 'shift_right', 'rounds_away')


class Lost(IntEnum):
    '''What the bits shifted out of a significand were worth, as a fraction of the LSB that
    remains.  Between them the members do the work of guard and sticky bits.'''
    NOTHING = 0         # 000000
    UNDER_HALF = 1      # 0xxxxx  x's not all zero
    HALF = 2            # 100000
    OVER_HALF = 3       # 1xxxxx  x's not all zero


def lost_fraction(significand, bits):
    '''Classify the low bits of significand that a right shift by bits would discard.'''
    if bits <= 0 or not significand:
        return Lost.NOTHING
    if bits > significand.bit_length():
        return Lost.UNDER_HALF
    discarded = significand & ((1 << bits) - 1)
    half = 1 << (bits - 1)
    if discarded > half:
        return Lost.OVER_HALF
    if discarded == half:
        return Lost.HALF
    return Lost.UNDER_HALF if discarded else Lost.NOTHING


def shift_right(significand, bits):
    '''Return significand shifted right by bits, or left if bits is negative, and what the
    shift discarded.'''
    if bits <= 0:
        return significand << -bits, Lost.NOTHING
    return significand >> bits, lost_fraction(significand, bits)


def rounds_away(rounding, lost, sign, is_odd):
    '''Return True if a magnitude truncated with the given loss must be incremented, i.e.
    rounded away from zero.

    sign is that of the value and is_odd whether the truncated magnitude is odd, which
    decides ties under ROUND_HALF_EVEN.
    '''
    if lost == Lost.NOTHING:
        return False
    if rounding == ROUND_HALF_EVEN:
        return lost == Lost.OVER_HALF or (lost == Lost.HALF and bool(is_odd))
    if rounding == ROUND_HALF_UP:
        return lost >= Lost.HALF
    if rounding == ROUND_CEILING:
        return not sign
    if rounding == ROUND_FLOOR:
        return bool(sign)
    if rounding == ROUND_DOWN:
        return False
    raise ValueError(f'unknown rounding direction: {rounding!r}')
