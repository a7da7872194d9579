#
# Hexadecimal text rendering of binary floating point values
#

import attr

__all__ = ('TextFormat', 'DefaultHexFormat', 'BitsFormat')


@attr.s(slots=True, kw_only=True, frozen=True)
class TextFormat:
    '''Options for rendering values as text.  Finite values are written as hexadecimal
    floats in the style of float.hex().'''

    # Pad the exponent of finite values with leading zeroes to this many digits
    exp_digits = attr.ib(default=1)
    # Write '+' before non-negative exponents
    force_exp_sign = attr.ib(default=True)
    # Write '+' before values whose sign bit is clear
    force_leading_sign = attr.ib(default=False)
    # Write '.0' after a lone leading digit, so 0x1p+2 becomes 0x1.0p+2
    force_point = attr.ib(default=False)
    # Upper-case the hex digits, the 'x' and the 'p'; the inf and NaN texts are used as given
    upper_case = attr.ib(default=False)
    # Drop trailing zero digits of the significand
    rstrip_zeroes = attr.ib(default=False)
    inf = attr.ib(default='Infinity')
    qnan = attr.ib(default='NaN')
    # Text for signalling NaNs; if empty they are written as quiet NaNs
    snan = attr.ib(default='sNaN')
    # NaN payloads are omitted ('N'), or follow the NaN text in hex ('X') or decimal ('D')
    nan_payload = attr.ib(default='X', validator=attr.validators.in_(('N', 'X', 'D')))

    def leading_sign(self, value):
        if value.sign:
            return '-'
        return '+' if self.force_leading_sign else ''

    def exponent_str(self, exponent):
        if exponent < 0:
            sign = '-'
        else:
            sign = '+' if self.force_exp_sign else ''
        return sign + str(abs(exponent)).rjust(abs(self.exp_digits), '0')

    def format_non_finite(self, value):
        '''Render an infinity or a NaN.'''
        if value.is_infinite():
            return self.leading_sign(value) + self.inf
        text = self.snan if value.is_snan() and self.snan else self.qnan
        payload = value.nan_payload()
        if self.nan_payload == 'X':
            text += f'0X{payload:X}' if self.upper_case else f'0x{payload:x}'
        elif self.nan_payload == 'D':
            text += str(payload)
        return self.leading_sign(value) + text

    def format_hex(self, value):
        '''Render a finite value as a hexadecimal float with every significand digit of its
        format.  Subnormals have a leading 0 and exponent e_min; zeroes are 0x0p+0.'''
        significand = value.significand()
        if significand:
            precision = value.fmt.precision
            # Align the integer bit with the top of a hex digit
            align = (1 - precision) % 4
            digits = f'{significand << align:x}'.zfill((precision + align + 3) // 4)
            exponent = value.exponent()
        else:
            digits, exponent = '0', 0

        if self.rstrip_zeroes:
            digits = digits[0] + digits[1:].rstrip('0')
        if len(digits) > 1:
            digits = f'{digits[0]}.{digits[1:]}'
        elif self.force_point:
            digits += '.0'

        text = f'{self.leading_sign(value)}0x{digits}p{self.exponent_str(exponent)}'
        return text.upper() if self.upper_case else text

    def format(self, value):
        if value.is_finite():
            return self.format_hex(value)
        return self.format_non_finite(value)


# Finite IEEEdouble values render exactly as float.hex() does
DefaultHexFormat = TextFormat(force_point=True, nan_payload='N')

# Shows NaN payloads
BitsFormat = TextFormat(force_point=True)
