import struct

import pytest
from hypothesis import given
from hypothesis import strategies as st

from ieee754codec import *


formats = st.sampled_from((IEEEhalf, IEEEsingle, IEEEdouble, IEEEquad))
endiannesses = st.sampled_from(('little', 'big'))


@st.composite
def binaries(draw, fmt=None):
    fmt = fmt or draw(formats)
    return fmt.from_bits(draw(st.integers(0, (1 << fmt.fmt_width) - 1)))


doubles = st.integers(0, (1 << 64) - 1).map(bits_to_float)


@given(formats, st.data(), endiannesses)
def test_encoding_round_trip(fmt, data, endianness):
    raw = data.draw(st.binary(min_size=fmt.byte_size, max_size=fmt.byte_size))
    value = fmt.decode(raw, endianness)
    assert value is not None
    assert fmt.encode(value, endianness) == raw


@given(binaries(), endiannesses)
def test_value_round_trip(value, endianness):
    result = value.fmt.decode(value.pack(endianness), endianness)
    assert result.fmt == value.fmt
    assert result.bits == value.bits


@given(binaries())
def test_endianness_symmetry(value):
    assert value.pack('little') == bytes(reversed(value.pack('big')))


@given(doubles, endiannesses)
def test_float_round_trip(value, endianness):
    result = float_from_bytes(float_to_bytes(value, endianness), endianness)
    assert float_to_bits(result) == float_to_bits(value)


@given(st.floats(allow_nan=False, width=64))
def test_float_encoding_matches_struct(value):
    assert float_to_bytes(value, 'big') == struct.pack('>d', value)
    assert float_to_bytes(value, 'little') == struct.pack('<d', value)


@given(st.floats(allow_nan=False, width=32))
def test_single_encoding_matches_struct(value):
    assert encode(value, IEEEsingle, 'little') == struct.pack('<f', value)


@given(binaries())
def test_negate_idempotent(value):
    assert negate(negate(value)).bits == value.bits
    assert negate(value).bits == value.bits ^ value.fmt.sign_mask


@given(binaries())
def test_absolute_clears_sign(value):
    result = absolute(value)
    assert not result.is_sign_minus()
    assert result.bits == value.bits & ~value.fmt.sign_mask


@given(binaries())
def test_classification_partition(value):
    predicates = (value.is_nan(), value.is_infinite(), value.is_zero(), value.is_subnormal(),
                  value.is_normal())
    assert sum(predicates) == 1
    assert value.is_finite() is not (value.is_nan() or value.is_infinite())


@given(st.data())
def test_total_order_key(data):
    fmt = data.draw(formats)
    lhs = data.draw(binaries(fmt))
    rhs = data.draw(binaries(fmt))
    assert total_order(lhs, rhs) is (total_order_key(lhs) <= total_order_key(rhs))
    assert total_order(lhs, rhs) or total_order(rhs, lhs)
    if total_order(lhs, rhs) and total_order(rhs, lhs):
        assert lhs.bits == rhs.bits


@given(st.data())
def test_total_order_agrees_with_compare(data):
    fmt = data.draw(formats)
    lhs = data.draw(binaries(fmt))
    rhs = data.draw(binaries(fmt))
    if lhs.is_nan() or rhs.is_nan():
        return
    if is_less(lhs, rhs):
        assert total_order(lhs, rhs)
        assert not total_order(rhs, lhs)


@given(doubles, doubles)
def test_min_max_nan_policy(lhs, rhs):
    if is_nan(lhs) or is_nan(rhs):
        assert is_nan(minimum(lhs, rhs))
        assert is_nan(maximum_magnitude(lhs, rhs))
        if not is_nan(lhs):
            assert float_to_bits(minimum_number(lhs, rhs)) == float_to_bits(lhs)
        elif not is_nan(rhs):
            assert float_to_bits(maximum_number(lhs, rhs)) == float_to_bits(rhs)
        else:
            assert is_nan(minimum_number(lhs, rhs))
    else:
        low, high = minimum(lhs, rhs), maximum(lhs, rhs)
        assert total_order(low, high)
        assert {float_to_bits(low), float_to_bits(high)} == {float_to_bits(lhs),
                                                             float_to_bits(rhs)}


@pytest.mark.parametrize('fmt', (IEEEsingle, IEEEdouble))
@given(data=st.data())
def test_nan_payload_round_trip(fmt, data):
    payload = data.draw(st.integers(0, fmt.quiet_bit - 1))
    assert decode_nan(encode_quiet_nan(payload, fmt)) == NaNPayload(False, payload)
    nan = encode_signaling_nan(payload, fmt)
    assert nan.is_snan()
    assert decode_nan(nan) == NaNPayload(True, max(payload, 1))
    assert extract_payload(nan) == max(payload, 1)
