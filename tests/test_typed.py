"""Tests for the typed value primitives."""

import io
import struct

import pytest
from hypothesis import given, strategies as st

from bcf_qc.core.typed import (
	ByteCursor,
	NumericValue,
	Sentinel,
	bits_to_float,
	classify,
	is_end_of_vector,
	is_missing,
	is_reserved_value,
	read_single_typed_integer,
	read_typed_descriptor,
	read_typed_string,
	type_width,
)
from bcf_qc.errors import BCFError, BCFFormatError, BCFInvariantError, BCFStreamError

from bcf_builders import descriptor, typed_int


# ============================================================================
# Descriptors
# ============================================================================

@given(typ=st.sampled_from([1, 2, 3, 5, 7]), count=st.integers(min_value=0, max_value=14))
def test_descriptor_round_trip(typ, count):
	stream = io.BytesIO(bytes([(count << 4) | typ]))
	assert read_typed_descriptor(stream) == (typ, count)
	assert stream.read() == b""


@pytest.mark.parametrize("count", [15, 16, 127, 200, 40000, 70000])
def test_descriptor_count_escape_reads_typed_integer(count):
	stream = io.BytesIO(descriptor(3, count) + b"rest")
	assert read_typed_descriptor(stream) == (3, count)
	assert stream.read() == b"rest"


def test_descriptor_short_read():
	with pytest.raises(BCFStreamError):
		read_typed_descriptor(io.BytesIO(b""))
	# escaped count with nothing behind it
	with pytest.raises(BCFStreamError):
		read_typed_descriptor(io.BytesIO(bytes([0xF1])))


# ============================================================================
# Single typed integers
# ============================================================================

@pytest.mark.parametrize(
	"data, expected",
	[
		(bytes([0x11, 0x05]), 5),
		(bytes([0x11, 0xFF]), 0xFF),
		(bytes([0x12]) + struct.pack("<H", 0x1234), 0x1234),
		(bytes([0x13]) + struct.pack("<I", 0xDEADBEEF), 0xDEADBEEF),
	],
)
def test_single_typed_integer_widths(data, expected):
	assert read_single_typed_integer(io.BytesIO(data)) == expected


def test_single_typed_integer_requires_count_one():
	with pytest.raises(BCFInvariantError):
		read_single_typed_integer(io.BytesIO(bytes([0x21, 0x01, 0x02])))
	with pytest.raises(BCFInvariantError):
		read_single_typed_integer(io.BytesIO(bytes([0x01])))


@pytest.mark.parametrize("typ", [0, 5, 7])
def test_single_typed_integer_rejects_non_integer_types(typ):
	with pytest.raises(BCFFormatError):
		read_single_typed_integer(io.BytesIO(bytes([0x10 | typ, 0, 0, 0, 0])))


def test_single_typed_integer_truncated_value():
	with pytest.raises(BCFStreamError):
		read_single_typed_integer(io.BytesIO(bytes([0x13, 0x01, 0x02])))


def test_typed_int_helper_decodes():
	for value in (0, 1, 0x7F, 0x80, 0x7FFF, 0x8000, 123456):
		assert read_single_typed_integer(io.BytesIO(typed_int(value))) == value


# ============================================================================
# Width table and strings
# ============================================================================

def test_type_width_table():
	assert [type_width(t) for t in (0, 1, 2, 3, 5, 7)] == [0, 1, 2, 4, 4, 1]


@pytest.mark.parametrize("typ", [4, 6, 8, 15])
def test_type_width_rejects_unknown_types(typ):
	with pytest.raises(BCFFormatError):
		type_width(typ)


def test_read_typed_string():
	assert read_typed_string(io.BytesIO(bytes([0x37]) + b"ACG")) == b"ACG"
	assert read_typed_string(io.BytesIO(bytes([0x07]))) == b""
	assert read_typed_string(io.BytesIO(bytes([0x00]))) == b""
	with pytest.raises(BCFFormatError):
		read_typed_string(io.BytesIO(bytes([0x11, 0x01])))


def test_byte_cursor_bounds():
	cursor = ByteCursor(bytearray(b"abcdef"), end=4)
	assert cursor.read(2) == b"ab"
	assert cursor.skip(2) == (2, 4)
	assert cursor.remaining == 0
	with pytest.raises(BCFStreamError):
		cursor.read(1)


# ============================================================================
# Sentinels
# ============================================================================

SENTINEL_CASES = [
	# typ, ordinary, missing, end-of-vector, reserved low, reserved high
	(1, 0x7F, 0x80, 0x81, 0x80, 0x87),
	(2, 0x7FFF, 0x8000, 0x8001, 0x8000, 0x8007),
	(3, 0x7FFFFFFF, 0x80000000, 0x80000001, 0x80000000, 0x80000007),
]


@pytest.mark.parametrize("typ, ordinary, missing, eov, low, high", SENTINEL_CASES)
def test_integer_sentinel_classification(typ, ordinary, missing, eov, low, high):
	assert classify(typ, ordinary) is Sentinel.VALUE
	assert classify(typ, missing) is Sentinel.MISSING
	assert classify(typ, eov) is Sentinel.END_OF_VECTOR
	assert classify(typ, high) is Sentinel.RESERVED
	assert classify(typ, high + 1) is Sentinel.VALUE
	assert is_missing(typ, missing) and not is_missing(typ, eov)
	assert is_end_of_vector(typ, eov) and not is_end_of_vector(typ, missing)
	assert is_reserved_value(typ, low) and is_reserved_value(typ, high)
	assert not is_reserved_value(typ, ordinary)


def test_float_sentinel_classification_uses_bit_pattern():
	assert classify(5, 0x7FC00000) is Sentinel.MISSING
	assert classify(5, 0x7FC00001) is Sentinel.END_OF_VECTOR
	assert classify(5, 0x7FC00002) is Sentinel.RESERVED
	assert classify(5, 0x7FC00007) is Sentinel.RESERVED
	assert classify(5, 0x7FC00008) is Sentinel.VALUE
	# 1.0f is 0x3F800000; a truncating numeric cast would give 1
	assert classify(5, 0x3F800000) is Sentinel.VALUE
	assert not is_reserved_value(5, 0x7FC00000)
	assert is_reserved_value(5, 0x7FC00001)


def test_sentinels_undefined_for_characters():
	with pytest.raises(BCFFormatError):
		classify(7, 0x80)


# ============================================================================
# Numeric value views
# ============================================================================

def test_numeric_value_integer_views():
	assert NumericValue(1, 5).int_val() == 5
	assert NumericValue(1, 0x80).int_val() is None
	assert NumericValue(2, 0x8000).int_val() is None
	assert NumericValue(3, 0x80000001).int_val() == 0x80000001
	assert NumericValue(1, 5).float_val() is None
	assert NumericValue(1, 0x81).status is Sentinel.END_OF_VECTOR


def test_numeric_value_float_views():
	one = NumericValue(5, 0x3F800000)
	assert one.is_float
	assert one.value == 1.0
	assert one.float_val() == 1.0
	assert one.int_val() is None
	assert NumericValue(5, 0x7FC00000).float_val() is None
	assert bits_to_float(0x40490FDB) == pytest.approx(3.14159, rel=1e-5)


def test_error_hierarchy():
	for exc in (BCFStreamError, BCFFormatError, BCFInvariantError):
		assert issubclass(exc, BCFError)
	assert issubclass(BCFFormatError, ValueError)
