"""Typed value primitives of the BCF2 encoding.

A BCF2 value is introduced by a descriptor byte: the low nibble holds the
type, the high nibble the element count. A count nibble of 15 means the real
count follows as a single typed integer. Integers are little-endian and may
carry reserved bit patterns (missing, end-of-vector, reserved); floats carry
their own patterns which are always compared on the raw 32 bits.

Every reader function here takes any object with a ``read(n)`` method.
"""

from __future__ import annotations

import enum
import struct
from typing import NamedTuple, Optional, Tuple, Union

from ..config import (
	BCF_TYPE_CHAR,
	BCF_TYPE_FLOAT,
	BCF_TYPE_INT8,
	BCF_TYPE_INT16,
	BCF_TYPE_INT32,
	BCF_TYPE_MISSING,
	DESCRIPTOR_COUNT_ESCAPE,
	FLOAT_SENTINELS,
	INT_SENTINELS,
	TYPE_WIDTHS,
)
from ..errors import BCFFormatError, BCFInvariantError, BCFStreamError

__all__ = [
	"Sentinel",
	"NumericValue",
	"ByteCursor",
	"read_exact",
	"type_width",
	"read_typed_descriptor",
	"read_single_typed_integer",
	"read_typed_string",
	"is_missing",
	"is_end_of_vector",
	"is_reserved_value",
	"classify",
	"sentinel_table",
	"bits_to_float",
	"float_to_bits",
]

_UINT8 = struct.Struct("<B")
_UINT16 = struct.Struct("<H")
_UINT32 = struct.Struct("<I")
_FLOAT32 = struct.Struct("<f")

# Integer types decode as unsigned; floats are kept as their raw bit pattern
INTEGER_STRUCTS = {
	BCF_TYPE_INT8: _UINT8,
	BCF_TYPE_INT16: _UINT16,
	BCF_TYPE_INT32: _UINT32,
}
VALUE_STRUCTS = {**INTEGER_STRUCTS, BCF_TYPE_FLOAT: _UINT32}

_SENTINEL_TABLES = {
	BCF_TYPE_INT8: INT_SENTINELS[1],
	BCF_TYPE_INT16: INT_SENTINELS[2],
	BCF_TYPE_INT32: INT_SENTINELS[4],
	BCF_TYPE_FLOAT: FLOAT_SENTINELS,
}


class Sentinel(enum.Enum):
	"""Disjoint classification of a raw numeric bit pattern."""

	VALUE = "value"
	MISSING = "missing"
	END_OF_VECTOR = "end_of_vector"
	RESERVED = "reserved"


# -- raw byte access ----------------------------------------------------------
def read_exact(stream, n: int) -> bytes:
	"""Read exactly ``n`` bytes from ``stream``.

	Short reads from sources that return partial chunks are retried; running
	out of data raises :class:`BCFStreamError`.
	"""
	if n <= 0:
		return b""
	chunks = []
	remaining = n
	while remaining:
		chunk = stream.read(remaining)
		if not chunk:
			raise BCFStreamError(
				f"unexpected end of data: wanted {n} bytes, got {n - remaining}"
			)
		chunks.append(chunk)
		remaining -= len(chunk)
	return b"".join(chunks)


class ByteCursor:
	"""Bounded forward cursor over an in-memory buffer.

	Behaves like a minimal readable stream so the descriptor functions can run
	over a record section, and hands out ``(start, end)`` offsets for fields
	that are skipped rather than copied.
	"""

	def __init__(self, buffer: Union[bytes, bytearray], start: int = 0, end: Optional[int] = None):
		self._buffer = buffer
		self.end = len(buffer) if end is None else end
		self.pos = start

	def read(self, n: int) -> bytes:
		start, stop = self.skip(n)
		return bytes(self._buffer[start:stop])

	def skip(self, n: int) -> Tuple[int, int]:
		"""Advance by ``n`` bytes and return the covered ``(start, end)`` range."""
		stop = self.pos + n
		if n < 0 or stop > self.end:
			raise BCFStreamError(
				f"field of {n} bytes at offset {self.pos} runs past buffer end {self.end}"
			)
		start = self.pos
		self.pos = stop
		return start, stop

	def tell(self) -> int:
		return self.pos

	@property
	def remaining(self) -> int:
		return self.end - self.pos


# -- type table ----------------------------------------------------------------
def type_width(typ: int) -> int:
	"""Byte width of one element of type ``typ`` (0 for the no-value type)."""
	try:
		return TYPE_WIDTHS[typ]
	except KeyError:
		raise BCFFormatError(f"invalid BCF type tag {typ}") from None


def read_typed_descriptor(stream) -> Tuple[int, int]:
	"""Read a descriptor byte and return ``(type, count)``."""
	(byte,) = read_exact(stream, 1)
	typ = byte & 0x0F
	count = byte >> 4
	if count == DESCRIPTOR_COUNT_ESCAPE:
		count = read_single_typed_integer(stream)
	return typ, count


def read_single_typed_integer(stream) -> int:
	"""Read a descriptor followed by exactly one unsigned integer."""
	typ, count = read_typed_descriptor(stream)
	if count != 1:
		raise BCFInvariantError(f"expected a single typed integer, descriptor declares {count} values")
	packer = INTEGER_STRUCTS.get(typ)
	if packer is None:
		raise BCFFormatError(f"type {typ} is not an integer type")
	(value,) = packer.unpack(read_exact(stream, packer.size))
	return value


def read_typed_string(stream) -> bytes:
	"""Read a typed character array and return its raw bytes.

	A zero-length value may be tagged with the no-value type instead of the
	character type.
	"""
	typ, count = read_typed_descriptor(stream)
	if typ == BCF_TYPE_MISSING and count == 0:
		return b""
	if typ != BCF_TYPE_CHAR:
		raise BCFFormatError(f"expected a character array, found type {typ}")
	return read_exact(stream, count)


# -- sentinels ---------------------------------------------------------------------
def sentinel_table(typ: int) -> tuple:
	try:
		return _SENTINEL_TABLES[typ]
	except KeyError:
		raise BCFFormatError(f"type {typ} has no numeric sentinels") from None


def is_missing(typ: int, raw: int) -> bool:
	return raw == sentinel_table(typ)[0]


def is_end_of_vector(typ: int, raw: int) -> bool:
	return raw == sentinel_table(typ)[1]


def is_reserved_value(typ: int, raw: int) -> bool:
	_, _, low, high = sentinel_table(typ)
	return low <= raw <= high


def classify(typ: int, raw: int) -> Sentinel:
	"""Classify the raw bit pattern ``raw`` of a value of type ``typ``.

	Unlike the predicates above, the outcome is disjoint: missing and
	end-of-vector take precedence over the reserved range.
	"""
	missing, end_of_vector, low, high = sentinel_table(typ)
	if raw == missing:
		return Sentinel.MISSING
	if raw == end_of_vector:
		return Sentinel.END_OF_VECTOR
	if low <= raw <= high:
		return Sentinel.RESERVED
	return Sentinel.VALUE


def bits_to_float(bits: int) -> float:
	"""Reinterpret a 32-bit pattern as an IEEE single precision float."""
	return _FLOAT32.unpack(_UINT32.pack(bits))[0]


def float_to_bits(value: float) -> int:
	"""Bit pattern of ``value`` stored as a single precision float."""
	return _UINT32.unpack(_FLOAT32.pack(value))[0]


class NumericValue(NamedTuple):
	"""One decoded element of a numeric array.

	Holds the BCF type (1, 2, 3 or 5) and the raw stored bit pattern; every
	interpretation goes through the views below so sentinel patterns never
	surface as ordinary numbers.
	"""

	typ: int
	raw: int

	@property
	def value(self) -> Union[int, float]:
		if self.typ == BCF_TYPE_FLOAT:
			return bits_to_float(self.raw)
		return self.raw

	@property
	def status(self) -> Sentinel:
		return classify(self.typ, self.raw)

	@property
	def is_float(self) -> bool:
		return self.typ == BCF_TYPE_FLOAT

	def int_val(self) -> Optional[int]:
		"""Integer value unless missing (or not an integer type)."""
		if self.typ not in INTEGER_STRUCTS or is_missing(self.typ, self.raw):
			return None
		return self.raw

	def float_val(self) -> Optional[float]:
		"""Float value unless missing (or not a float)."""
		if self.typ != BCF_TYPE_FLOAT or is_missing(self.typ, self.raw):
			return None
		return bits_to_float(self.raw)
