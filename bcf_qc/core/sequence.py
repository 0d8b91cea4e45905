"""Lazy iteration over typed numeric arrays.

A :class:`NumberSequence` decodes one element per step from a byte range of
a record buffer. It is forward-only: to walk the same values again build a
new sequence over the same range.
"""

from __future__ import annotations

from typing import List, Optional, Union

import numpy as np

from ..config import BCF_TYPE_CHAR, BCF_TYPE_FLOAT, BCF_TYPE_MISSING
from ..errors import BCFFormatError, BCFStreamError
from .typed import VALUE_STRUCTS, NumericValue, sentinel_table, type_width

__all__ = ["NumberSequence"]

_NUMPY_DTYPES = {
	1: np.dtype("<u1"),
	2: np.dtype("<u2"),
	3: np.dtype("<u4"),
	BCF_TYPE_FLOAT: np.dtype("<u4"),
}


class NumberSequence:
	"""Forward-only iterator of :class:`NumericValue` over ``count`` elements.

	Parameters
	----------
	typ : int
		BCF type of the elements (0, 1, 2, 3 or 5).
	count : int
		Declared number of elements.
	buffer : bytes | bytearray
		Buffer holding the array.
	start, end : int
		Byte range of the array inside ``buffer``.

	The covered bytes are copied at construction, so the sequence stays valid
	after the owning record is re-read.
	"""

	__slots__ = ("_typ", "_count", "_data", "_cur", "_packer")

	def __init__(
		self,
		typ: int,
		count: int,
		buffer: Union[bytes, bytearray] = b"",
		start: int = 0,
		end: Optional[int] = None,
	):
		if typ == BCF_TYPE_CHAR:
			raise BCFFormatError("character arrays are not numeric; decode them as strings")
		width = type_width(typ)
		end = len(buffer) if end is None else end
		if typ == BCF_TYPE_MISSING:
			count = 0
		need = width * count
		if start < 0 or end > len(buffer) or start + need > end:
			raise BCFStreamError(
				f"{count} values of type {typ} do not fit in range {start}..{end} "
				f"of a {len(buffer)} byte buffer"
			)
		self._typ = typ
		self._count = count
		self._data = bytes(buffer[start:start + need])
		self._cur = 0
		self._packer = VALUE_STRUCTS.get(typ)

	@classmethod
	def empty(cls) -> "NumberSequence":
		return cls(BCF_TYPE_MISSING, 0)

	@property
	def typ(self) -> int:
		return self._typ

	@property
	def count(self) -> int:
		return self._count

	@property
	def remaining(self) -> int:
		return self._count - self._cur

	def __iter__(self) -> "NumberSequence":
		return self

	def __next__(self) -> NumericValue:
		if self._cur >= self._count:
			raise StopIteration
		(raw,) = self._packer.unpack_from(self._data, self._cur * self._packer.size)
		self._cur += 1
		return NumericValue(self._typ, raw)

	def __length_hint__(self) -> int:
		return self.remaining

	def __repr__(self) -> str:
		return f"NumberSequence(typ={self._typ}, count={self._count}, consumed={self._cur})"

	def to_list(self) -> List[NumericValue]:
		"""Drain the remaining elements into a list."""
		return list(self)

	def to_numpy(self) -> np.ndarray:
		"""Drain the remaining elements into a float64 array.

		Missing, end-of-vector and reserved patterns become NaN; integers keep
		their unsigned stored value.
		"""
		if self._typ == BCF_TYPE_MISSING or self.remaining == 0:
			self._cur = self._count
			return np.empty(0, dtype=np.float64)
		width = self._packer.size
		raw = np.frombuffer(self._data, dtype=_NUMPY_DTYPES[self._typ], offset=self._cur * width)
		self._cur = self._count
		missing, _, low, high = sentinel_table(self._typ)
		flagged = ((raw >= low) & (raw <= high)) | (raw == missing)
		if self._typ == BCF_TYPE_FLOAT:
			out = raw.view("<f4").astype(np.float64)
		else:
			out = raw.astype(np.float64)
		out[flagged] = np.nan
		return out
