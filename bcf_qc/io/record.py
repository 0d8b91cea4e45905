"""BCF2 record splitting.

A record is two length-prefixed sections: the shared (site) section and the
individual (per-sample) section. Only the fixed scalars are decoded when a
record is read; every variable-length field is remembered as a
``(start, end)`` offset range into the section buffer owned by the record
and decoded on demand.
"""

from __future__ import annotations

import logging
import struct
from typing import List, NamedTuple, Optional, Tuple

from ..config import BCF_TYPE_CHAR, BCF_TYPE_FLOAT, BCF_TYPE_MISSING, FLOAT_SENTINELS
from ..core.sequence import NumberSequence
from ..core.typed import (
	ByteCursor,
	bits_to_float,
	is_missing,
	read_exact,
	read_single_typed_integer,
	read_typed_descriptor,
	type_width,
)
from ..errors import BCFError, BCFFormatError
from ..utils import decode_string

logger = logging.getLogger(__name__)

__all__ = ["Record", "TypedRange"]

_LENGTHS = struct.Struct("<II")
# chrom, pos, rlen, qual bits, n_info, n_allele, n_sample | n_fmt << 24
_SITE_FIXED = struct.Struct("<iiiIHHI")


class TypedRange(NamedTuple):
	"""Location of a typed array inside a record section.

	``key`` is the header dictionary position (None for FILTER). For FORMAT
	entries ``count`` is the per-sample element count.
	"""

	key: Optional[int]
	typ: int
	count: int
	start: int
	end: int

	@property
	def size(self) -> int:
		return self.end - self.start


class Record:
	"""Reusable holder for one BCF2 record.

	Call :meth:`read` repeatedly with the same instance; each call replaces
	the buffers and field tables. Field ranges always refer to the buffers
	of the most recent successful read.
	"""

	def __init__(self):
		self._site = bytearray()
		self._indiv = bytearray()
		self._clear_fields()

	def _clear_fields(self) -> None:
		self.chrom = 0
		self.pos = 0
		self.rlen = 0
		self._qual_bits = FLOAT_SENTINELS[0]
		self.n_info = 0
		self.n_allele = 0
		self.n_sample = 0
		self.n_fmt = 0
		self._id: Tuple[int, int] = (0, 0)
		self._alleles: List[Tuple[int, int]] = []
		self._filters = TypedRange(None, BCF_TYPE_MISSING, 0, 0, 0)
		self._info: List[TypedRange] = []
		self._formats: List[TypedRange] = []

	def _reset(self) -> None:
		self._site.clear()
		self._indiv.clear()
		self._clear_fields()

	# -- reading ------------------------------------------------------------
	def read(self, stream) -> bool:
		"""Read the next record from ``stream``.

		Returns False when the stream ends exactly at a record boundary.
		Any other failure resets the record and raises a :class:`BCFError`.
		"""
		try:
			first = stream.read(_LENGTHS.size)
			if not first:
				self._reset()
				return False
			head = first + read_exact(stream, _LENGTHS.size - len(first))
			l_shared, l_indiv = _LENGTHS.unpack(head)
			self._site[:] = read_exact(stream, l_shared)
			self._indiv[:] = read_exact(stream, l_indiv)
			self._clear_fields()
			self._parse_site_fields()
			self._parse_individual_fields()
		except BCFError:
			self._reset()
			raise
		return True

	def _string_range(self, cursor: ByteCursor) -> Tuple[int, int]:
		typ, count = read_typed_descriptor(cursor)
		if typ != BCF_TYPE_CHAR and not (typ == BCF_TYPE_MISSING and count == 0):
			raise BCFFormatError(f"expected a character array, found type {typ}")
		return cursor.skip(count)

	def _typed_range(self, cursor: ByteCursor, key: Optional[int], scale: int = 1) -> TypedRange:
		typ, count = read_typed_descriptor(cursor)
		start, end = cursor.skip(type_width(typ) * count * scale)
		return TypedRange(key, typ, count, start, end)

	def _parse_site_fields(self) -> None:
		cursor = ByteCursor(self._site)
		(
			self.chrom,
			self.pos,
			self.rlen,
			self._qual_bits,
			self.n_info,
			self.n_allele,
			packed,
		) = _SITE_FIXED.unpack(cursor.read(_SITE_FIXED.size))
		self.n_sample = packed & 0xFFFFFF
		self.n_fmt = packed >> 24
		self._id = self._string_range(cursor)
		self._alleles = [self._string_range(cursor) for _ in range(self.n_allele)]
		self._filters = self._typed_range(cursor, None)
		info = []
		for _ in range(self.n_info):
			key = read_single_typed_integer(cursor)
			info.append(self._typed_range(cursor, key))
		self._info = info
		if cursor.remaining:
			logger.debug("%d trailing bytes after site fields", cursor.remaining)

	def _parse_individual_fields(self) -> None:
		cursor = ByteCursor(self._indiv)
		formats = []
		for _ in range(self.n_fmt):
			key = read_single_typed_integer(cursor)
			formats.append(self._typed_range(cursor, key, scale=self.n_sample))
		self._formats = formats

	# -- fixed fields -----------------------------------------------------------
	@property
	def qual(self) -> Optional[float]:
		if is_missing(BCF_TYPE_FLOAT, self._qual_bits):
			return None
		return bits_to_float(self._qual_bits)

	# -- site strings ---------------------------------------------------------
	@property
	def id_range(self) -> Tuple[int, int]:
		return self._id

	@property
	def allele_ranges(self) -> List[Tuple[int, int]]:
		return list(self._alleles)

	@property
	def id(self) -> Optional[str]:
		start, end = self._id
		return decode_string(self._site[start:end]) or None

	@property
	def alleles(self) -> List[str]:
		return [decode_string(self._site[s:e]) for s, e in self._alleles]

	@property
	def ref(self) -> Optional[str]:
		alleles = self.alleles
		return alleles[0] if alleles else None

	@property
	def alts(self) -> List[str]:
		return self.alleles[1:]

	# -- deferred field tables -----------------------------------------------
	@property
	def filters(self) -> TypedRange:
		return self._filters

	@property
	def info(self) -> Tuple[TypedRange, ...]:
		return tuple(self._info)

	@property
	def formats(self) -> Tuple[TypedRange, ...]:
		return tuple(self._formats)

	@property
	def site_buffer(self) -> bytes:
		return bytes(self._site)

	@property
	def individual_buffer(self) -> bytes:
		return bytes(self._indiv)

	def find_info(self, key: int) -> Optional[TypedRange]:
		for entry in self._info:
			if entry.key == key:
				return entry
		return None

	def find_format(self, key: int) -> Optional[TypedRange]:
		for entry in self._formats:
			if entry.key == key:
				return entry
		return None

	def filter_values(self) -> NumberSequence:
		f = self._filters
		return NumberSequence(f.typ, f.count, self._site, f.start, f.end)

	def filter_ids(self, header) -> List[str]:
		"""FILTER names of this record resolved through ``header``."""
		size = len(header.dict_strings)
		names = []
		for value in self.filter_values():
			key = value.int_val()
			if key is None:
				continue
			if key >= size:
				raise BCFFormatError(f"FILTER key {key} is not in the header dictionary ({size} entries)")
			names.append(header.dictionary_id(key))
		return names

	def info_values(self, entry: TypedRange) -> NumberSequence:
		return NumberSequence(entry.typ, entry.count, self._site, entry.start, entry.end)

	def info_string(self, entry: TypedRange) -> str:
		if entry.typ != BCF_TYPE_CHAR:
			raise BCFFormatError(f"INFO key {entry.key} is not a character array (type {entry.typ})")
		return decode_string(self._site[entry.start:entry.end])

	def format_values(self, entry: TypedRange) -> NumberSequence:
		return NumberSequence(
			entry.typ, entry.count * self.n_sample, self._indiv, entry.start, entry.end
		)

	def gt(self, header) -> NumberSequence:
		"""Raw GT values of all samples, or an empty sequence without GT."""
		if not header.has_gt:
			return NumberSequence.empty()
		entry = self.find_format(header.fmt_gt_idx)
		if entry is None:
			return NumberSequence.empty()
		return self.format_values(entry)

	def __repr__(self) -> str:
		return (
			f"Record(chrom={self.chrom}, pos={self.pos}, rlen={self.rlen}, qual={self.qual}, "
			f"n_allele={self.n_allele}, n_info={self.n_info}, n_fmt={self.n_fmt}, "
			f"n_sample={self.n_sample})"
		)
