"""BCF2 stream preamble and header text parsing.

The header is VCF header text. Structured ``##name=<...>`` lines are kept as
ordered dictionaries: the position of an entry is the integer key records use
to reference it, so order is never changed after parsing.
"""

from __future__ import annotations

import logging
import struct
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..config import (
	BCF_MAGIC,
	BCF_MAJOR_VERSION,
	BCF_MINOR_VERSION,
	DEFAULT_PASS_ENTRY,
	FORMAT_COLUMN,
	VCF_FIXED_COLUMNS,
)
from ..core.typed import read_exact
from ..errors import BCFFormatError

logger = logging.getLogger(__name__)

__all__ = ["Header", "read_header_text", "parse_structured_line"]

_UINT32 = struct.Struct("<I")


def read_header_text(stream) -> str:
	"""Read magic, version and header text from the start of a BCF2 stream."""
	magic = read_exact(stream, len(BCF_MAGIC))
	if magic != BCF_MAGIC:
		raise BCFFormatError(f"not a BCF stream (magic {magic!r})")
	major, minor = read_exact(stream, 2)
	if (major, minor) != (BCF_MAJOR_VERSION, BCF_MINOR_VERSION):
		raise BCFFormatError(f"unsupported BCF version {major}.{minor}")
	(length,) = _UINT32.unpack(read_exact(stream, _UINT32.size))
	raw = read_exact(stream, length)
	try:
		return raw.decode("utf-8")
	except UnicodeDecodeError as exc:
		raise BCFFormatError("header text is not valid UTF-8") from exc


def _split_unquoted(text: str, sep: str, maxsplit: int = -1) -> List[str]:
	"""Split on ``sep`` outside double quotes; quotes are kept in the parts."""
	parts: List[str] = []
	buf: List[str] = []
	in_quotes = False
	escaped = False
	for ch in text:
		if escaped:
			escaped = False
		elif in_quotes and ch == "\\":
			escaped = True
		elif ch == '"':
			in_quotes = not in_quotes
		elif ch == sep and not in_quotes and (maxsplit < 0 or len(parts) < maxsplit):
			parts.append("".join(buf))
			buf = []
			continue
		buf.append(ch)
	parts.append("".join(buf))
	return parts


def _unquote(value: str) -> str:
	if len(value) >= 2 and value[0] == value[-1] == '"':
		return value[1:-1].replace('\\"', '"').replace("\\\\", "\\")
	return value


def parse_structured_line(line: str) -> Optional[Tuple[str, Dict[str, str]]]:
	"""Parse ``##name=<k=v,...>`` into ``(name, mapping)``.

	Returns None for meta lines without a bracketed value, such as
	``##fileformat=VCFv4.2``.
	"""
	name, sep, value = line[2:].partition("=")
	if not sep or not value.startswith("<"):
		return None
	value = value.rstrip()
	if not value.endswith(">"):
		raise BCFFormatError(f"unterminated structured header line: {line!r}")
	entry: Dict[str, str] = {}
	for pair in _split_unquoted(value[1:-1], ","):
		kv = _split_unquoted(pair.strip(), "=", maxsplit=1)
		if len(kv) != 2:
			raise BCFFormatError(f"missing '=' in {pair.strip()!r} of header line {line!r}")
		entry[kv[0].strip()] = _unquote(kv[1].strip())
	return name, entry


def _check_idx(entry: Mapping[str, str], position: int, name: str) -> None:
	# IDX never reorders entries; disagreement is only reported
	idx = entry.get("IDX")
	if idx is None:
		return
	if not idx.isdigit() or int(idx) != position:
		logger.warning(
			"Header %s entry %s declares IDX=%s but is referenced by position %d",
			name, entry.get("ID"), idx, position,
		)


class Header:
	"""Parsed BCF2 header.

	Attributes
	----------
	dict_strings : tuple of mappings
		INFO / FORMAT / FILTER / other structured entries in key order, each
		tagged with its line name under ``Dictionary``. Position 0 is always
		FILTER/PASS.
	contigs : tuple of mappings
		Contig entries; the position is the chromosome index used by records.
	samples : list of str
		Sample names in column order.
	"""

	def __init__(
		self,
		dict_strings: Sequence[Mapping[str, str]],
		contigs: Sequence[Mapping[str, str]],
		samples: Sequence[str],
		text: str = "",
	):
		self._dict_strings = tuple(MappingProxyType(dict(m)) for m in dict_strings)
		self._contigs = tuple(MappingProxyType(dict(m)) for m in contigs)
		self._samples = tuple(samples)
		self.text = text
		self._fmt_gt_idx = 0
		self._has_gt = False
		for idx, m in enumerate(self._dict_strings):
			if m.get("Dictionary") == "FORMAT" and m.get("ID") == "GT":
				self._fmt_gt_idx = idx
				self._has_gt = True

	@classmethod
	def from_text(cls, text: str) -> "Header":
		dict_strings: List[Dict[str, str]] = [dict(DEFAULT_PASS_ENTRY)]
		contigs: List[Dict[str, str]] = []
		samples: List[str] = []
		for line in text.rstrip("\0").strip().splitlines():
			if line.startswith("#CHROM"):
				columns = line.rstrip().split("\t")[VCF_FIXED_COLUMNS:]
				if columns and columns[0] == FORMAT_COLUMN:
					columns = columns[1:]
				samples = columns
				continue
			if not line.strip():
				continue
			if not line.startswith("##"):
				logger.debug("Ignoring header line %r", line)
				continue
			parsed = parse_structured_line(line)
			if parsed is None:
				continue
			name, entry = parsed
			if name == "contig":
				_check_idx(entry, len(contigs), name)
				contigs.append(entry)
			elif name == "FILTER" and entry.get("ID") == "PASS":
				continue
			else:
				entry["Dictionary"] = name
				_check_idx(entry, len(dict_strings), name)
				dict_strings.append(entry)
		header = cls(dict_strings, contigs, samples, text=text)
		logger.info(
			"Parsed BCF header: %d contigs, %d dictionary entries, %d samples",
			len(contigs), len(dict_strings), len(samples),
		)
		return header

	@classmethod
	def from_stream(cls, stream) -> "Header":
		return cls.from_text(read_header_text(stream))

	# -- accessors ------------------------------------------------------------
	def chrname(self, idx: int) -> str:
		return self._contigs[idx]["ID"]

	def dictionary(self, idx: int) -> Mapping[str, str]:
		return self._dict_strings[idx]

	def dictionary_id(self, idx: int) -> str:
		return self._dict_strings[idx]["ID"]

	@property
	def contigs(self) -> Tuple[Mapping[str, str], ...]:
		return self._contigs

	@property
	def dict_strings(self) -> Tuple[Mapping[str, str], ...]:
		return self._dict_strings

	@property
	def samples(self) -> List[str]:
		return list(self._samples)

	@property
	def fmt_gt_idx(self) -> int:
		return self._fmt_gt_idx

	@property
	def has_gt(self) -> bool:
		return self._has_gt

	def __repr__(self) -> str:
		return (
			f"Header(contigs={len(self._contigs)}, dict_strings={len(self._dict_strings)}, "
			f"samples={len(self._samples)})"
		)
