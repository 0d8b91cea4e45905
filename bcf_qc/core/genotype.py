"""Genotype value interpretation.

BCF2 stores each ploidy slot of a genotype as ``(allele + 1) << 1 | phased``.
The integer-missing pattern marks an absent slot; a value that is all ones
once widened to 32 bits marks an unknown allele. Narrower all-ones values
(0xFF, 0xFFFF) are ordinary encoded alleles.
"""

from __future__ import annotations

from typing import Iterator, List, NamedTuple, Optional

from ..config import BCF_TYPE_MISSING
from .sequence import NumberSequence
from .typed import NumericValue, Sentinel

__all__ = ["Genotype", "decode_genotype", "iter_sample_genotypes"]

# Unknown allele: the value widened to 32 bits is all ones
_DOT = 0xFFFFFFFF


class Genotype(NamedTuple):
	"""One decoded ploidy slot."""

	no_ploidy: bool
	is_dot: bool
	phased: bool
	allele: Optional[int]


def decode_genotype(value: NumericValue) -> Genotype:
	"""Decode one raw GT element into a :class:`Genotype`."""
	raw = value.int_val()
	if raw is None:
		return Genotype(True, False, False, None)
	if raw == _DOT:
		return Genotype(False, True, False, None)
	return Genotype(False, False, bool(raw & 1), (raw >> 1) - 1)


def iter_sample_genotypes(record, header) -> Iterator[List[Genotype]]:
	"""Yield the decoded ploidy slots of each sample of ``record``.

	A sample of lower ploidy than the vector width is padded with the
	end-of-vector pattern; its slots stop at the first padding value, so a
	haploid call in a diploid vector yields one slot. Nothing is yielded when
	the record carries no GT field for the header's GT dictionary key.
	"""
	entry = record.find_format(header.fmt_gt_idx) if header.has_gt else None
	if entry is None or entry.count == 0 or entry.typ == BCF_TYPE_MISSING:
		return
	values: NumberSequence = record.gt(header)
	for _ in range(record.n_sample):
		slots: List[Genotype] = []
		padded = False
		for _ in range(entry.count):
			value = next(values)
			if padded or value.status is Sentinel.END_OF_VECTOR:
				padded = True
				continue
			slots.append(decode_genotype(value))
		yield slots
