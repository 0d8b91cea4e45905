"""Streaming BCF2 reader for QC metric extraction.

Opens a BCF file (BGZF/gzip compressed or uncompressed) or wraps an already
open binary stream, parses the header once and iterates records with a single
reusable :class:`~bcf_qc.io.record.Record`. The convenience iterators at the
bottom turn decoded genotypes into plain dict rows for the metric tables.
"""

from __future__ import annotations

import contextlib
import gzip
import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

import numpy as np

from ..config import BCF_TYPE_CHAR, BCF_TYPE_MISSING, GZIP_MAGIC
from ..core.genotype import iter_sample_genotypes
from ..utils import called_alleles, format_genotype
from .header import Header
from .record import Record

logger = logging.getLogger(__name__)


def format_key(header: Header, field_id: str) -> Optional[int]:
	"""Dictionary position of the FORMAT entry ``field_id`` (None if absent).

	The header only resolves keys to entries; this is the reverse lookup.
	"""
	for idx, entry in enumerate(header.dict_strings):
		if entry.get("Dictionary") == "FORMAT" and entry.get("ID") == field_id:
			return idx
	return None


def _first_format_values(record: Record, key: Optional[int]) -> Optional[np.ndarray]:
	"""First element of a numeric FORMAT field for every sample (NaN if missing)."""
	if key is None:
		return None
	entry = record.find_format(key)
	if entry is None or entry.count == 0 or entry.typ in (BCF_TYPE_MISSING, BCF_TYPE_CHAR):
		return None
	values = record.format_values(entry).to_numpy()
	return values.reshape(record.n_sample, entry.count)[:, 0]


class BcfReader:
	"""Minimal streaming BCF2 reader.

	Parameters
	----------
	source : str | Path | binary file object
		Path to a BCF file, or an open binary stream positioned at the magic.
	max_records : int | None
		Optional limit for testing / faster prototyping.

	A path can be parsed any number of times (each :meth:`parse` reopens it);
	a stream can only be walked once.
	"""

	def __init__(self, source: Union[str, Path, object], max_records: Optional[int] = None):
		self.source = source
		self.max_records = max_records
		self.header: Optional[Header] = None
		self.samples: List[str] = []
		self._is_stream = hasattr(source, "read")

	# -- internal helpers -------------------------------------------------
	def _open(self):
		if self._is_stream:
			return contextlib.nullcontext(self.source)
		path = Path(self.source)
		with open(path, "rb") as fh:
			magic = fh.read(len(GZIP_MAGIC))
		if magic == GZIP_MAGIC:
			return gzip.open(path, "rb")
		return open(path, "rb")

	def _load_header(self, fh) -> Header:
		self.header = Header.from_stream(fh)
		self.samples = self.header.samples
		return self.header

	def read_header(self) -> Header:
		"""Parse (once) and return the header."""
		if self.header is None:
			if self._is_stream:
				self._load_header(self.source)
			else:
				with self._open() as fh:
					self._load_header(fh)
		return self.header

	def parse(self) -> Iterator[Record]:
		"""Yield records in file order.

		The same :class:`Record` instance is yielded every time; copy out
		anything that must outlive the next step.
		"""
		count = 0
		with self._open() as fh:
			if not self._is_stream or self.header is None:
				self._load_header(fh)
			record = Record()
			while record.read(fh):
				yield record
				count += 1
				if self.max_records and count >= self.max_records:
					break
		logger.info("Read %d BCF records", count)

	__iter__ = parse

	def chrom_name(self, record: Record) -> str:
		header = self.read_header()
		if 0 <= record.chrom < len(header.contigs):
			return header.chrname(record.chrom)
		return str(record.chrom)

	# -- convenience metric extraction ------------------------------------
	def compute_sample_level_stats(self) -> Tuple[Dict[str, int], Dict[str, int], Dict[str, int], Dict[str, int], Dict[str, float], Dict[str, int]]:
		"""Compute core counts needed for per-sample metrics.

		Returns tuple of dicts (total_calls, missing_calls, het_calls,
		hom_alt_calls, depth_sum, depth_count).

		Definitions
		----------
		- het_calls: at least two different called alleles
		- hom_alt_calls: all called alleles equal and non-reference
		- depth_sum / depth_count: from the FORMAT field with ID ``DP`` when present.
		"""
		header = self.read_header()
		samples = header.samples
		total_calls = {s: 0 for s in samples}
		missing_calls = {s: 0 for s in samples}
		het_calls = {s: 0 for s in samples}
		hom_alt_calls = {s: 0 for s in samples}
		depth_sum = {s: 0.0 for s in samples}
		depth_count = {s: 0 for s in samples}
		dp_key = format_key(header, "DP")

		for rec in self.parse():
			per_sample = list(iter_sample_genotypes(rec, header))
			depths = _first_format_values(rec, dp_key)
			for i, sample in enumerate(samples):
				total_calls[sample] += 1
				alleles = called_alleles(per_sample[i]) if i < len(per_sample) else None
				if alleles is None:
					missing_calls[sample] += 1
					continue
				if len(set(alleles)) > 1:
					het_calls[sample] += 1
				elif alleles[0] != 0:
					hom_alt_calls[sample] += 1
				if depths is not None and i < len(depths) and not np.isnan(depths[i]):
					depth_sum[sample] += float(depths[i])
					depth_count[sample] += 1
		return total_calls, missing_calls, het_calls, hom_alt_calls, depth_sum, depth_count

	# -- site level -------------------------------------------------------
	def iterate_site_metrics(self) -> Iterator[Dict[str, object]]:
		"""Yield per-site summary dicts (QUAL, mean depth, MAC, MAF, MissingRate).

		MAF = frequency of the SECOND most frequent allele, including REF,
		counted over called genotypes.
		"""
		header = self.read_header()
		sample_count = len(header.samples)
		dp_key = format_key(header, "DP")
		for rec in self.parse():
			per_sample = list(iter_sample_genotypes(rec, header))
			missing = max(0, sample_count - len(per_sample))
			allele_counts: Dict[int, int] = {}
			for gts in per_sample:
				alleles = called_alleles(gts)
				if alleles is None:
					missing += 1
					continue
				for a in alleles:
					allele_counts[a] = allele_counts.get(a, 0) + 1
			mac = 0
			maf = 0.0
			an = sum(allele_counts.values())
			counts = sorted((c for c in allele_counts.values() if c > 0), reverse=True)
			if len(counts) >= 2 and an > 0:
				mac = counts[1]
				maf = mac / an
			depths = _first_format_values(rec, dp_key)
			if depths is not None and (~np.isnan(depths)).any():
				mean_depth = float(np.nanmean(depths))
			else:
				mean_depth = 0.0
			alts = rec.alts
			yield {
				'Chrom': self.chrom_name(rec),
				'Pos': rec.pos + 1,
				'QUAL': rec.qual,
				'MeanDepth': mean_depth,
				'MAC': mac,
				'MAF': maf,
				'MissingRate': missing / sample_count if sample_count else 0.0,
				'AlleleCount': rec.n_allele,
				'Alts': ",".join(alts) if alts else ".",
			}

	# -- genotype level ---------------------------------------------------
	def iterate_genotypes(self) -> Iterator[Dict[str, object]]:
		"""Yield one dict per sample genotype.

		Keys: Sample, Chrom, Pos, GT, Ploidy, Phased, Missing, Depth. Records
		without a GT field yield nothing.
		"""
		header = self.read_header()
		samples = header.samples
		dp_key = format_key(header, "DP")
		for rec in self.parse():
			depths = _first_format_values(rec, dp_key)
			chrom = self.chrom_name(rec)
			for idx, gts in enumerate(iter_sample_genotypes(rec, header)):
				if idx >= len(samples):
					break
				slots = [g for g in gts if not g.no_ploidy]
				depth = None
				if depths is not None and not np.isnan(depths[idx]):
					depth = int(depths[idx])
				yield {
					'Sample': samples[idx],
					'Chrom': chrom,
					'Pos': rec.pos + 1,
					'GT': format_genotype(gts),
					'Ploidy': len(slots),
					'Phased': any(g.phased for g in slots[1:]),
					'Missing': called_alleles(gts) is None,
					'Depth': depth,
				}
