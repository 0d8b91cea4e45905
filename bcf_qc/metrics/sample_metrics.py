"""Sample-level metric computations for BCF QC.

Relies on the streaming ``BcfReader``; every call walks the file once. GT
calls come from the decoded FORMAT/GT vector (end-of-vector padding already
dropped, so a haploid call in a diploid record counts once) and depth from
the first value of FORMAT/DP.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from ..io.bcf_reader import BcfReader, format_key

logger = logging.getLogger(__name__)

__all__ = [
	"compute_sample_metrics",
]

SAMPLE_COLUMNS = [
	"Sample",
	"MissingRate",
	"MeanDepth",
	"HetRatio",
	"CalledSites",
	"HomAltSites",
	"HetSites",
	"DepthSites",
]


def compute_sample_metrics(reader: BcfReader) -> pd.DataFrame:
	"""Compute core per-sample metrics including the Heterozygosity Ratio.

	Columns returned:
		Sample, MissingRate, MeanDepth, HetRatio, CalledSites, HomAltSites,
		HetSites, DepthSites

	Definition:
		HetRatio = HET / HOM_ALT  (if HOM_ALT==0 and HET>0 -> NaN; if both 0 -> 0)
		MeanDepth averages FORMAT/DP over the DepthSites called calls carrying it
		(0 when the header declares no FORMAT/DP).
	"""
	header = reader.read_header()
	if format_key(header, "DP") is None:
		logger.info("Header declares no FORMAT/DP; MeanDepth will be 0 for every sample")
	total, missing, het, hom_alt, depth_sum, depth_count = reader.compute_sample_level_stats()
	counts = pd.DataFrame(
		{
			"total": pd.Series(total, dtype="int64"),
			"missing": pd.Series(missing, dtype="int64"),
			"het": pd.Series(het, dtype="int64"),
			"hom_alt": pd.Series(hom_alt, dtype="int64"),
			"depth_sum": pd.Series(depth_sum, dtype="float64"),
			"depth_n": pd.Series(depth_count, dtype="int64"),
		}
	).reindex(header.samples, fill_value=0)

	het_ratio = counts["het"] / counts["hom_alt"].where(counts["hom_alt"] > 0)
	het_ratio = het_ratio.mask((counts["het"] == 0) & (counts["hom_alt"] == 0), 0.0)
	out = pd.DataFrame({
		"Sample": counts.index.to_list(),
		"MissingRate": (counts["missing"] / counts["total"].clip(lower=1)).to_numpy(),
		"MeanDepth": (counts["depth_sum"] / counts["depth_n"].where(counts["depth_n"] > 0)).fillna(0.0).to_numpy(),
		"HetRatio": het_ratio.to_numpy(dtype=float),
		"CalledSites": (counts["total"] - counts["missing"]).to_numpy(),
		"HomAltSites": counts["hom_alt"].to_numpy(),
		"HetSites": counts["het"].to_numpy(),
		"DepthSites": counts["depth_n"].to_numpy(),
	}, columns=SAMPLE_COLUMNS)
	if len(out):
		logger.info(
			"Sample metrics for %d samples: median missing rate %.3f",
			len(out), float(np.median(out["MissingRate"])),
		)
	return out
