"""Site-level QC plotting functions.

Every function accepts either the table from
:func:`bcf_qc.metrics.compute_site_metrics` (the relevant column is picked
out) or a bare sequence of values:
 - QUAL distribution (missing QUAL dropped)
 - Site missing rate distribution
 - Minor allele frequency distribution
 - Mean FORMAT/DP distribution
"""

from __future__ import annotations

from typing import Dict, Optional, Union

import pandas as pd
import numpy as np
import matplotlib.pyplot as plt

from .base import hist_plot

__all__ = [
	"plot_qual_distribution",
	"plot_site_missing_rate_distribution",
	"plot_maf_distribution",
	"plot_mean_depth_distribution",
]

SiteValues = Union[pd.DataFrame, pd.Series, np.ndarray, list, Dict[str, float]]


def _site_values(data: SiteValues, column: str) -> np.ndarray:
	"""Float array of ``column`` from a site table, or of the values given."""
	if isinstance(data, pd.DataFrame):
		if column not in data.columns:
			raise ValueError(f"site table has no '{column}' column")
		data = data[column]
	elif isinstance(data, dict):
		data = list(data.values())
	return pd.to_numeric(pd.Series(data), errors="coerce").to_numpy(dtype=float)


def plot_qual_distribution(
	sites: SiteValues,
	*,
	output_path: Optional[str] = None,
	title: str = "QUAL distribution (site level)",
	bins: int = 60,
	logx: bool = False,
	smart_cutoff: float = 99.5,
	enable_smart_cutoff: bool = True,
	focus_pct: Optional[float] = None,
) -> Optional[plt.Figure]:
	"""Histogram of site QUAL.

	Records whose QUAL carries the missing pattern show up as NaN and are
	counted in the title rather than plotted. ``focus_pct`` (0-1 or 0-100)
	keeps only values up to that percentile.
	"""
	values = _site_values(sites, "QUAL")
	present = ~np.isnan(values)
	notes = []
	n_missing = int((~present).sum())
	if n_missing:
		notes.append(f"{n_missing} without QUAL")
	if focus_pct is not None and present.any():
		pct = focus_pct * 100 if 0 < focus_pct <= 1 else focus_pct
		if 0 < pct < 100:
			cut = np.percentile(values[present], pct)
			values = values[values <= cut]
			notes.append(f"<= {pct:.2f}th pct, cutoff={cut:g}")
	if notes:
		title = f"{title} ({'; '.join(notes)})"
	return hist_plot(
		values,
		output_path=output_path,
		title=title,
		xlabel="QUAL",
		bins=bins,
		logx=logx,
		color="#355C7D",
		smart_cutoff=smart_cutoff,
		enable_smart_cutoff=enable_smart_cutoff,
	)


def plot_site_missing_rate_distribution(
	sites: SiteValues,
	*,
	output_path: Optional[str] = None,
	title: str = "Missing rate distribution (site level)",
	smart_cutoff: float = 99.9,
	enable_smart_cutoff: bool = True,
) -> Optional[plt.Figure]:
	"""Histogram of the fraction of samples without a called genotype, on 0..1."""
	return hist_plot(
		_site_values(sites, "MissingRate"),
		output_path=output_path,
		title=title,
		xlabel="Missing rate",
		bins="auto",
		color="#BC4B51",
		xlim=(0, 1),
		smart_cutoff=smart_cutoff,
		enable_smart_cutoff=enable_smart_cutoff,
	)


def plot_maf_distribution(
	sites: SiteValues,
	*,
	output_path: Optional[str] = None,
	title: str = "Minor allele frequency (MAF) distribution",
	bins: int = 60,
	smart_cutoff: float = 99.5,
	enable_smart_cutoff: bool = True,
	min_value: float = 0.0,
) -> Optional[plt.Figure]:
	"""Histogram of MAF; ``min_value`` drops monomorphic / rare sites first."""
	values = _site_values(sites, "MAF")
	if min_value > 0.0:
		total = int((~np.isnan(values)).sum())
		values = values[values >= min_value]
		title = f"{title} (MAF >= {min_value:.3f}, {values.size}/{total} sites)"
	return hist_plot(
		values,
		output_path=output_path,
		title=title,
		xlabel="MAF (second-most allele frequency)",
		bins=bins,
		color="#00796B",
		xlim=(0, 0.5),
		smart_cutoff=smart_cutoff,
		enable_smart_cutoff=enable_smart_cutoff,
	)


def plot_mean_depth_distribution(
	sites: SiteValues,
	*,
	output_path: Optional[str] = None,
	title: str = "Mean FORMAT/DP per site",
	bins: int = 60,
	logx: bool = False,
) -> Optional[plt.Figure]:
	"""Histogram of per-site mean sample depth (sites without DP read 0)."""
	return hist_plot(
		_site_values(sites, "MeanDepth"),
		output_path=output_path,
		title=title,
		xlabel="Mean depth",
		bins=bins,
		logx=logx,
		color="#6C5B7B",
	)
