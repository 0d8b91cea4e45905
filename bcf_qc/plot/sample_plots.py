"""Sample-level QC plotting functions.

Bar plots over the table from :func:`bcf_qc.metrics.compute_sample_metrics`
(or a ``{sample: value}`` dict / Series indexed by sample):
 - Missing rate per sample
 - Heterozygosity ratio (Het / Hom-Alt) per sample
 - Mean FORMAT/DP per sample

Large cohorts are split across stacked panels of ``samples_per_panel`` bars.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd
import numpy as np
import seaborn as sns
import matplotlib.pyplot as plt

from ..config import SAMPLES_PER_PANEL
from .base import set_plot_style, save_figure

__all__ = [
	"plot_missing_rate_per_sample",
	"plot_het_fraction_per_sample",
	"plot_mean_depth_per_sample",
]

SampleValues = Union[Dict[str, float], pd.Series, pd.DataFrame]


def _sample_frame(data: SampleValues, column: str) -> pd.DataFrame:
	"""Two-column (Sample, ``column``) frame from any accepted input shape."""
	if isinstance(data, pd.DataFrame):
		missing = {"Sample", column} - set(data.columns)
		if missing:
			raise ValueError(f"sample table lacks column(s): {', '.join(sorted(missing))}")
		frame = data[["Sample", column]].copy()
	elif isinstance(data, pd.Series):
		frame = pd.DataFrame({"Sample": data.index.astype(str), column: data.to_numpy()})
	elif isinstance(data, dict):
		frame = pd.DataFrame({"Sample": list(data), column: list(data.values())})
	else:
		raise TypeError("expected a dict, Series or DataFrame of per-sample values")
	frame[column] = pd.to_numeric(frame[column], errors="coerce")
	return frame.reset_index(drop=True)


def _panels(frame: pd.DataFrame, per_panel: int) -> List[pd.DataFrame]:
	if frame.empty:
		return [frame]
	return [frame.iloc[i:i + per_panel] for i in range(0, len(frame), per_panel)]


def _panel_bar_plot(
	frame: pd.DataFrame,
	column: str,
	*,
	title: str,
	ylabel: str,
	color: str,
	samples_per_panel: int,
	output_path: Optional[str],
	ylim: Optional[Tuple[float, float]] = None,
	yticks: Optional[Sequence[float]] = None,
) -> Optional[plt.Figure]:
	"""Stacked bar panels, one row of ~5 inches per ``samples_per_panel`` samples.

	Without ``ylim`` every panel scales to its own maximum. When several
	panels are drawn the last one is padded with blank bars so bar widths
	match across panels.
	"""
	set_plot_style()
	chunks = _panels(frame, samples_per_panel)
	width = float(np.clip(samples_per_panel * 0.18, 10, 18))
	fig, axes = plt.subplots(len(chunks), 1, figsize=(width, 5 * len(chunks)), squeeze=False)
	for i, (ax, chunk) in enumerate(zip(axes[:, 0], chunks)):
		short = samples_per_panel - len(chunk)
		if len(chunks) > 1 and short > 0:
			blanks = pd.DataFrame({"Sample": [" " * (k + 1) for k in range(short)], column: 0.0})
			chunk = pd.concat([chunk, blanks], ignore_index=True)
		sns.barplot(data=chunk, x="Sample", y=column, color=color, ax=ax)
		ax.set_xlabel("Sample")
		ax.set_ylabel(ylabel if i == 0 else "")
		if i == 0:
			ax.set_title(title)
		ax.tick_params(axis="x", labelrotation=45)
		for label in ax.get_xticklabels():
			label.set_ha("right")
		if ylim is None:
			top = chunk[column].max()
			top = float(top) * 1.05 if top > 0 else 1.0
			ax.set_ylim(0, top)
			ax.set_yticks(np.linspace(0, top, 5))
		else:
			ax.set_ylim(*ylim)
			if yticks is not None:
				ax.set_yticks(list(yticks))
		sns.despine(ax=ax)
	fig.tight_layout(h_pad=0.5)
	return save_figure(fig, output_path)


def plot_missing_rate_per_sample(
	samples: SampleValues,
	*,
	output_path: Optional[str] = None,
	title: str = "Missing rate per sample",
	color: str = "#4477AA",
	samples_per_panel: int = SAMPLES_PER_PANEL,
) -> Optional[plt.Figure]:
	"""Share of sites without a called genotype, worst samples first (y fixed to 0..1)."""
	frame = _sample_frame(samples, "MissingRate").sort_values("MissingRate", ascending=False)
	return _panel_bar_plot(
		frame,
		"MissingRate",
		title=title,
		ylabel="Missing rate",
		color=color,
		samples_per_panel=samples_per_panel,
		output_path=output_path,
		ylim=(0, 1),
		yticks=(0.0, 0.25, 0.5, 0.75, 1.0),
	)


def plot_het_fraction_per_sample(
	samples: SampleValues,
	*,
	output_path: Optional[str] = None,
	title: str = "Heterozygosity ratio (Het / Hom-Alt)",
	color: str = "#228833",
	samples_per_panel: int = SAMPLES_PER_PANEL,
) -> Optional[plt.Figure]:
	"""Het / Hom-Alt ratio per sample, highest first.

	Samples with heterozygous calls but no hom-alt call have an undefined
	ratio (NaN); they are placed last as empty bars and counted in the title.
	"""
	frame = _sample_frame(samples, "HetRatio").sort_values(
		"HetRatio", ascending=False, na_position="last"
	)
	undefined = int(frame["HetRatio"].isna().sum())
	if undefined:
		title = f"{title} ({undefined} undefined)"
	frame["HetRatio"] = frame["HetRatio"].fillna(0.0)
	return _panel_bar_plot(
		frame,
		"HetRatio",
		title=title,
		ylabel="HetRatio (Het / Hom-Alt)",
		color=color,
		samples_per_panel=samples_per_panel,
		output_path=output_path,
	)


def plot_mean_depth_per_sample(
	samples: SampleValues,
	*,
	output_path: Optional[str] = None,
	title: str = "Mean FORMAT/DP per sample",
	color: str = "#AA3377",
	samples_per_panel: int = SAMPLES_PER_PANEL,
) -> Optional[plt.Figure]:
	frame = _sample_frame(samples, "MeanDepth").sort_values("MeanDepth")
	return _panel_bar_plot(
		frame,
		"MeanDepth",
		title=title,
		ylabel="Mean depth",
		color=color,
		samples_per_panel=samples_per_panel,
		output_path=output_path,
	)
