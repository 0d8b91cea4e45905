"""Base plotting utilities shared across QC plot modules.

This module centralises style configuration and small helper wrappers
around seaborn/matplotlib so higher-level plot functions remain concise
and consistent. Each helper returns a matplotlib Figure when an
``output_path`` is not provided; otherwise the figure is saved and
closed (to avoid memory accumulation in batch runs) and ``None`` is
returned.
"""

from __future__ import annotations

from typing import Optional, Tuple, Union

import matplotlib.pyplot as plt
import seaborn as sns
import pandas as pd
import numpy as np

from ..config import PLOT_RC_PARAMS, PLOT_STYLE

__all__ = [
	"set_plot_style",
	"save_figure",
	"smart_cutoff_values",
	"hist_plot",
]


def set_plot_style() -> None:
	"""Apply a unified visual style."""
	sns.set_theme(style=PLOT_STYLE)
	plt.rcParams.update(PLOT_RC_PARAMS)


def save_figure(fig: plt.Figure, output_path: Optional[str]) -> Optional[plt.Figure]:
	"""Save figure if ``output_path`` provided else return it.

	Parameters
	----------
	fig : matplotlib.figure.Figure
		Figure to save or return.
	output_path : str | None
		Path to save. If None the figure is returned and *not* closed.
	"""
	if output_path:
		fig.savefig(output_path, bbox_inches="tight")
		plt.close(fig)
		return None
	return fig


def smart_cutoff_values(
	arr: np.ndarray,
	pct: float = 99.5,
	max_iter: int = 5,
) -> Tuple[np.ndarray, int]:
	"""Iteratively drop the upper tail while it is longer than the body.

	A tail is trimmed when ``max - p[pct]`` exceeds ``p[pct] - median``.
	Returns the trimmed non-NaN values and the number of iterations applied.
	"""
	current = arr[~np.isnan(arr)]
	iters = 0
	while iters < max_iter and current.size:
		cur_max = float(current.max())
		p99 = float(np.percentile(current, pct))
		p50 = float(np.percentile(current, 50))
		if (cur_max - p99) > (p99 - p50):
			current = current[current <= p99]
			iters += 1
		else:
			break
	return current, iters


def hist_plot(
	values: Union[pd.Series, np.ndarray, list],
	*,
	output_path: Optional[str] = None,
	title: str = "",
	xlabel: str = "",
	bins: Union[int, str] = 50,
	color: str = "steelblue",
	kde: bool = True,
	logx: bool = False,
	xlim: Optional[Tuple[float, float]] = None,
	figsize: Tuple[int, int] = (8, 5),
	smart_cutoff: float = 99.5,
	enable_smart_cutoff: bool = True,
	smart_cutoff_max_iter: int = 5,
) -> Optional[plt.Figure]:
	"""Histogram + (optional) KDE.

	Parameters are intentionally kept minimal; callers can perform any
	value filtering / transformation before passing the array.
	"""
	set_plot_style()
	arr = np.asarray(values, dtype=float)
	mask = ~np.isnan(arr)
	filtered = arr[mask]
	cut_phrase = ""
	if mask.any():
		orig_min = float(filtered.min())
		orig_max = float(filtered.max())
		if enable_smart_cutoff and 0 < smart_cutoff < 100:
			filtered, iters = smart_cutoff_values(arr, smart_cutoff, smart_cutoff_max_iter)
			if iters > 0:
				cut_phrase = f" (smart cutoff at {smart_cutoff:.2f}% iter={iters} | original range:{orig_min:g}-{orig_max:g})"
			else:
				cut_phrase = f" (no cutoff | original range:{orig_min:g}-{orig_max:g})"
		else:
			cut_phrase = f" (original range:{orig_min:g}-{orig_max:g})"
	fig, ax = plt.subplots(figsize=figsize)
	sns.histplot(filtered, bins=bins, kde=kde and filtered.size > 1, color=color, ax=ax)
	if logx:
		ax.set_xscale("log")
	if xlim is not None:
		ax.set_xlim(*xlim)
	if cut_phrase:
		ax.set_title(f"{title}\n{cut_phrase.strip()}")
	else:
		ax.set_title(title)
	ax.set_xlabel(xlabel)
	ax.set_ylabel("Count")
	fig.tight_layout()
	return save_figure(fig, output_path)
