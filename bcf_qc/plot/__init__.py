"""High-level plotting API for the bcf_qc package.

The submodules are separated by data granularity:
	sample_plots – sample-level QC visualisations
	site_plots   – site (variant) level QC visualisations

Import convenience: ``from bcf_qc.plot import plot_missing_rate_per_sample``.
"""

from .sample_plots import *  # noqa: F401,F403
from .site_plots import *  # noqa: F401,F403
from . import sample_plots as _sample_plots, site_plots as _site_plots

__all__ = [*_sample_plots.__all__, *_site_plots.__all__]
