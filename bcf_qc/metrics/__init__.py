"""Metric computation subpackage."""

from .sample_metrics import compute_sample_metrics  # noqa: F401
from .site_metrics import compute_site_metrics, filter_site_metrics  # noqa: F401
from .genotype_metrics import genotype_table, filter_heterozygous  # noqa: F401

__all__ = [
	"compute_sample_metrics",
	"compute_site_metrics",
	"filter_site_metrics",
	"genotype_table",
	"filter_heterozygous",
]
