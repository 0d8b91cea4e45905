"""bcf_qc – BCF2 decoding with QC metrics & plots on top.

Subpackages:
	core      – typed value decoding, lazy numeric arrays, genotype values
	io        – header parsing, record splitting and a streaming reader
	metrics   – sample / site / genotype level metric tables
	plot      – visualisations organised by data granularity

The decoding API is re-exported here so users can simply::

	from bcf_qc import BcfReader
"""

from importlib import import_module as _imp

from .errors import BCFError, BCFFormatError, BCFInvariantError, BCFStreamError  # noqa: F401
from .core import Genotype, NumberSequence, decode_genotype  # noqa: F401
from .io import BcfReader, Header, Record  # noqa: F401

metrics = _imp("bcf_qc.metrics")
plot = _imp("bcf_qc.plot")

__version__ = "0.1.0"
__author__ = "Zihao Huang"
__email__ = "zh384@cam.ac.uk"
__affiliation__ = "Department of Genetics, University of Cambridge"
__all__ = [
	"BCFError",
	"BCFFormatError",
	"BCFInvariantError",
	"BCFStreamError",
	"Genotype",
	"NumberSequence",
	"decode_genotype",
	"BcfReader",
	"Header",
	"Record",
	"metrics",
	"plot",
	"__version__",
]
