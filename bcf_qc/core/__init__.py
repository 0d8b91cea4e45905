"""Core BCF2 decoding primitives.

	typed    – descriptor bytes, width table, sentinel classification
	sequence – lazy typed-array iteration over a byte range
	genotype – GT value interpretation
"""

from .typed import (  # noqa: F401
	NumericValue,
	Sentinel,
	classify,
	read_single_typed_integer,
	read_typed_descriptor,
	type_width,
)
from .sequence import NumberSequence  # noqa: F401
from .genotype import Genotype, decode_genotype, iter_sample_genotypes  # noqa: F401

__all__ = [
	"NumericValue",
	"Sentinel",
	"classify",
	"read_single_typed_integer",
	"read_typed_descriptor",
	"type_width",
	"NumberSequence",
	"Genotype",
	"decode_genotype",
	"iter_sample_genotypes",
]
