"""Format constants and defaults shared across the package.

Kept in one place so the decoder, the reader and the plotting helpers agree
on the same values.
"""

from __future__ import annotations

from typing import Dict

# -- stream preamble ---------------------------------------------------------
BCF_MAGIC = b"BCF"
BCF_MAJOR_VERSION = 2
BCF_MINOR_VERSION = 2
GZIP_MAGIC = b"\x1f\x8b"

# CHROM POS ID REF ALT QUAL FILTER INFO; FORMAT precedes the sample columns
VCF_FIXED_COLUMNS = 8
FORMAT_COLUMN = "FORMAT"

# Implicit FILTER/PASS dictionary entry, always at position 0
DEFAULT_PASS_ENTRY: Dict[str, str] = {
	"Dictionary": "FILTER",
	"ID": "PASS",
	"Description": "All filters passed",
}

# -- typed values ------------------------------------------------------------
BCF_TYPE_MISSING = 0
BCF_TYPE_INT8 = 1
BCF_TYPE_INT16 = 2
BCF_TYPE_INT32 = 3
BCF_TYPE_FLOAT = 5
BCF_TYPE_CHAR = 7

TYPE_WIDTHS: Dict[int, int] = {
	BCF_TYPE_MISSING: 0,
	BCF_TYPE_INT8: 1,
	BCF_TYPE_INT16: 2,
	BCF_TYPE_INT32: 4,
	BCF_TYPE_FLOAT: 4,
	BCF_TYPE_CHAR: 1,
}

# Descriptor count nibble meaning "count follows as a typed integer"
DESCRIPTOR_COUNT_ESCAPE = 15

# (missing, end-of-vector, reserved-low, reserved-high) per integer width
INT_SENTINELS: Dict[int, tuple] = {
	1: (0x80, 0x81, 0x80, 0x87),
	2: (0x8000, 0x8001, 0x8000, 0x8007),
	4: (0x80000000, 0x80000001, 0x80000000, 0x80000007),
}
# Float sentinels compare the raw 32-bit pattern
FLOAT_SENTINELS = (0x7FC00000, 0x7FC00001, 0x7FC00001, 0x7FC00007)

# -- plotting ----------------------------------------------------------------
PLOT_STYLE = "whitegrid"
PLOT_RC_PARAMS = {
	"axes.titlesize": 13,
	"axes.labelsize": 11,
	"font.size": 10,
	"figure.dpi": 100,
}
SAMPLES_PER_PANEL = 100
