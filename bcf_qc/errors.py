"""Exception hierarchy for BCF2 decoding.

Every decoding failure is fatal for the stream it occurred in: callers are
expected to stop iterating, never to resynchronise.
"""

from __future__ import annotations

__all__ = [
	"BCFError",
	"BCFStreamError",
	"BCFFormatError",
	"BCFInvariantError",
]


class BCFError(Exception):
	"""Base class for all BCF decoding errors."""


class BCFStreamError(BCFError):
	"""Raised when the byte source ends in the middle of a structure.

	Also used when a declared field range runs past the end of its buffer.
	"""


class BCFFormatError(BCFError, ValueError):
	"""Raised on bad magic, unsupported version, invalid type tag or a
	malformed header line."""


class BCFInvariantError(BCFError):
	"""Raised when a single typed integer carries a count other than 1."""
