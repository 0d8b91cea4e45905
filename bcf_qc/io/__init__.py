"""I/O subpackage.

Exposes the BCF2 header parser, the reusable record splitter and a
streaming reader built on both. Decompression is limited to opening
gzip/BGZF files by path; anything else should hand in a readable stream.
"""

from .header import Header, read_header_text  # noqa: F401
from .record import Record, TypedRange  # noqa: F401
from .bcf_reader import BcfReader, format_key  # noqa: F401

__all__ = ["Header", "read_header_text", "Record", "TypedRange", "BcfReader", "format_key"]
