"""Small utility helpers used across the bcf_qc package.

This module intentionally keeps a tiny surface area of pure-Python helpers that
are easy to unit-test and have no heavy dependencies.
"""
from typing import List, Optional, Sequence, Union

from .errors import BCFFormatError


def decode_string(raw: Union[bytes, bytearray]) -> str:
    """Decode a BCF character array.

    Trailing NUL padding is dropped. Invalid UTF-8 raises BCFFormatError.
    """
    try:
        return bytes(raw).rstrip(b"\0").decode("utf-8")
    except UnicodeDecodeError as exc:
        raise BCFFormatError(f"character field is not valid UTF-8: {bytes(raw)!r}") from exc


def called_alleles(genotypes: Sequence) -> Optional[List[int]]:
    """Return allele indices of a sample's genotype, or None if not called.

    Absent ploidy slots are ignored. A genotype with no remaining slot, or
    with any unknown allele, counts as missing (half calls like 0/. too).
    """
    slots = [g for g in genotypes if not g.no_ploidy]
    if not slots:
        return None
    if any(g.is_dot or g.allele is None or g.allele < 0 for g in slots):
        return None
    return [g.allele for g in slots]


def format_genotype(genotypes: Sequence) -> str:
    """Render decoded ploidy slots as VCF-style GT text (e.g. '0/1', '1|0').

    The phase bit of every slot after the first selects its separator.
    """
    slots = [g for g in genotypes if not g.no_ploidy]
    if not slots:
        return "."
    parts = []
    for i, g in enumerate(slots):
        if i:
            parts.append("|" if g.phased else "/")
        if g.is_dot or g.allele is None or g.allele < 0:
            parts.append(".")
        else:
            parts.append(str(g.allele))
    return "".join(parts)


def gt_is_missing(gt: Optional[str]) -> bool:
    """Check if a genotype string is missing or half-missing.

    Treat '.', './.', '.|.', '0/.', './1', '0|.' etc. as missing.
    """
    if gt is None:
        return True
    if gt == '.':
        return True
    return '.' in gt


def normalize_chrom(chrom: Optional[str]) -> str:
    """Lightweight normalization for chromosome names.

    Examples: 'chr1' -> '1', '1' -> '1', 'MT'->'MT'
    This is intentionally conservative and only strips a leading 'chr' or 'CHR'.
    """
    if chrom is None:
        return ""
    c = str(chrom)
    if c.lower().startswith("chr"):
        return c[3:]
    return c


__all__ = [
    "decode_string",
    "called_alleles",
    "format_genotype",
    "gt_is_missing",
    "normalize_chrom",
]
