"""Genotype-level metric assembly.

Converts the generator from ``BcfReader.iterate_genotypes`` into DataFrames
and offers filtering helpers for genotype-level quality control.
"""
from __future__ import annotations

import re

import pandas as pd

from ..io import BcfReader

__all__ = ["genotype_table", "filter_heterozygous"]

GENOTYPE_COLUMNS = ["Sample", "Chrom", "Pos", "GT", "Ploidy", "Phased", "Missing", "Depth"]
_ALLELE_SEP = re.compile(r"[/|]")


def genotype_table(reader: BcfReader) -> pd.DataFrame:
    """Return DataFrame with one row per sample genotype.

    Columns: Sample, Chrom, Pos, GT, Ploidy, Phased, Missing, Depth
    """
    df = pd.DataFrame(list(reader.iterate_genotypes()), columns=GENOTYPE_COLUMNS)
    df["Depth"] = pd.to_numeric(df["Depth"], errors="coerce")
    return df


def filter_heterozygous(df: pd.DataFrame) -> pd.DataFrame:
    """Filter DataFrame to include only heterozygous genotypes.

    Parameters
    ----------
    df : pd.DataFrame
        Genotype data with GT column

    Returns
    -------
    pd.DataFrame
        Called genotypes carrying at least two different alleles
    """
    if 'GT' not in df.columns:
        raise ValueError("DataFrame must contain 'GT' column for heterozygous filtering")

    def _is_het(gt: str) -> bool:
        alleles = _ALLELE_SEP.split(gt)
        return '.' not in alleles and len(set(alleles)) > 1

    het_mask = df['GT'].astype(str).map(_is_het)
    return df[het_mask].reset_index(drop=True)
