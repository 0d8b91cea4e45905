"""Site-level metric assembly.

Converts the generator from ``BcfReader.iterate_site_metrics`` into a
DataFrame and offers light filtering helpers.
"""
from __future__ import annotations

import logging
from typing import Optional

import pandas as pd

from ..io import BcfReader

logger = logging.getLogger(__name__)

__all__ = ["compute_site_metrics", "filter_site_metrics"]

SITE_COLUMNS = ["Chrom", "Pos", "QUAL", "MeanDepth", "MAC", "MAF", "MissingRate", "AlleleCount", "Alts"]


def compute_site_metrics(reader: BcfReader, limit: Optional[int] = None) -> pd.DataFrame:
    """Return DataFrame with columns: Chrom, Pos, QUAL, MeanDepth, MAC, MAF, MissingRate, AlleleCount, Alts."""
    rows = []
    for i, rec in enumerate(reader.iterate_site_metrics()):
        rows.append(rec)
        if limit and i + 1 >= limit:
            break
    df = pd.DataFrame(rows, columns=SITE_COLUMNS)
    for col in ["QUAL", "MeanDepth", "MAC", "MAF", "MissingRate", "AlleleCount"]:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    # MAF uses the second most frequent allele, so it cannot exceed 0.5
    over_mask = df["MAF"] > 0.5
    count_over = int(over_mask.sum())
    if count_over > 0:
        logger.warning(
            "Detected %d sites with MAF > 0.5 (expected 0 under second-most allele definition):\n%s",
            count_over,
            df.loc[over_mask, ["Chrom", "Pos", "MAC", "MAF"]].head(10).to_string(index=False),
        )
    return df


def filter_site_metrics(
    df: pd.DataFrame,
    *,
    min_qual: Optional[float] = None,
    max_missing: Optional[float] = None,
    min_depth: Optional[float] = None,
    min_mac: Optional[int] = None,
) -> pd.DataFrame:
    """Apply simple QC thresholds; returns filtered copy and logs a filtering report."""
    out = df.copy()
    steps = [
        ("QUAL", min_qual, lambda s, v: s >= v, "QUAL >= {}"),
        ("MissingRate", max_missing, lambda s, v: s <= v, "Missing rate <= {}"),
        ("MeanDepth", min_depth, lambda s, v: s >= v, "Mean depth >= {}"),
        ("MAC", min_mac, lambda s, v: s >= v, "MAC >= {}"),
    ]
    logger.info("Site-level filtering: %d initial sites", len(df))
    for col, threshold, keep, label in steps:
        if threshold is None or col not in out.columns:
            continue
        before = len(out)
        out = out[keep(out[col], threshold)]
        logger.info("  %s: removed %d sites, %d remaining", label.format(threshold), before - len(out), len(out))
    retention_rate = (len(out) / len(df)) * 100 if len(df) > 0 else 0
    logger.info("Sites retained: %d (%.1f%%)", len(out), retention_rate)
    return out.reset_index(drop=True)
