import io
import logging
import math

import pandas as pd
import pytest

from bcf_qc import BcfReader
from bcf_qc.metrics import (
	compute_sample_metrics,
	compute_site_metrics,
	filter_heterozygous,
	filter_site_metrics,
	genotype_table,
)
from bcf_qc.utils import called_alleles, format_genotype, gt_is_missing, normalize_chrom
from bcf_qc.core import Genotype

from bcf_builders import HEADER_TEXT, KEY_GT, build_record, build_stream, encode_gt


@pytest.fixture
def reader(qc_bcf_path):
	return BcfReader(qc_bcf_path)


# ============================================================================
# Sample level
# ============================================================================

def test_sample_metrics(reader):
	df = compute_sample_metrics(reader).set_index("Sample")
	assert list(df.index) == ["S1", "S2", "S3"]
	assert df.loc["S1", "MissingRate"] == 0.0
	assert df.loc["S3", "MissingRate"] == 0.5
	assert df.loc["S1", "MeanDepth"] == 20.0
	assert df.loc["S2", "MeanDepth"] == 30.0
	# the missing call at the first site carries no depth either
	assert df.loc["S3", "MeanDepth"] == 50.0
	assert math.isnan(df.loc["S1", "HetRatio"])
	assert df.loc["S2", "HetRatio"] == 1.0
	assert df.loc["S3", "HetRatio"] == 0.0
	assert df["CalledSites"].tolist() == [2, 2, 1]
	assert df["HomAltSites"].tolist() == [0, 1, 1]
	assert df["HetSites"].tolist() == [1, 1, 0]
	assert df["DepthSites"].tolist() == [2, 2, 1]


# ============================================================================
# Site level
# ============================================================================

def test_site_metrics(reader):
	df = compute_site_metrics(reader)
	assert df["Chrom"].tolist() == ["chr1", "chr2"]
	assert df["Pos"].tolist() == [10, 20]
	assert df.loc[0, "QUAL"] == 50.0
	assert math.isnan(df.loc[1, "QUAL"])
	assert df["MAC"].tolist() == [1, 3]
	assert df["MAF"].tolist() == [0.25, 0.5]
	assert df.loc[0, "MissingRate"] == pytest.approx(1 / 3)
	assert df.loc[1, "MissingRate"] == 0.0
	assert df["MeanDepth"].tolist() == [15.0, 40.0]
	assert df["Alts"].tolist() == ["G", "T"]
	assert df["AlleleCount"].tolist() == [2, 2]


def test_site_metrics_limit(reader):
	assert len(compute_site_metrics(reader, limit=1)) == 1


def test_filter_site_metrics(reader, caplog):
	df = compute_site_metrics(reader)
	with caplog.at_level(logging.INFO, logger="bcf_qc"):
		kept = filter_site_metrics(df, min_qual=40)
	assert kept["Pos"].tolist() == [10]
	assert "Sites retained: 1" in caplog.text
	assert filter_site_metrics(df, min_mac=2)["Pos"].tolist() == [20]
	assert filter_site_metrics(df, max_missing=0.2)["Pos"].tolist() == [20]
	assert len(filter_site_metrics(df)) == 2


# ============================================================================
# Genotype level
# ============================================================================

def test_genotype_table(reader):
	df = genotype_table(reader)
	assert len(df) == 6
	assert df["GT"].tolist() == ["0/1", "1/1", ".", "0|0", "0/1", "1/1"]
	assert df["Missing"].tolist() == [False, False, True, False, False, False]
	assert df["Ploidy"].tolist() == [2, 2, 0, 2, 2, 2]
	assert df["Phased"].tolist() == [False, False, False, True, False, False]
	assert df.loc[0, "Depth"] == 10
	assert pd.isna(df.loc[2, "Depth"])


def test_filter_heterozygous(reader):
	het = filter_heterozygous(genotype_table(reader))
	assert list(zip(het["Sample"], het["Pos"])) == [("S1", 10), ("S2", 20)]


def test_filter_heterozygous_requires_gt():
	with pytest.raises(ValueError):
		filter_heterozygous(pd.DataFrame({"Sample": ["S1"]}))


# ============================================================================
# Helpers
# ============================================================================

def test_called_alleles_and_rendering():
	ref = Genotype(False, False, False, 0)
	alt_phased = Genotype(False, False, True, 1)
	absent = Genotype(True, False, False, None)
	dot = Genotype(False, True, False, None)
	assert called_alleles([ref, alt_phased]) == [0, 1]
	assert called_alleles([ref, absent]) == [0]
	assert called_alleles([ref, dot]) is None
	assert called_alleles([absent, absent]) is None
	assert format_genotype([ref, alt_phased]) == "0|1"
	assert format_genotype([ref, dot]) == "0/."
	assert format_genotype([absent]) == "."


@pytest.mark.parametrize("gt, expected", [(None, True), (".", True), ("0/.", True), ("0|1", False)])
def test_gt_is_missing(gt, expected):
	assert gt_is_missing(gt) is expected


def test_normalize_chrom():
	assert normalize_chrom("chr1") == "1"
	assert normalize_chrom("MT") == "MT"
	assert normalize_chrom(None) == ""


# ============================================================================
# Mixed ploidy
# ============================================================================

@pytest.fixture
def mixed_ploidy_reader():
	# S1 0/1, S2 haploid 1 padded with end-of-vector, S3 0/0
	gt = [encode_gt(0), encode_gt(1), encode_gt(1), 0x81, encode_gt(0), encode_gt(0)]
	rec = build_record(chrom=0, pos=4, formats=[(KEY_GT, 1, 2, gt)], n_sample=3)
	return BcfReader(io.BytesIO(build_stream(HEADER_TEXT, [rec])))


def test_haploid_call_is_not_heterozygous(mixed_ploidy_reader):
	df = compute_sample_metrics(mixed_ploidy_reader).set_index("Sample")
	assert df.loc["S2", "HetSites"] == 0
	assert df.loc["S2", "HomAltSites"] == 1
	assert df.loc["S2", "HetRatio"] == 0.0
	# no FORMAT/DP values in the record
	assert df["MeanDepth"].tolist() == [0.0, 0.0, 0.0]


def test_padding_does_not_add_an_allele(mixed_ploidy_reader):
	df = compute_site_metrics(mixed_ploidy_reader)
	# alleles: 0, 1 | 1 | 0, 0
	assert df.loc[0, "MAC"] == 2
	assert df.loc[0, "MAF"] == pytest.approx(2 / 5)
	assert df.loc[0, "MissingRate"] == 0.0


def test_haploid_genotype_row(mixed_ploidy_reader):
	df = genotype_table(mixed_ploidy_reader)
	assert df["GT"].tolist() == ["0/1", "1", "0/0"]
	assert df["Ploidy"].tolist() == [2, 1, 2]
	assert len(filter_heterozygous(df)) == 1
