import io

import pytest

from bcf_builders import HEADER_TEXT, build_stream, qc_records, write_bcf


@pytest.fixture
def header_text():
	return HEADER_TEXT


@pytest.fixture
def qc_stream_bytes():
	return build_stream(HEADER_TEXT, qc_records())


@pytest.fixture
def qc_stream(qc_stream_bytes):
	return io.BytesIO(qc_stream_bytes)


@pytest.fixture
def qc_bcf_path(tmp_path, qc_stream_bytes):
	path = tmp_path / "qc.bcf"
	write_bcf(path, qc_stream_bytes, compress=True)
	return path
