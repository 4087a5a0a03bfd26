"""Tests for corpus header/record parsing."""

import gzip
import io

import numpy as np
import pytest

from tests.fixtures.corpora import (
    SMALL_CORPUS,
    SMALL_VECTORS,
    corrupt_gzip,
    make_corpus,
    truncated_gzip,
    write_corpus,
)
from wordemb.ingestion import SENTINEL_KEY, CorpusReader, open_corpus
from wordemb.utils.exceptions import DimensionMismatchError, FormatError, StorageError


def _reader(text: str) -> CorpusReader:
    return CorpusReader(io.StringIO(text))


def test_reads_header():
    header = _reader(SMALL_CORPUS).read_header()
    assert header.vocab_count == 3
    assert header.dimension == 4


def test_yields_records_in_order():
    reader = _reader(SMALL_CORPUS)
    records = list(reader.records())
    assert [r.word for r in records] == ["king", "queen", "the"]
    for record in records:
        assert record.vector.dtype == np.float64
        assert record.dimension == 4
        np.testing.assert_allclose(record.vector, SMALL_VECTORS[record.word])
    assert reader.records_read == 3


def test_empty_word_becomes_sentinel():
    records = list(_reader("2 2\n 0.5 0.5\nhello 1 2\n").records())
    assert records[0].word == SENTINEL_KEY
    np.testing.assert_allclose(records[0].vector, [0.5, 0.5])
    assert records[1].word == "hello"


def test_custom_sentinel_key():
    reader = CorpusReader(io.StringIO("1 1\n 3.0\n"), sentinel_key="<blank>")
    assert [r.word for r in reader.records()] == ["<blank>"]


def test_dimension_mismatch_reports_line_and_counts():
    reader = _reader("3 3\nok 1 2 3\nshort 1 2\nlater 1 2 3\n")
    seen = []
    with pytest.raises(DimensionMismatchError) as exc:
        for record in reader.records():
            seen.append(record.word)
    assert seen == ["ok"]
    err = exc.value
    assert err.line_number == 3
    assert err.word == "short"
    assert err.expected == 3
    assert err.actual == 2
    assert err.error_code == "BAD_FORMAT"
    assert isinstance(err, FormatError)


def test_too_many_values_is_a_mismatch():
    with pytest.raises(DimensionMismatchError) as exc:
        list(_reader("1 2\nlong 1 2 3\n").records())
    assert exc.value.actual == 3


def test_blank_line_is_a_mismatch():
    with pytest.raises(DimensionMismatchError) as exc:
        list(_reader("2 2\na 1 2\n\nb 1 2\n").records())
    assert exc.value.line_number == 3


def test_invalid_float_is_format_error():
    with pytest.raises(FormatError) as exc:
        list(_reader("1 2\nword 1.0 abc\n").records())
    assert exc.value.line_number == 2
    assert exc.value.word == "word"
    assert "abc" in exc.value.message


@pytest.mark.parametrize(
    "text",
    ["", "\n", "42\n", "3 four\n", "3 0\n", "3 -2\n", "3 1_0\n"],
    ids=["empty", "blank-header", "one-field", "non-int-dim", "zero-dim", "negative-dim", "underscore-dim"],
)
def test_bad_header_is_format_error(text):
    with pytest.raises(FormatError) as exc:
        _reader(text).read_header()
    assert exc.value.line_number == 1


def test_non_integer_vocab_count_is_ignored():
    header = _reader("many 2\na 1 2\n").read_header()
    assert header.vocab_count is None
    assert header.dimension == 2


def test_digit_separators_are_not_numbers():
    assert _reader("3_000 2\n").read_header().vocab_count is None
    with pytest.raises(FormatError) as exc:
        list(_reader("1 2\nword 1_0 2\n").records())
    assert exc.value.line_number == 2
    assert "1_0" in exc.value.message


def test_vocab_count_mismatch_is_not_fatal():
    reader = _reader("10 1\na 1\nb 2\n")
    assert [r.word for r in reader.records()] == ["a", "b"]


def test_header_only_corpus_has_no_records():
    reader = _reader("0 5\n")
    assert list(reader.records()) == []
    assert reader.header.dimension == 5


def test_crlf_line_endings():
    records = list(_reader("1 2\r\nword 1 2\r\n").records())
    assert records[0].word == "word"
    np.testing.assert_allclose(records[0].vector, [1.0, 2.0])


def test_tab_separates_word():
    records = list(_reader("1 2\nword\t1 2\n").records())
    assert records[0].word == "word"


def test_unicode_words():
    records = list(_reader("2 1\ncafé 1\n日本 2\n").records())
    assert [r.word for r in records] == ["café", "日本"]


def test_open_corpus_path(tmp_path):
    path = write_corpus(tmp_path / "c.vec", SMALL_CORPUS)
    with open_corpus(path) as stream:
        assert [r.word for r in CorpusReader(stream).records()] == ["king", "queen", "the"]


def test_open_corpus_gzip(tmp_path):
    path = tmp_path / "c.vec.gz"
    with gzip.open(path, "wt", encoding="utf-8") as f:
        f.write(SMALL_CORPUS)
    with open_corpus(str(path)) as stream:
        assert len(list(CorpusReader(stream).records())) == 3


def test_open_corpus_binary_stream_is_left_open():
    raw = io.BytesIO(SMALL_CORPUS.encode("utf-8"))
    with open_corpus(raw) as stream:
        assert len(list(CorpusReader(stream).records())) == 3
    assert not raw.closed


def test_open_corpus_missing_file(tmp_path):
    with pytest.raises(StorageError):
        with open_corpus(tmp_path / "missing.vec"):
            pass


def test_invalid_utf8_is_format_error():
    raw = io.BytesIO(b"1 1\n\xff\xfe 1.0\n")
    with pytest.raises(FormatError):
        with open_corpus(raw) as stream:
            list(CorpusReader(stream).records())


def test_truncated_gzip_is_storage_error(tmp_path):
    path = tmp_path / "cut.vec.gz"
    path.write_bytes(truncated_gzip(make_corpus(2000, 5)))
    reader = None
    with pytest.raises(StorageError):
        with open_corpus(path) as stream:
            reader = CorpusReader(stream)
            list(reader.records())
    assert 0 < reader.records_read < 2000


def test_corrupt_gzip_is_storage_error(tmp_path):
    path = tmp_path / "bad.vec.gz"
    path.write_bytes(corrupt_gzip(make_corpus(2000, 5)))
    with pytest.raises(StorageError):
        with open_corpus(path) as stream:
            list(CorpusReader(stream).records())
