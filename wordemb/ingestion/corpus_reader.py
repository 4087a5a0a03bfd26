"""Streaming parser for fastText-style ``.vec`` corpora.

Line 1 is ``<vocab_count> <dimension>``; every following line is
``<word> <f_1> ... <f_D>``. The parser validates every record against the
header dimension and fails the whole read on the first malformed line.
"""

from __future__ import annotations

import gzip
import io
import os
import re
import zlib
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, TextIO, Tuple, Union

import numpy as np

from wordemb.utils.exceptions import DimensionMismatchError, FormatError, StorageError
from wordemb.utils.logger import logger

# Stored in place of an empty word so "blank token" and "no entry" stay distinguishable
SENTINEL_KEY = " "

# The word ends at the first delimiter; CR/LF are stripped beforehand
_WORD_DELIMITER = re.compile(r"[ \t\f\v]")

CorpusSource = Union[str, os.PathLike, TextIO, io.RawIOBase, io.BufferedIOBase]


@dataclass
class WordVector:
    """One corpus record: the (normalized) word and its float64 vector."""

    word: str
    vector: np.ndarray

    @property
    def dimension(self) -> int:
        return len(self.vector)


@dataclass(frozen=True)
class CorpusHeader:
    vocab_count: Optional[int]
    dimension: int


@contextmanager
def open_corpus(source: CorpusSource, encoding: str = "utf-8"):
    """Yield a text stream for a corpus path, text stream or binary stream.

    Paths ending in ``.gz`` are decompressed on the fly. Streams passed in by the
    caller are left open.
    """
    if isinstance(source, (str, os.PathLike)):
        path = Path(source)
        try:
            if path.suffix == ".gz":
                stream = gzip.open(path, "rt", encoding=encoding)
            else:
                stream = path.open("r", encoding=encoding)
        except OSError as e:
            raise StorageError(f"Cannot open corpus {path}: {e}", details={"path": str(path)}) from e
        with stream:
            yield stream
        return

    if isinstance(source, (io.RawIOBase, io.BufferedIOBase)):
        wrapper = io.TextIOWrapper(source, encoding=encoding)
        try:
            yield wrapper
        finally:
            wrapper.detach()
        return

    yield source


class CorpusReader:
    """Parse and validate a corpus stream into :class:`WordVector` records.

    Args:
        stream: Text stream positioned at the header line
        sentinel_key: Key substituted for an empty word token
    """

    def __init__(self, stream: TextIO, sentinel_key: str = SENTINEL_KEY):
        self.stream = stream
        self.sentinel_key = sentinel_key
        self.header: Optional[CorpusHeader] = None
        self.records_read = 0
        self._lines: Optional[Iterator[str]] = None
        self._line_number = 0

    def _next_line(self) -> Optional[Tuple[int, str]]:
        if self._lines is None:
            self._lines = iter(self.stream)
        try:
            line = next(self._lines)
        except StopIteration:
            return None
        except UnicodeDecodeError as e:
            raise FormatError(
                f"Corpus is not valid text at line {self._line_number + 1}: {e}",
                line_number=self._line_number + 1,
            ) from e
        except (OSError, EOFError, zlib.error) as e:
            # truncated .gz input raises EOFError, corrupt deflate data zlib.error
            raise StorageError(
                f"Failed reading corpus at line {self._line_number + 1}: {e}",
                details={"line_number": self._line_number + 1},
            ) from e
        self._line_number += 1
        return self._line_number, line

    def read_header(self) -> CorpusHeader:
        """Read the header line and return the declared vocabulary size and dimension."""
        if self.header is not None:
            return self.header

        item = self._next_line()
        if item is None:
            raise FormatError("Corpus is empty: missing '<vocab_count> <dimension>' header", line_number=1)
        line_number, line = item

        fields = line.split()
        if len(fields) < 2:
            raise FormatError(
                f"Header must be '<vocab_count> <dimension>', got {line.strip()!r}",
                line_number=line_number,
            )
        try:
            dimension = _to_int(fields[1])
        except ValueError:
            raise FormatError(
                f"Invalid embedding dimension {fields[1]!r} in header",
                line_number=line_number,
            ) from None
        if dimension <= 0:
            raise FormatError(f"Embedding dimension must be positive, got {dimension}", line_number=line_number)

        try:
            vocab_count: Optional[int] = _to_int(fields[0])
        except ValueError:
            vocab_count = None

        self.header = CorpusHeader(vocab_count=vocab_count, dimension=dimension)
        logger.info(f"Corpus header: vocab_count={vocab_count}, dimension={dimension}")
        return self.header

    def parse_line(self, line: str, line_number: int) -> WordVector:
        """Split one record line into its word and a validated float64 vector."""
        dimension = self.read_header().dimension
        text = line.rstrip("\r\n")

        match = _WORD_DELIMITER.search(text)
        if match:
            word, remainder = text[: match.start()], text[match.end():]
        else:
            word, remainder = text, ""
        if word == "":
            word = self.sentinel_key

        tokens: List[str] = remainder.split()
        if len(tokens) != dimension:
            raise DimensionMismatchError(line_number, word, dimension, len(tokens))

        try:
            values = [_to_float(token) for token in tokens]
        except ValueError:
            bad = next(token for token in tokens if not _is_float(token))
            raise FormatError(
                f"Invalid float {bad!r} at line {line_number}, word {word!r}",
                line_number=line_number,
                word=word,
            ) from None
        return WordVector(word=word, vector=np.asarray(values, dtype=np.float64))

    def records(self) -> Iterator[WordVector]:
        """Yield every record after the header, in corpus order."""
        header = self.read_header()
        while True:
            item = self._next_line()
            if item is None:
                break
            line_number, line = item
            record = self.parse_line(line, line_number)
            self.records_read += 1
            yield record

        if header.vocab_count is not None and header.vocab_count != self.records_read:
            logger.warning(
                f"Header declares {header.vocab_count} words but corpus has {self.records_read} records"
            )


def _to_int(token: str) -> int:
    # int() and float() accept digit separators ("1_000"); corpus numbers never carry them
    if "_" in token:
        raise ValueError(f"invalid literal {token!r}")
    return int(token)


def _to_float(token: str) -> float:
    if "_" in token:
        raise ValueError(f"could not convert {token!r} to float")
    return float(token)


def _is_float(token: str) -> bool:
    try:
        _to_float(token)
    except ValueError:
        return False
    return True
