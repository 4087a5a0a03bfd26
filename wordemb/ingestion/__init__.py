"""Corpus ingestion: parsing, validation and the producer side of the bulk load."""

from .corpus_reader import (  # noqa: F401
    SENTINEL_KEY,
    CorpusHeader,
    CorpusReader,
    WordVector,
    open_corpus,
)
from .producer import CorpusProducer  # noqa: F401
