"""
Persistent word -> embedding store.

An :class:`EmbeddingDB` is bulk-loaded exactly once from a corpus with
:meth:`EmbeddingDB.build_db` and then answers exact-word lookups with
:meth:`EmbeddingDB.get_emb`. A session is not safe to share between threads;
concurrent readers should each open their own (read-only) session on the same file.
"""

import time
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Union

import numpy as np

from wordemb.codec import VectorCodec
from wordemb.config import settings
from wordemb.ingestion.corpus_reader import CorpusReader, CorpusSource, open_corpus
from wordemb.ingestion.producer import CorpusProducer
from wordemb.storage.backend import KeyValueBackend
from wordemb.storage.cache import EmbeddingCache
from wordemb.storage.sqlite_backend import MEMORY_PATH, SqliteBackend
from wordemb.utils.exceptions import NotFoundError, SchemaError, StorageError, StoreStateError
from wordemb.utils.logger import logger
from wordemb.utils.logging_context import trace_context


class StoreState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"
    CLOSED = "closed"


class EmbeddingDB:
    """Embedding store session.

    Args:
        path: SQLite file of the store (":memory:" for a throwaway store)
        codec: Vector codec; defaults to the configured byte order
        backend: Key-value backend to use instead of opening ``path`` with SQLite
        read_only: Open an existing store for lookups only
        cache_size: LRU cache entries for decoded vectors (0 disables)
    """

    def __init__(
        self,
        path: Union[str, Path] = MEMORY_PATH,
        *,
        codec: Optional[VectorCodec] = None,
        backend: Optional[KeyValueBackend] = None,
        read_only: bool = False,
        cache_size: Optional[int] = None,
    ):
        self.path = str(path)
        self.codec = codec or VectorCodec(settings.store.byte_order)
        self.backend = backend if backend is not None else SqliteBackend(path, read_only=read_only)

        size = settings.store.cache_size if cache_size is None else cache_size
        self._cache = EmbeddingCache(size) if size > 0 else None

        try:
            self.state = self._detect_state()
        except StorageError:
            self.backend.close()
            raise

    def _detect_state(self) -> StoreState:
        if not self.backend.has_schema():
            return StoreState.UNINITIALIZED
        if self.backend.has_index():
            return StoreState.READY
        logger.warning(f"Store {self.path} has no lookup index; its bulk load did not finish")
        return StoreState.FAILED

    def _require(self, state: StoreState, operation: str) -> None:
        if self.state is not state:
            raise StoreStateError(operation, self.state.value, details={"path": self.path})

    def _require_open(self, operation: str) -> None:
        if self.state is StoreState.CLOSED:
            raise StoreStateError(operation, self.state.value, details={"path": self.path})

    # =========================================================================
    # Bulk load
    # =========================================================================

    def build_db(
        self,
        corpus: CorpusSource,
        queue_size: Optional[int] = None,
        batch_size: Optional[int] = None,
    ) -> Dict[str, object]:
        """Create the schema, load every record of the corpus, then build the index.

        Args:
            corpus: Corpus path (``.gz`` allowed) or an open text/binary stream
            queue_size: Capacity of the parser -> writer queue (0 parses lazily)
            batch_size: Rows per insert batch

        Returns:
            Report with the number of records, the dimension, elapsed seconds and the
            trace id of the load.

        Raises:
            SchemaError: The store already has its schema.
            FormatError: The corpus is malformed; nothing after the bad line is written.
            DuplicateKeyError: A word occurs twice; rows before it stay written.
            StorageError: Reading the corpus or writing the store failed.
        """
        self._require_open("build the store")
        if self.backend.has_schema():
            raise SchemaError(self.backend.table_name, details={"path": self.path})

        queue_size = settings.ingestion.queue_size if queue_size is None else queue_size
        batch_size = batch_size or settings.store.insert_batch_size

        with trace_context() as trace_id:
            start = time.perf_counter()
            logger.info(f"Starting bulk load into {self.path} (queue_size={queue_size}, batch_size={batch_size})")
            with open_corpus(corpus, settings.ingestion.encoding) as stream:
                self.backend.create_schema()
                try:
                    reader = CorpusReader(stream)
                    with CorpusProducer(reader, queue_size) as producer:
                        written = self._write_records(producer, batch_size)
                    self.backend.build_index()
                except Exception as e:
                    self.state = StoreState.FAILED
                    logger.error(f"Bulk load into {self.path} failed: {e}")
                    raise

            self.state = StoreState.READY
            elapsed = time.perf_counter() - start
            logger.info(f"Loaded {written} embeddings into {self.path} in {elapsed:.2f}s")
            return {
                "records": written,
                "dimension": reader.header.dimension,
                "elapsed_s": round(elapsed, 3),
                "trace_id": trace_id,
            }

    def _write_records(self, records: Iterable, batch_size: int) -> int:
        """Encode records and write them in batches; the index is built afterwards."""
        encode = self.codec.encode
        log_every = settings.ingestion.log_every
        next_log = log_every
        written = 0
        batch = []
        for record in records:
            batch.append((record.word, encode(record.vector)))
            if len(batch) >= batch_size:
                written += self.backend.put_many(batch)
                batch = []
                if written >= next_log:
                    logger.info(f"Written {written} embeddings")
                    next_log += log_every
        if batch:
            written += self.backend.put_many(batch)
        return written

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_emb(self, word: str) -> np.ndarray:
        """Return the embedding of ``word`` (exact match).

        Raises:
            NotFoundError: No embedding is stored for the word.
            StorageError: The lookup itself failed.
            CodecError: The stored blob is corrupt.
        """
        self._require(StoreState.READY, "look up embeddings")
        if self._cache is not None:
            cached = self._cache.get(word)
            if cached is not None:
                return cached

        blob = self.backend.get(word)
        if blob is None:
            logger.debug(f"No embedding for {word!r}")
            raise NotFoundError(word)
        vector = self.codec.decode(blob)
        if self._cache is not None:
            vector = self._cache.put(word, vector)
        return vector

    def get(self, word: str) -> Optional[np.ndarray]:
        """Like get_emb, but returns None for an unknown word."""
        try:
            return self.get_emb(word)
        except NotFoundError:
            return None

    def get_embs(self, words: Iterable[str]) -> Dict[str, np.ndarray]:
        """Look up several words; unknown words are left out of the result."""
        result = {}
        for word in words:
            vector = self.get(word)
            if vector is not None:
                result[word] = vector
        return result

    def __contains__(self, word: str) -> bool:
        self._require(StoreState.READY, "look up embeddings")
        return self.backend.get(word) is not None

    def __len__(self) -> int:
        self._require_open("count embeddings")
        if self.state is StoreState.UNINITIALIZED:
            return 0
        return self.backend.count()

    def words(self) -> Iterator[str]:
        """Iterate over every stored word."""
        self._require(StoreState.READY, "list words")
        return self.backend.keys()

    @property
    def dimension(self) -> Optional[int]:
        """Vector dimension, read back from a stored blob (None when empty)."""
        self._require(StoreState.READY, "read the dimension")
        blob = self.backend.sample_value()
        return None if blob is None else self.codec.dimension_of(blob)

    @property
    def cache_stats(self) -> Optional[Dict[str, float]]:
        return self._cache.stats if self._cache else None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Release the backend. Further calls are no-ops; other operations raise."""
        if self.state is StoreState.CLOSED:
            return
        self.state = StoreState.CLOSED
        if self._cache is not None:
            self._cache.clear()
        self.backend.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __repr__(self):
        return f"{type(self).__name__}(path={self.path!r}, state={self.state.value!r}, codec={self.codec!r})"
