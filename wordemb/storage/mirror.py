"""
Read-only, fully in-memory copy of a built store.

Loading copies every row of the on-disk table into a private in-memory SQLite
database and rebuilds the lookup index there. For multi-GB stores this takes
minutes and needs RAM comparable to the file size; lookups afterwards never touch disk.
"""

import time
from pathlib import Path
from typing import Optional, Union

from wordemb.codec import VectorCodec
from wordemb.storage.embedding_db import EmbeddingDB
from wordemb.storage.sqlite_backend import MEMORY_PATH, SqliteBackend
from wordemb.utils.exceptions import StoreStateError
from wordemb.utils.logger import logger


class InMemoryMirror(EmbeddingDB):
    """Same lookups as :class:`EmbeddingDB`, served from memory. Cannot be bulk-loaded."""

    def __init__(
        self,
        backend: SqliteBackend,
        source_path: Union[str, Path],
        *,
        codec: Optional[VectorCodec] = None,
        cache_size: Optional[int] = None,
    ):
        super().__init__(MEMORY_PATH, codec=codec, backend=backend, cache_size=cache_size)
        self.source_path = str(source_path)

    @classmethod
    def from_disk(
        cls,
        path: Union[str, Path],
        *,
        codec: Optional[VectorCodec] = None,
        cache_size: Optional[int] = None,
        table_name: Optional[str] = None,
        index_name: Optional[str] = None,
    ) -> "InMemoryMirror":
        """Copy the built store at ``path`` into memory.

        Raises:
            StorageError: The file is missing or could not be copied.
            StoreStateError: The store was never built or its bulk load did not finish.
        """
        start = time.perf_counter()
        logger.info(f"Copying embedding store {path} into memory; large stores take minutes")
        backend = SqliteBackend.mirror_of(path, table_name=table_name, index_name=index_name)
        mirror = cls(backend, path, codec=codec, cache_size=cache_size)
        logger.info(f"Mirrored {len(mirror)} embeddings from {path} in {time.perf_counter() - start:.2f}s")
        return mirror

    def build_db(self, corpus, queue_size=None, batch_size=None):
        raise StoreStateError("build the store", "an in-memory mirror", details={"source": self.source_path})

    def __repr__(self):
        return f"InMemoryMirror(source_path={self.source_path!r}, state={self.state.value!r}, codec={self.codec!r})"
