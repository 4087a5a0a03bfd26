"""
Minimal key-value interface behind the embedding store.

The store only needs to create its schema once, bulk-insert ``(key, blob)`` pairs,
build a lookup index afterwards, and answer exact-key point lookups. Any persistent
engine that can do those four things can sit behind :class:`EmbeddingDB`.
"""

from typing import Iterable, Iterator, Optional, Tuple


class KeyValueBackend:
    """Base interface for key-value storage backends."""

    # name of the key/value table, reported in SchemaError
    table_name: str = "embeddings"

    def has_schema(self) -> bool:
        """Whether the key/value table exists."""
        raise NotImplementedError()

    def has_index(self) -> bool:
        """Whether the post-load lookup index exists."""
        raise NotImplementedError()

    def create_schema(self) -> None:
        """Create the key/value table. Raises SchemaError if it already exists."""
        raise NotImplementedError()

    def put_many(self, items: Iterable[Tuple[str, bytes]]) -> int:
        """Insert new pairs; a key that is already stored raises DuplicateKeyError."""
        raise NotImplementedError()

    def build_index(self) -> None:
        """Build the lookup index over the key column."""
        raise NotImplementedError()

    def get(self, key: str) -> Optional[bytes]:
        """Return the blob stored under key, or None."""
        raise NotImplementedError()

    def keys(self) -> Iterator[str]:
        raise NotImplementedError()

    def count(self) -> int:
        raise NotImplementedError()

    def sample_value(self) -> Optional[bytes]:
        """Any one stored blob, or None when the table is empty."""
        raise NotImplementedError()

    def close(self) -> None:
        """Release any resources."""
        pass
