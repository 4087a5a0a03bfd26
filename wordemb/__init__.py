"""
wordemb: persistent exact-match lookup of pretrained word embeddings.
"""

__version__ = "0.1.0"

from wordemb.codec import ByteOrder, VectorCodec
from wordemb.core import open, open_in_memory
from wordemb.storage.embedding_db import EmbeddingDB, StoreState
from wordemb.storage.mirror import InMemoryMirror
from wordemb.utils.exceptions import (
    CodecError,
    DimensionMismatchError,
    DuplicateKeyError,
    FormatError,
    NotFoundError,
    SchemaError,
    StorageError,
    StoreStateError,
    WordEmbError,
)

__all__ = [
    "__version__",
    "ByteOrder",
    "VectorCodec",
    "open",
    "open_in_memory",
    "EmbeddingDB",
    "StoreState",
    "InMemoryMirror",
    "CodecError",
    "DimensionMismatchError",
    "DuplicateKeyError",
    "FormatError",
    "NotFoundError",
    "SchemaError",
    "StorageError",
    "StoreStateError",
    "WordEmbError",
]
