from .backend import KeyValueBackend
from .cache import EmbeddingCache
from .embedding_db import EmbeddingDB, StoreState
from .mirror import InMemoryMirror
from .sqlite_backend import MEMORY_PATH, SqliteBackend

__all__ = [
    "KeyValueBackend",
    "EmbeddingCache",
    "EmbeddingDB",
    "StoreState",
    "InMemoryMirror",
    "MEMORY_PATH",
    "SqliteBackend",
]
