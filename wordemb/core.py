"""
Entry points for opening embedding stores.
"""

from pathlib import Path
from typing import Union

from wordemb.storage.embedding_db import EmbeddingDB
from wordemb.storage.mirror import InMemoryMirror


def open(path: Union[str, Path], **kwargs) -> EmbeddingDB:
    """Open (or create) the on-disk store at ``path``.

    A new file starts uninitialized and must be bulk-loaded with ``build_db``;
    an existing built store is ready for lookups immediately.
    """
    return EmbeddingDB(path, **kwargs)


def open_in_memory(path: Union[str, Path], **kwargs) -> InMemoryMirror:
    """Copy the built store at ``path`` into memory and open the copy for lookups."""
    return InMemoryMirror.from_disk(path, **kwargs)
