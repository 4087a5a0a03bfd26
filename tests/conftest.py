import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).parent.parent.resolve()
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep test runs from writing into ./logs of the working directory
os.environ.setdefault(
    "WORDEMB_LOG_LOG_FILE",
    str(Path(tempfile.mkdtemp(prefix="wordemb-test-logs-")) / "wordemb_log.jsonl"),
)

from tests.fixtures.corpora import SMALL_CORPUS, write_corpus  # noqa: E402


@pytest.fixture
def corpus_file(tmp_path):
    """The three-word, four-dimensional corpus on disk."""
    return write_corpus(tmp_path / "small.vec", SMALL_CORPUS)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "store" / "vectors.db"


@pytest.fixture
def built_store(db_path, corpus_file):
    """Path of a store bulk-loaded from the small corpus and closed again."""
    from wordemb.storage.embedding_db import EmbeddingDB

    with EmbeddingDB(db_path) as db:
        db.build_db(corpus_file)
    return db_path
