"""
Producer side of the bulk-load pipeline.

A background thread parses the corpus and hands records to the writer through a
bounded queue. When the queue is full the parser blocks, so memory use follows the
queue capacity instead of the corpus size.
"""

import contextvars
import queue
import threading
from typing import Iterator, Optional

from wordemb.ingestion.corpus_reader import CorpusReader, WordVector
from wordemb.utils.logger import logger

_PUT_POLL_SECONDS = 0.1


class _Done:
    pass


class _Failed:
    def __init__(self, error: BaseException):
        self.error = error


class CorpusProducer:
    """Run ``reader.records()`` on a daemon thread and expose the records as an iterator.

    A parse or read error raised on the producer thread is re-raised to the consumer
    at the position in the stream where it happened. With ``queue_size=0`` no thread
    is started and records are read lazily by the consumer instead.
    """

    def __init__(self, reader: CorpusReader, queue_size: int = 1024):
        if queue_size < 0:
            raise ValueError(f"queue_size must be >= 0, got {queue_size}")
        self.reader = reader
        self.queue_size = queue_size
        self._queue: Optional[queue.Queue] = queue.Queue(maxsize=queue_size) if queue_size else None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def threaded(self) -> bool:
        return self._queue is not None

    def start(self) -> "CorpusProducer":
        if self.threaded and self._thread is None:
            # run under a copy of the caller's context so the load's trace id follows
            context = contextvars.copy_context()
            self._thread = threading.Thread(
                target=context.run, args=(self._run,), name="wordemb-corpus-reader", daemon=True
            )
            self._thread.start()
        return self

    def _run(self) -> None:
        try:
            for record in self.reader.records():
                if not self._put(record):
                    logger.debug("Corpus producer stopped before end of stream")
                    return
        except BaseException as e:
            # the consumer re-raises it
            self._put(_Failed(e))
            return
        self._put(_Done())

    def _put(self, item) -> bool:
        """Block until the queue has room; give up only when the consumer stopped us."""
        while not self._stop.is_set():
            try:
                self._queue.put(item, timeout=_PUT_POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False

    def __iter__(self) -> Iterator[WordVector]:
        if not self.threaded:
            yield from self.reader.records()
            return

        self.start()
        while True:
            item = self._queue.get()
            if isinstance(item, _Done):
                return
            if isinstance(item, _Failed):
                raise item.error
            yield item

    def stop(self) -> None:
        """Unblock and join the producer thread. Safe to call more than once."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False
