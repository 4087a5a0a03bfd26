import logging
import os
import sys
import time
from logging.handlers import (
    QueueHandler,
    QueueListener,
    RotatingFileHandler,
    TimedRotatingFileHandler,
)
from queue import Queue
from typing import Any, Optional

import structlog
from pythonjsonlogger.json import JsonFormatter

from wordemb.config import config
from wordemb.utils.logging_context import get_current_trace_id


def _ensure_log_dir(path: str):
    log_dir = os.path.dirname(path) or "."
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir, exist_ok=True)


def _cfg_logging(key: str, default: Any = None) -> Any:
    v = config.get(f"logging.{key}")
    return default if v is None else v


class TraceIDFilter(logging.Filter):
    """Attach the current trace id (if any) to every stdlib log record."""

    def filter(self, record):
        # records replayed by the QueueListener already carry the producer's trace id
        if not hasattr(record, "trace_id"):
            record.trace_id = get_current_trace_id() or ""
        return True


class Logger:
    """Structured logger wrapper: structlog on top of stdlib logging.

    Writes JSON lines (python-json-logger) to a rotating file, optionally through a
    QueueListener so the caller never blocks on disk, and injects the trace id of the
    current bulk load.
    """

    def __init__(self):
        self.logger = None
        self._handler: Optional[logging.Handler] = None
        self._queue: Optional[Queue] = None
        self._queue_handler: Optional[QueueHandler] = None
        self._listener: Optional[QueueListener] = None
        self._setup_logging()

    def _get_formatter(self):
        if _cfg_logging("format", "json") == "json":
            return JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s")
        return logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s")

    def _setup_handlers(self):
        path = str(_cfg_logging("log_file", "./logs/wordemb_log.jsonl"))
        _ensure_log_dir(path)

        rotate_method = _cfg_logging("rotate_method", "midnight")
        if rotate_method == "size":
            size = int(_cfg_logging("rotate_size", 100 * 1024 * 1024))
            handler = RotatingFileHandler(
                path, maxBytes=size, backupCount=10, encoding="utf-8", delay=sys.platform == "win32"
            )
        elif rotate_method in ("time", "midnight"):
            handler = TimedRotatingFileHandler(
                path, when="midnight", backupCount=10, encoding="utf-8", delay=sys.platform == "win32"
            )
        else:
            handler = logging.FileHandler(path, encoding="utf-8")

        handler.setFormatter(self._get_formatter())
        handler.addFilter(TraceIDFilter())
        return handler

    def _configure_root_logger(self):
        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, str(_cfg_logging("log_level", "INFO")).upper()))
        return root_logger

    def _setup_queue_handler(self, root_logger, handler):
        """Route records through a queue so file writes happen on the listener thread."""
        self._queue = Queue(-1)
        self._queue_handler = QueueHandler(self._queue)
        # the trace id lives in a ContextVar, so it must be read before enqueueing
        self._queue_handler.addFilter(TraceIDFilter())
        root_logger.addHandler(self._queue_handler)
        self._listener = QueueListener(self._queue, handler, respect_handler_level=True)
        self._listener.start()
        time.sleep(0.01)

    def _configure_structlog(self):
        def _structlog_add_trace_id(logger, method_name, event_dict):
            trace = get_current_trace_id()
            if trace:
                event_dict["trace_id"] = trace
            return event_dict

        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                _structlog_add_trace_id,
                (
                    structlog.processors.JSONRenderer()
                    if _cfg_logging("format", "json") == "json"
                    else structlog.dev.ConsoleRenderer()
                ),
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        self.logger = structlog.get_logger("wordemb")

    def _setup_logging(self):
        root_logger = self._configure_root_logger()
        self._handler = self._setup_handlers()

        if bool(_cfg_logging("enable_queue", True)):
            self._setup_queue_handler(root_logger, self._handler)
        else:
            root_logger.addHandler(self._handler)

        self._configure_structlog()

        # Keep `from wordemb.utils.logger import logger` pointing at the live instance
        module = sys.modules[__name__]
        module.logger = self.logger

    def get_logger(self):
        return self.logger

    def reconfigure(self):
        """Drop the current handlers and rebuild them from the current config."""
        self.shutdown()
        self._setup_logging()

    def shutdown(self):
        root_logger = logging.getLogger()
        if self._listener:
            self._listener.stop()
            self._listener = None
        for handler in (self._queue_handler, self._handler):
            if handler is not None:
                root_logger.removeHandler(handler)
                handler.close()
        self._queue_handler = None
        self._handler = None


# Global logger instance
logger_instance = Logger()
logger = logger_instance.get_logger()
