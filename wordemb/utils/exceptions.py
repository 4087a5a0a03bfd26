"""
wordemb Custom Exceptions
Exception classes for corpus parsing, vector encoding and embedding storage.
"""

from typing import Any, Dict, Optional


class WordEmbError(Exception):
    """Base exception class for all wordemb errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self):
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details
        }


class StorageError(WordEmbError):
    """Errors from the corpus stream or the backing key-value store."""
    pass


class ConfigurationError(WordEmbError):
    """Errors related to configuration loading and validation."""
    pass


class DuplicateKeyError(StorageError):
    """Raised when a bulk load hits a word that is already stored."""

    def __init__(self, word: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Word {word!r} is already stored; bulk load aborted",
            "DUPLICATE_KEY",
            details
        )
        self.word = word


class FormatError(WordEmbError):
    """Raised when the corpus is malformed. Aborts the whole load."""

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        word: Optional[str] = None,
        expected: Optional[int] = None,
        actual: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        for key, value in (("line_number", line_number), ("word", word),
                           ("expected", expected), ("actual", actual)):
            if value is not None:
                details[key] = value
        super().__init__(message, "BAD_FORMAT", details)
        self.line_number = line_number
        self.word = word
        self.expected = expected
        self.actual = actual


class DimensionMismatchError(FormatError):
    """Raised when a record has a different number of values than the header declares."""

    def __init__(self, line_number: int, word: str, expected: int, actual: int):
        super().__init__(
            f"Embedding vec size not same: expected {expected}, got {actual} "
            f"(line {line_number}, word {word!r})",
            line_number=line_number,
            word=word,
            expected=expected,
            actual=actual,
        )


class SchemaError(WordEmbError):
    """Raised when build_db is called on a store that already has its schema."""

    def __init__(self, table_name: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Table '{table_name}' already exists; the store has already been built",
            "SCHEMA_EXISTS",
            details
        )
        self.table_name = table_name


class NotFoundError(WordEmbError, KeyError):
    """Raised when no embedding is stored for a word. Expected for out-of-vocabulary words."""

    def __init__(self, word: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"No embedding found for word {word!r}",
            "NOT_FOUND",
            details
        )
        self.word = word


class CodecError(WordEmbError):
    """Raised when a vector blob cannot be encoded or decoded."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "BAD_BLOB", details)


class StoreStateError(WordEmbError):
    """Raised when an operation is not valid in the store's current lifecycle state."""

    def __init__(self, operation: str, state: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Cannot {operation} while the store is {state}",
            "BAD_STATE",
            details
        )
        self.operation = operation
        self.state = state
