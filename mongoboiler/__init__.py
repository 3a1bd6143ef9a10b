"""
MONGOBOILER - MongoDB CRUD helpers

Database and Collection handles over Motor that cut the boilerplate of the
usual find/insert/update/delete calls.
"""

from .config import BoilerConfig
from .context import OperationContext
from .database import Collection, Database, UpdateCounts, decode_document, encode_document
from .exceptions import (
    ConfigurationError,
    CursorError,
    DeadlineExceededError,
    DecodeError,
    DocumentNotFoundError,
    DropError,
    MongoBoilerError,
    NotFoundOrDecodeError,
    OperationCancelledError,
    OperationError,
    ReadError,
    WriteError,
)

__version__ = "0.1.0"

__all__ = [
    # Handles
    "Database",
    "Collection",
    "UpdateCounts",
    "decode_document",
    "encode_document",
    # Context / config
    "OperationContext",
    "BoilerConfig",
    # Exceptions
    "MongoBoilerError",
    "OperationError",
    "NotFoundOrDecodeError",
    "DocumentNotFoundError",
    "DecodeError",
    "ReadError",
    "CursorError",
    "WriteError",
    "DropError",
    "OperationCancelledError",
    "DeadlineExceededError",
    "ConfigurationError",
]
