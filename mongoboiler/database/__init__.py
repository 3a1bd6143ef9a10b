"""
Database layer.

Database and Collection handles plus the document encoding and decoding they use.
"""

from .abstraction import Collection, Database, UpdateCounts
from .decoding import decode_document, encode_document

__all__ = [
    "Database",
    "Collection",
    "UpdateCounts",
    "decode_document",
    "encode_document",
]
