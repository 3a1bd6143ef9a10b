"""
Custom exceptions for MONGOBOILER.

Every failure reported by the driver is surfaced to the caller as one of
these exceptions. The original driver exception is kept both as ``cause``
and as ``__cause__`` so nothing about it is lost.
"""

from typing import Any, Dict, List, Optional


class MongoBoilerError(RuntimeError):
    """
    Base exception for MONGOBOILER errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (operation,
                 collection, etc.)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class OperationError(MongoBoilerError):
    """
    Raised when a collection operation fails.

    Attributes:
        operation: Name of the failed operation (e.g. "insert_one")
        collection: Collection name the operation ran against
        cause: The original exception raised by the driver, if any
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        collection: Optional[str] = None,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if operation:
            context["operation"] = operation
        if collection:
            context["collection"] = collection
        super().__init__(message, context=context)
        self.operation = operation
        self.collection = collection
        self.cause = cause

    @property
    def timed_out(self) -> bool:
        """Whether the driver reported the failure as a timeout."""
        return bool(getattr(self.cause, "timeout", False))


class NotFoundOrDecodeError(OperationError):
    """Raised when a single-document read yields no usable document."""


class DocumentNotFoundError(NotFoundOrDecodeError):
    """Raised when no document matches the filter of a single-document read."""


class DecodeError(NotFoundOrDecodeError):
    """
    Raised when a document cannot be decoded into the requested type.

    Attributes:
        document_class: The target type the document was decoded into
    """

    def __init__(
        self,
        message: str,
        document_class: Optional[type] = None,
        operation: Optional[str] = None,
        collection: Optional[str] = None,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if document_class is not None:
            context["document_class"] = getattr(document_class, "__name__", repr(document_class))
        super().__init__(
            message, operation=operation, collection=collection, cause=cause, context=context
        )
        self.document_class = document_class


class ReadError(OperationError):
    """Raised when the driver fails a single-document read or a count."""


class CursorError(OperationError):
    """
    Raised when a multi-document read fails while opening or iterating its cursor.

    Attributes:
        partial_results: Documents decoded before the failure, in server order
    """

    def __init__(
        self,
        message: str,
        partial_results: Optional[List[Any]] = None,
        operation: Optional[str] = None,
        collection: Optional[str] = None,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message, operation=operation, collection=collection, cause=cause, context=context
        )
        self.partial_results = partial_results if partial_results is not None else []


class WriteError(OperationError):
    """Raised when an insert, update or delete fails."""


class DropError(OperationError):
    """Raised when dropping a collection fails."""


class OperationCancelledError(MongoBoilerError):
    """Raised when an operation is attempted on a cancelled context."""


class DeadlineExceededError(MongoBoilerError, TimeoutError):
    """Raised when an operation is attempted after its context deadline passed."""


class ConfigurationError(MongoBoilerError):
    """
    Raised when configuration is invalid.

    Attributes:
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value
