"""
Custom exceptions for docmachine.
"""
from typing import Any, Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from docmachine.document import Document


class DocMachineError(Exception):
    """Base exception for docmachine errors."""

    pass


class DocumentNotFound(DocMachineError):
    """
    Raised when an expected document does not exist in its collection.

    Carries the requested ids and, for bulk lookups, how many documents were
    found versus expected so partial failures can be diagnosed.
    """

    def __init__(
        self,
        message: str,
        ids: Optional[Sequence[Any]] = None,
        collection: Optional[str] = None,
        found: Optional[int] = None,
        expected: Optional[int] = None,
    ):
        self.message = message
        self.ids = list(ids) if ids is not None else []
        self.collection = collection
        self.found = found
        self.expected = expected
        super().__init__(self.message)


class DocumentNotValid(DocMachineError):
    """Raised by save_or_raise() when validation fails."""

    def __init__(self, document: "Document"):
        self.document = document
        errors = getattr(document, "errors", None)
        self.errors = list(errors) if errors is not None else []
        messages = ", ".join(errors.full_messages()) if errors is not None else ""
        messages = messages or "unknown error"
        super().__init__(f"Validation failed: {messages}")


class DocumentDestroyed(DocMachineError):
    """Raised when a store operation is attempted on a destroyed document."""

    pass


class ArgumentError(DocMachineError, ValueError):
    """Raised for invalid usage, before any store interaction."""

    pass


class PluginDependencyError(DocMachineError, TypeError):
    """Raised when plugins cannot be composed onto a document type."""

    pass


class ConfigurationError(DocMachineError, RuntimeError):
    """Raised when a document type has no database bound."""

    pass
