"""
Custom exception hierarchy for Keepsake.

Provides structured error types for better error handling and debugging.
All exceptions inherit from KeepsakeError for easy catching.
"""


class KeepsakeError(Exception):
    """
    Base exception for all Keepsake errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, context: dict | None = None):
        """
        Initialize Keepsake error.
        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class StoreError(KeepsakeError):
    """
    Base exception for store operations.
    Used for errors related to data storage operations.
    """

    pass


class VectorStoreError(StoreError):
    """
    Vector store operation errors.
    Raised when vector database operations fail.
    """

    pass


class DimensionMismatchError(VectorStoreError):
    """
    Raised when an existing collection was created for a different
    embedding dimension than the one configured.
    """

    pass


class DocumentStoreError(StoreError):
    """
    JSON document store errors.
    Raised when a people/self-knowledge/notes document cannot be written.
    """

    pass


class NotInitializedError(StoreError):
    """
    Raised when a store is used before initialize() was awaited.
    """

    pass


class ValidationError(KeepsakeError):
    """
    Validation errors.
    Raised when input validation fails or data is invalid.
    """

    pass


class ConfigurationError(KeepsakeError):
    """
    Configuration errors.
    Raised when configuration is invalid or missing required values.
    """

    pass


class EmbeddingError(KeepsakeError):
    """
    Embedding generation errors.
    Raised when embedding generation fails.
    """

    pass


class LLMError(KeepsakeError):
    """
    LLM operation errors.
    Raised when LLM operations fail (API errors, timeouts, etc.).
    """

    pass
