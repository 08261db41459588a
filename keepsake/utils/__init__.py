"""Utility modules for Keepsake."""

from keepsake.utils.exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    DocumentStoreError,
    EmbeddingError,
    KeepsakeError,
    LLMError,
    NotInitializedError,
    StoreError,
    ValidationError,
    VectorStoreError,
)
from keepsake.utils.id_generator import (
    generate_entry_id,
    generate_memory_id,
    generate_note_id,
    generate_person_id,
    generate_relationship_id,
)
from keepsake.utils.json_text import loads_lenient, strip_code_fences
from keepsake.utils.logger import get_logger, setup_logging

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    # ID Generators
    "generate_memory_id",
    "generate_person_id",
    "generate_relationship_id",
    "generate_entry_id",
    "generate_note_id",
    # JSON helpers
    "strip_code_fences",
    "loads_lenient",
    # Exceptions
    "KeepsakeError",
    "StoreError",
    "VectorStoreError",
    "DimensionMismatchError",
    "DocumentStoreError",
    "NotInitializedError",
    "ValidationError",
    "ConfigurationError",
    "EmbeddingError",
    "LLMError",
]
