"""
Document stores for Keepsake.

One JSON document per concern: people graph, self-knowledge, notes, persona.
"""

from keepsake.core.document_store.base import DocumentStore
from keepsake.core.document_store.json_store import JsonDocumentStore

__all__ = [
    "DocumentStore",
    "JsonDocumentStore",
]
