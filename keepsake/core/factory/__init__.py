"""
Factory modules for creating Keepsake components.

Provides modular factories for LLM, Embedder, Vector Store and Document Stores.
"""

from keepsake.core.factory.document_factory import DocumentStoreFactory
from keepsake.core.factory.embedder_factory import EmbedderFactory
from keepsake.core.factory.llm_factory import LLMFactory
from keepsake.core.factory.vector_factory import VectorStoreFactory

__all__ = [
    "LLMFactory",
    "EmbedderFactory",
    "VectorStoreFactory",
    "DocumentStoreFactory",
]
