"""
Base interface for whole-document persistence.

Each concern (people graph, self-knowledge, notes, persona) is one document,
read fully on startup and rewritten fully on every save.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel

DocumentT = TypeVar("DocumentT", bound=BaseModel)


class DocumentStore(ABC, Generic[DocumentT]):
    """Abstract repository for a single pydantic document."""

    @abstractmethod
    async def load(self) -> DocumentT:
        """
        Read the document.

        Returns:
            The stored document, or an empty default when it is absent or corrupt
        """
        pass

    @abstractmethod
    async def load_or_none(self) -> DocumentT | None:
        """Read the document, returning None when it is absent or corrupt."""
        pass

    @abstractmethod
    async def save(self, document: DocumentT) -> None:
        """
        Replace the stored document.

        Raises:
            DocumentStoreError: If the write fails
        """
        pass
