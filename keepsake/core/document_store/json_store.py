"""
JSON file document store.

Writes go to a temporary sibling file that is then renamed over the target,
so a crash mid-write leaves the previous document intact.
"""

import asyncio
import os
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from keepsake.core.document_store.base import DocumentStore, DocumentT
from keepsake.utils.exceptions import DocumentStoreError
from keepsake.utils.logger import get_logger

logger = get_logger(__name__)


class JsonDocumentStore(DocumentStore[DocumentT]):
    """
    Persists one pydantic model as a JSON file.

    File I/O runs in a worker thread so the event loop is never blocked.
    """

    def __init__(self, path: str | Path, model: type[DocumentT]):
        """
        Args:
            path: Target JSON file
            model: Pydantic model class of the document
        """
        self.path = Path(path)
        self.model = model

    def _read(self) -> DocumentT | None:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.bind(
                path=str(self.path), error=str(e)
            ).warning(f"Could not read {self.path}: {e}")
            return None

        try:
            return self.model.model_validate_json(raw)
        except (PydanticValidationError, UnicodeDecodeError) as e:
            logger.bind(
                path=str(self.path), error=str(e)
            ).warning(f"Ignoring corrupt document {self.path}")
            return None

    def _write(self, document: DocumentT) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(document.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp, self.path)

    async def load(self) -> DocumentT:
        document = await asyncio.to_thread(self._read)
        return document if document is not None else self.model()

    async def load_or_none(self) -> DocumentT | None:
        return await asyncio.to_thread(self._read)

    async def save(self, document: DocumentT) -> None:
        try:
            await asyncio.to_thread(self._write, document)
        except OSError as e:
            logger.bind(path=str(self.path), error=str(e)).error(f"Failed to save {self.path}: {e}")
            raise DocumentStoreError(
                f"Failed to save document: {e}", context={"path": str(self.path)}
            ) from e
