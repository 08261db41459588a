"""
Documents the agent keeps about itself: self-knowledge, notes to self and persona.

Both lists are capped; additions beyond the cap are rejected, never evicted.
"""

from datetime import datetime

from keepsake.core.document_store.base import DocumentStore
from keepsake.models.documents import (
    Note,
    NotesDocument,
    PersonaDocument,
    SelfKnowledgeDocument,
    SelfKnowledgeEntry,
)
from keepsake.utils.id_generator import generate_entry_id, generate_note_id
from keepsake.utils.logger import get_logger

logger = get_logger(__name__)


class SelfKnowledge:
    """The agent's name and what it has learned about itself."""

    def __init__(self, store: DocumentStore[SelfKnowledgeDocument], max_entries: int = 20):
        self.store = store
        self.max_entries = max_entries
        self.document = SelfKnowledgeDocument()

    @property
    def name(self) -> str | None:
        return self.document.name

    @property
    def entries(self) -> list[SelfKnowledgeEntry]:
        return self.document.entries

    async def load(self) -> None:
        self.document = await self.store.load()

    async def save(self) -> None:
        await self.store.save(self.document)

    def set_name(self, name: str | None) -> None:
        self.document.name = name.strip() if name and name.strip() else None
        self.document.updated_at = datetime.now()

    def add_entry(self, content: str) -> SelfKnowledgeEntry | None:
        """
        Append an entry.

        Returns:
            The new entry, or None when the list is full or content is blank
        """
        content = content.strip()
        if not content:
            return None
        if len(self.entries) >= self.max_entries:
            logger.bind(max_entries=self.max_entries).debug("Self-knowledge full, entry rejected")
            return None

        entry = SelfKnowledgeEntry(id=generate_entry_id(), content=content)
        self.entries.append(entry)
        self.document.updated_at = datetime.now()
        return entry

    def remove_entry(self, entry_id: str) -> bool:
        before = len(self.entries)
        self.document.entries = [e for e in self.entries if e.id != entry_id]
        if len(self.entries) == before:
            return False
        self.document.updated_at = datetime.now()
        return True

    def format_for_prompt(self) -> str | None:
        """Render the "About you" section, or None when there is nothing to say."""
        parts = []
        if self.name:
            parts.append(f"Your name is {self.name}.")
        parts.extend(f"- {entry.content}" for entry in self.entries)
        if not parts:
            return None
        return "## About you\n" + "\n".join(parts)


class Notes:
    """Reminders the agent writes for its future self."""

    def __init__(self, store: DocumentStore[NotesDocument], max_notes: int = 50):
        self.store = store
        self.max_notes = max_notes
        self.document = NotesDocument()

    @property
    def notes(self) -> list[Note]:
        return self.document.notes

    async def load(self) -> None:
        self.document = await self.store.load()

    async def save(self) -> None:
        await self.store.save(self.document)

    def add_note(self, content: str) -> Note | None:
        """
        Append a note.

        Returns:
            The new note, or None when the list is full or content is blank
        """
        content = content.strip()
        if not content or len(self.notes) >= self.max_notes:
            return None

        note = Note(id=generate_note_id(), content=content)
        self.notes.append(note)
        self.document.updated_at = datetime.now()
        return note

    def remove_note(self, note_id: str) -> bool:
        before = len(self.notes)
        self.document.notes = [n for n in self.notes if n.id != note_id]
        if len(self.notes) == before:
            return False
        self.document.updated_at = datetime.now()
        return True

    def format_for_prompt(self) -> str | None:
        if not self.notes:
            return None

        lines = [
            f"- [{note.created_at.date().isoformat()}] {note.content} (id: {note.id})"
            for note in self.notes
        ]
        return (
            "## Your notes to self\n"
            "These are reminders you've written for yourself. Act on them when "
            "relevant, then use the complete_note tool to remove them.\n" + "\n".join(lines)
        )


async def load_persona(store: DocumentStore[PersonaDocument]) -> PersonaDocument | None:
    """Persona override, or None when no persona document exists."""
    return await store.load_or_none()
