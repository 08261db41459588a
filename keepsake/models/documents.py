"""
Self-knowledge, notes and persona documents.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class SelfKnowledgeEntry(BaseModel):
    """Something the agent knows about itself."""

    id: str
    content: str
    created_at: datetime = Field(default_factory=datetime.now)


class SelfKnowledgeDocument(BaseModel):
    """Persisted shape of the agent's self-knowledge."""

    name: str | None = None
    entries: list[SelfKnowledgeEntry] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=datetime.now)


class Note(BaseModel):
    """A reminder the agent wrote for its future self."""

    id: str
    content: str
    created_at: datetime = Field(default_factory=datetime.now)


class NotesDocument(BaseModel):
    """Persisted shape of the notes list."""

    notes: list[Note] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=datetime.now)


class PersonaDocument(BaseModel):
    """Optional persona override for the system prompt."""

    description: str = ""
    system_prompt_addition: str = ""
    updated_at: datetime = Field(default_factory=datetime.now)
