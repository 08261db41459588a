"""
Memory model: a persisted fact or episode with an embedding.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class MemoryKind(str, Enum):
    """Closed category of a memory."""

    DIARY_ENTRY = "diary_entry"
    USER_FACT = "user_fact"
    CONVERSATION_SUMMARY = "conversation_summary"
    REFLECTION = "reflection"
    PHOTO_MEMORY = "photo_memory"
    VIDEO_MEMORY = "video_memory"


class Memory(BaseModel):
    """
    A fact or episode captured from conversation.

    Features:
    - Owner scoping: every memory records the participant it was captured from
    - Immutable creation time: re-embedding on edit never touches created_at
    - Optional media handle, verbatim source excerpt and subject name(s)

    Storage Architecture:
    - Vector Store: stores every field plus the embedding
    """

    # Core identity
    id: str = Field(..., description="Unique memory ID (mem_xxx)")
    owner_id: int = Field(..., description="Participant the memory was captured from")
    content: str = Field(..., description="Memory text")
    kind: MemoryKind = Field(..., description="Memory kind")
    tags: list[str] = Field(default_factory=list, description="Short topic labels")
    embedding: list[float] = Field(default_factory=list, description="Vector embedding")

    # Optional provenance
    media_ref: str | None = Field(default=None, description="Handle to stored photo/video")
    source_text: str | None = Field(default=None, description="Excerpt that produced it")
    subject: str | None = Field(
        default=None, description="Name(s) the memory is about, comma-joined"
    )

    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")

    @field_validator("content")
    @classmethod
    def _content_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Memory content cannot be empty")
        return value

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, value: list[str]) -> list[str]:
        return [tag.strip() for tag in value if tag and tag.strip()]

    @property
    def subject_names(self) -> list[str]:
        """Subject split on commas, stripped, empty parts dropped."""
        return split_subject(self.subject)

    @property
    def subject_keys(self) -> list[str]:
        """Case-folded subject names used for matching."""
        return [name.casefold() for name in self.subject_names]

    def created_date(self) -> str:
        """Creation day as YYYY-MM-DD."""
        return self.created_at.date().isoformat()


# Optional Memory fields a patch may reset to None
CLEARABLE_FIELDS = frozenset({"media_ref", "source_text", "subject"})


class MemoryPatch(BaseModel):
    """
    Partial update for a memory.

    Only fields the caller sets are applied. media_ref, source_text and
    subject can be cleared by setting them to None; content, kind and tags
    set to None are ignored. created_at is not patchable.
    """

    content: str | None = None
    kind: MemoryKind | None = None
    tags: list[str] | None = None
    media_ref: str | None = None
    source_text: str | None = None
    subject: str | None = None

    def changes(self) -> dict[str, Any]:
        """Explicitly set fields, minus None for required memory fields."""
        return {
            field: value
            for field, value in self.model_dump(exclude_unset=True).items()
            if value is not None or field in CLEARABLE_FIELDS
        }


def split_subject(subject: str | None) -> list[str]:
    """
    Split a comma-joined subject string into names.

    Args:
        subject: Raw subject string (may be None)

    Returns:
        List of non-empty, stripped names
    """
    if not subject:
        return []
    return [part.strip() for part in subject.split(",") if part.strip()]
