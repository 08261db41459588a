"""
Validated shapes of the extraction model output.

The generation service is untrusted: every item is validated on its own so
one bad entry never discards its siblings.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from keepsake.models.memory import MemoryKind
from keepsake.models.people import RelationshipType

EXTRACTABLE_KINDS = frozenset(
    {
        MemoryKind.DIARY_ENTRY,
        MemoryKind.USER_FACT,
        MemoryKind.PHOTO_MEMORY,
        MemoryKind.VIDEO_MEMORY,
    }
)


def _optional_text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _text_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def validate_each(model: type[BaseModel], items: Any) -> list:
    """
    Validate a list item by item, dropping the ones that fail.

    Args:
        model: Pydantic model to validate against
        items: Raw value (non-lists yield an empty result)

    Returns:
        List of validated model instances
    """
    if not isinstance(items, list):
        return []
    accepted = []
    for item in items:
        try:
            accepted.append(model.model_validate(item))
        except PydanticValidationError:
            continue
    return accepted


class ExtractedMemory(BaseModel):
    """Candidate memory proposed by the model."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    content: str = Field(..., description="Memory text, third person")
    kind: MemoryKind = Field(..., alias="type", description="Memory kind")
    tags: list[str] = Field(..., description="Short topic labels")
    subject: str | None = Field(default=None, description="Who the memory is about")

    @field_validator("content")
    @classmethod
    def _content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content cannot be empty")
        return value.strip()

    @field_validator("kind")
    @classmethod
    def _kind_extractable(cls, value: MemoryKind) -> MemoryKind:
        if value not in EXTRACTABLE_KINDS:
            raise ValueError(f"kind {value.value} cannot be extracted")
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_list(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            raise ValueError("tags must be a list")
        return _text_list(value)

    @field_validator("subject", mode="before")
    @classmethod
    def _subject_text(cls, value: Any) -> str | None:
        return _optional_text(value)


class RelationshipEdge(BaseModel):
    """Candidate relationship from a person update to another named person."""

    model_config = {"extra": "ignore"}

    related_to: str
    type: RelationshipType
    label: str

    @field_validator("related_to", "label")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("value cannot be empty")
        return value.strip()


class PersonUpdate(BaseModel):
    """Candidate update to one person in the graph."""

    model_config = {"extra": "ignore"}

    name: str
    rename: str | None = None
    aliases: list[str] = Field(default_factory=list)
    bio_snippet: str | None = None
    relationships: list[RelationshipEdge] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name cannot be empty")
        return value.strip()

    @field_validator("rename", "bio_snippet", mode="before")
    @classmethod
    def _optional(cls, value: Any) -> str | None:
        return _optional_text(value)

    @field_validator("aliases", mode="before")
    @classmethod
    def _aliases(cls, value: Any) -> list[str]:
        return _text_list(value)

    @field_validator("relationships", mode="before")
    @classmethod
    def _edges(cls, value: Any) -> list[RelationshipEdge]:
        return validate_each(RelationshipEdge, value)

    def has_content(self) -> bool:
        """True when anything besides the name survived validation."""
        return bool(self.rename or self.aliases or self.bio_snippet or self.relationships)


class SelfKnowledgeUpdate(BaseModel):
    """Candidate update to what the agent knows about itself."""

    model_config = {"extra": "ignore"}

    name: str | None = None
    entries: list[str] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> str | None:
        return _optional_text(value)

    @field_validator("entries", mode="before")
    @classmethod
    def _entries(cls, value: Any) -> list[str]:
        return _text_list(value)

    def is_empty(self) -> bool:
        return not self.name and not self.entries


class ExtractionResult(BaseModel):
    """Everything accepted from one extraction call."""

    memories: list[ExtractedMemory] = Field(default_factory=list)
    people_updates: list[PersonUpdate] = Field(default_factory=list)
    self_update: SelfKnowledgeUpdate | None = None

    def is_empty(self) -> bool:
        return not self.memories and not self.people_updates and self.self_update is None
