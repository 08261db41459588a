"""
Data models for Keepsake.

Core models:
- Memory, MemoryKind, MemoryPatch: facts and episodes in the vector store
- Person, Relationship, RelationshipType, PeopleGraphDocument: the people graph
- SelfKnowledgeDocument, NotesDocument, PersonaDocument: agent documents
- ExtractedMemory, PersonUpdate, SelfKnowledgeUpdate, ExtractionResult:
  validated extraction output
"""

from keepsake.models.documents import (
    Note,
    NotesDocument,
    PersonaDocument,
    SelfKnowledgeDocument,
    SelfKnowledgeEntry,
)
from keepsake.models.extraction import (
    EXTRACTABLE_KINDS,
    ExtractedMemory,
    ExtractionResult,
    PersonUpdate,
    RelationshipEdge,
    SelfKnowledgeUpdate,
)
from keepsake.models.memory import Memory, MemoryKind, MemoryPatch, split_subject
from keepsake.models.people import (
    PeopleGraphDocument,
    Person,
    RelatedPerson,
    Relationship,
    RelationshipType,
)

__all__ = [
    # Memory models
    "Memory",
    "MemoryKind",
    "MemoryPatch",
    "split_subject",
    # People models
    "Person",
    "Relationship",
    "RelationshipType",
    "RelatedPerson",
    "PeopleGraphDocument",
    # Documents
    "SelfKnowledgeEntry",
    "SelfKnowledgeDocument",
    "Note",
    "NotesDocument",
    "PersonaDocument",
    # Extraction
    "EXTRACTABLE_KINDS",
    "ExtractedMemory",
    "RelationshipEdge",
    "PersonUpdate",
    "SelfKnowledgeUpdate",
    "ExtractionResult",
]
