"""
People graph models: persons, typed undirected relationships and the
document that persists both.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class RelationshipType(str, Enum):
    """Closed set of relationship types between people."""

    SIBLING = "sibling"
    PARENT = "parent"
    CHILD = "child"
    PARTNER = "partner"
    FRIEND = "friend"
    COWORKER = "coworker"
    PET = "pet"
    OTHER = "other"


class Person(BaseModel):
    """An entity the system has learned about (the user, another human, or a pet)."""

    id: str = Field(..., description="Unique person ID (person_xxx)")
    name: str = Field(..., description="Canonical display name")
    aliases: list[str] = Field(default_factory=list, description="Alternate names")
    bio: str = Field(default="", description="Short descriptor")
    linked_account_id: int | None = Field(
        default=None, description="External identity linkage"
    )
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def all_names(self) -> list[str]:
        """Primary name followed by every alias."""
        return [self.name, *self.aliases]

    def answers_to(self, name: str) -> bool:
        """Case-insensitive match against the name or any alias."""
        wanted = name.casefold()
        return any(candidate.casefold() == wanted for candidate in self.all_names())


class Relationship(BaseModel):
    """Undirected, typed edge between two persons."""

    id: str = Field(..., description="Unique relationship ID (rel_xxx)")
    person_a: str = Field(..., description="First endpoint person ID")
    person_b: str = Field(..., description="Second endpoint person ID")
    type: RelationshipType
    label: str = Field(default="", description="Display string")
    created_at: datetime = Field(default_factory=datetime.now)

    def touches(self, person_id: str) -> bool:
        return self.person_a == person_id or self.person_b == person_id

    def connects(self, first: str, second: str) -> bool:
        """True when the edge joins the unordered pair {first, second}."""
        return {self.person_a, self.person_b} == {first, second}

    def other_end(self, person_id: str) -> str | None:
        if self.person_a == person_id:
            return self.person_b
        if self.person_b == person_id:
            return self.person_a
        return None


class RelatedPerson(BaseModel):
    """A relationship resolved to its counterpart."""

    relationship: Relationship
    other: Person


class PeopleGraphDocument(BaseModel):
    """Persisted shape of the people graph."""

    people: list[Person] = Field(default_factory=list)
    relationships: list[Relationship] = Field(default_factory=list)
