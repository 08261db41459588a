"""
People Graph - persons, aliases and typed undirected relationships.

Mutations change the in-memory document; save() persists the whole
document. Concurrent mutate-then-save callers race and the last writer wins.
"""

from datetime import datetime

from keepsake.core.document_store.base import DocumentStore
from keepsake.models.people import (
    PeopleGraphDocument,
    Person,
    RelatedPerson,
    Relationship,
    RelationshipType,
)
from keepsake.utils.id_generator import generate_person_id, generate_relationship_id
from keepsake.utils.logger import get_logger

logger = get_logger(__name__)


def normalise_aliases(name: str, aliases: list[str]) -> list[str]:
    """
    Clean an alias list against a primary name.

    Keeps the first spelling of each alias, drops blanks and anything that
    case-insensitively equals the name or an earlier alias.
    """
    seen = {name.casefold()}
    result = []
    for alias in aliases:
        alias = alias.strip()
        if not alias or alias.casefold() in seen:
            continue
        seen.add(alias.casefold())
        result.append(alias)
    return result


class PeopleGraph:
    """
    Repository of people and relationships backed by one document.

    Invariants:
    - A person's aliases never repeat its name or each other (case-insensitive)
    - At most one relationship per type between an unordered pair
    - Both relationship endpoints exist
    """

    def __init__(
        self,
        store: DocumentStore[PeopleGraphDocument],
        bio_max_length: int = 50,
    ):
        """
        Args:
            store: Document repository for the graph
            bio_max_length: Bios are truncated to this many characters
        """
        self.store = store
        self.bio_max_length = bio_max_length
        self.document = PeopleGraphDocument()

    @property
    def people(self) -> list[Person]:
        return self.document.people

    @property
    def relationships(self) -> list[Relationship]:
        return self.document.relationships

    async def load(self) -> None:
        self.document = await self.store.load()
        logger.bind(
            people=len(self.people), relationships=len(self.relationships)
        ).info("People graph loaded")

    async def save(self) -> None:
        await self.store.save(self.document)

    # ═══════════════════════════════════════════════════════════
    # LOOKUP
    # ═══════════════════════════════════════════════════════════

    def get(self, person_id: str) -> Person | None:
        return next((p for p in self.people if p.id == person_id), None)

    def find_by_name(self, name: str) -> Person | None:
        """Case-insensitive exact match against the name or any alias."""
        name = name.strip()
        if not name:
            return None
        return next((p for p in self.people if p.answers_to(name)), None)

    def find_by_linked_account(self, account_id: int) -> Person | None:
        return next((p for p in self.people if p.linked_account_id == account_id), None)

    def find_or_create(self, name: str) -> Person:
        """
        Return the person answering to a name, creating one if needed.

        Args:
            name: Name or alias

        Returns:
            Existing or newly created person
        """
        existing = self.find_by_name(name)
        if existing:
            return existing

        person = Person(id=generate_person_id(), name=name.strip())
        self.people.append(person)
        logger.bind(person_id=person.id).debug(f"Created person {person.name}")
        return person

    def relationships_of(self, person_id: str) -> list[RelatedPerson]:
        """Every edge touching a person, resolved to the person at the other end."""
        results = []
        for relationship in self.relationships:
            other_id = relationship.other_end(person_id)
            if other_id is None:
                continue
            other = self.get(other_id)
            if other:
                results.append(RelatedPerson(relationship=relationship, other=other))
        return results

    # ═══════════════════════════════════════════════════════════
    # PERSON MUTATIONS
    # ═══════════════════════════════════════════════════════════

    def _touch(self, person: Person) -> None:
        person.updated_at = datetime.now()

    def rename(self, person: Person, new_name: str) -> Person:
        """
        Change a person's name, keeping the old name as an alias.

        Args:
            person: Person to rename
            new_name: New canonical name

        Returns:
            The renamed person
        """
        new_name = new_name.strip()
        if not new_name or new_name == person.name:
            return person

        old_name = person.name
        person.name = new_name
        person.aliases = normalise_aliases(new_name, [*person.aliases, old_name])
        self._touch(person)
        return person

    def add_aliases(self, person: Person, aliases: list[str]) -> Person:
        person.aliases = normalise_aliases(person.name, [*person.aliases, *aliases])
        self._touch(person)
        return person

    def set_bio(self, person: Person, bio: str) -> Person:
        person.bio = bio.strip()[: self.bio_max_length]
        self._touch(person)
        return person

    def update_person(
        self,
        person_id: str,
        name: str | None = None,
        aliases: list[str] | None = None,
        bio: str | None = None,
        linked_account_id: int | None = None,
    ) -> Person | None:
        """
        Overwrite selected fields of a person.

        Unlike rename(), a name supplied here does not keep the old name.
        The alias list is always re-normalised against the resulting name.

        Returns:
            Updated person, or None if the ID is unknown
        """
        person = self.get(person_id)
        if person is None:
            return None

        if name is not None and name.strip():
            person.name = name.strip()
        if aliases is not None:
            person.aliases = aliases
        person.aliases = normalise_aliases(person.name, person.aliases)
        if bio is not None:
            person.bio = bio.strip()[: self.bio_max_length]
        if linked_account_id is not None:
            person.linked_account_id = linked_account_id
        self._touch(person)
        return person

    def delete_person(self, person_id: str) -> bool:
        """
        Delete a person and every relationship touching it.

        Returns:
            True if the person existed
        """
        person = self.get(person_id)
        if person is None:
            return False

        self.document.people = [p for p in self.people if p.id != person_id]
        self.document.relationships = [r for r in self.relationships if not r.touches(person_id)]
        logger.bind(person_id=person_id).info(f"Deleted person {person.name}")
        return True

    def merge(self, keep_id: str, merge_id: str) -> Person | None:
        """
        Fold one person into another.

        - The merged person's name and aliases become aliases of the kept one
        - The kept bio wins; the merged bio is used only when the kept one is empty
        - The linked account is adopted only when the kept person has none
        - Relationships are re-pointed; self-loops and duplicates are dropped

        Args:
            keep_id: Person that survives
            merge_id: Person that is removed

        Returns:
            The kept person, or None if either ID is unknown or they are equal
        """
        if keep_id == merge_id:
            return None
        keep = self.get(keep_id)
        merged = self.get(merge_id)
        if keep is None or merged is None:
            return None

        keep.aliases = normalise_aliases(
            keep.name, [*keep.aliases, merged.name, *merged.aliases]
        )
        if not keep.bio and merged.bio:
            keep.bio = merged.bio
        if keep.linked_account_id is None and merged.linked_account_id is not None:
            keep.linked_account_id = merged.linked_account_id

        kept_relationships: list[Relationship] = []
        for relationship in self.relationships:
            if relationship.person_a == merge_id:
                relationship.person_a = keep_id
            if relationship.person_b == merge_id:
                relationship.person_b = keep_id
            if relationship.person_a == relationship.person_b:
                continue
            duplicate = any(
                r.type == relationship.type
                and r.connects(relationship.person_a, relationship.person_b)
                for r in kept_relationships
            )
            if not duplicate:
                kept_relationships.append(relationship)

        self.document.relationships = kept_relationships
        self.document.people = [p for p in self.people if p.id != merge_id]
        self._touch(keep)

        logger.bind(
            keep_id=keep_id, merge_id=merge_id
        ).info(f"Merged {merged.name} into {keep.name}")
        return keep

    # ═══════════════════════════════════════════════════════════
    # RELATIONSHIPS
    # ═══════════════════════════════════════════════════════════

    def add_relationship(
        self,
        person_a: str,
        person_b: str,
        type: RelationshipType | str,
        label: str,
    ) -> Relationship | None:
        """
        Link two people.

        Returns:
            New relationship, or None if an endpoint is unknown or the pair
            already has a relationship of this type in either direction
        """
        type = RelationshipType(type)
        if self.get(person_a) is None or self.get(person_b) is None:
            return None
        if any(r.type == type and r.connects(person_a, person_b) for r in self.relationships):
            return None

        relationship = Relationship(
            id=generate_relationship_id(),
            person_a=person_a,
            person_b=person_b,
            type=type,
            label=label,
        )
        self.relationships.append(relationship)
        return relationship

    def delete_relationship(self, relationship_id: str) -> bool:
        before = len(self.relationships)
        self.document.relationships = [r for r in self.relationships if r.id != relationship_id]
        return len(self.relationships) < before

    # ═══════════════════════════════════════════════════════════
    # PROMPT RENDERING
    # ═══════════════════════════════════════════════════════════

    def format_context(self) -> str | None:
        """
        One line per person for a generation prompt.

        Format: "- Name [aka A, B] (label, label) — bio"

        Returns:
            Rendered text, or None if the graph is empty
        """
        if not self.people:
            return None

        lines = []
        for person in self.people:
            labels = [rel.relationship.label for rel in self.relationships_of(person.id)]
            labels = [label for label in labels if label]
            alias_part = f" [aka {', '.join(person.aliases)}]" if person.aliases else ""
            rel_part = f" ({', '.join(labels)})" if labels else ""
            bio_part = f" — {person.bio}" if person.bio else ""
            lines.append(f"- {person.name}{alias_part}{rel_part}{bio_part}")
        return "\n".join(lines)

    def format_detail(self, person_id: str) -> str | None:
        """Multi-line rendering of one person, or None if the ID is unknown."""
        person = self.get(person_id)
        if person is None:
            return None

        parts = [f"Name: {person.name}"]
        if person.aliases:
            parts.append(f"Also known as: {', '.join(person.aliases)}")
        if person.bio:
            parts.append(f"Bio: {person.bio}")

        related = self.relationships_of(person.id)
        if related:
            parts.append("Relationships:")
            for rel in related:
                parts.append(f"  - {rel.relationship.label}: {rel.other.name}")
        return "\n".join(parts)
