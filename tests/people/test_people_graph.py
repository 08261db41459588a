"""
Tests for the people graph.
"""

import pytest

from keepsake.core.document_store.json_store import JsonDocumentStore
from keepsake.models.people import PeopleGraphDocument, RelationshipType
from keepsake.services.people_graph import PeopleGraph, normalise_aliases


@pytest.fixture
def graph(tmp_path):
    store = JsonDocumentStore(tmp_path / "people.json", PeopleGraphDocument)
    return PeopleGraph(store)


@pytest.mark.unit
class TestNormaliseAliases:
    """Test alias cleaning."""

    def test_drops_name_blanks_and_duplicates(self):
        assert normalise_aliases("Elizabeth", ["Lizzy", " liz ", "", "LIZZY", "elizabeth"]) == [
            "Lizzy",
            "liz",
        ]


@pytest.mark.unit
class TestPeopleLookup:
    """Test name resolution."""

    def test_find_or_create_is_idempotent(self, graph):
        first = graph.find_or_create("Lizzy")
        second = graph.find_or_create("  lizzy ")

        assert first.id == second.id
        assert len(graph.people) == 1

    def test_alias_symmetry(self, graph):
        """Anything found by an alias is found by the name and vice versa."""
        person = graph.find_or_create("Elizabeth")
        graph.add_aliases(person, ["Lizzy", "Liz"])

        for name in ("Elizabeth", "lizzy", "LIZ"):
            assert graph.find_by_name(name).id == person.id
        assert graph.find_by_name("Beth") is None
        assert graph.find_by_name("  ") is None

    def test_find_by_linked_account(self, graph):
        person = graph.find_or_create("Nathan")
        graph.update_person(person.id, linked_account_id=7)

        assert graph.find_by_linked_account(7).id == person.id
        assert graph.find_by_linked_account(8) is None


@pytest.mark.unit
class TestPersonMutations:
    """Test person edits."""

    def test_rename_keeps_old_name_as_alias(self, graph):
        person = graph.find_or_create("Liz")

        graph.rename(person, "Elizabeth")

        assert person.name == "Elizabeth"
        assert person.aliases == ["Liz"]
        assert graph.find_by_name("liz").id == person.id

    def test_rename_back_removes_alias_collision(self, graph):
        person = graph.find_or_create("Liz")
        graph.rename(person, "Elizabeth")

        graph.rename(person, "Liz")

        assert person.name == "Liz"
        assert person.aliases == ["Elizabeth"]

    def test_set_bio_truncates(self, graph):
        person = graph.find_or_create("Nathan")

        graph.set_bio(person, "x" * 80)

        assert len(person.bio) == 50

    def test_update_person(self, graph):
        person = graph.find_or_create("Nathan")

        updated = graph.update_person(
            person.id, name="Nate", aliases=["Nathan", "nate", "N"], bio="  chef  "
        )

        assert updated.name == "Nate"
        assert updated.aliases == ["Nathan", "N"]
        assert updated.bio == "chef"
        assert graph.update_person("person_missing", name="x") is None

    def test_delete_person_cascades(self, graph):
        """Only relationships naming the deleted person are removed."""
        lizzy = graph.find_or_create("Lizzy")
        nathan = graph.find_or_create("Nathan")
        simon = graph.find_or_create("Simon")
        graph.add_relationship(lizzy.id, nathan.id, "sibling", "siblings")
        graph.add_relationship(nathan.id, simon.id, "friend", "friends")
        graph.add_relationship(lizzy.id, simon.id, "coworker", "coworkers")

        assert graph.delete_person(nathan.id) is True

        assert graph.get(nathan.id) is None
        assert [r.label for r in graph.relationships] == ["coworkers"]
        assert graph.delete_person(nathan.id) is False


@pytest.mark.unit
class TestRelationships:
    """Test edge management."""

    def test_siblings_scenario(self, graph):
        lizzy = graph.find_or_create("Lizzy")
        nathan = graph.find_or_create("Nathan")

        graph.add_relationship(nathan.id, lizzy.id, "sibling", "siblings")
        related = graph.relationships_of(nathan.id)

        assert len(related) == 1
        assert related[0].other.name == "Lizzy"
        assert graph.relationships_of(lizzy.id)[0].other.name == "Nathan"

    def test_duplicate_is_order_independent(self, graph):
        a = graph.find_or_create("A")
        b = graph.find_or_create("B")

        assert graph.add_relationship(a.id, b.id, RelationshipType.FRIEND, "friends")
        assert graph.add_relationship(b.id, a.id, RelationshipType.FRIEND, "friends") is None
        assert graph.add_relationship(b.id, a.id, RelationshipType.COWORKER, "coworkers")
        assert len(graph.relationships) == 2

    def test_unknown_endpoint(self, graph):
        a = graph.find_or_create("A")

        assert graph.add_relationship(a.id, "person_missing", "friend", "friends") is None

    def test_delete_relationship(self, graph):
        a = graph.find_or_create("A")
        b = graph.find_or_create("B")
        relationship = graph.add_relationship(a.id, b.id, "friend", "friends")

        assert graph.delete_relationship(relationship.id) is True
        assert graph.delete_relationship(relationship.id) is False


@pytest.mark.unit
class TestMerge:
    """Test folding one person into another."""

    def test_merge(self, graph):
        keep = graph.find_or_create("Elizabeth")
        graph.set_bio(keep, "Nathan's sister")
        dup = graph.find_or_create("Lizzy")
        graph.add_aliases(dup, ["Liz"])
        graph.set_bio(dup, "works at Acme")
        graph.update_person(dup.id, linked_account_id=42)
        nathan = graph.find_or_create("Nathan")
        graph.add_relationship(keep.id, nathan.id, "sibling", "siblings")
        graph.add_relationship(dup.id, nathan.id, "sibling", "siblings")
        graph.add_relationship(dup.id, nathan.id, "friend", "friends")
        graph.add_relationship(keep.id, dup.id, "other", "same person")

        merged = graph.merge(keep.id, dup.id)

        assert merged.id == keep.id
        assert graph.get(dup.id) is None
        assert merged.aliases == ["Lizzy", "Liz"]
        assert merged.bio == "Nathan's sister"
        assert merged.linked_account_id == 42
        assert graph.find_by_name("lizzy").id == keep.id
        assert sorted(r.type.value for r in graph.relationships) == ["friend", "sibling"]
        assert all(r.touches(keep.id) and r.touches(nathan.id) for r in graph.relationships)

    def test_merge_adopts_bio_when_kept_is_empty(self, graph):
        keep = graph.find_or_create("A")
        other = graph.find_or_create("B")
        graph.set_bio(other, "a cat")

        graph.merge(keep.id, other.id)

        assert keep.bio == "a cat"

    def test_merge_invalid(self, graph):
        a = graph.find_or_create("A")

        assert graph.merge(a.id, a.id) is None
        assert graph.merge(a.id, "person_missing") is None
        assert len(graph.people) == 1


@pytest.mark.unit
class TestFormatting:
    """Test prompt rendering."""

    def test_format_context(self, graph):
        lizzy = graph.find_or_create("Lizzy")
        graph.add_aliases(lizzy, ["Liz"])
        graph.set_bio(lizzy, "works at Acme")
        nathan = graph.find_or_create("Nathan")
        graph.add_relationship(nathan.id, lizzy.id, "sibling", "siblings")

        assert graph.format_context() == (
            "- Lizzy [aka Liz] (siblings) — works at Acme\n"
            "- Nathan (siblings)"
        )

    def test_format_context_empty(self, graph):
        assert graph.format_context() is None

    def test_format_detail(self, graph):
        lizzy = graph.find_or_create("Lizzy")
        graph.add_aliases(lizzy, ["Liz"])
        graph.set_bio(lizzy, "works at Acme")
        nathan = graph.find_or_create("Nathan")
        graph.add_relationship(nathan.id, lizzy.id, "sibling", "Lizzy's brother")

        assert graph.format_detail(lizzy.id) == (
            "Name: Lizzy\n"
            "Also known as: Liz\n"
            "Bio: works at Acme\n"
            "Relationships:\n"
            "  - Lizzy's brother: Nathan"
        )
        assert graph.format_detail("person_missing") is None


@pytest.mark.unit
@pytest.mark.asyncio
class TestPersistence:
    """Test load/save through the JSON store."""

    async def test_save_and_reload(self, tmp_path):
        store = JsonDocumentStore(tmp_path / "people.json", PeopleGraphDocument)
        graph = PeopleGraph(store)
        await graph.load()
        lizzy = graph.find_or_create("Lizzy")
        nathan = graph.find_or_create("Nathan")
        graph.add_relationship(nathan.id, lizzy.id, "sibling", "siblings")
        await graph.save()

        reloaded = PeopleGraph(store)
        await reloaded.load()

        assert [p.name for p in reloaded.people] == ["Lizzy", "Nathan"]
        assert reloaded.relationships_of(nathan.id)[0].other.id == lizzy.id
