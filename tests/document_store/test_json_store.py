"""
Tests for the JSON file document store.
"""

import pytest

from keepsake.core.document_store.json_store import JsonDocumentStore
from keepsake.models.documents import Note, NotesDocument
from keepsake.models.people import PeopleGraphDocument, Person
from keepsake.utils.exceptions import DocumentStoreError


@pytest.mark.unit
@pytest.mark.asyncio
class TestJsonDocumentStore:
    """Test load/save semantics."""

    async def test_missing_file_loads_default(self, tmp_path):
        store = JsonDocumentStore(tmp_path / "people.json", PeopleGraphDocument)

        document = await store.load()

        assert document == PeopleGraphDocument(
            people=[], relationships=[]
        )
        assert await store.load_or_none() is None

    async def test_corrupt_file_loads_default(self, tmp_path):
        """Unparseable JSON is ignored rather than raised."""
        path = tmp_path / "notes.json"
        path.write_text('{"notes": [', encoding="utf-8")
        store = JsonDocumentStore(path, NotesDocument)

        document = await store.load()

        assert document.notes == []
        assert await store.load_or_none() is None

    async def test_invalid_utf8_loads_default(self, tmp_path):
        """Bytes that are not UTF-8 count as a corrupt document."""
        path = tmp_path / "people.json"
        path.write_bytes(b'{"people": [], "relationships": [] \xff\xfe}')
        store = JsonDocumentStore(path, PeopleGraphDocument)

        document = await store.load()

        assert document == PeopleGraphDocument()
        assert await store.load_or_none() is None

    async def test_invalid_utf8_inside_string_loads_default(self, tmp_path):
        path = tmp_path / "notes.json"
        path.write_bytes(b'{"notes": [{"id": "note_1", "content": "caf\xe9"}]}')
        store = JsonDocumentStore(path, NotesDocument)

        assert (await store.load()).notes == []

    async def test_wrong_shape_loads_default(self, tmp_path):
        path = tmp_path / "notes.json"
        path.write_text('{"notes": "not a list"}', encoding="utf-8")
        store = JsonDocumentStore(path, NotesDocument)

        assert (await store.load()).notes == []

    async def test_save_and_load(self, tmp_path):
        """Saved documents round-trip and no temp file is left behind."""
        path = tmp_path / "nested" / "people.json"
        store = JsonDocumentStore(path, PeopleGraphDocument)
        document = PeopleGraphDocument(
            people=[Person(id="person_1", name="Lizzy", aliases=["Liz"])]
        )

        await store.save(document)
        loaded = await store.load()

        assert loaded == document
        assert sorted(p.name for p in path.parent.iterdir()) == ["people.json"]

    async def test_save_replaces_previous(self, tmp_path):
        store = JsonDocumentStore(tmp_path / "notes.json", NotesDocument)
        await store.save(NotesDocument(notes=[Note(id="note_1", content="first")]))
        await store.save(NotesDocument(notes=[Note(id="note_2", content="second")]))

        loaded = await store.load()

        assert [n.id for n in loaded.notes] == ["note_2"]

    async def test_save_failure_raises(self, tmp_path):
        """A path whose parent is a file cannot be written."""
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = JsonDocumentStore(blocker / "notes.json", NotesDocument)

        with pytest.raises(DocumentStoreError):
            await store.save(NotesDocument())
