"""Fixtures for service tests.

Documents live in a per-test tmp_path; memories go through the embedded
Qdrant store and stub embedder from the root conftest.
"""

import pytest

from keepsake.core.document_store.json_store import JsonDocumentStore
from keepsake.models.documents import NotesDocument, SelfKnowledgeDocument
from keepsake.models.people import PeopleGraphDocument
from keepsake.services.agent_documents import Notes, SelfKnowledge
from keepsake.services.people_graph import PeopleGraph


@pytest.fixture
def people(tmp_path) -> PeopleGraph:
    return PeopleGraph(JsonDocumentStore(tmp_path / "people.json", PeopleGraphDocument))


@pytest.fixture
def self_knowledge(tmp_path) -> SelfKnowledge:
    return SelfKnowledge(
        JsonDocumentStore(tmp_path / "core-memories.json", SelfKnowledgeDocument)
    )


@pytest.fixture
def notes(tmp_path) -> Notes:
    return Notes(JsonDocumentStore(tmp_path / "notes.json", NotesDocument))
