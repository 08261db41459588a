"""
Factory for the JSON document stores.
"""

from keepsake.config import StorageConfig
from keepsake.core.document_store.json_store import JsonDocumentStore
from keepsake.models.documents import NotesDocument, PersonaDocument, SelfKnowledgeDocument
from keepsake.models.people import PeopleGraphDocument


class DocumentStoreFactory:
    """Builds one document store per concern under the data directory."""

    @staticmethod
    def people(config: StorageConfig) -> JsonDocumentStore[PeopleGraphDocument]:
        return JsonDocumentStore(config.path_for(config.people_file), PeopleGraphDocument)

    @staticmethod
    def self_knowledge(config: StorageConfig) -> JsonDocumentStore[SelfKnowledgeDocument]:
        return JsonDocumentStore(
            config.path_for(config.self_knowledge_file), SelfKnowledgeDocument
        )

    @staticmethod
    def notes(config: StorageConfig) -> JsonDocumentStore[NotesDocument]:
        return JsonDocumentStore(config.path_for(config.notes_file), NotesDocument)

    @staticmethod
    def persona(config: StorageConfig) -> JsonDocumentStore[PersonaDocument]:
        return JsonDocumentStore(config.path_for(config.persona_file), PersonaDocument)
