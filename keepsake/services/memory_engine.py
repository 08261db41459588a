"""
Memory Engine - wires providers, stores and services together.

Brings together:
- LLM & Embedder providers
- Memory store (Qdrant) and the JSON documents
- Context assembly, memory tools and background extraction
"""

import asyncio
from datetime import date

from keepsake.config import Config
from keepsake.core.document_store.base import DocumentStore
from keepsake.core.embeddings.base import Embedder
from keepsake.core.factory import (
    DocumentStoreFactory,
    EmbedderFactory,
    LLMFactory,
    VectorStoreFactory,
)
from keepsake.core.llm.base import LLMProvider
from keepsake.core.memory_store.memory_store import MemoryStore
from keepsake.core.vector_store.base import VectorStore
from keepsake.models.documents import NotesDocument, PersonaDocument, SelfKnowledgeDocument
from keepsake.models.people import PeopleGraphDocument
from keepsake.services.agent_documents import Notes, SelfKnowledge, load_persona
from keepsake.services.context_assembler import AssembledContext, ContextAssembler
from keepsake.services.extraction import ExtractionPipeline, ExtractionReport
from keepsake.services.memory_tools import MemoryToolbox
from keepsake.services.people_graph import PeopleGraph
from keepsake.services.prompts import build_system_prompt
from keepsake.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


class MemoryEngine:
    """
    Single entry point for a conversational agent's long-term memory.

    Features:
    - Prompt context and system prompt for a reply
    - Memory tools bound to the current speaker
    - Extraction after the reply, as a background task whose failures are logged
    """

    def __init__(
        self,
        llm: LLMProvider,
        embedder: Embedder,
        vector_store: VectorStore,
        config: Config,
        people_store: DocumentStore[PeopleGraphDocument],
        self_knowledge_store: DocumentStore[SelfKnowledgeDocument],
        notes_store: DocumentStore[NotesDocument],
        persona_store: DocumentStore[PersonaDocument] | None = None,
    ):
        """
        Initialize Memory Engine.

        Args:
            llm: LLM provider for extraction
            embedder: Embedder for memory content and queries
            vector_store: Vector database (Qdrant)
            config: Configuration object
            people_store: Document store for the people graph
            self_knowledge_store: Document store for self-knowledge
            notes_store: Document store for notes
            persona_store: Optional document store for the persona override
        """
        self.llm = llm
        self.embedder = embedder
        self.config = config
        self.persona_store = persona_store
        self.persona: PersonaDocument | None = None

        self.memory_store = MemoryStore(
            vector_store=vector_store,
            embedder=embedder,
            dedup=config.dedup,
            migrate_on_dimension_mismatch=config.qdrant.migrate_on_dimension_mismatch,
        )
        self.people = PeopleGraph(people_store, bio_max_length=config.extraction.bio_max_length)
        self.self_knowledge = SelfKnowledge(
            self_knowledge_store, max_entries=config.extraction.max_self_entries
        )
        self.notes = Notes(notes_store, max_notes=config.extraction.max_notes)

        self.context = ContextAssembler(
            memory_store=self.memory_store,
            people=self.people,
            self_knowledge=self.self_knowledge,
            notes=self.notes,
            config=config.context,
        )
        self.extraction = ExtractionPipeline(
            llm=llm,
            memory_store=self.memory_store,
            people=self.people,
            self_knowledge=self.self_knowledge,
            config=config.extraction,
        )

        self._background_tasks: set[asyncio.Task] = set()

    @classmethod
    async def from_config(cls, config: Config, configure_logging: bool = True) -> "MemoryEngine":
        """
        Build an engine and all of its collaborators from configuration.

        The vector size comes from the embedder config, or one probe embedding.

        Args:
            config: Configuration object
            configure_logging: Whether to install the Loguru sinks

        Returns:
            Uninitialized engine; await initialize() before use
        """
        if configure_logging:
            setup_logging(**config.logging.model_dump())

        llm = LLMFactory.create(config.llm)
        embedder = EmbedderFactory.create(config.embedder)
        vector_size = await EmbedderFactory.get_dimension(embedder, config.embedder)
        vector_store = VectorStoreFactory.create(config.qdrant, vector_size)

        return cls(
            llm=llm,
            embedder=embedder,
            vector_store=vector_store,
            config=config,
            people_store=DocumentStoreFactory.people(config.storage),
            self_knowledge_store=DocumentStoreFactory.self_knowledge(config.storage),
            notes_store=DocumentStoreFactory.notes(config.storage),
            persona_store=DocumentStoreFactory.persona(config.storage),
        )

    async def initialize(self) -> None:
        """Initialize the vector store and load every document."""
        logger.info("Initializing Memory Engine")

        await self.memory_store.initialize()
        await self.people.load()
        await self.self_knowledge.load()
        await self.notes.load()
        if self.persona_store is not None:
            self.persona = await load_persona(self.persona_store)

        logger.info("Memory Engine ready")

    async def build_context(self, owner_id: int) -> AssembledContext:
        """Prompt sections for a reply to one speaker."""
        return await self.context.assemble(owner_id)

    async def build_system_prompt(self, owner_id: int, today: date | None = None) -> str:
        """Full system prompt for a reply to one speaker."""
        context = await self.build_context(owner_id)
        persona_addition = self.persona.system_prompt_addition if self.persona else None
        return build_system_prompt(
            persona_addition=persona_addition,
            memory_context=context.memory_context,
            self_knowledge=context.self_knowledge,
            notes=context.notes,
            today=today,
        )

    def toolbox(self, owner_id: int) -> MemoryToolbox:
        """Memory tools bound to one speaker."""
        return MemoryToolbox(self.memory_store, self.people, self.notes, owner_id)

    async def extract(
        self,
        messages: list[dict[str, str]],
        owner_id: int,
        speaker_name: str | None = None,
        notes_written: list[str] | None = None,
    ) -> ExtractionReport:
        """Run extraction for the latest user message and wait for it."""
        return await self.extraction.process_turn(
            messages, owner_id, speaker_name=speaker_name, notes_written=notes_written
        )

    def schedule_extraction(
        self,
        messages: list[dict[str, str]],
        owner_id: int,
        speaker_name: str | None = None,
        notes_written: list[str] | None = None,
    ) -> asyncio.Task:
        """
        Run extraction in the background, after the reply has been sent.

        Failures are logged and never reach the caller.

        Returns:
            The scheduled task
        """
        task = asyncio.create_task(
            self.extract(
                list(messages), owner_id, speaker_name=speaker_name, notes_written=notes_written
            )
        )
        self._background_tasks.add(task)
        task.add_done_callback(self._on_extraction_done)
        return task

    def _on_extraction_done(self, task: asyncio.Task) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.bind(
                error=str(error), error_type=type(error).__name__
            ).error(f"Background extraction failed: {error}")

    async def close(self) -> None:
        """Wait for pending extractions, then close stores and providers."""
        logger.info("Shutting down Memory Engine")

        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)

        await self.memory_store.close()
        await self.llm.close()
        await self.embedder.close()

        logger.info("Memory Engine shutdown complete")
