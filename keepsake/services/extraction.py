"""
Extraction Pipeline - turns a conversational turn into store mutations.

Flow:
1. Take the latest user message
2. Gather context (speaker facts, related memories, known people)
3. One text-only LLM call with the extraction instructions
4. Validate the output item by item
5. Write memories through the dedup-gated add, then people, then self-knowledge

Runs after the reply is sent; every failure is logged and ends in an
empty or partial report, never an exception.
"""

from pydantic import BaseModel, Field

from keepsake.config import ExtractionConfig
from keepsake.core.llm.base import LLMProvider
from keepsake.core.memory_store.memory_store import MemoryStore
from keepsake.models.extraction import (
    ExtractedMemory,
    ExtractionResult,
    PersonUpdate,
    SelfKnowledgeUpdate,
    validate_each,
)
from keepsake.models.memory import Memory
from keepsake.services.agent_documents import SelfKnowledge
from keepsake.services.people_graph import PeopleGraph
from keepsake.services.prompts import EXTRACTION_PROMPT
from keepsake.utils.json_text import loads_lenient
from keepsake.utils.logger import get_logger

logger = get_logger(__name__)


class ExtractionReport(BaseModel):
    """What one pipeline run changed."""

    stored_memory_ids: list[str] = Field(default_factory=list)
    duplicates_skipped: int = 0
    failed_memories: int = 0
    people_touched: list[str] = Field(default_factory=list)
    relationships_added: int = 0
    self_name_set: bool = False
    self_entries_added: int = 0
    self_entries_rejected: int = 0


def parse_extraction(text: str) -> ExtractionResult:
    """
    Validate raw model output.

    Code fences are stripped; unparsable text or a non-object yields an
    empty result. Invalid memories, person updates and relationship edges
    are dropped one at a time. A person update left with nothing but a
    name is dropped, as is a self-knowledge update with no name or entries.

    Args:
        text: Raw LLM output

    Returns:
        Accepted extraction result
    """
    data = loads_lenient(text) if isinstance(text, str) else None
    if not isinstance(data, dict):
        logger.bind(output=str(text)[:500]).warning("Discarding unparsable extraction output")
        return ExtractionResult()

    memories = validate_each(ExtractedMemory, data.get("memories"))
    people_updates = [
        update
        for update in validate_each(PersonUpdate, data.get("people_updates"))
        if update.has_content()
    ]

    self_update = None
    candidates = validate_each(SelfKnowledgeUpdate, [data.get("core_updates")])
    if candidates and not candidates[0].is_empty():
        self_update = candidates[0]

    return ExtractionResult(
        memories=memories,
        people_updates=people_updates,
        self_update=self_update,
    )


def last_user_message(messages: list[dict[str, str]]) -> str | None:
    """Content of the most recent message with role "user"."""
    for message in reversed(messages):
        if message.get("role") == "user" and (message.get("content") or "").strip():
            return message["content"]
    return None


class ExtractionPipeline:
    """
    Runs extraction for one turn and applies the accepted updates.

    Person updates are applied in the order rename, aliases, bio,
    relationships. The people graph and self-knowledge are saved once per run.
    """

    def __init__(
        self,
        llm: LLMProvider,
        memory_store: MemoryStore,
        people: PeopleGraph,
        self_knowledge: SelfKnowledge,
        config: ExtractionConfig | None = None,
    ):
        """
        Args:
            llm: Generation service (text-only calls)
            memory_store: Dedup-gated memory store
            people: People graph
            self_knowledge: Agent self-knowledge document
            config: Extraction limits
        """
        self.llm = llm
        self.memory_store = memory_store
        self.people = people
        self.self_knowledge = self_knowledge
        self.config = config or ExtractionConfig()

    async def process_turn(
        self,
        messages: list[dict[str, str]],
        owner_id: int,
        speaker_name: str | None = None,
        notes_written: list[str] | None = None,
    ) -> ExtractionReport:
        """
        Extract and store what the latest user message teaches.

        Args:
            messages: Conversation window as {"role", "content"} dicts
            owner_id: Participant who wrote the message
            speaker_name: Display name of that participant
            notes_written: Notes the assistant wrote while replying to this turn

        Returns:
            Report of the applied changes
        """
        text = last_user_message(messages)
        if text is None:
            return ExtractionReport()

        prompt = await self._build_prompt(text, owner_id, speaker_name, notes_written)

        try:
            raw = await self.llm.complete(
                prompt,
                system=EXTRACTION_PROMPT,
                max_tokens=self.config.max_tokens,
            )
        except Exception as e:
            logger.bind(
                owner_id=owner_id, error=str(e), error_type=type(e).__name__
            ).error(f"Extraction call failed: {e}")
            return ExtractionReport()

        result = parse_extraction(raw)
        if result.is_empty():
            return ExtractionReport()

        return await self.apply(result, owner_id, source_text=text)

    async def _build_prompt(
        self,
        text: str,
        owner_id: int,
        speaker_name: str | None,
        notes_written: list[str] | None,
    ) -> str:
        context_memories = await self._context_memories(text, owner_id)

        blocks = []
        if context_memories:
            blocks.append(
                "Existing memories:\n"
                + "\n".join(f"- ({m.kind.value}) {m.content}" for m in context_memories)
            )

        people_context = self.people.format_context()
        if people_context:
            blocks.append(f"Known people:\n{people_context}")

        if notes_written:
            blocks.append(
                "Notes you already wrote this turn (do not extract these again):\n"
                + "\n".join(f"- {note}" for note in notes_written)
            )

        if speaker_name:
            blocks.append(
                f'The user\'s display name (from their profile) is "{speaker_name}". Use it '
                'for the "subject" field when extracting facts about the user. It is not a '
                "stored memory: if the user states their name, still extract it as a user_fact."
            )

        blocks.append(f"New message from user:\n{text}")
        return "\n\n".join(blocks)

    async def _context_memories(self, text: str, owner_id: int) -> list[Memory]:
        """Speaker facts plus related memories, deduplicated by ID."""
        try:
            facts = await self.memory_store.facts_for(owner_id)
        except Exception as e:
            logger.bind(
                owner_id=owner_id, error=str(e)
            ).warning(f"Could not load speaker facts: {e}")
            facts = []

        try:
            related = await self.memory_store.search(text, limit=self.config.related_limit)
        except Exception as e:
            logger.bind(
                owner_id=owner_id, error=str(e)
            ).warning(f"Could not search related memories: {e}")
            related = []

        seen: set[str] = set()
        memories = []
        for memory in [*facts, *related]:
            if memory.id not in seen:
                seen.add(memory.id)
                memories.append(memory)
        return memories

    async def apply(
        self, result: ExtractionResult, owner_id: int, source_text: str | None = None
    ) -> ExtractionReport:
        """
        Write an accepted extraction result to the stores.

        Args:
            result: Validated extraction result
            owner_id: Participant the memories are captured from
            source_text: Message the result was extracted from

        Returns:
            Report of the applied changes
        """
        report = ExtractionReport()
        await self._store_memories(result.memories, owner_id, source_text, report)

        if result.people_updates:
            for update in result.people_updates:
                self._apply_person_update(update, report)
            try:
                await self.people.save()
            except Exception as e:
                logger.bind(error=str(e)).error(f"Failed to save people graph: {e}")

        if result.self_update is not None:
            self._apply_self_update(result.self_update, report)
            if report.self_name_set or report.self_entries_added:
                try:
                    await self.self_knowledge.save()
                except Exception as e:
                    logger.bind(error=str(e)).error(f"Failed to save self-knowledge: {e}")

        logger.bind(owner_id=owner_id, **report.model_dump()).info("Extraction applied")
        return report

    async def _store_memories(
        self,
        memories: list[ExtractedMemory],
        owner_id: int,
        source_text: str | None,
        report: ExtractionReport,
    ) -> None:
        for candidate in memories:
            try:
                memory_id = await self.memory_store.add(
                    candidate.content,
                    candidate.kind,
                    owner_id,
                    tags=candidate.tags,
                    source_text=source_text,
                    subject=candidate.subject,
                )
            except Exception as e:
                report.failed_memories += 1
                logger.bind(
                    owner_id=owner_id, kind=candidate.kind.value, error=str(e)
                ).error(f"Failed to store extracted memory: {e}")
                continue

            if memory_id is None:
                report.duplicates_skipped += 1
            else:
                report.stored_memory_ids.append(memory_id)

    def _apply_person_update(self, update: PersonUpdate, report: ExtractionReport) -> None:
        person = self.people.find_or_create(update.name)

        if update.rename:
            self.people.rename(person, update.rename)
        if update.aliases:
            self.people.add_aliases(person, update.aliases)
        if update.bio_snippet:
            self.people.set_bio(person, update.bio_snippet)

        for edge in update.relationships:
            other = self.people.find_or_create(edge.related_to)
            if other.id == person.id:
                continue
            if self.people.add_relationship(person.id, other.id, edge.type, edge.label):
                report.relationships_added += 1

        if person.id not in report.people_touched:
            report.people_touched.append(person.id)

    def _apply_self_update(self, update: SelfKnowledgeUpdate, report: ExtractionReport) -> None:
        if update.name:
            self.self_knowledge.set_name(update.name)
            report.self_name_set = True
        for entry in update.entries:
            if self.self_knowledge.add_entry(entry) is None:
                report.self_entries_rejected += 1
            else:
                report.self_entries_added += 1
