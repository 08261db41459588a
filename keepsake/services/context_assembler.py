"""
Context Assembler - selects stored knowledge for a reply prompt.

Sections:
- Known facts (the speaker's, or the newest across everyone when shared)
- Recent memories, minus the speaker's own facts and summaries
- People you know
- Self-knowledge and notes (rendered by their documents)

Every window is a small fixed cap.
"""

from pydantic import BaseModel

from keepsake.config import ContextConfig
from keepsake.core.memory_store.memory_store import MemoryStore
from keepsake.models.memory import Memory, MemoryKind
from keepsake.services.agent_documents import Notes, SelfKnowledge
from keepsake.services.people_graph import PeopleGraph
from keepsake.utils.logger import get_logger

logger = get_logger(__name__)

_SPEAKER_ONLY_KINDS = frozenset({MemoryKind.USER_FACT, MemoryKind.CONVERSATION_SUMMARY})


def format_memory_line(memory: Memory) -> str:
    """
    Render a memory as "[YYYY-MM-DD] (kind) [id:...] [photoId:...] content".

    Video memories carry [videoId:...] instead of [photoId:...].
    """
    media_tag = ""
    if memory.media_ref:
        tag = "videoId" if memory.kind == MemoryKind.VIDEO_MEMORY else "photoId"
        media_tag = f" [{tag}:{memory.media_ref}]"
    return f"[{memory.created_date()}] ({memory.kind.value}) [id:{memory.id}]{media_tag} {memory.content}"


def format_fact_line(memory: Memory) -> str:
    subject = f"[{memory.subject}] " if memory.subject else ""
    return f"- ({memory.created_date()}) {subject}{memory.content}"


def exclude_speaker_own(memories: list[Memory], owner_id: int) -> list[Memory]:
    """Drop the speaker's own facts and summaries, which the facts section already covers."""
    return [
        m for m in memories if not (m.kind in _SPEAKER_ONLY_KINDS and m.owner_id == owner_id)
    ]


class AssembledContext(BaseModel):
    """Rendered prompt sections; None where a section is empty."""

    memory_context: str | None = None
    self_knowledge: str | None = None
    notes: str | None = None


class ContextAssembler:
    """Builds the knowledge injected into a generation call."""

    def __init__(
        self,
        memory_store: MemoryStore,
        people: PeopleGraph,
        self_knowledge: SelfKnowledge | None = None,
        notes: Notes | None = None,
        config: ContextConfig | None = None,
    ):
        self.memory_store = memory_store
        self.people = people
        self.self_knowledge = self_knowledge
        self.notes = notes
        self.config = config or ContextConfig()

    async def known_facts(self, owner_id: int) -> list[Memory]:
        """
        Facts for the prompt, oldest first.

        Shared mode takes the newest facts across all speakers; otherwise
        only the speaker's own.
        """
        if self.config.share_facts_across_owners:
            facts = await self.memory_store.all_facts()
        else:
            facts = await self.memory_store.facts_for(owner_id)
        window = facts[: self.config.fact_window]
        window.reverse()
        return window

    async def recent_memories(self, owner_id: int) -> list[Memory]:
        # Over-fetch so the window is still full after filtering
        recent = await self.memory_store.recent(self.config.recent_overfetch)
        return exclude_speaker_own(recent, owner_id)[: self.config.recent_window]

    async def build_memory_context(self, owner_id: int) -> str | None:
        """
        Render facts, recent memories and people.

        A failed store read drops its section and is logged.

        Returns:
            Joined sections, or None when all are empty
        """
        parts = []

        try:
            facts = await self.known_facts(owner_id)
        except Exception as e:
            logger.bind(
                owner_id=owner_id, error=str(e)
            ).error(f"Could not load facts for context: {e}")
            facts = []
        if facts:
            parts.append("### Known facts\n" + "\n".join(format_fact_line(m) for m in facts))

        try:
            recent = await self.recent_memories(owner_id)
        except Exception as e:
            logger.bind(
                owner_id=owner_id, error=str(e)
            ).error(f"Could not load recent memories for context: {e}")
            recent = []
        if recent:
            parts.append(
                "### Recent memories\n" + "\n".join(format_memory_line(m) for m in recent)
            )

        people_context = self.people.format_context()
        if people_context:
            parts.append(f"### People you know\n{people_context}")

        return "\n\n".join(parts) if parts else None

    async def assemble(self, owner_id: int) -> AssembledContext:
        return AssembledContext(
            memory_context=await self.build_memory_context(owner_id),
            self_knowledge=self.self_knowledge.format_for_prompt() if self.self_knowledge else None,
            notes=self.notes.format_for_prompt() if self.notes else None,
        )
