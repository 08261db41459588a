"""
Memory tools the generation call may invoke.

Each tool returns a display string for the model. Tools are bound to the
speaker of the current turn.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from keepsake.core.memory_store.memory_store import MemoryStore
from keepsake.services.agent_documents import Notes
from keepsake.services.context_assembler import exclude_speaker_own, format_memory_line
from keepsake.services.people_graph import PeopleGraph
from keepsake.utils.exceptions import ValidationError
from keepsake.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    input_schema: dict[str, Any]


TOOLS: list[Tool] = [
    Tool(
        name="search_memories",
        description=(
            "Search past memories by semantic similarity. Use this when the user asks about "
            "past events, topics or photos, or to reference earlier conversations."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "What you are looking for"},
                "limit": {"type": "integer", "description": "Max results", "default": 5},
            },
            "required": ["query"],
        },
    ),
    Tool(
        name="search_by_date",
        description=(
            "Search memories by date range, e.g. 'what happened on February 11th' "
            "or 'this week'."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "start_date": {"type": "string", "description": "Inclusive start, YYYY-MM-DD"},
                "end_date": {"type": "string", "description": "Exclusive end, YYYY-MM-DD"},
            },
            "required": ["start_date", "end_date"],
        },
    ),
    Tool(
        name="get_recent_memories",
        description="Get the most recent memories for general context on what's been happening.",
        input_schema={
            "type": "object",
            "properties": {
                "limit": {"type": "integer", "description": "How many", "default": 10},
            },
        },
    ),
    Tool(
        name="get_person_info",
        description=(
            "Get a person's bio, relationships and related memories, e.g. "
            "'tell me about Lizzy' or 'who is Simon?'."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Name or alias of the person"},
            },
            "required": ["name"],
        },
    ),
    Tool(
        name="save_note",
        description=(
            "Save a reminder for your future self: birthdays, follow-ups, promises. "
            "Not for facts about the user; those are extracted automatically."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "content": {"type": "string", "description": "The reminder"},
            },
            "required": ["content"],
        },
    ),
    Tool(
        name="complete_note",
        description="Remove a note after you have acted on it.",
        input_schema={
            "type": "object",
            "properties": {
                "note_id": {"type": "string", "description": "ID of the note"},
            },
            "required": ["note_id"],
        },
    ),
    Tool(
        name="forget_memory",
        description=(
            "Delete outdated or incorrect memories by the IDs shown in [id:...] tags, "
            "e.g. when the user corrects a stored fact."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "memory_ids": {
                    "type": "array",
                    "items": {"type": "string"},
                    "minItems": 1,
                    "description": "IDs of the memories to delete",
                },
                "reason": {"type": "string", "description": "Why they are outdated"},
            },
            "required": ["memory_ids", "reason"],
        },
    ),
]


def _parse_day(value: str) -> datetime:
    return datetime.combine(date.fromisoformat(value.strip()[:10]), datetime.min.time())


def _limit_arg(args: dict[str, Any], default: int) -> int:
    # Models sometimes send numbers as strings
    value = args.get("limit", default)
    try:
        limit = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(
            f"limit must be an integer, got {value!r}", context={"limit": value}
        ) from e
    return max(limit, 1)


class MemoryToolbox:
    """Retrieval and mutation tools bound to one speaker."""

    def __init__(
        self,
        memory_store: MemoryStore,
        people: PeopleGraph,
        notes: Notes | None,
        owner_id: int,
    ):
        self.memory_store = memory_store
        self.people = people
        self.notes = notes
        self.owner_id = owner_id
        #: Notes saved through this toolbox, handed to extraction afterwards
        self.notes_written: list[str] = []

    @staticmethod
    def list_tools() -> list[Tool]:
        return list(TOOLS)

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> str:
        """
        Dispatch a tool call.

        Args:
            name: Tool name
            arguments: Tool arguments as decoded from the model

        Returns:
            Display string for the model

        Raises:
            ValidationError: If the tool is unknown or a required argument is missing
        """
        args = arguments or {}
        handlers = {
            "search_memories": lambda: self.search_memories(args["query"], _limit_arg(args, 5)),
            "search_by_date": lambda: self.search_by_date(args["start_date"], args["end_date"]),
            "get_recent_memories": lambda: self.get_recent_memories(_limit_arg(args, 10)),
            "get_person_info": lambda: self.get_person_info(args["name"]),
            "save_note": lambda: self.save_note(args["content"]),
            "complete_note": lambda: self.complete_note(args["note_id"]),
            "forget_memory": lambda: self.forget_memory(args["memory_ids"], args.get("reason", "")),
        }
        tool = next((t for t in TOOLS if t.name == name), None)
        if tool is None:
            raise ValidationError(f"Unknown tool: {name}")

        missing = [key for key in tool.input_schema.get("required", []) if key not in args]
        if missing:
            raise ValidationError(
                f"Missing arguments for tool {name}: {', '.join(missing)}",
                context={"tool": name, "missing": missing},
            )

        logger.bind(tool=name, arguments=args).debug(f"Tool call {name}")
        return await handlers[name]()

    async def search_memories(self, query: str, limit: int = 5) -> str:
        results = await self.memory_store.search(query, limit=limit)
        if not results:
            return "No matching memories found."
        return "\n".join(format_memory_line(m) for m in results)

    async def search_by_date(self, start_date: str, end_date: str) -> str:
        try:
            start, end = _parse_day(start_date), _parse_day(end_date)
        except ValueError:
            return "Dates must be ISO dates like 2026-02-11."

        results = await self.memory_store.by_date_range(start, end)
        if not results:
            return "No memories found for that date range."
        return "\n".join(format_memory_line(m) for m in results)

    async def get_recent_memories(self, limit: int = 10) -> str:
        raw = await self.memory_store.recent(limit * 3)
        results = exclude_speaker_own(raw, self.owner_id)[:limit]
        if not results:
            return "No memories stored yet."
        return "\n".join(format_memory_line(m) for m in results)

    async def get_person_info(self, name: str) -> str:
        person = self.people.find_by_name(name)
        if person is None:
            return f'No known person named "{name}".'

        detail = self.people.format_detail(person.id) or ""
        related = await self.memory_store.by_subject(person.all_names())
        if related:
            detail += "\n\nRelated memories:\n" + "\n".join(format_memory_line(m) for m in related)
        return detail

    async def save_note(self, content: str) -> str:
        if self.notes is None:
            return "Notes are not available."
        note = self.notes.add_note(content)
        if note is None:
            return "Notes limit reached. Complete some existing notes first."
        await self.notes.save()
        self.notes_written.append(note.content)
        return f"Note saved (id: {note.id})."

    async def complete_note(self, note_id: str) -> str:
        if self.notes is None:
            return "Notes are not available."
        if not self.notes.remove_note(note_id):
            return "Note not found. It may have already been completed."
        await self.notes.save()
        return "Note completed and removed."

    async def forget_memory(self, memory_ids: list[str], reason: str = "") -> str:
        deleted = 0
        for memory_id in memory_ids:
            if await self.memory_store.delete(memory_id):
                deleted += 1

        logger.bind(
            owner_id=self.owner_id, memory_ids=memory_ids, reason=reason
        ).info(f"Forgot {deleted} memories")
        return f"Deleted {deleted} {'memory' if deleted == 1 else 'memories'}."
