"""
Tests for the extraction pipeline.

The LLM is an AsyncMock returning canned JSON; memories go through the real
dedup-gated store on embedded Qdrant.
"""

import json
from unittest.mock import AsyncMock

import pytest

from keepsake.config import ExtractionConfig
from keepsake.models.memory import MemoryKind
from keepsake.services.extraction import ExtractionPipeline, last_user_message, parse_extraction
from keepsake.utils.exceptions import LLMError


def _llm(payload) -> AsyncMock:
    llm = AsyncMock()
    llm.complete.return_value = payload if isinstance(payload, str) else json.dumps(payload)
    return llm


@pytest.fixture
def make_pipeline(memory_store, people, self_knowledge):
    def factory(llm, config=None):
        return ExtractionPipeline(
            llm=llm,
            memory_store=memory_store,
            people=people,
            self_knowledge=self_knowledge,
            config=config,
        )

    return factory


@pytest.mark.unit
class TestParseExtraction:
    """Test validation of raw model output."""

    def test_fenced_output(self):
        raw = '```json\n{"memories": [{"content": "Likes tea", "type": "user_fact", "tags": []}]}\n```'

        result = parse_extraction(raw)

        assert [m.content for m in result.memories] == ["Likes tea"]

    @pytest.mark.parametrize("raw", ["I could not find anything", "[1, 2]", '{"memories": [', None])
    def test_garbage_yields_empty(self, raw):
        assert parse_extraction(raw).is_empty()

    def test_partial_acceptance(self):
        """Bad items are dropped one by one."""
        raw = json.dumps(
            {
                "memories": [
                    {"content": "Nathan is a chef", "type": "user_fact", "tags": ["work"]},
                    {"content": "", "type": "user_fact", "tags": []},
                    {"content": "Pondering life", "type": "reflection", "tags": []},
                    {"content": "Went hiking", "type": "diary_entry", "tags": "outdoors"},
                ],
                "people_updates": [
                    {"name": "Nathan", "bio_snippet": "chef"},
                    {"name": "Lizzy"},
                    {"bio_snippet": "no name"},
                ],
            }
        )

        result = parse_extraction(raw)

        assert [m.content for m in result.memories] == ["Nathan is a chef"]
        assert [u.name for u in result.people_updates] == ["Nathan"]
        assert result.self_update is None

    def test_core_updates(self):
        raw = json.dumps({"memories": [], "core_updates": {"name": "Diary", "entries": ["x", ""]}})

        result = parse_extraction(raw)

        assert result.self_update.name == "Diary"
        assert result.self_update.entries == ["x"]

    @pytest.mark.parametrize("core", ["Diary", {"name": "", "entries": []}, []])
    def test_unusable_core_updates_dropped(self, core):
        raw = json.dumps({"memories": [], "core_updates": core})

        assert parse_extraction(raw).self_update is None

    def test_last_user_message(self):
        messages = [
            {"role": "user", "content": "first"},
            {"role": "assistant", "content": "reply"},
            {"role": "user", "content": "second"},
            {"role": "assistant", "content": "another reply"},
        ]

        assert last_user_message(messages) == "second"
        assert last_user_message([{"role": "assistant", "content": "hi"}]) is None


@pytest.mark.unit
@pytest.mark.asyncio
class TestExtractionPipeline:
    """Test applying extraction output to the stores."""

    async def test_no_user_message_skips_llm(self, make_pipeline):
        llm = _llm({"memories": []})
        pipeline = make_pipeline(llm)

        report = await pipeline.process_turn([{"role": "assistant", "content": "hi"}], owner_id=1)

        assert report.stored_memory_ids == []
        llm.complete.assert_not_called()

    async def test_llm_failure_yields_empty_report(self, make_pipeline, memory_store):
        llm = AsyncMock()
        llm.complete.side_effect = LLMError("model unavailable")
        pipeline = make_pipeline(llm)

        report = await pipeline.process_turn([{"role": "user", "content": "hello"}], owner_id=1)

        assert report.stored_memory_ids == []
        assert await memory_store.count() == 0

    async def test_unparsable_output_changes_nothing(self, make_pipeline, memory_store, people):
        pipeline = make_pipeline(_llm("Sorry, I can't help with that."))

        await pipeline.process_turn([{"role": "user", "content": "hello"}], owner_id=1)

        assert await memory_store.count() == 0
        assert people.people == []

    async def test_memories_are_stored_with_provenance(self, make_pipeline, memory_store):
        payload = {
            "memories": [
                {
                    "content": "Nathan works as a software engineer",
                    "type": "user_fact",
                    "tags": ["work"],
                    "subject": "Nathan",
                },
                {"content": "Nathan works as a software engineer", "type": "user_fact", "tags": []},
            ]
        }
        pipeline = make_pipeline(_llm(payload))

        report = await pipeline.process_turn(
            [{"role": "user", "content": "I'm a software engineer now!"}], owner_id=7
        )

        assert len(report.stored_memory_ids) == 1
        assert report.duplicates_skipped == 1
        stored = await memory_store.get(report.stored_memory_ids[0])
        assert stored.kind == MemoryKind.USER_FACT
        assert stored.owner_id == 7
        assert stored.subject == "Nathan"
        assert stored.source_text == "I'm a software engineer now!"

    async def test_failed_memory_is_counted(self, people, self_knowledge):
        store = AsyncMock()
        store.facts_for.return_value = []
        store.search.return_value = []
        store.add.side_effect = [RuntimeError("disk full"), "mem_ok"]
        payload = {
            "memories": [
                {"content": "first", "type": "diary_entry", "tags": []},
                {"content": "second", "type": "diary_entry", "tags": []},
            ]
        }
        pipeline = ExtractionPipeline(_llm(payload), store, people, self_knowledge)

        report = await pipeline.process_turn([{"role": "user", "content": "x"}], owner_id=1)

        assert report.failed_memories == 1
        assert report.stored_memory_ids == ["mem_ok"]

    async def test_person_updates(self, make_pipeline, people, tmp_path):
        """Rename happens before aliases, bio and relationships."""
        people.find_or_create("Liz")
        payload = {
            "memories": [],
            "people_updates": [
                {
                    "name": "Liz",
                    "rename": "Elizabeth",
                    "aliases": ["Lizzy"],
                    "bio_snippet": "Nathan's older sister, lives in Leeds and works in publishing",
                    "relationships": [
                        {"related_to": "Nathan", "type": "sibling", "label": "siblings"},
                        {"related_to": "Lizzy", "type": "friend", "label": "herself"},
                    ],
                },
                {
                    "name": "Nathan",
                    "relationships": [
                        {"related_to": "Elizabeth", "type": "sibling", "label": "siblings"}
                    ],
                },
            ],
        }
        pipeline = make_pipeline(_llm(payload))

        report = await pipeline.process_turn(
            [{"role": "user", "content": "Liz, I mean Elizabeth, is Nathan's sister"}], owner_id=1
        )

        elizabeth = people.find_by_name("Elizabeth")
        nathan = people.find_by_name("Nathan")
        assert elizabeth.aliases == ["Liz", "Lizzy"]
        assert len(elizabeth.bio) == 50
        assert report.relationships_added == 1
        assert len(people.relationships) == 1
        assert people.relationships_of(nathan.id)[0].other.id == elizabeth.id
        assert report.people_touched == [elizabeth.id, nathan.id]
        assert (tmp_path / "people.json").exists()

    async def test_self_knowledge_cap(self, make_pipeline, self_knowledge, tmp_path):
        self_knowledge.max_entries = 1
        payload = {"memories": [], "core_updates": {"name": "Diary", "entries": ["a", "b"]}}
        pipeline = make_pipeline(_llm(payload))

        report = await pipeline.process_turn(
            [{"role": "user", "content": "I'll call you Diary"}], owner_id=1
        )

        assert report.self_name_set is True
        assert report.self_entries_added == 1
        assert report.self_entries_rejected == 1
        assert self_knowledge.name == "Diary"
        assert (tmp_path / "core-memories.json").exists()

    async def test_prompt_context(self, make_pipeline, memory_store, people):
        await memory_store.add("Likes green tea", MemoryKind.USER_FACT, owner_id=3)
        people.find_or_create("Lizzy")
        llm = _llm({"memories": []})
        pipeline = make_pipeline(llm, config=ExtractionConfig(related_limit=3))

        await pipeline.process_turn(
            [{"role": "user", "content": "Remind me to buy tea"}],
            owner_id=3,
            speaker_name="Sam",
            notes_written=["Buy tea"],
        )

        prompt = llm.complete.call_args.args[0]
        assert "Existing memories:\n- (user_fact) Likes green tea" in prompt
        assert "Known people:\n- Lizzy" in prompt
        assert "- Buy tea" in prompt
        assert '"Sam"' in prompt
        assert prompt.endswith("New message from user:\nRemind me to buy tea")
        assert prompt.count("Likes green tea") == 1
