"""
Services for Keepsake.

High-level business logic services:
- MemoryEngine: Unified interface wiring stores, context and extraction
- PeopleGraph: People, aliases and relationships
- SelfKnowledge / Notes: Documents the agent keeps about itself
- ExtractionPipeline: Conversation turn -> validated store mutations
- ContextAssembler: Stored knowledge -> prompt sections
- MemoryToolbox: Retrieval and mutation tools for the generation call
"""

from keepsake.services.agent_documents import Notes, SelfKnowledge, load_persona
from keepsake.services.context_assembler import (
    AssembledContext,
    ContextAssembler,
    format_memory_line,
)
from keepsake.services.extraction import ExtractionPipeline, ExtractionReport, parse_extraction
from keepsake.services.memory_engine import MemoryEngine
from keepsake.services.memory_tools import MemoryToolbox, Tool
from keepsake.services.people_graph import PeopleGraph
from keepsake.services.prompts import EXTRACTION_PROMPT, build_system_prompt

__all__ = [
    "MemoryEngine",
    "PeopleGraph",
    "SelfKnowledge",
    "Notes",
    "load_persona",
    "ExtractionPipeline",
    "ExtractionReport",
    "parse_extraction",
    "ContextAssembler",
    "AssembledContext",
    "format_memory_line",
    "MemoryToolbox",
    "Tool",
    "build_system_prompt",
    "EXTRACTION_PROMPT",
]
