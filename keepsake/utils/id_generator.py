"""
ID generation utilities for Keepsake.

Provides consistent ID generation for all entity types:
- Memories: mem_xxx
- People: person_xxx
- Relationships: rel_xxx
- Self-knowledge entries: core_xxx
- Notes: note_xxx
"""

from uuid import uuid4


def generate_memory_id() -> str:
    """
    Generate unique Memory ID.

    Returns:
        ID in format "mem_xxx" where xxx is 12 hex characters
    """
    return f"mem_{uuid4().hex[:12]}"


def generate_person_id() -> str:
    """
    Generate unique Person ID.

    Returns:
        ID in format "person_xxx" where xxx is 12 hex characters
    """
    return f"person_{uuid4().hex[:12]}"


def generate_relationship_id() -> str:
    """Generate unique Relationship ID ("rel_" + 12 hex characters)."""
    return f"rel_{uuid4().hex[:12]}"


def generate_entry_id() -> str:
    """Generate unique self-knowledge entry ID ("core_" + 12 hex characters)."""
    return f"core_{uuid4().hex[:12]}"


def generate_note_id() -> str:
    """
    Generate unique Note ID.

    Returns:
        ID in format "note_xxx" where xxx is 12 hex characters
    """
    return f"note_{uuid4().hex[:12]}"
