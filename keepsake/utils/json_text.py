"""
Helpers for JSON returned by language models.
"""

import json
from typing import Any


def strip_code_fences(content: str) -> str:
    """
    Extract JSON from content that might have markdown formatting.

    Args:
        content: Raw content that may contain JSON

    Returns:
        Cleaned JSON string
    """
    content = content.strip()

    # Remove markdown code blocks
    if "```json" in content:
        content = content.split("```json", 1)[1].split("```", 1)[0].strip()
    elif "```" in content:
        content = content.split("```", 1)[1].split("```", 1)[0].strip()

    return content


def loads_lenient(content: str) -> Any | None:
    """
    Parse model output as JSON after stripping code fences.

    Returns:
        Parsed value, or None when the text is not valid JSON
    """
    try:
        return json.loads(strip_code_fences(content))
    except (json.JSONDecodeError, TypeError):
        return None
