"""
Model Response Parsing
======================

Turns the model's raw text answer into a parsed JSON payload in three
independently testable stages:

1. REFUSAL DETECTION on the raw text (no JSON is expected after a refusal)
2. PAYLOAD EXTRACTION: fenced code block -> outermost {...} -> text as-is
3. STRICT PARSING with json.loads; failures are returned, not raised

Models wrap their JSON in prose or markdown fences often enough that
direct json.loads on the raw answer is not an option.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional, Tuple

logger = logging.getLogger(__name__)

REFUSAL_PHRASES: Tuple[str, ...] = ("i'm sorry", "i cannot", "i can't")

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


@dataclass
class ParseResult:
    """Outcome of strict parsing. Exactly one of data / error is meaningful."""
    success: bool
    data: Any = None
    error: Optional[str] = None
    raw_text: str = ""


def is_refusal(raw_text: str) -> bool:
    """Check the raw (pre-extraction) response for refusal phrasing."""
    lowered = raw_text.lower()
    return any(phrase in lowered for phrase in REFUSAL_PHRASES)


def extract_structure_payload(raw_text: str) -> str:
    """
    Pull the JSON payload out of an arbitrary text response.

    Args:
        raw_text: Model answer, possibly with prose or markdown fences

    Returns:
        Inner content of the first fenced block, else the substring from
        the first '{' to the last '}', else the text unchanged
    """
    match = _FENCED_BLOCK.search(raw_text)
    if match:
        return match.group(1).strip()

    start = raw_text.find("{")
    end = raw_text.rfind("}")
    if start != -1 and end > start:
        return raw_text[start:end + 1]

    return raw_text


def parse_structure(json_text: str, raw_text: Optional[str] = None) -> ParseResult:
    """
    Strictly parse an extracted payload.

    Args:
        json_text: Output of extract_structure_payload()
        raw_text: Original model answer, kept on failure for diagnostics

    Returns:
        ParseResult; never raises on bad input
    """
    original = json_text if raw_text is None else raw_text
    try:
        return ParseResult(success=True, data=json.loads(json_text), raw_text=original)
    except (json.JSONDecodeError, TypeError) as e:
        logger.debug(f"Strict JSON parse failed: {e}")
        return ParseResult(success=False, error=str(e), raw_text=original)
