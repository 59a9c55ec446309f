"""
Response Parsing

Pure helpers that turn raw backend text into a validated IntentDecision.
"""

import json
import re
from typing import Any, Dict, Mapping

from pydantic import ValidationError

from finstart.intent.errors import MalformedOutput, SchemaViolation
from finstart.intent.types import Intent, IntentDecision

# ```json / ```JSON / ``` opening marker, with its optional language tag
_OPENING_FENCE = re.compile(r"^\s*```[A-Za-z0-9_+-]*[ \t]*(?:\r?\n)?")
_CLOSING_FENCE = re.compile(r"(?:\r?\n)?[ \t]*```\s*$")


def strip_code_fences(text: str) -> str:
    """
    Remove markdown code-block delimiters wrapped around model output.

    Only a leading and a trailing fence are removed; anything between them
    is returned untouched apart from surrounding whitespace.

    Args:
        text: Raw completion text

    Returns:
        The unwrapped payload
    """
    stripped = _OPENING_FENCE.sub("", text, count=1)
    stripped = _CLOSING_FENCE.sub("", stripped, count=1)
    return stripped.strip()


def decode_json_object(text: str) -> Dict[str, Any]:
    """Fence-strip and decode text that must hold exactly one JSON object."""
    payload = strip_code_fences(text)
    if not payload:
        raise MalformedOutput("Empty response from model")

    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as e:
        raise MalformedOutput(f"Model response is not valid JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise MalformedOutput(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


def parse_decision(text: str, context: Mapping[str, Any]) -> IntentDecision:
    """
    Parse backend text into a decision bound to the supplied context.

    Args:
        text: Raw completion text, optionally fenced
        context: Form snapshot the utterance was classified against

    Returns:
        Validated IntentDecision

    Raises:
        MalformedOutput: text is not a JSON object
        SchemaViolation: object does not satisfy the decision contract
    """
    raw = decode_json_object(text)

    raw.pop("error", None)
    if raw.get("data") is None:
        raw["data"] = {}

    if raw.get("intent") == Intent.ERROR.value:
        # The model does not get to pick the fallback path
        raise SchemaViolation("Model returned the reserved 'error' intent")

    try:
        decision = IntentDecision.model_validate(raw)
    except ValidationError as e:
        raise SchemaViolation(f"Model response does not match schema: {e.errors()}") from e

    if decision.intent is not Intent.FILL_DATA:
        decision.data = {}
        return decision

    unknown = sorted(set(decision.data) - set(context))
    if unknown:
        raise SchemaViolation(f"Extracted fields not in context: {', '.join(unknown)}")

    return decision
