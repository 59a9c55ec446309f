"""
Directive Builder

Builds the single instruction string sent to the completion backend for
one utterance.
"""

import json
from typing import List, Optional

from finstart.config import settings
from finstart.intent.types import Intent, IntentRequest

# Intents the model may choose; 'error' is reserved for the local fallback
SELECTABLE_INTENTS = [i.value for i in Intent if i is not Intent.ERROR]

EXTRACTION_RULES = [
    'If the user provides data (e.g. "My name is John"), map it to the field in CONTEXT whose meaning '
    'best matches, put the extracted value in "data" and set intent to "fill_data".',
    'If the user confirms (e.g. "Yes", "Correct"), intent is "confirm". Use "next_step" only when the '
    'user explicitly asks to move forward (e.g. "move on", "next page").',
    'If the user denies or wants to change something (e.g. "No", "change that"), intent is "edit".',
    'Convert numbers and currencies to plain numeric values in the base unit '
    '(e.g. "12 lakhs" -> 1200000, "2 crore" -> 20000000, "fifty thousand" -> 50000).',
    'For addresses, extract the full address as a single string. Do not split it into parts.',
    'If the user asks a general finance question or about Finstart features (e.g. "Is this safe?", '
    '"What are the fees?"), give a direct, reassuring answer in "ai_response", set intent to '
    '"general_query" and leave "data" empty.',
]


class DirectiveBuilder:
    """
    Renders IntentRequests into backend directives.

    The persona line comes from the prompts file so it can be tuned from
    the admin API; the response contract and rules are fixed.
    """

    def __init__(self, persona: Optional[str] = None):
        self._persona = persona

    @property
    def persona(self) -> str:
        if self._persona is not None:
            return self._persona
        return settings.PROMPTS["voice_persona"]

    def build(self, request: IntentRequest) -> str:
        """
        Build the directive for one utterance.

        Args:
            request: Transcript, step and context snapshot

        Returns:
            Prompt text for a single completion call
        """
        intents = ", ".join(f'"{name}"' for name in SELECTABLE_INTENTS)
        fields = ", ".join(request.context.keys()) or "(none)"

        prompt_lines: List[str] = [
            self.persona,
            "",
            f"CURRENT STEP: {request.step}",
            f"CONTEXT: {json.dumps(request.context, ensure_ascii=False)}",
            f"USER SAID: {json.dumps(request.transcript, ensure_ascii=False)}",
            "",
            "Your goal is to extract the user's intent and data to update the form or navigate.",
            "",
            "=== RESPONSE FORMAT ===",
            "Return ONLY a JSON object with:",
            f'1. "intent": One of {intents}.',
            '2. "data": Key-value pairs of extracted data (only if intent is "fill_data"). '
            f"Keys MUST be taken from the CONTEXT fields: {fields}. Never invent new keys.",
            '3. "ai_response": A concise, professional, friendly, spoken-style response to the user. '
            "Keep it short (1-2 sentences).",
            '4. "action_trigger": Optional boolean, true only if an immediate action (like submitting) is requested.',
            "",
            "=== RULES ===",
        ]
        prompt_lines.extend(f"{i}. {rule}" for i, rule in enumerate(EXTRACTION_RULES, 1))
        prompt_lines.extend([
            "",
            "Always maintain a professional, helpful banking persona.",
            "",
            "JSON Response:",
        ])

        return "\n".join(prompt_lines)
