"""
Voice Intent Module

Turns one recognized utterance into a structured form-filling decision.

Architecture:
- types.py: Intent enum, request and decision models
- errors.py: Failure taxonomy
- prompts.py: Directive builder and extraction rules
- parsing.py: Fence-stripping and decision validation
- backend.py: Completion backend protocol and ChatOpenAI implementation
- resolver.py: IntentResolver tying it together
"""

from finstart.intent.errors import BackendUnavailable, IntentResolutionError, MalformedOutput, SchemaViolation
from finstart.intent.parsing import parse_decision, strip_code_fences
from finstart.intent.resolver import FALLBACK_RESPONSE, IntentResolver
from finstart.intent.types import Intent, IntentDecision, IntentRequest

__all__ = [
    'BackendUnavailable',
    'FALLBACK_RESPONSE',
    'Intent',
    'IntentDecision',
    'IntentRequest',
    'IntentResolutionError',
    'IntentResolver',
    'MalformedOutput',
    'SchemaViolation',
    'parse_decision',
    'strip_code_fences',
]
