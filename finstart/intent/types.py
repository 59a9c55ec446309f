"""
Intent Schema

Request and decision models exchanged with the voice UI.
"""

from enum import Enum
from typing import Dict, Optional, Union

from pydantic import BaseModel, Field, field_validator

FieldValue = Union[str, int, float, bool, None]
OnboardingContext = Dict[str, FieldValue]


class Intent(str, Enum):
    """Closed set of purposes an utterance can be classified into."""

    FILL_DATA = "fill_data"
    NEXT_STEP = "next_step"
    PREV_STEP = "prev_step"
    CONFIRM = "confirm"
    EDIT = "edit"
    GENERAL_QUERY = "general_query"
    ERROR = "error"


class IntentRequest(BaseModel):
    """
    One utterance to classify.

    Fields:
        transcript: Raw recognized speech
        step: Identifier of the onboarding step on screen (e.g. 'personal_info')
        context: Current form state, field name -> value
    """
    transcript: str = Field(min_length=1)
    step: str
    context: OnboardingContext = Field(default_factory=dict)

    @field_validator("transcript")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("transcript must not be blank")
        return value


class IntentDecision(BaseModel):
    """
    Structured decision returned for one utterance.

    Fields:
        intent: Classified purpose
        data: Extracted field values, only populated for fill_data
        ai_response: Short spoken-style reply, never empty
        action_trigger: True when the user asked for an immediate action
        error: Diagnostic message, only set on the fallback decision
    """
    intent: Intent
    data: Dict[str, FieldValue] = Field(default_factory=dict)
    ai_response: str = Field(min_length=1)
    action_trigger: Optional[bool] = None
    error: Optional[str] = None

    @field_validator("ai_response")
    @classmethod
    def _response_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("ai_response must not be blank")
        return value.strip()

    def to_response(self) -> Dict:
        """JSON body sent back to the caller."""
        return self.model_dump(mode="json", exclude_none=True)
