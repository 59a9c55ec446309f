import json

from finstart.config import settings
from finstart.intent import IntentRequest
from finstart.intent.prompts import EXTRACTION_RULES, SELECTABLE_INTENTS, DirectiveBuilder


def _request(**overrides):
    fields = {
        "transcript": "My name is John Smith",
        "step": "personal_info",
        "context": {"full_name": None, "annual_income": 0, "is_resident": True},
    }
    fields.update(overrides)
    return IntentRequest(**fields)


def test_directive_carries_request():
    prompt = DirectiveBuilder().build(_request())

    assert "CURRENT STEP: personal_info" in prompt
    assert f"CONTEXT: {json.dumps({'full_name': None, 'annual_income': 0, 'is_resident': True})}" in prompt
    assert 'USER SAID: "My name is John Smith"' in prompt


def test_directive_lists_all_rules_in_order():
    prompt = DirectiveBuilder().build(_request())

    positions = [prompt.index(f"{i}. {rule}") for i, rule in enumerate(EXTRACTION_RULES, 1)]
    assert positions == sorted(positions)
    assert len(EXTRACTION_RULES) == 6
    assert '"12 lakhs" -> 1200000' in prompt


def test_directive_offers_every_intent_but_error():
    prompt = DirectiveBuilder().build(_request())

    assert "error" not in SELECTABLE_INTENTS
    for name in SELECTABLE_INTENTS:
        assert f'"{name}"' in prompt


def test_directive_restricts_keys_to_context():
    prompt = DirectiveBuilder().build(_request())
    assert "full_name, annual_income, is_resident" in prompt


def test_transcript_quotes_are_escaped():
    prompt = DirectiveBuilder().build(_request(transcript='He said "move on"'))
    assert 'USER SAID: "He said \\"move on\\""' in prompt


def test_persona_from_prompts_config():
    prompt = DirectiveBuilder().build(_request())
    assert prompt.startswith(settings.PROMPTS["voice_persona"])


def test_persona_override():
    prompt = DirectiveBuilder(persona="You are a test agent.").build(_request())
    assert prompt.startswith("You are a test agent.")


def test_empty_context():
    prompt = DirectiveBuilder().build(_request(context={}))
    assert "CONTEXT: {}" in prompt
    assert "(none)" in prompt
