import asyncio
import json

import pytest

from finstart.intent import FALLBACK_RESPONSE, Intent, IntentRequest, IntentResolver


def _reply(**fields):
    return json.dumps(fields)


async def _resolve(backend, transcript, context, step="personal_info"):
    resolver = IntentResolver(backend=backend)
    return await resolver.resolve(IntentRequest(transcript=transcript, step=step, context=context))


class TestResolve:

    async def test_fill_name(self, stub_backend):
        backend = stub_backend(_reply(
            intent="fill_data",
            data={"full_name": "John Smith"},
            ai_response="Thanks John, I've noted your name.",
        ))
        decision = await _resolve(backend, "My name is John Smith", {"full_name": None})

        assert decision.intent is Intent.FILL_DATA
        assert decision.data == {"full_name": "John Smith"}
        assert len(backend.prompts) == 1
        assert "My name is John Smith" in backend.prompts[0]

    async def test_income_in_lakhs(self, stub_backend):
        backend = stub_backend("```json\n" + _reply(
            intent="fill_data",
            data={"annual_income": 1200000},
            ai_response="Annual income set to 12 lakhs.",
        ) + "\n```")
        decision = await _resolve(backend, "12 lakhs", {"annual_income": None}, step="financial")

        assert decision.data == {"annual_income": 1200000}
        assert "12 lakhs" in backend.prompts[0]

    async def test_general_query(self, stub_backend):
        backend = stub_backend(_reply(
            intent="general_query",
            ai_response="Yes, your data is encrypted and handled under strict banking regulations.",
        ))
        decision = await _resolve(backend, "Is this safe?", {"full_name": None})

        assert decision.intent is Intent.GENERAL_QUERY
        assert decision.data == {}
        assert decision.ai_response

    async def test_edit(self, stub_backend):
        backend = stub_backend(_reply(intent="edit", ai_response="Of course, what would you like to change?"))
        decision = await _resolve(backend, "No, let me fix that", {"full_name": "Jon"})
        assert decision.intent is Intent.EDIT

    async def test_to_response_shape(self, stub_backend):
        backend = stub_backend(_reply(intent="confirm", ai_response="Great.", action_trigger=True))
        decision = await _resolve(backend, "Yes, submit now", {})

        assert decision.to_response() == {
            "intent": "confirm",
            "data": {},
            "ai_response": "Great.",
            "action_trigger": True,
        }


class TestFallback:

    async def test_prose_reply(self, stub_backend):
        decision = await _resolve(stub_backend("Sure, I can help with that!"), "hello", {})

        assert decision.intent is Intent.ERROR
        assert decision.ai_response == FALLBACK_RESPONSE
        assert decision.data == {}
        assert decision.error

    async def test_backend_down(self, stub_backend):
        backend = stub_backend(error=ConnectionError("connection refused"))
        decision = await _resolve(backend, "hello", {})

        assert decision.intent is Intent.ERROR
        assert "connection refused" in decision.error
        assert decision.to_response()["ai_response"] == FALLBACK_RESPONSE

    async def test_invented_field_carries_no_partial_data(self, stub_backend):
        backend = stub_backend(_reply(
            intent="fill_data",
            data={"full_name": "John", "nickname": "JJ"},
            ai_response="Thanks.",
        ))
        decision = await _resolve(backend, "I'm John, call me JJ", {"full_name": None})

        assert decision.intent is Intent.ERROR
        assert decision.data == {}

    @pytest.mark.parametrize("garbage", [
        "",
        "not json",
        "```json\n{broken\n```",
        "[1, 2, 3]",
        '{"intent": "dance", "ai_response": "ok"}',
        '{"intent": "confirm"}',
    ])
    async def test_fallback_is_deterministic(self, stub_backend, garbage):
        decision = await _resolve(stub_backend(garbage), "hmm", {"full_name": None})

        assert decision.intent is Intent.ERROR
        assert decision.ai_response == FALLBACK_RESPONSE

    async def test_unexpected_failure_absorbed(self, stub_backend):
        class BrokenBuilder:
            def build(self, request):
                raise RuntimeError("template exploded")

        resolver = IntentResolver(backend=stub_backend("{}"), directive_builder=BrokenBuilder())
        decision = await resolver.resolve(IntentRequest(transcript="hi", step="s", context={}))

        assert decision.intent is Intent.ERROR
        assert "template exploded" in decision.error


class TestCancellation:

    async def test_cancel_event_aborts_backend_call(self, stub_backend):
        backend = stub_backend(hang=True)
        resolver = IntentResolver(backend=backend)
        cancel = asyncio.Event()

        task = asyncio.create_task(
            resolver.resolve(IntentRequest(transcript="hello", step="s", context={}), cancel_event=cancel)
        )
        await asyncio.sleep(0.01)
        cancel.set()

        assert await task is None
        assert backend.cancelled

    async def test_already_cancelled_skips_backend(self, stub_backend):
        backend = stub_backend(_reply(intent="confirm", ai_response="Ok."))
        cancel = asyncio.Event()
        cancel.set()

        resolver = IntentResolver(backend=backend)
        result = await resolver.resolve(IntentRequest(transcript="yes", step="s", context={}), cancel_event=cancel)

        assert result is None
        assert backend.prompts == []

    async def test_unused_cancel_event(self, stub_backend):
        backend = stub_backend(_reply(intent="confirm", ai_response="Ok."))
        resolver = IntentResolver(backend=backend)

        decision = await resolver.resolve(
            IntentRequest(transcript="yes", step="s", context={}), cancel_event=asyncio.Event()
        )
        assert decision.intent is Intent.CONFIRM

    async def test_task_cancel_reaches_backend(self, stub_backend):
        backend = stub_backend(hang=True)
        resolver = IntentResolver(backend=backend)

        task = asyncio.create_task(
            resolver.resolve(IntentRequest(transcript="hello", step="s", context={}), cancel_event=asyncio.Event())
        )
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert backend.cancelled
