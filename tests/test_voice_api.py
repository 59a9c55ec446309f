import json

from finstart.intent import FALLBACK_RESPONSE, IntentResolver
from finstart.main import app
from finstart.routes.voice import get_resolver


def _use_backend(backend):
    app.dependency_overrides[get_resolver] = lambda: IntentResolver(backend=backend)


def test_health(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"]


def test_intent_fill_data(client, stub_backend):
    backend = stub_backend(json.dumps({
        "intent": "fill_data",
        "data": {"full_name": "John Smith"},
        "ai_response": "Thanks John.",
    }))
    _use_backend(backend)

    response = client.post("/api/voice/intent", json={
        "transcript": "My name is John Smith",
        "step": "personal_info",
        "context": {"full_name": None, "dob": None},
    })

    assert response.status_code == 200
    assert response.json() == {
        "intent": "fill_data",
        "data": {"full_name": "John Smith"},
        "ai_response": "Thanks John.",
    }
    assert "CURRENT STEP: personal_info" in backend.prompts[0]


def test_intent_error_decision_is_200(client, stub_backend):
    _use_backend(stub_backend("I am not JSON"))

    response = client.post("/api/voice/intent", json={
        "transcript": "blah",
        "step": "personal_info",
        "context": {},
    })

    assert response.status_code == 200
    body = response.json()
    assert body["intent"] == "error"
    assert body["ai_response"] == FALLBACK_RESPONSE
    assert body["error"]
    assert body["data"] == {}


def test_blank_transcript_rejected(client, stub_backend):
    _use_backend(stub_backend("{}"))

    response = client.post("/api/voice/intent", json={"transcript": "   ", "step": "x", "context": {}})
    assert response.status_code == 422


def test_missing_step_rejected(client, stub_backend):
    _use_backend(stub_backend("{}"))

    response = client.post("/api/voice/intent", json={"transcript": "hello", "context": {}})
    assert response.status_code == 422
