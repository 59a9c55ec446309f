from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from finstart.chat import ChatAssistant, build_history
from finstart.config import settings
from finstart.main import app
from finstart.routes.chat import get_assistant


class FakeLLM:
    def __init__(self, reply="Happy to help!", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def ainvoke(self, messages, config=None):
        self.calls.append((messages, config))
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.reply)


class TestBuildHistory:

    def test_leading_assistant_turns_dropped(self):
        history = build_history([
            {"role": "assistant", "content": "Hi, I'm Finstart AI."},
            {"role": "user", "content": "What is KYC?"},
            {"role": "assistant", "content": "Know Your Customer."},
        ])
        assert history == [HumanMessage(content="What is KYC?"), AIMessage(content="Know Your Customer.")]

    def test_no_user_turn(self):
        assert build_history([{"role": "assistant", "content": "Hello"}]) == []

    def test_unknown_roles_become_assistant(self):
        history = build_history([
            {"role": "user", "content": "hi"},
            {"role": "bot", "content": "hello"},
        ])
        assert isinstance(history[1], AIMessage)


async def test_reply_sends_persona_history_and_last_message():
    llm = FakeLLM()
    assistant = ChatAssistant(llm=llm)

    text = await assistant.reply([
        {"role": "assistant", "content": "Welcome!"},
        {"role": "user", "content": "How long does onboarding take?"},
        {"role": "assistant", "content": "About five minutes."},
        {"role": "user", "content": "Do I need my PAN card?"},
    ])

    assert text == "Happy to help!"
    messages, config = llm.calls[0]
    assert messages[0] == SystemMessage(content=settings.PROMPTS["assistant_persona"])
    assert messages[1:] == [
        HumanMessage(content="How long does onboarding take?"),
        AIMessage(content="About five minutes."),
        HumanMessage(content="Do I need my PAN card?"),
    ]
    assert "chat" in config["tags"]


def test_chat_route(client):
    app.dependency_overrides[get_assistant] = lambda: ChatAssistant(llm=FakeLLM("Yes, keep it handy."))

    response = client.post("/api/chat", json={"messages": [{"role": "user", "content": "Need PAN?"}]})

    assert response.status_code == 200
    assert response.json() == {"content": "Yes, keep it handy."}


def test_chat_requires_messages(client):
    app.dependency_overrides[get_assistant] = lambda: ChatAssistant(llm=FakeLLM())

    assert client.post("/api/chat", json={}).status_code == 400
    response = client.post("/api/chat", json={"messages": []})
    assert response.status_code == 400
    assert response.json()["detail"] == "Messages are required"


def test_chat_backend_failure(client):
    app.dependency_overrides[get_assistant] = lambda: ChatAssistant(llm=FakeLLM(error=RuntimeError("quota exceeded")))

    response = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})

    assert response.status_code == 500
    assert response.json()["detail"] == "quota exceeded"
