"""
Chat Assistant

Stateless chat turn: the caller sends the full transcript every time and
gets the assistant's next message back.
"""

from typing import Dict, List, Optional, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from finstart.config import settings
from finstart.services.langsmith_tracer import tracer


def build_history(messages: Sequence[Dict[str, str]]) -> List[BaseMessage]:
    """
    Convert prior chat turns into LangChain messages.

    Any role other than 'user' is treated as the assistant. Leading
    assistant turns (e.g. the UI greeting) are dropped so the history
    starts with the user.
    """
    history: List[BaseMessage] = [
        HumanMessage(content=m["content"]) if m["role"] == "user" else AIMessage(content=m["content"])
        for m in messages
    ]

    first_user = next((i for i, m in enumerate(history) if isinstance(m, HumanMessage)), None)
    if first_user is None:
        return []
    return history[first_user:]


class ChatAssistant:
    """Finstart onboarding assistant backed by the chat model."""

    def __init__(self, llm: Optional[ChatOpenAI] = None):
        self._llm = llm

    @property
    def llm(self):
        """Lazy initialization of LLM."""
        if self._llm is None:
            self._llm = ChatOpenAI(model=settings.LLM_MODEL, temperature=settings.LLM_TEMPERATURE)
        return self._llm

    async def reply(self, messages: Sequence[Dict[str, str]]) -> str:
        """
        Generate the assistant's reply to the last message.

        Args:
            messages: Full transcript as {role, content} dicts, last one from the user

        Returns:
            Reply text
        """
        history = build_history(messages[:-1])
        system = SystemMessage(content=settings.PROMPTS["assistant_persona"])
        last = HumanMessage(content=messages[-1]["content"])

        response = await self.llm.ainvoke(
            [system] + history + [last],
            config=tracer.get_chat_config(turn_count=len(messages)),
        )
        return str(response.content)
