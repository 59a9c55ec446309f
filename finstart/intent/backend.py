"""
Completion Backends

The resolver only needs `complete(prompt) -> text`. The default backend
wraps LangChain's ChatOpenAI; tests plug in a stub.
"""

from typing import Any, Dict, Optional, Protocol

from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI

from finstart.config import settings
from finstart.services.langsmith_tracer import tracer


class CompletionBackend(Protocol):
    async def complete(self, prompt: str) -> str:
        ...


class ChatOpenAIBackend:
    """
    Single-shot text completion against an OpenAI chat model.

    Args:
        model: Model name, defaults to the fast intent model
        temperature: Sampling temperature
        session_id: Voice session the completions belong to, for tracing
    """

    def __init__(
        self,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        session_id: Optional[str] = None,
    ):
        self.model = model or settings.INTENT_MODEL
        self.temperature = settings.INTENT_TEMPERATURE if temperature is None else temperature
        self.session_id = session_id
        self._llm = None

    @property
    def llm(self):
        """Lazy initialization of LLM."""
        if self._llm is None:
            self._llm = ChatOpenAI(model=self.model, temperature=self.temperature)
        return self._llm

    def run_config(self) -> Dict[str, Any]:
        if self.session_id:
            return tracer.get_voice_session_config(self.session_id)
        return tracer.get_intent_config()

    async def complete(self, prompt: str) -> str:
        response = await self.llm.ainvoke([HumanMessage(content=prompt)], config=self.run_config())
        return str(response.content)
