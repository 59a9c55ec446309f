"""
Pytest configuration and fixtures
"""
import asyncio
import os

import pytest

# Keep unit tests away from real providers
os.environ["OPENAI_API_KEY"] = ""
os.environ.setdefault("LANGCHAIN_TRACING_V2", "false")
os.environ.pop("SMTP_USER", None)
os.environ.pop("SMTP_PASS", None)

from fastapi.testclient import TestClient

from finstart.main import app


class StubBackend:
    """Completion backend returning canned text and recording prompts."""

    def __init__(self, reply="", error=None, hang=False):
        self.reply = reply
        self.error = error
        self.hang = hang
        self.prompts = []
        self.cancelled = False

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.hang:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.cancelled = True
                raise
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def stub_backend():
    return StubBackend


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
