"""
Centralized LangSmith Tracing Service

Provides consistent tracing configuration for every LLM call the service
makes. Each call site has a dedicated helper for naming and labeling.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from finstart.config import settings

logger = logging.getLogger(__name__)


class LangSmithTracer:
    """
    Builds LangChain run configs (run_name, tags, metadata).

    Features:
    - Consistent run naming conventions
    - Standardized metadata for all operations
    - One helper per operation type
    """

    def __init__(self):
        self.project_name = settings.LANGCHAIN_PROJECT
        self.is_enabled = settings.LANGCHAIN_TRACING_V2

    def initialize(self):
        """Initialize LangSmith tracing with environment variables."""
        if self.is_enabled and settings.LANGCHAIN_API_KEY:
            os.environ["LANGCHAIN_TRACING_V2"] = "true"
            os.environ["LANGCHAIN_API_KEY"] = settings.LANGCHAIN_API_KEY
            os.environ["LANGCHAIN_PROJECT"] = self.project_name
            logger.info("LangSmith tracing enabled: %s", self.project_name)
        elif self.is_enabled:
            logger.warning("LANGCHAIN_TRACING_V2 is set but LANGCHAIN_API_KEY is missing; tracing disabled")
        else:
            logger.info("LangSmith tracing disabled")

    def _generate_run_name(self, operation: str, context: Optional[str] = None) -> str:
        """
        Format: [Operation] Context
        Example: [Intent] voice_extraction
        """
        if not context:
            context = "main"
        return f"[{operation}] {context}"

    def _build_base_metadata(self, session_id: Optional[str] = None, **extra) -> Dict[str, Any]:
        """Build base metadata that should be present in all traces."""
        metadata = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "project": self.project_name,
        }
        if session_id:
            metadata["session_id"] = session_id
        metadata.update(extra)
        return metadata

    def get_intent_config(self, session_id: Optional[str] = None, **extra) -> Dict[str, Any]:
        """
        Get tracing config for voice intent extraction.

        Built per completion so each trace carries its own timestamp.

        Args:
            session_id: Voice session ID, when called from the websocket
            **extra: Additional metadata

        Returns:
            Config dict for LangChain invoke
        """
        return {
            "run_name": self._generate_run_name("Intent", "voice_extraction"),
            "tags": ["intent", "voice_kyc"],
            "metadata": self._build_base_metadata(
                session_id=session_id,
                operation="intent_extraction",
                model=settings.INTENT_MODEL,
                **extra
            ),
        }

    def get_chat_config(self, turn_count: int = 0, **extra) -> Dict[str, Any]:
        """
        Get tracing config for the chat assistant.

        Args:
            turn_count: Number of messages in the request
            **extra: Additional metadata
        """
        return {
            "run_name": self._generate_run_name("Chat", "assistant"),
            "tags": ["chat", "assistant", f"turns:{turn_count}"],
            "metadata": self._build_base_metadata(
                operation="chat_completion",
                model=settings.LLM_MODEL,
                turn_count=turn_count,
                **extra
            ),
        }

    def get_voice_session_config(self, session_id: str) -> Dict[str, Any]:
        """Root-level config for utterances resolved inside a voice websocket session."""
        config = self.get_intent_config(session_id=session_id)
        config["run_name"] = self._generate_run_name("VoiceSession", session_id[:8])
        config["tags"].append("websocket")
        return config

    def get_document_config(self, doc_type: str, content_type: str = "") -> Dict[str, Any]:
        """Tracing config for KYC document verification."""
        return {
            "run_name": self._generate_run_name("Document", doc_type),
            "tags": ["document", "kyc", f"doc_type:{doc_type}"],
            "metadata": self._build_base_metadata(
                operation="document_verification",
                model=settings.DOCUMENT_MODEL,
                content_type=content_type,
            ),
        }


# Global singleton instance
tracer = LangSmithTracer()
