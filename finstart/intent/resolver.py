"""
Intent Resolver

Classifies one utterance against a form snapshot. Every failure is folded
into a fixed fallback decision so the voice UI always has something to say.
"""

import asyncio
import logging
from typing import Optional

from finstart.intent.backend import ChatOpenAIBackend, CompletionBackend
from finstart.intent.errors import BackendUnavailable, IntentResolutionError
from finstart.intent.parsing import parse_decision
from finstart.intent.prompts import DirectiveBuilder
from finstart.intent.types import Intent, IntentDecision, IntentRequest

logger = logging.getLogger(__name__)

FALLBACK_RESPONSE = "I didn't quite catch that. Could you repeat?"


def fallback_decision(error: IntentResolutionError) -> IntentDecision:
    return IntentDecision(
        intent=Intent.ERROR,
        ai_response=FALLBACK_RESPONSE,
        error=str(error) or error.__class__.__name__,
    )


class IntentResolver:
    """
    Stateless utterance classifier.

    Responsibilities:
    - Build the directive for the backend
    - Make exactly one completion call per utterance (no retries)
    - Parse and validate the reply, or fall back to the error decision
    - Abandon the pending call when the caller's cancel signal fires
    """

    def __init__(
        self,
        backend: Optional[CompletionBackend] = None,
        directive_builder: Optional[DirectiveBuilder] = None,
    ):
        self.backend = backend or ChatOpenAIBackend()
        self.directive_builder = directive_builder or DirectiveBuilder()

    async def resolve(
        self,
        request: IntentRequest,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[IntentDecision]:
        """
        Resolve one utterance.

        Args:
            request: Transcript, step and context snapshot
            cancel_event: Optional signal; once set, the backend call is
                cancelled and nothing is returned

        Returns:
            IntentDecision, or None when cancelled through cancel_event
        """
        try:
            prompt = self.build_directive(request)
            text = await self._complete(prompt, cancel_event)
            if text is None:
                logger.info("Intent resolution cancelled (step=%s)", request.step)
                return None
            decision = parse_decision(text, request.context)
        except IntentResolutionError as e:
            logger.warning("Intent error (step=%s): %s", request.step, e)
            return fallback_decision(e)
        except Exception as e:
            logger.exception("Unexpected intent failure (step=%s)", request.step)
            return fallback_decision(IntentResolutionError(f"Unexpected error: {e}"))

        logger.debug("Intent for step=%s: %s", request.step, decision.intent.value)
        return decision

    def build_directive(self, request: IntentRequest) -> str:
        return self.directive_builder.build(request)

    async def _complete(self, prompt: str, cancel_event: Optional[asyncio.Event]) -> Optional[str]:
        if cancel_event is None:
            return await self._call_backend(prompt)

        if cancel_event.is_set():
            return None

        completion = asyncio.ensure_future(self._call_backend(prompt))
        cancelled = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({completion, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            # Covers the outer task itself being cancelled while waiting
            for pending in (completion, cancelled):
                if not pending.done():
                    pending.cancel()
            await asyncio.gather(completion, cancelled, return_exceptions=True)

        if cancel_event.is_set() or completion.cancelled():
            return None
        return completion.result()

    async def _call_backend(self, prompt: str) -> str:
        try:
            return await self.backend.complete(prompt)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise BackendUnavailable(f"Completion backend failed: {e}") from e
