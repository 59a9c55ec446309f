import asyncio
import base64
import binascii
import json
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ValidationError

from finstart.config import settings
from finstart.intent import IntentRequest, IntentResolver
from finstart.intent.backend import ChatOpenAIBackend
from finstart.intent.types import OnboardingContext
from finstart.routes.admin import register_session, unregister_session, update_session
from finstart.services.audio import generate_audio, transcribe_audio

logger = logging.getLogger(__name__)

router = APIRouter()

# Audio payloads smaller than this cannot contain real speech.
MIN_AUDIO_BYTES = 1000


class StepUpdate(BaseModel):
    step: str
    context: OnboardingContext = {}


def create_session_resolver(session_id: str) -> IntentResolver:
    backend = ChatOpenAIBackend(session_id=session_id)
    return IntentResolver(backend=backend)


def decode_audio_payload(audio_b64: str) -> bytes:
    """Decode base64 audio, accepting data-URL prefixed strings."""
    if "," in audio_b64:
        audio_b64 = audio_b64.split(",", 1)[1]
    return base64.b64decode(audio_b64)


async def send_json(websocket: WebSocket, message: dict):
    await websocket.send_text(json.dumps(message))


async def answer_utterance(
    websocket: WebSocket,
    session_id: str,
    resolver: IntentResolver,
    request: IntentRequest,
    cancel_event: asyncio.Event,
):
    """Resolve one utterance and speak the reply, unless the user talked over it."""
    decision = await resolver.resolve(request, cancel_event=cancel_event)
    if decision is None or cancel_event.is_set():
        return

    loop = asyncio.get_running_loop()
    audio = await loop.run_in_executor(None, generate_audio, decision.ai_response)
    if cancel_event.is_set():
        return

    await send_json(websocket, {
        "type": "intent",
        "transcript": request.transcript,
        "decision": decision.to_response(),
        "audio": audio,
    })
    await update_session(session_id, utterance={
        "transcript": request.transcript,
        "intent": decision.intent.value,
    })


@router.websocket("/ws/voice")
async def voice_session(websocket: WebSocket):
    await websocket.accept()
    session_id = str(uuid.uuid4())
    logger.info("Voice session %s connected", session_id)

    resolver = create_session_resolver(session_id)
    step = "unknown"
    context: dict = {}
    pending: Optional[asyncio.Task] = None
    cancel_event: Optional[asyncio.Event] = None

    loop = asyncio.get_running_loop()
    await register_session(session_id)

    try:
        greeting_text = settings.PROMPTS["voice_greeting"]
        greeting_audio = await loop.run_in_executor(None, generate_audio, greeting_text)
        await send_json(websocket, {
            "type": "audio",
            "content": greeting_text,
            "audio": greeting_audio,
        })

        while True:
            data = await websocket.receive_text()

            try:
                payload = json.loads(data)
            except json.JSONDecodeError:
                payload = {"type": "text", "text": data}
            if not isinstance(payload, dict):
                payload = {"type": "text", "text": str(payload)}

            kind = payload.get("type", "text")

            if kind == "step":
                try:
                    update = StepUpdate.model_validate(payload)
                except ValidationError as e:
                    await send_json(websocket, {"type": "error", "content": f"Invalid step update: {e.errors()}"})
                    continue
                step, context = update.step, dict(update.context)
                await update_session(session_id, current_step=step)
                continue

            if kind == "cancel":
                if cancel_event is not None:
                    cancel_event.set()
                continue

            user_text = ""
            if kind == "audio":
                audio_b64 = payload.get("data", "")
                if not audio_b64 or not isinstance(audio_b64, str):
                    continue
                try:
                    audio_bytes = decode_audio_payload(audio_b64)
                except (binascii.Error, ValueError):
                    logger.warning("Session %s sent undecodable audio", session_id)
                    continue

                if len(audio_bytes) < MIN_AUDIO_BYTES:
                    continue

                user_text = await loop.run_in_executor(None, transcribe_audio, audio_bytes)
                logger.debug("Transcribed: %s", user_text)
            else:
                user_text = str(payload.get("text", ""))

            if not user_text.strip():
                continue

            # Barge-in: a new utterance supersedes the one still being answered
            if cancel_event is not None:
                cancel_event.set()
            cancel_event = asyncio.Event()

            request = IntentRequest(transcript=user_text, step=step, context=dict(context))
            pending = asyncio.create_task(
                answer_utterance(websocket, session_id, resolver, request, cancel_event)
            )

    except WebSocketDisconnect:
        logger.info("Voice session %s disconnected", session_id)
    finally:
        if cancel_event is not None:
            cancel_event.set()
        if pending is not None and not pending.done():
            pending.cancel()
            await asyncio.gather(pending, return_exceptions=True)
        await unregister_session(session_id)
