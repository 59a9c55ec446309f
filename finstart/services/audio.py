import base64
import io
import logging

from openai import OpenAI

from finstart.config import settings

logger = logging.getLogger(__name__)

client = None
if settings.OPENAI_API_KEY:
    try:
        client = OpenAI(api_key=settings.OPENAI_API_KEY)
    except Exception as e:
        logger.error("Failed to init OpenAI client: %s", e)

# Phrases Whisper is known to emit when fed silence or near-silence audio.
# Short legitimate answers ("yes", "no", "next") must survive this filter.
HALLUCINATIONS = [
    "copyright",
    "all rights reserved",
    "subtitles",
    "subtitle",
    "amara.org",
    "viewers",
    "thanks for watching",
]

# Audio clips shorter than this (bytes) are too brief to contain real speech.
MIN_AUDIO_BYTES = 500


def is_hallucination(transcript: str) -> bool:
    return transcript.strip().lower().rstrip(".!?") in HALLUCINATIONS


def transcribe_audio(audio_bytes: bytes) -> str:
    """Transcribes audio bytes to text using OpenAI Whisper."""
    if not client:
        logger.warning("No OpenAI key. Returning mock transcript.")
        return "My name is John Smith"

    if len(audio_bytes) < MIN_AUDIO_BYTES:
        logger.debug("Skipped transcription: audio too short (%d bytes)", len(audio_bytes))
        return ""

    audio_file = io.BytesIO(audio_bytes)
    audio_file.name = "input.webm"

    try:
        transcript = client.audio.transcriptions.create(
            model=settings.STT_MODEL,
            file=audio_file,
            response_format="text",
            language=settings.STT_LANGUAGE,
            prompt=settings.STT_PROMPT,
        )
    except Exception as e:
        logger.error("STT error: %s", e)
        return ""

    if is_hallucination(transcript):
        logger.info("Filtered hallucination: %r", transcript)
        return ""
    return transcript.strip()


def generate_audio(text: str) -> str:
    """Generates base64 audio from text using OpenAI TTS."""
    if not client:
        logger.warning("No OpenAI key. Returning empty audio.")
        return ""

    try:
        response = client.audio.speech.create(
            model=settings.TTS_MODEL,
            voice=settings.TTS_VOICE,
            input=text,
        )
        return base64.b64encode(response.content).decode('utf-8')
    except Exception as e:
        logger.error("TTS error: %s", e)
        return ""
