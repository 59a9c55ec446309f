import json
import logging
import os
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_PROMPTS_FILE = os.path.join(os.path.dirname(__file__), "data", "prompts.json")


class Config:
    # OpenAI
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")

    # LangSmith / LangChain
    LANGCHAIN_TRACING_V2 = os.getenv("LANGCHAIN_TRACING_V2", "false").lower() == "true"
    LANGCHAIN_API_KEY = os.getenv("LANGCHAIN_API_KEY")
    LANGCHAIN_PROJECT = os.getenv("LANGCHAIN_PROJECT", "Finstart Onboarding")

    # App
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", 8000))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    CORS_ORIGINS = [s.strip() for s in os.getenv("CORS_ORIGINS", "*").split(",")]

    # LLM - chat assistant
    LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o")
    LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.3"))

    # LLM - voice intent (sits on the spoken-reply latency path, keep it small)
    INTENT_MODEL = os.getenv("INTENT_MODEL", "gpt-4o-mini")
    INTENT_TEMPERATURE = float(os.getenv("INTENT_TEMPERATURE", "0"))

    # LLM - KYC document verification (vision)
    DOCUMENT_MODEL = os.getenv("DOCUMENT_MODEL", "gpt-4o")

    PROMPTS_FILE = os.getenv("PROMPTS_FILE", DEFAULT_PROMPTS_FILE)

    # Audio - STT
    STT_MODEL = os.getenv("STT_MODEL", "whisper-1")
    STT_LANGUAGE = os.getenv("STT_LANGUAGE", "en")
    STT_PROMPT = os.getenv("STT_PROMPT", "Finstart. KYC. PAN card. Aadhaar. annual income. lakhs. crores. date of birth. pincode.")

    # Audio - TTS
    TTS_MODEL = os.getenv("TTS_MODEL", "tts-1")
    TTS_VOICE = os.getenv("TTS_VOICE", "alloy")

    # Email - SMTP
    SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_SECURE = os.getenv("SMTP_SECURE", "false").lower() == "true"
    SMTP_USER = os.getenv("SMTP_USER")
    SMTP_PASS = os.getenv("SMTP_PASS")
    SMTP_FROM = os.getenv("SMTP_FROM", '"Finstart Banking" <no-reply@finstart.com>')
    SMTP_TIMEOUT = float(os.getenv("SMTP_TIMEOUT", "30"))

    # Admin Authentication
    ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
    JWT_SECRET = os.getenv("JWT_SECRET", "your-secret-key-change-in-production")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "480"))

    def load_prompts(self):
        """
        Load the prompt configuration (personas, greeting, fallback lines).
        Missing keys are filled from the built-in defaults so callers can
        index the result directly.
        """
        prompts = self._get_default_config()
        try:
            with open(self.PROMPTS_FILE, 'r') as f:
                loaded = json.load(f)
            if isinstance(loaded, dict):
                prompts.update(loaded)
            else:
                logger.error("Prompts file %s must hold a JSON object, using defaults", self.PROMPTS_FILE)
        except FileNotFoundError:
            logger.warning("Prompts file not found: %s, using defaults", self.PROMPTS_FILE)
        except json.JSONDecodeError as e:
            logger.error("Error parsing prompts JSON %s: %s", self.PROMPTS_FILE, e)
        return prompts

    def reload_prompts(self):
        """Reload the prompts configuration from file (for dynamic updates)"""
        self.PROMPTS = self.load_prompts()

    def _get_default_config(self):
        return {
            "assistant_persona": (
                "You are Finstart AI, a helpful and professional financial technology assistant. "
                "You help users with onboarding, account setup, and understanding financial services "
                "offered by Finstart. Keep your responses concise, professional, and helpful."
            ),
            "voice_persona": "You are Finstart's Voice AI Agent conducting a KYC onboarding.",
            "voice_greeting": "Hello, I am Finstart's AI Agent. Tell me when you are ready to begin.",
        }


settings = Config()
settings.PROMPTS = settings.load_prompts()
