# config.py
import os

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    # Database
    DATABASE_URL = os.getenv("DATABASE_URL")

    # Gemini
    GOOGLE_API_KEY = (os.getenv("GOOGLE_API_KEY") or "").strip()
    GEMINI_MODEL = (os.getenv("GEMINI_MODEL") or "").strip() or "gemini-2.0-flash"
    GEMINI_JSON_MODE = _flag("GEMINI_JSON_MODE", True)

    # Callers should keep prompts bounded
    MAX_QUESTIONS = int(os.getenv("MAX_QUESTIONS", "50"))

    # App
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
