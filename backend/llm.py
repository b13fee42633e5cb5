# llm.py  — uses google-generativeai directly (no LangChain wrapper)
import logging
import os

import google.generativeai as genai

from config import settings
from errors import ConfigurationError, LLMError, classify_upstream_error
from utils import extract_json, validate_and_fix_quiz_data

logger = logging.getLogger(__name__)

PROMPT_PATH = os.path.join(os.path.dirname(__file__), "prompts", "quiz_prompt.md")
with open(PROMPT_PATH, "r", encoding="utf-8") as f:
    PROMPT_MD = f.read()


def format_prompt(topic: str, question_count: int, difficulty: str) -> str:
    return PROMPT_MD.format(topic=topic, question_count=question_count, difficulty=difficulty)


class GeminiClient:
    """Text client over a Gemini model: ``generate(prompt)`` returns the response text."""

    def __init__(self, api_key: str, model_name: str, json_mode: bool = True):
        if not api_key:
            raise ConfigurationError("Missing Gemini API key in environment variables")
        genai.configure(api_key=api_key)
        generation_config = {"response_mime_type": "application/json"} if json_mode else None
        self.model_name = model_name
        self.model = genai.GenerativeModel(model_name, generation_config=generation_config)

    def generate(self, prompt: str) -> str:
        resp = self.model.generate_content(prompt)
        # .text raises when the candidate was blocked or is empty
        try:
            return resp.text or ""
        except ValueError:
            return ""


class QuizGenerator:
    """Prompt, call, parse and repair one quiz.

    ``client`` is anything with ``generate(prompt) -> str``. When it is omitted a
    GeminiClient is built on each call, so a missing key fails at call time.
    """

    def __init__(self, client=None, api_key: str = "", model_name: str = "", json_mode: bool = True):
        self.client = client
        self.api_key = api_key
        self.model_name = model_name or "gemini-2.0-flash"
        self.json_mode = json_mode

    def _get_client(self):
        if self.client is not None:
            return self.client
        return GeminiClient(self.api_key, self.model_name, self.json_mode)

    def generate(self, topic: str, question_count: int, difficulty: str) -> dict:
        if not topic or not topic.strip():
            raise ValueError("topic is required")
        if question_count < 1:
            raise ValueError("question_count must be positive")

        client = self._get_client()
        prompt = format_prompt(topic, question_count, difficulty)

        try:
            text = client.generate(prompt)
        except LLMError:
            raise
        except Exception as e:
            logger.error("Gemini API error: %s", e)
            raise classify_upstream_error(e) from e

        logger.info("Raw Gemini response: %s...", text[:200])
        data = extract_json(text)
        return validate_and_fix_quiz_data(data, topic)


def get_generator() -> QuizGenerator:
    return QuizGenerator(
        api_key=settings.GOOGLE_API_KEY,
        model_name=settings.GEMINI_MODEL,
        json_mode=settings.GEMINI_JSON_MODE,
    )


def generate_quiz(topic: str, question_count: int, difficulty: str, generator: QuizGenerator = None) -> dict:
    """
    Generates a quiz payload {"title": ..., "questions": [...]} for ``topic``.
    Raises an LLMError subclass on failure.
    """
    generator = generator or get_generator()
    return generator.generate(topic, question_count, difficulty)


# --- Simple ping for /api/llm-test
def ping_llm(client=None) -> dict:
    """
    Returns {"ok": True, "model": <model_used>, "content": "..."} on success,
            or {"ok": False, "error": "..."} on failure.
    """
    try:
        client = client or GeminiClient(settings.GOOGLE_API_KEY, settings.GEMINI_MODEL, json_mode=False)
        text = (client.generate("Reply with OK") or "").strip()
    except Exception as e:
        logger.warning("LLM ping failed: %s", e)
        return {"ok": False, "error": str(classify_upstream_error(e))}
    if not text:
        return {"ok": False, "error": "Empty response"}
    return {"ok": True, "model": getattr(client, "model_name", settings.GEMINI_MODEL), "content": text[:200]}
