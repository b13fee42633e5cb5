# errors.py
class LLMError(Exception):
    """Base error for quiz generation. ``status_code`` is what the API answers with."""

    status_code = 502

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(LLMError):
    status_code = 500


class QuotaExceededError(LLMError):
    status_code = 429


class InvalidAPIKeyError(LLMError):
    status_code = 502


class UpstreamError(LLMError):
    status_code = 502


class ParseError(LLMError):
    status_code = 502


class QuizValidationError(LLMError):
    status_code = 422


QUOTA_MESSAGE = "API quota exceeded. Please try again later."
API_KEY_MESSAGE = "Missing or invalid API key. Please check your environment variables."


def classify_upstream_error(exc: Exception) -> LLMError:
    """Map an exception raised by the model call onto the error taxonomy."""
    if isinstance(exc, LLMError):
        return exc
    message = str(exc)
    if "quota" in message:
        return QuotaExceededError(QUOTA_MESSAGE)
    if "API key" in message:
        return InvalidAPIKeyError(API_KEY_MESSAGE)
    return UpstreamError(f"API error: {message}")
