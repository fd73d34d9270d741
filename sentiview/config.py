import os
from pathlib import Path

from dotenv import load_dotenv

from sentiview.logging_config import get_logger

logger = get_logger(__name__)


def load_env_variables(env_path: Path | str = ".env") -> None:
    if Path(env_path).exists():
        load_dotenv(env_path)
        logger.info("Loaded environment variables from %s", env_path)
    else:
        found = load_dotenv()
        if not found:
            logger.debug("No .env file found, using process environment")


def get_env_variable(key: str, default: str | None = None) -> str:
    """Get environment variable with optional default value."""
    value = os.getenv(key, default)
    if value is None:
        raise ValueError(f"{key} not found in environment variables.")
    return value


def get_optional_env(key: str) -> str | None:
    value = os.getenv(key)
    if value is None or not value.strip():
        return None
    return value


def get_env_int(key: str, default: int) -> int:
    """Get environment variable as integer with default value."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got: {value}")


def get_env_float(key: str, default: float) -> float:
    """Get environment variable as float with default value."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{key} must be a number, got: {value}")


def get_env_list(key: str, default: list[str]) -> list[str]:
    """Get environment variable as a comma-separated list of strings."""
    value = os.getenv(key)
    if value is None:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


# Sentiment backend
def get_sentiment_provider() -> str:
    return get_env_variable("SENTIMENT_PROVIDER", "gemini").lower()


def get_gemini_model() -> str:
    return get_env_variable("GEMINI_MODEL", "gemini-2.5-flash")


def get_openai_model() -> str:
    return get_env_variable("OPENAI_MODEL", "gpt-4o-mini")


def get_max_retries() -> int:
    retries = get_env_int("SENTIMENT_MAX_RETRIES", 1)
    if retries < 0:
        raise ValueError(f"SENTIMENT_MAX_RETRIES must be >= 0, got: {retries}")
    return retries


def get_retry_backoff() -> float:
    return get_env_float("SENTIMENT_RETRY_BACKOFF_SECONDS", 0.5)


# Speech
def get_speech_provider() -> str:
    return get_env_variable("SPEECH_PROVIDER", "elevenlabs").lower()


def get_recognizer_name() -> str:
    return get_env_variable("RECOGNIZER_NAME", "/locations/global/recognizers/_")


# App
def get_cors_origins() -> list[str]:
    return get_env_list("CORS_ORIGINS", ["http://localhost:5173"])


def get_log_level() -> str:
    return get_env_variable("LOG_LEVEL", "INFO")


def get_speech_api_endpoint() -> str:
    return get_env_variable("SPEECH_API_ENDPOINT", "speech.googleapis.com")


def get_gemini_location() -> str:
    return get_env_variable("GOOGLE_CLOUD_LOCATION", "global")
