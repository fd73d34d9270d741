from functools import lru_cache

from elevenlabs import ElevenLabs
from google import genai
from google.auth import default
from google.cloud.speech_v2 import SpeechClient  # type: ignore
from openai import OpenAI

from sentiview.config import (
    get_gemini_location,
    get_optional_env,
    get_speech_api_endpoint,
)
from sentiview.logging_config import get_logger

logger = get_logger(__name__)


# Clients are built on first use so the app can start without every provider configured
@lru_cache(maxsize=1)
def get_adc():
    credentials, project = default()
    return credentials, project


@lru_cache(maxsize=1)
def get_gemini_client() -> genai.Client:
    api_key = get_optional_env("GEMINI_API_KEY")
    if api_key:
        logger.info("[DEPS] Gemini client using API key")
        return genai.Client(api_key=api_key)

    credentials, project = get_adc()
    logger.info("[DEPS] Gemini client using Vertex AI, project %s", project)
    return genai.Client(
        vertexai=True,  # vertex for ADC so there are no keys
        project=project,
        location=get_gemini_location(),
        credentials=credentials,
    )


@lru_cache(maxsize=1)
def get_openai_client() -> OpenAI:
    return OpenAI(api_key=get_optional_env("OPENAI_API_KEY"))


@lru_cache(maxsize=1)
def get_elevenlabs() -> ElevenLabs:
    return ElevenLabs(api_key=get_optional_env("ELEVENLABS_API_KEY"))


@lru_cache(maxsize=1)
def get_speech_v2_client() -> SpeechClient:
    return SpeechClient(client_options={"api_endpoint": get_speech_api_endpoint()})


def get_project_id() -> str:
    _, project = get_adc()
    return project


def has_google_credentials() -> bool:
    try:
        _, project = get_adc()
    except Exception as e:
        logger.warning("[DEPS] Google credentials unavailable: %s", e)
        return False
    return bool(project)


def has_elevenlabs_key() -> bool:
    return get_optional_env("ELEVENLABS_API_KEY") is not None
