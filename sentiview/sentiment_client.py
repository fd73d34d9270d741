"""
Sentiment client.

Sends text to a generative-language backend and normalizes the reply into an
AnalysisResult. Two failure tiers:

- the backend call itself fails (network, auth, quota): AnalysisError is raised
- the backend answers with something that is not the expected JSON: the
  fallback result (mixed, 0, "") is returned and a warning is logged
"""

import asyncio
import json
import math
import re
from typing import Any, Awaitable, Callable, Optional

from sentiview.config import (
    get_gemini_model,
    get_max_retries,
    get_openai_model,
    get_retry_backoff,
    get_sentiment_provider,
)
from sentiview.deps import get_gemini_client, get_openai_client
from sentiview.errors import AnalysisError
from sentiview.languages import get_language_name
from sentiview.logging_config import get_logger
from sentiview.models import FALLBACK_RESULT, SENTIMENTS, AnalysisResult

logger = get_logger(__name__)

ANALYSIS_FAILED_MESSAGE = "Failed to analyze sentiment"

Generator = Callable[[str], Awaitable[str]]

PROMPT = """You are a sentiment analysis API that ONLY returns valid JSON.
    Analyze the sentiment of the following text and return a JSON object with EXACTLY these properties:
    {{
      "sentiment": "happy" | "sad" | "mixed",
      "confidence": number between 0-100,
      "translation": "analysis in {language}"
    }}
    DO NOT include any other text, explanations, or formatting - ONLY the JSON object.

    Text to analyze: "{text}"
"""

_FENCE_RE = re.compile(r"```json\n?|\n?```", re.IGNORECASE)


def escape_quotes(text: str) -> str:
    return text.replace('"', '\\"')


def build_prompt(text: str, language: str) -> str:
    name = get_language_name(language)
    language_label = f"{name} ({language})" if name else language
    return PROMPT.format(language=language_label, text=escape_quotes(text))


def strip_code_fence(raw: str) -> str:
    """Remove markdown fences and any prose around the JSON object."""
    cleaned = _FENCE_RE.sub("", raw).strip()
    if cleaned.startswith("{"):
        return cleaned
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        return cleaned
    return cleaned[start : end + 1]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _validate(data: Any) -> AnalysisResult:
    if not isinstance(data, dict):
        raise ValueError("Response is not an object")

    sentiment = data.get("sentiment")
    if sentiment not in SENTIMENTS:
        raise ValueError(f"Invalid sentiment value: {sentiment!r}")

    confidence = data.get("confidence")
    if (
        isinstance(confidence, bool)
        or not isinstance(confidence, (int, float))
        or not math.isfinite(confidence)
        or confidence < 0
        or confidence > 100
    ):
        raise ValueError(f"Invalid confidence value: {confidence!r}")

    translation = data.get("translation")
    if not isinstance(translation, str) or not translation:
        raise ValueError("Invalid translation value")

    return AnalysisResult(
        sentiment=sentiment,
        confidence=round_half_up(confidence),
        translation=translation,
    )


def parse_analysis_response(raw: Optional[str]) -> AnalysisResult:
    if not raw:
        logger.warning("[ANALYZE] Empty response from sentiment backend")
        return FALLBACK_RESULT

    try:
        data = json.loads(strip_code_fence(raw.strip()))
        return _validate(data)
    except (ValueError, TypeError, OverflowError, RecursionError) as e:
        logger.warning("[ANALYZE] Failed to parse sentiment response: %s", e)
        logger.warning("[ANALYZE] Raw response: %s", raw)
        return FALLBACK_RESULT


async def gemini_generate(prompt: str) -> str:
    response = await asyncio.to_thread(
        get_gemini_client().models.generate_content,
        model=get_gemini_model(),
        contents=[prompt],
    )
    return response.text or ""


async def openai_generate(prompt: str) -> str:
    response = await asyncio.to_thread(
        get_openai_client().responses.create,
        model=get_openai_model(),
        input=prompt,
    )
    return response.output_text or ""


PROVIDERS: dict[str, Generator] = {
    "gemini": gemini_generate,
    "openai": openai_generate,
}


def get_generator(provider: Optional[str] = None) -> Generator:
    provider = provider or get_sentiment_provider()
    if provider not in PROVIDERS:
        raise ValueError(f"Unknown sentiment provider: {provider}")
    return PROVIDERS[provider]


async def _generate_with_retry(
    generate: Generator, prompt: str, max_retries: int, backoff: float
) -> str:
    attempt = 0
    while True:
        try:
            return await generate(prompt)
        except Exception as e:
            if attempt >= max_retries:
                logger.error("[ANALYZE] Sentiment backend failed after %d attempt(s): %s", attempt + 1, e)
                raise AnalysisError(ANALYSIS_FAILED_MESSAGE) from e
            delay = backoff * (2**attempt)
            logger.warning("[ANALYZE] Sentiment backend error (%s), retrying in %.2fs", e, delay)
            await asyncio.sleep(delay)
            attempt += 1


async def analyze_sentiment(
    text: str,
    language: str,
    generate: Optional[Generator] = None,
    max_retries: Optional[int] = None,
    backoff: Optional[float] = None,
) -> AnalysisResult:
    generate = generate or get_generator()
    max_retries = get_max_retries() if max_retries is None else max_retries
    backoff = get_retry_backoff() if backoff is None else backoff

    prompt = build_prompt(text, language)
    raw = await _generate_with_retry(generate, prompt, max_retries, backoff)
    result = parse_analysis_response(raw.strip())
    logger.info(
        "[ANALYZE] sentiment=%s confidence=%d language=%s",
        result.sentiment,
        result.confidence,
        language,
    )
    return result
