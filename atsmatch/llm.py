"""Shared LLM client, JSON extraction, and model configuration."""

import json
import logging
import os
import re
import threading

import httpx
from google import genai
from google.genai import types
from google.genai.errors import APIError
from pydantic import BaseModel

logger = logging.getLogger(__name__)

MODEL = "gemini-2.5-flash"

DEFAULT_TIMEOUT = 30  # seconds

# Concurrency limiter for parallel job ranking
_gemini_semaphore = threading.Semaphore(30)

_OPENING_FENCE = re.compile(r"^```[A-Za-z]*\s*")
_CLOSING_FENCE = re.compile(r"\s*```$")


class Extracted(BaseModel):
    """A JSON object recovered from a model response."""

    data: dict


class NeedsFallback(BaseModel):
    """The primary path produced nothing usable; ``reason`` says why."""

    reason: str


def create_client() -> genai.Client | None:
    """Create a Gemini client, or return None when no API key is configured."""
    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
    if not api_key:
        logger.warning("GEMINI_API_KEY not set; resume parsing and ATS scoring will use the rule-based fallback")
        return None
    timeout = float(os.getenv("ATSMATCH_TIMEOUT", DEFAULT_TIMEOUT))
    return genai.Client(
        api_key=api_key,
        http_options=types.HttpOptions(timeout=int(timeout * 1000)),
    )


def call_gemini(
    client: genai.Client,
    prompt: str,
    temperature: float = 0.3,
    max_tokens: int = 8192,
) -> str:
    """Make a single Gemini API call. Errors propagate; there is no retry."""
    with _gemini_semaphore:
        response = client.models.generate_content(
            model=os.getenv("ATSMATCH_MODEL", MODEL),
            contents=prompt,
            config=types.GenerateContentConfig(
                temperature=temperature,
                max_output_tokens=max_tokens,
            ),
        )
    return response.text or ""


def extract_json(text: str) -> Extracted | NeedsFallback:
    """Pull the JSON object out of an LLM response that may contain fences or prose.

    Handles responses like:
        ```json\\n{...}\\n```
        ```\\n{...}\\n```
        Some text {json} more text

    The payload is everything from the first ``{`` to the last ``}``. Never raises.
    """
    cleaned = (text or "").strip()
    if cleaned.startswith("```"):
        cleaned = _CLOSING_FENCE.sub("", _OPENING_FENCE.sub("", cleaned))

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end < start:
        return NeedsFallback(reason="no JSON object in response")

    try:
        data = json.loads(cleaned[start : end + 1])
    except json.JSONDecodeError as exc:
        return NeedsFallback(reason=f"invalid JSON in response: {exc}")

    if not isinstance(data, dict):
        return NeedsFallback(reason="unexpected response format")
    return Extracted(data=data)


def complete_json(client: genai.Client | None, prompt: str, temperature: float = 0.2) -> Extracted | NeedsFallback:
    """Ask the model for a JSON object: one call, then ``extract_json``.

    A missing client short-circuits without touching the network.
    """
    if client is None:
        return NeedsFallback(reason="Gemini API not configured")

    try:
        content = call_gemini(client, prompt, temperature=temperature)
    except (APIError, httpx.HTTPError, ValueError) as exc:
        # ValueError: a 2xx body the SDK could not decode (e.g. a proxy error page)
        logger.warning("Gemini call failed: %s", exc, exc_info=True)
        return NeedsFallback(reason=f"API error: {exc}")

    return extract_json(content)
