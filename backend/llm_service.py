# llm_service.py
import json
import logging
import os
import random
import re
import time

import httpx
from dotenv import load_dotenv

from exceptions import LLMError
from sentiment_service import AnalysisResult, clamp_score

# Load local .env (on a host, env vars are injected directly)
load_dotenv()

logger = logging.getLogger(__name__)

# --- Gemini config ---
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
GEMINI_API_URL = os.getenv(
    "GEMINI_API_URL",
    "https://generativelanguage.googleapis.com/v1beta",
)

try:
    LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "30"))
except ValueError:
    LLM_TIMEOUT = 30.0

MAX_ATTEMPTS = 4
BACKOFF_BASE = 1.0
BACKOFF_JITTER = 0.5
BACKOFF_CAP = 8.0

PROMPT_TEMPLATE = (
    "You are an empathetic mental wellness assistant.\n"
    "Analyze the user's journal entry and return a concise reflection (<= 100 words) "
    "and a moodScore between -1 and 1.\n"
    "- moodScore: -1 = very negative, 0 = neutral/mixed, 1 = very positive\n"
    "- reflection: supportive, kind, specific to their text (no medical advice)\n"
    'Return ONLY a JSON object with keys "reflection" (string) and "moodScore" (number in [-1,1]).\n\n'
    'Journal Entry:\n"""{text}"""'
)

HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


class _TransientError(Exception):
    """Rate limit or server error worth another attempt."""


def get_api_key():
    return os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY") or None


def is_configured() -> bool:
    return get_api_key() is not None


def utf8_safe(text: str) -> str:
    """Replace lone surrogates so the text can be UTF-8 encoded."""
    return text.encode("utf-8", "replace").decode("utf-8")


def _build_body(text: str) -> dict:
    prompt = PROMPT_TEMPLATE.format(text=utf8_safe(text))
    return {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        # Ask for structured JSON
        "generationConfig": {"responseMimeType": "application/json"},
        # Relaxed safety for reflective content
        "safetySettings": [
            {"category": c, "threshold": "BLOCK_NONE"} for c in HARM_CATEGORIES
        ],
    }


def _backoff(attempt: int) -> float:
    return min(BACKOFF_BASE * 2 ** attempt + random.uniform(0, BACKOFF_JITTER), BACKOFF_CAP)


def _loads_object(content: str) -> dict:
    """JSON object from the model text; tolerates prose around the braces."""
    try:
        parsed = json.loads(content)
    except ValueError:
        match = re.search(r"\{.*\}", content, re.S)
        if not match:
            raise LLMError("Failed to parse JSON from Gemini response")
        try:
            parsed = json.loads(match.group(0))
        except ValueError as e:
            raise LLMError("Failed to parse JSON from Gemini response") from e
    if not isinstance(parsed, dict):
        raise LLMError("Gemini response JSON is not an object")
    return parsed


def parse_reflection_payload(data) -> AnalysisResult:
    """Turn a generateContent response body into an AnalysisResult."""
    try:
        content = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        content = None
    if not isinstance(content, str) or not content.strip():
        raise LLMError("No text content returned by Gemini")

    parsed = _loads_object(content)
    raw_reflection = parsed.get("reflection")
    reflection = "" if raw_reflection is None else str(raw_reflection).strip()
    if not reflection:
        raise LLMError("Empty reflection from Gemini")
    return AnalysisResult(reflection=reflection, mood_score=clamp_score(parsed.get("moodScore")))


def _post(client: httpx.Client, url: str, api_key: str, body: dict) -> dict:
    resp = client.post(url, params={"key": api_key}, json=body)
    if resp.status_code == 429 or 500 <= resp.status_code < 600:
        raise _TransientError(f"Transient error {resp.status_code}")
    if resp.is_error:
        raise LLMError(f"Gemini error {resp.status_code}: {resp.text[:300]}")
    try:
        return resp.json()
    except ValueError as e:
        raise LLMError("Gemini returned a non-JSON body") from e


def _call_with_retries(client, url, api_key, body, sleep) -> AnalysisResult:
    last_err = None
    for attempt in range(MAX_ATTEMPTS):
        logger.debug("Gemini request attempt %d/%d (model=%s)", attempt + 1, MAX_ATTEMPTS, GEMINI_MODEL)
        try:
            data = _post(client, url, api_key, body)
        except (_TransientError, httpx.TransportError) as e:
            last_err = e
            if attempt < MAX_ATTEMPTS - 1:
                delay = _backoff(attempt)
                logger.warning("Gemini transient failure (%s); retrying in %.2fs", e, delay)
                sleep(delay)
            continue
        except httpx.HTTPError as e:
            raise LLMError(f"Gemini request failed: {e}") from e
        return parse_reflection_payload(data)

    logger.error("Gemini failed after %d attempts: %s", MAX_ATTEMPTS, last_err)
    raise LLMError(f"Gemini unavailable after {MAX_ATTEMPTS} attempts: {last_err}") from last_err


def analyze_with_llm(text: str, *, api_key=None, client=None, sleep=time.sleep) -> AnalysisResult:
    """
    Ask Gemini for a reflection and mood score for one journal entry.

    429/5xx responses and network errors are retried with exponential
    backoff; everything else raises LLMError straight away so the caller can
    fall back to the heuristic.
    """
    api_key = api_key or get_api_key()
    if not api_key:
        raise LLMError("GOOGLE_API_KEY (or GEMINI_API_KEY) not set")

    url = f"{GEMINI_API_URL}/models/{GEMINI_MODEL}:generateContent"
    body = _build_body(text)

    if client is not None:
        return _call_with_retries(client, url, api_key, body, sleep)
    with httpx.Client(timeout=LLM_TIMEOUT) as client:
        return _call_with_retries(client, url, api_key, body, sleep)
