# journal_service.py
import logging

import llm_service
from exceptions import LLMError
from sentiment_service import analyze

logger = logging.getLogger(__name__)

SOURCE_LLM = "llm"
SOURCE_HEURISTIC = "heuristic"


def analyze_journal_entry(text: str, *, llm=None):
    """
    Reflection + mood score for one entry, and where it came from.

    Uses Gemini when a key is configured and falls back to the keyword
    heuristic when it is not, or when the call fails.
    """
    if not llm_service.is_configured():
        return analyze(text), SOURCE_HEURISTIC

    llm = llm or llm_service.analyze_with_llm
    try:
        return llm(text), SOURCE_LLM
    except LLMError as e:
        logger.warning("Gemini call failed, falling back to heuristic: %s", e)
        return analyze(text), SOURCE_HEURISTIC
