# sentiment_service.py
"""
Heuristic mood analysis used when the LLM is unavailable.

Counts lexicon hits to get a smoothed mood score in [-1, 1], picks up to
three frequent content words, and composes a short reflection for the
score's band.
"""
import math
import unicodedata
from collections import Counter
from dataclasses import dataclass

POSITIVE_WORDS = frozenset([
    "happy", "joy", "good", "great", "amazing", "wonderful", "excited", "love", "grateful", "blessed",
    "calm", "proud", "relaxed", "hopeful", "peaceful", "confident", "energized", "progress", "success", "fun",
])

NEGATIVE_WORDS = frozenset([
    "sad", "angry", "frustrated", "depressed", "anxious", "worried", "hate", "terrible", "awful", "stressed",
    "overwhelmed", "lonely", "tired", "guilty", "scared", "fear", "pain", "failure", "regret", "hurt",
])

STOPWORDS = frozenset([
    "i", "me", "my", "myself", "we", "our", "ours", "ourselves", "you", "your", "yours", "yourself", "yourselves",
    "he", "him", "his", "himself", "she", "her", "hers", "herself", "it", "its", "itself", "they", "them", "their",
    "theirs", "themselves", "what", "which", "who", "whom", "this", "that", "these", "those", "am", "is", "are",
    "was", "were", "be", "been", "being", "have", "has", "had", "having", "do", "does", "did", "doing", "a", "an",
    "the", "and", "but", "if", "or", "because", "as", "until", "while", "of", "at", "by", "for", "with", "about",
    "against", "between", "into", "through", "during", "before", "after", "above", "below", "to", "from", "up",
    "down", "in", "out", "on", "off", "over", "under", "again", "further", "then", "once", "here", "there", "when",
    "where", "why", "how", "all", "any", "both", "each", "few", "more", "most", "other", "some", "such", "no", "nor",
    "not", "only", "own", "same", "so", "than", "too", "very", "can", "will", "just", "don", "should", "now",
])

SMOOTHING = 1
STRONG_CUTOFF = 0.45
MILD_CUTOFF = 0.15
MAX_KEYWORDS = 3
MIN_KEYWORD_LENGTH = 4

# Dashboard label cutoffs and the crisis banner trigger.
LABEL_CUTOFF = 0.3
CRISIS_THRESHOLD = -0.6

VERY_POSITIVE = "very_positive"
MILDLY_POSITIVE = "mildly_positive"
NEUTRAL = "neutral"
MILDLY_NEGATIVE = "mildly_negative"
VERY_NEGATIVE = "very_negative"

# band -> (opening, closing)
TEMPLATES = {
    VERY_POSITIVE: (
        "It's uplifting to sense the positive energy in what you shared. "
        "Celebrate these wins and the strength you're building.",
        "Keep noticing what supports your well-being and carry that forward.",
    ),
    MILDLY_POSITIVE: (
        "There's a gentle optimism in your words. Even small steps can nurture momentum.",
        "Consider one simple action that would help you feel grounded today.",
    ),
    NEUTRAL: (
        "Your entry reflects a balanced mix of feelings. "
        "It's okay to hold complexity—both ease and challenge can coexist.",
        "Try a brief check-in: what do you need most right now—rest, support, or expression?",
    ),
    MILDLY_NEGATIVE: (
        "It sounds like things are weighing on you. "
        "Your feelings are valid, and writing them out is a powerful step.",
        "Consider a compassionate pause: slow breaths, a short walk, or reaching out to someone you trust.",
    ),
    VERY_NEGATIVE: (
        "I'm hearing real heaviness in what you shared. You're not alone, and it's brave to express this.",
        "If the weight feels overwhelming, please consider talking to someone you trust "
        "or a professional—support can make a difference.",
    ),
}


@dataclass(frozen=True)
class AnalysisResult:
    reflection: str
    mood_score: float

    def to_dict(self) -> dict:
        return {"reflection": self.reflection, "moodScore": self.mood_score}


def _keep(ch: str) -> bool:
    # Unicode letters and numbers only; marks and punctuation split words.
    return unicodedata.category(ch)[0] in "LN" or ch.isspace() or ch == "'"


def tokenize(text: str) -> list:
    """Replace everything but word characters, whitespace and ' with spaces, then split."""
    if not isinstance(text, str):
        return []
    cleaned = "".join(ch if _keep(ch) else " " for ch in text)
    return cleaned.split()


def clamp_score(value) -> float:
    """Coerce to a finite float in [-1, 1]; anything non-finite becomes 0."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return max(-1.0, min(1.0, value))


def score_tokens(tokens) -> float:
    pos = 0
    neg = 0
    for t in tokens:
        w = t.lower()
        if w in POSITIVE_WORDS:
            pos += 1
        if w in NEGATIVE_WORDS:
            neg += 1
    return clamp_score((pos - neg) / (pos + neg + SMOOTHING))


def extract_keywords(tokens, limit: int = MAX_KEYWORDS) -> list:
    """
    Most frequent content words, at most `limit`.

    Ties keep first-occurrence order: Counter preserves insertion order and
    sorted() is stable.
    """
    freq = Counter()
    for t in tokens:
        w = t.lower()
        if w in STOPWORDS or len(w) < MIN_KEYWORD_LENGTH:
            continue
        freq[w] += 1
    ranked = sorted(freq.items(), key=lambda kv: -kv[1])
    return [w for w, _ in ranked[:limit]]


def mention_clause(keywords) -> str:
    if not keywords:
        return ""
    quoted = ", ".join(f'"{w}"' for w in keywords)
    return f"You mentioned {quoted} — thanks for opening up about that."


def mood_band(score: float) -> str:
    if score > STRONG_CUTOFF:
        return VERY_POSITIVE
    if score > MILD_CUTOFF:
        return MILDLY_POSITIVE
    if score > -MILD_CUTOFF:
        return NEUTRAL
    if score > -STRONG_CUTOFF:
        return MILDLY_NEGATIVE
    return VERY_NEGATIVE


def compose_reflection(score: float, keywords) -> str:
    opening, closing = TEMPLATES[mood_band(score)]
    mention = mention_clause(keywords)
    parts = [opening, mention, closing] if mention else [opening, closing]
    return " ".join(parts)


def analyze(raw_text: str) -> AnalysisResult:
    """
    Score `raw_text` and build a reflection for it.

    Never raises: empty, whitespace-only or punctuation-only input gives a
    neutral result with no keyword mention.
    """
    tokens = tokenize(raw_text)
    score = score_tokens(tokens)
    keywords = extract_keywords(tokens)
    return AnalysisResult(reflection=compose_reflection(score, keywords), mood_score=score)


def mood_label(score: float) -> str:
    if score > LABEL_CUTOFF:
        return "Positive"
    if score > 0:
        return "Slightly Positive"
    if score > -LABEL_CUTOFF:
        return "Neutral"
    return "Needs Attention"


def needs_crisis_support(score: float) -> bool:
    return score < CRISIS_THRESHOLD
