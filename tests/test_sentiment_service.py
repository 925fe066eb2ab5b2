import pytest

import sentiment_service as ss
from sentiment_service import analyze


def _reflection(band, mention=""):
    opening, closing = ss.TEMPLATES[band]
    if mention:
        return f"{opening} {mention} {closing}"
    return f"{opening} {closing}"


@pytest.mark.parametrize("text", ["", "   ", "!!!???", "\n\t"])
def test_blank_or_punctuation_is_neutral(text):
    result = analyze(text)
    assert result.mood_score == 0
    assert result.reflection == _reflection(ss.NEUTRAL)
    assert "You mentioned" not in result.reflection


def test_non_string_degrades_to_neutral():
    result = analyze(None)
    assert result.mood_score == 0
    assert result.reflection == _reflection(ss.NEUTRAL)


def test_sign_follows_lexicon_hits():
    assert analyze("happy happy happy").mood_score > 0
    assert analyze("sad sad sad").mood_score < 0


def test_single_hit_is_smoothed():
    assert analyze("happy").mood_score == 0.5
    assert analyze("sad").mood_score == -0.5


def test_balanced_hits_cancel():
    result = analyze("happy sad")
    assert result.mood_score == 0
    assert ss.mood_band(result.mood_score) == ss.NEUTRAL
    assert result.reflection.startswith(ss.TEMPLATES[ss.NEUTRAL][0])


def test_matching_is_exact_and_case_insensitive():
    assert analyze("happiness").mood_score == 0
    assert analyze("HAPPY").mood_score == 0.5
    assert analyze("Happy!!!").mood_score == 0.5


def test_keywords_capped_at_three_by_frequency():
    text = "overwhelmed overwhelmed overwhelmed exams exams expectations school today"
    result = analyze(text)
    mention = 'You mentioned "overwhelmed", "exams", "expectations" — thanks for opening up about that.'
    assert result.mood_score == -0.75
    assert result.reflection == _reflection(ss.VERY_NEGATIVE, mention)


def test_keyword_ties_keep_first_occurrence():
    tokens = ss.tokenize("zebra apple mango apple zebra mango kiwis")
    assert ss.extract_keywords(tokens) == ["zebra", "apple", "mango"]


def test_stopwords_and_short_words_never_mentioned():
    result = analyze("the the the and and a a is is about about about journal")
    assert ss.extract_keywords(ss.tokenize("the and a is about")) == []
    assert 'You mentioned "journal" —' in result.reflection
    for word in ("the", "and", "about"):
        assert f'"{word}"' not in result.reflection


def test_mention_clause_formatting():
    assert ss.mention_clause([]) == ""
    assert ss.mention_clause(["exams"]) == 'You mentioned "exams" — thanks for opening up about that.'


def test_tokenize_strips_punctuation_keeps_apostrophes():
    assert ss.tokenize("I don't know... really_tired, ok?") == ["I", "don't", "know", "really", "tired", "ok"]
    assert ss.tokenize("2024 was 3rd") == ["2024", "was", "3rd"]


def test_devanagari_letters_kept_marks_split():
    assert ss.tokenize("नमस्ते") == ["नमस", "त"]

    text = "आज मैं बहुत खुश हूँ।"
    assert ss.tokenize(text) == ["आज", "म", "बह", "त", "ख", "श", "ह"]

    result = analyze(text)
    assert result.mood_score == 0
    assert result.reflection == _reflection(ss.NEUTRAL)


def test_lone_surrogates_do_not_raise():
    result = analyze("\ud83d happy \udc00")
    assert result.mood_score == 0.5


def test_same_input_same_output():
    text = "Grateful for friends, but stressed about exams and exams."
    assert analyze(text) == analyze(text)
    assert analyze(text).to_dict() == analyze(text).to_dict()


@pytest.mark.parametrize(
    "pos,neg,expected_score,band",
    [
        (14, 5, 0.45, ss.MILDLY_POSITIVE),
        (11, 8, 0.15, ss.NEUTRAL),
        (8, 11, -0.15, ss.MILDLY_NEGATIVE),
        (5, 14, -0.45, ss.VERY_NEGATIVE),
    ],
)
def test_band_boundaries(pos, neg, expected_score, band):
    result = analyze("happy " * pos + "sad " * neg)
    assert result.mood_score == expected_score
    assert ss.mood_band(result.mood_score) == band
    assert result.reflection.startswith(ss.TEMPLATES[band][0])


def test_bands_just_past_cutoffs():
    assert ss.mood_band(0.46) == ss.VERY_POSITIVE
    assert ss.mood_band(0.16) == ss.MILDLY_POSITIVE
    assert ss.mood_band(-0.14) == ss.NEUTRAL
    assert ss.mood_band(-0.44) == ss.MILDLY_NEGATIVE
    assert ss.mood_band(-1.0) == ss.VERY_NEGATIVE


@pytest.mark.parametrize(
    "text",
    [
        "happy " * 200,
        "sad " * 200,
        "love joy fun calm proud success",
        "hate pain fear hurt regret awful terrible",
        "random words with nothing in the lexicons",
    ],
)
def test_score_stays_in_range(text):
    result = analyze(text)
    assert -1 <= result.mood_score <= 1
    assert result.reflection


def test_clamp_score():
    assert ss.clamp_score(float("nan")) == 0
    assert ss.clamp_score(float("inf")) == 0
    assert ss.clamp_score("abc") == 0
    assert ss.clamp_score(None) == 0
    assert ss.clamp_score(3) == 1.0
    assert ss.clamp_score(-2.5) == -1.0
    assert ss.clamp_score("0.25") == 0.25


def test_lexicons_are_disjoint():
    assert not ss.POSITIVE_WORDS & ss.NEGATIVE_WORDS


def test_mood_label_and_crisis_flag():
    assert ss.mood_label(0.5) == "Positive"
    assert ss.mood_label(0.1) == "Slightly Positive"
    assert ss.mood_label(0) == "Neutral"
    assert ss.mood_label(-0.3) == "Needs Attention"

    assert ss.needs_crisis_support(-0.75)
    assert not ss.needs_crisis_support(-0.6)
