import random

import pytest

from clearsight.core.analysis.scoring import (
    Sentiment, classify, compute_score, dominant_emotion, label, loaded_language_high, score_terms
)
from clearsight.core.models.analysis import SentimentAnalysis

from conftest import NEUTRAL_SENTIMENT


def _analysis(**overrides) -> SentimentAnalysis:
    payload = {
        "tone": "neutral",
        "emotions": {},
        "rhetoric": {},
        "loaded_language": 0.0,
        "certainty": {},
    }
    payload.update(overrides)
    return SentimentAnalysis.from_dict(payload)


def _random_payload(rng: random.Random) -> dict:
    def unit():
        return round(rng.random(), 3)

    return {
        "tone": rng.choice(["positive", "neutral", "negative"]),
        "emotions": {name: unit() for name in
                     ("joy", "trust", "fear", "anger", "sadness", "anticipation", "disgust", "surprise")},
        "rhetoric": {name: unit() for name in
                     ("analytical", "supportive", "persuasive", "alarmist", "dismissive", "sarcastic")},
        "loaded_language": unit(),
        "certainty": {"certainty": unit(), "speculation": unit()},
    }


def test_all_zero_neutral_payload_scores_zero():
    assert compute_score(_analysis()) == 0.0


def test_score_stays_in_range_and_is_deterministic():
    rng = random.Random(1234)
    for _ in range(200):
        payload = _random_payload(rng)
        first = compute_score(SentimentAnalysis.from_dict(payload))
        second = compute_score(SentimentAnalysis.from_dict(payload))
        assert -1.0 <= first <= 1.0
        assert first == second
        assert round(first, 4) == first


def test_strongly_positive_payload():
    analysis = _analysis(
        tone="positive",
        emotions={"joy": 1.0, "trust": 1.0},
        rhetoric={"supportive": 1.0, "analytical": 1.0},
        certainty={"certainty": 1.0},
    )
    score = compute_score(analysis)
    assert score == pytest.approx(0.5308)
    assert classify(score) is Sentiment.POSITIVE


def test_strongly_negative_payload():
    analysis = _analysis(
        tone="negative",
        emotions={"anger": 1.0, "fear": 1.0, "sadness": 1.0, "disgust": 1.0,
                  "anticipation": 1.0, "surprise": 1.0},
        rhetoric={"alarmist": 1.0, "dismissive": 1.0, "sarcastic": 1.0},
        loaded_language=1.0,
        certainty={"speculation": 1.0},
    )
    score = compute_score(analysis)
    assert score == pytest.approx(-0.5942)
    assert classify(score) is Sentiment.NEGATIVE


def test_loaded_language_never_raises_the_score():
    calm = SentimentAnalysis.from_dict(dict(NEUTRAL_SENTIMENT, loaded_language=0.0))
    loaded = SentimentAnalysis.from_dict(dict(NEUTRAL_SENTIMENT, loaded_language=1.0))
    assert compute_score(loaded) < compute_score(calm)
    assert compute_score(calm) - compute_score(loaded) == pytest.approx(0.1, abs=1e-4)


def test_speculation_lowers_the_score():
    assured = _analysis(certainty={"certainty": 0.5, "speculation": 0.2})
    hedged = _analysis(certainty={"certainty": 0.5, "speculation": 0.8})
    assert compute_score(hedged) < compute_score(assured)


def test_missing_sub_structures_contribute_nothing():
    analysis = SentimentAnalysis(tone="positive", emotions=None, rhetoric=None, certainty=None)
    terms = score_terms(analysis)
    assert terms["emotion_polarity"] == 0.0
    assert terms["rhetoric_polarity"] == 0.0
    assert terms["certainty"] == 0.0
    assert compute_score(analysis) == 0.25


def test_anticipation_and_surprise_only_add_intensity():
    analysis = _analysis(emotions={"anticipation": 1.0, "surprise": 1.0})
    terms = score_terms(analysis)
    assert terms["emotion_polarity"] == 0.0
    assert terms["emotion_intensity"] == 0.25


def test_persuasive_is_excluded_from_rhetoric_polarity():
    analysis = _analysis(rhetoric={"persuasive": 1.0})
    assert score_terms(analysis)["rhetoric_polarity"] == 0.0


@pytest.mark.parametrize("score,expected", [
    (0.1, Sentiment.NEUTRAL),
    (0.1001, Sentiment.POSITIVE),
    (-0.1, Sentiment.NEUTRAL),
    (-0.1001, Sentiment.NEGATIVE),
    (0.0, Sentiment.NEUTRAL),
    (1.0, Sentiment.POSITIVE),
    (-1.0, Sentiment.NEGATIVE),
])
def test_classification_boundaries(score, expected):
    assert classify(score) is expected


def test_labels_are_capitalized():
    assert label(0.5) == "Positive"
    assert label(0.0) == "Neutral"
    assert label(-0.5) == "Negative"


def test_dominant_emotion_respects_threshold():
    assert dominant_emotion(NEUTRAL_SENTIMENT) == ("anticipation", 0.3)
    assert dominant_emotion({"emotions": {"joy": 0.15, "fear": 0.1}}) is None
    assert dominant_emotion({"emotions": {}}) is None
    assert dominant_emotion(None) is None


def test_loaded_language_flag():
    assert loaded_language_high({"loaded_language": 0.41})
    assert not loaded_language_high({"loaded_language": 0.4})
    assert not loaded_language_high({})
    assert not loaded_language_high(None)
