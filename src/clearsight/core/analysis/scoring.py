#!/usr/bin/env python3
"""
Sentiment polarity scoring.

Turns a structured SentimentAnalysis into a single polarity score in
[-1.0, 1.0] and a three-way classification. Pure functions, no I/O.

    score = 0.25 * tone
          + 0.25 * emotion_polarity
          + 0.15 * emotion_intensity
          + 0.15 * rhetoric_polarity
          + 0.10 * loaded_language   (always pushes negative)
          + 0.10 * certainty
"""

from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..models.analysis import SentimentAnalysis, Emotions, RhetoricStyle, Certainty

# Scores strictly beyond +/- this value leave the neutral band
CLASSIFY_THRESHOLD = 0.1

WEIGHTS = {
    'tone': 0.25,
    'emotion_polarity': 0.25,
    'emotion_intensity': 0.15,
    'rhetoric_polarity': 0.15,
    'loaded_language': 0.10,
    'certainty': 0.10,
}

TONE_POLARITY = {
    'positive': 1.0,
    'negative': -1.0,
}


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"

    @property
    def label(self) -> str:
        return self.value.capitalize()


def score_terms(analysis: SentimentAnalysis) -> Dict[str, float]:
    """Compute the individual bounded sub-terms of the polarity formula."""
    em = analysis.emotions or Emotions()
    rh = analysis.rhetoric or RhetoricStyle()
    cert = analysis.certainty or Certainty()

    return {
        'tone': TONE_POLARITY.get(analysis.tone, 0.0),
        'emotion_polarity': (em.joy + em.trust - (em.anger + em.fear + em.sadness + em.disgust)) / 6.0,
        'emotion_intensity': (em.joy + em.trust + em.fear + em.anger + em.sadness + em.disgust
                              + em.anticipation + em.surprise) / 8.0,
        'rhetoric_polarity': (rh.supportive + rh.analytical - (rh.alarmist + rh.dismissive + rh.sarcastic)) / 5.0,
        'loaded_language': -(analysis.loaded_language or 0.0),
        'certainty': cert.certainty - cert.speculation,
    }


def compute_score(analysis: SentimentAnalysis) -> float:
    """
    Compute the weighted polarity score for a sentiment analysis.

    Args:
        analysis: Structured sentiment payload

    Returns:
        Score clamped to [-1.0, 1.0] and rounded to 4 decimal places
    """
    terms = score_terms(analysis)
    score = sum(WEIGHTS[name] * value for name, value in terms.items())
    return round(max(-1.0, min(1.0, score)), 4)


def classify(score: float) -> Sentiment:
    """Classify a polarity score; the band [-0.1, 0.1] is neutral."""
    if score > CLASSIFY_THRESHOLD:
        return Sentiment.POSITIVE
    if score < -CLASSIFY_THRESHOLD:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def label(score: float) -> str:
    """Capitalized classification name, used verbatim as a display token."""
    return classify(score).label


def dominant_emotion(computed_result: Optional[Dict[str, Any]], threshold: float = 0.15) -> Optional[Tuple[str, float]]:
    """
    Highest-scoring emotion in a stored sentiment result.

    Returns None when the result is absent or every emotion is at or
    below the display threshold.
    """
    if not computed_result:
        return None

    emotions = computed_result.get('emotions') or {}
    if not emotions:
        return None

    name, value = max(emotions.items(), key=lambda item: item[1] or 0.0)
    if (value or 0.0) > threshold:
        return name, value
    return None


def loaded_language_high(computed_result: Optional[Dict[str, Any]], threshold: float = 0.4) -> bool:
    """Whether the loaded-language score of a stored result exceeds the threshold."""
    if not computed_result:
        return False
    return (computed_result.get('loaded_language') or 0.0) > threshold
