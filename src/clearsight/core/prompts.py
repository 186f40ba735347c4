#!/usr/bin/env python3
"""
Centralized prompts for article analysis.

System prompts spell out the exact JSON shape expected back, because the
sentiment path reads free-form content rather than enforced structured
output.
"""

from typing import Dict, List

TRUNCATION_MARKER = " ..."


def truncate(text: str, max_chars: int = 4000) -> str:
    """
    Trim article text to the character budget.

    Text within the budget is only stripped; longer text is cut at the
    budget, right-trimmed and marked with a trailing ellipsis.
    """
    text = (text or "").strip()
    if len(text) <= max_chars:
        return text
    return text[:max_chars].rstrip() + TRUNCATION_MARKER


class AnalysisPrompts:
    """Prompt builder for the three analysis kinds."""

    SENTIMENT_SYSTEM_PROMPT = """You are a structured news article analyst. You MUST respond ONLY with a JSON object
that has exactly these top-level keys: tone, emotions, rhetoric, loaded_language, certainty.
- tone: one of "positive", "neutral", "negative"
- emotions: object with keys joy, trust, fear, anger, sadness, anticipation, disgust, surprise (each 0.0-1.0)
- rhetoric: object with keys analytical, supportive, persuasive, alarmist, dismissive, sarcastic (each 0.0-1.0)
- loaded_language: float 0.0-1.0
- certainty: object with keys certainty and speculation (each 0.0-1.0)
Every key must be present. Do NOT include any other keys, markdown, or commentary."""

    RHETORIC_SYSTEM_PROMPT = """You are a structured news article analyst. Call the provided function with:
- overall_tone: string (e.g. "neutral", "persuasive", "alarmist", "measured")
- sentiment_label: one of "positive", "neutral", "negative"
- rhetorical_devices: array of objects, each with keys "device" (string) and "example" (a direct quote)
- bias_indicators: array of strings describing framing choices or selective emphasis"""

    COMPARISON_SYSTEM_PROMPT = """You are a structured news article analyst comparing two articles on the same topic.
Call the provided function with:
- framing_differences: how each article frames the story (emphasis, angle, narrative choices)
- tone_comparison: the emotional appeal and tone of each article
- source_selection: differences in sources cited, experts quoted, perspectives included or excluded
- key_differences: facts, angles or context one article includes and the other omits
- bias_assessment: which article appears more neutral and why, without taking a political position"""

    @classmethod
    def sentiment_messages(cls, text: str, max_chars: int = 4000) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": cls.SENTIMENT_SYSTEM_PROMPT},
            {"role": "user", "content": f"Analyse the sentiment of the following article.\n\nArticle:\n{truncate(text, max_chars)}"}
        ]

    @classmethod
    def rhetoric_messages(cls, text: str, max_chars: int = 4000) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": cls.RHETORIC_SYSTEM_PROMPT},
            {"role": "user", "content": f"Analyse the rhetorical style of the following article.\n\nArticle:\n{truncate(text, max_chars)}"}
        ]

    @classmethod
    def comparison_messages(cls, primary_text: str, reference_text: str, max_chars: int = 4000) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": cls.COMPARISON_SYSTEM_PROMPT},
            {"role": "user", "content": (
                "Compare these two articles on the same topic.\n\n"
                f"Article 1:\n{truncate(primary_text, max_chars)}\n\n"
                f"Article 2:\n{truncate(reference_text, max_chars)}"
            )}
        ]
