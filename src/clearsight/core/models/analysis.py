#!/usr/bin/env python3
"""
Structured analysis payloads produced by the scoring service.

SentimentAnalysis feeds the polarity score; RhetoricResult and
ComparisonResult are stored as-is. Numeric fields are required-with-default:
an absent or null value reads as 0.0, an out-of-range one is rejected.
"""

from dataclasses import dataclass, field, asdict, fields
from typing import Any, Dict, List, Optional

TONES = ("positive", "neutral", "negative")


def _unit_float(data: Dict[str, Any], key: str) -> float:
    value = data.get(key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"{key} must be a number, got {type(value).__name__}")
    try:
        number = float(value)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {value!r}")
    if not 0.0 <= number <= 1.0:
        raise ValueError(f"{key} must be between 0.0 and 1.0, got {number}")
    return number


def _sub_object(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{key} must be an object")
    return value


class _UnitVector:
    """Mixin for dataclasses whose every field is a float in [0, 1]."""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]):
        data = data or {}
        return cls(**{f.name: _unit_float(data, f.name) for f in fields(cls)})

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class Emotions(_UnitVector):
    """The eight Plutchik emotion dimensions."""
    joy: float = 0.0
    trust: float = 0.0
    fear: float = 0.0
    anger: float = 0.0
    sadness: float = 0.0
    anticipation: float = 0.0
    disgust: float = 0.0
    surprise: float = 0.0


@dataclass
class RhetoricStyle(_UnitVector):
    """The six rhetorical style dimensions."""
    analytical: float = 0.0
    supportive: float = 0.0
    persuasive: float = 0.0
    alarmist: float = 0.0
    dismissive: float = 0.0
    sarcastic: float = 0.0


@dataclass
class Certainty(_UnitVector):
    """Assertive vs speculative writing."""
    certainty: float = 0.0
    speculation: float = 0.0


@dataclass
class SentimentAnalysis:
    """Structured sentiment payload for one article."""
    tone: str
    emotions: Optional[Emotions] = field(default_factory=Emotions)
    rhetoric: Optional[RhetoricStyle] = field(default_factory=RhetoricStyle)
    loaded_language: float = 0.0
    certainty: Optional[Certainty] = field(default_factory=Certainty)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SentimentAnalysis':
        """
        Build from a parsed JSON object.

        Raises:
            ValueError: If tone is missing/invalid or a numeric field is
                out of range or not a number
        """
        if not isinstance(data, dict):
            raise ValueError("sentiment payload must be a JSON object")

        tone = data.get('tone')
        if tone not in TONES:
            raise ValueError(f"tone must be one of {', '.join(TONES)}, got {tone!r}")

        return cls(
            tone=tone,
            emotions=Emotions.from_dict(_sub_object(data, 'emotions')),
            rhetoric=RhetoricStyle.from_dict(_sub_object(data, 'rhetoric')),
            loaded_language=_unit_float(data, 'loaded_language'),
            certainty=Certainty.from_dict(_sub_object(data, 'certainty'))
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tone': self.tone,
            'emotions': self.emotions.to_dict() if self.emotions else None,
            'rhetoric': self.rhetoric.to_dict() if self.rhetoric else None,
            'loaded_language': self.loaded_language,
            'certainty': self.certainty.to_dict() if self.certainty else None
        }


@dataclass
class RhetoricalDevice:
    device: str
    example: str = ""


@dataclass
class RhetoricResult:
    """Rhetorical breakdown of a single article."""
    overall_tone: str
    sentiment_label: str
    rhetorical_devices: List[RhetoricalDevice] = field(default_factory=list)
    bias_indicators: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RhetoricResult':
        if not isinstance(data, dict):
            raise ValueError("rhetoric payload must be a JSON object")

        overall_tone = data.get('overall_tone')
        if not isinstance(overall_tone, str) or not overall_tone.strip():
            raise ValueError("overall_tone is required")

        sentiment_label = data.get('sentiment_label')
        if sentiment_label not in TONES:
            raise ValueError(f"sentiment_label must be one of {', '.join(TONES)}, got {sentiment_label!r}")

        devices = []
        for item in data.get('rhetorical_devices') or []:
            if not isinstance(item, dict) or not item.get('device'):
                raise ValueError("rhetorical_devices entries need a device name")
            devices.append(RhetoricalDevice(device=str(item['device']), example=str(item.get('example') or '')))

        indicators = data.get('bias_indicators') or []
        if not isinstance(indicators, list):
            raise ValueError("bias_indicators must be a list")

        return cls(
            overall_tone=overall_tone.strip(),
            sentiment_label=sentiment_label,
            rhetorical_devices=devices,
            bias_indicators=[str(indicator) for indicator in indicators]
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ComparisonResult:
    """Framing, tone and bias contrast between two articles."""
    framing_differences: str
    tone_comparison: str
    source_selection: str
    key_differences: str
    bias_assessment: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ComparisonResult':
        if not isinstance(data, dict):
            raise ValueError("comparison payload must be a JSON object")

        missing = [f.name for f in fields(cls) if not isinstance(data.get(f.name), str) or not data[f.name].strip()]
        if missing:
            raise ValueError(f"comparison payload missing: {', '.join(missing)}")

        return cls(**{f.name: data[f.name].strip() for f in fields(cls)})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
