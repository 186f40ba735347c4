#!/usr/bin/env python3
"""
Centralized JSON schemas for the scoring service.

Used as function parameters on the tool-calling path and as the reference
shape for the sentiment prompt.
"""

from typing import Dict, Any


def _unit_object(*keys: str) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {key: {"type": "number", "minimum": 0.0, "maximum": 1.0} for key in keys},
        "required": list(keys),
        "additionalProperties": False
    }


SENTIMENT_SCHEMA = {
    "type": "object",
    "properties": {
        "tone": {
            "type": "string",
            "enum": ["positive", "neutral", "negative"],
            "description": "Overall tone of the article"
        },
        "emotions": _unit_object("joy", "trust", "fear", "anger", "sadness", "anticipation", "disgust", "surprise"),
        "rhetoric": _unit_object("analytical", "supportive", "persuasive", "alarmist", "dismissive", "sarcastic"),
        "loaded_language": {
            "type": "number",
            "minimum": 0.0,
            "maximum": 1.0,
            "description": "How much charged or emotional language is used"
        },
        "certainty": _unit_object("certainty", "speculation")
    },
    "required": ["tone", "emotions", "rhetoric", "loaded_language", "certainty"],
    "additionalProperties": False
}

RHETORIC_SCHEMA = {
    "type": "object",
    "properties": {
        "overall_tone": {
            "type": "string",
            "description": "Dominant tone, e.g. neutral, persuasive, alarmist, measured"
        },
        "sentiment_label": {
            "type": "string",
            "enum": ["positive", "neutral", "negative"]
        },
        "rhetorical_devices": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "device": {"type": "string"},
                    "example": {"type": "string"}
                },
                "required": ["device", "example"]
            }
        },
        "bias_indicators": {
            "type": "array",
            "items": {"type": "string"}
        }
    },
    "required": ["overall_tone", "sentiment_label", "rhetorical_devices", "bias_indicators"]
}

COMPARISON_SCHEMA = {
    "type": "object",
    "properties": {
        "framing_differences": {"type": "string"},
        "tone_comparison": {"type": "string"},
        "source_selection": {"type": "string"},
        "key_differences": {"type": "string"},
        "bias_assessment": {"type": "string"}
    },
    "required": ["framing_differences", "tone_comparison", "source_selection", "key_differences", "bias_assessment"]
}

SCHEMAS = {
    "sentiment": SENTIMENT_SCHEMA,
    "rhetoric": RHETORIC_SCHEMA,
    "comparison": COMPARISON_SCHEMA,
}


def get_schema_by_type(analysis_type: str) -> Dict[str, Any]:
    """
    Get JSON schema by analysis type.

    Args:
        analysis_type: One of sentiment, rhetoric, comparison

    Returns:
        JSON schema dictionary
    """
    if analysis_type not in SCHEMAS:
        raise ValueError(f"Unknown analysis type: {analysis_type}. Available: {list(SCHEMAS.keys())}")
    return SCHEMAS[analysis_type]


def get_tool_definition(analysis_type: str) -> Dict[str, Any]:
    """Function-tool definition whose arguments are the analysis result."""
    return {
        "type": "function",
        "function": {
            "name": f"{analysis_type}_result",
            "description": f"Record the {analysis_type} analysis",
            "parameters": get_schema_by_type(analysis_type)
        }
    }
