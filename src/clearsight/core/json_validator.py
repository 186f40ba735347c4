#!/usr/bin/env python3
"""
Lenient JSON extraction for scoring service output.

The upstream model sometimes wraps its JSON in markdown fences or prose.
These helpers recover the outermost JSON object, or fail loudly so the
caller can spend another attempt.
"""

import json
import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)


class JSONValidationError(ValueError):
    """Raised when no JSON object can be recovered from model output."""
    pass


def extract_json(raw_output: str) -> str:
    """Extract the outermost {...} block from mixed text output."""
    if raw_output is None or not raw_output.strip():
        raise JSONValidationError("Empty output")

    text = raw_output.strip()
    if text.startswith('```'):
        text = text.strip('`')
        if text.lower().startswith('json'):
            text = text[4:]
        text = text.strip()

    start_idx = text.find('{')
    end_idx = text.rfind('}')
    if start_idx == -1 or end_idx <= start_idx:
        raise JSONValidationError("No JSON object found in output")

    return text[start_idx:end_idx + 1]


def parse_json_object(raw_output: str) -> Dict[str, Any]:
    """
    Parse model output into a JSON object.

    Tries the output as-is first, then the extracted outermost object.

    Raises:
        JSONValidationError: If the output does not hold a JSON object
    """
    try:
        data = json.loads(raw_output.strip()) if raw_output else None
    except json.JSONDecodeError:
        json_str = extract_json(raw_output)
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            logger.debug(f"JSON parsing failed: {e}; first 300 chars: {json_str[:300]!r}")
            raise JSONValidationError(f"Malformed JSON: {e}") from e
        logger.info("Recovered JSON object from wrapped model output")

    if not isinstance(data, dict):
        raise JSONValidationError(f"Expected a JSON object, got {type(data).__name__}")

    return data
