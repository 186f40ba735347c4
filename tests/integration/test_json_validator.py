import pytest

from clearsight.core.json_validator import JSONValidationError, extract_json, parse_json_object


def test_plain_object():
    assert parse_json_object('{"tone": "neutral"}') == {"tone": "neutral"}


def test_fenced_object():
    assert parse_json_object('```json\n{"tone": "negative"}\n```') == {"tone": "negative"}


def test_object_inside_prose():
    raw = 'Sure! Here it is: {"tone": "positive", "certainty": {"certainty": 0.9}} Let me know.'
    assert parse_json_object(raw)["certainty"] == {"certainty": 0.9}


def test_extract_keeps_nested_braces():
    assert extract_json('x {"a": {"b": 1}} y') == '{"a": {"b": 1}}'


@pytest.mark.parametrize("raw", [None, "", "   ", "no json here", "[1, 2, 3]", '{"tone": '])
def test_unrecoverable_output(raw):
    with pytest.raises(JSONValidationError):
        parse_json_object(raw)


def test_validation_error_is_a_value_error():
    assert issubclass(JSONValidationError, ValueError)
