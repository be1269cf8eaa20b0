"""Tests for JSON recovery from LLM output."""

import pytest

from simroom.errors import ParseError
from simroom.parsing import parse_json_object, partial_analysis


def test_direct_json():
    assert parse_json_object('{"a": 1}') == {"a": 1}


def test_fenced_json():
    text = 'Here you go:\n```json\n{"matched_keypoints": [1, 3]}\n```\nDone.'
    assert parse_json_object(text) == {"matched_keypoints": [1, 3]}


def test_bare_fence():
    assert parse_json_object('```\n{"a": true}\n```') == {"a": True}


def test_brace_span_inside_prose():
    text = 'Sure! {"overall_score": 4, "strengths": ["empathy"]} Hope that helps.'
    assert parse_json_object(text) == {"overall_score": 4, "strengths": ["empathy"]}


def test_empty_text_raises():
    with pytest.raises(ParseError):
        parse_json_object("   ")


def test_no_object_raises():
    with pytest.raises(ParseError):
        parse_json_object("I could not evaluate this.")


def test_array_is_not_an_object():
    with pytest.raises(ParseError):
        parse_json_object("[1, 2]")


# ── partial_analysis ─────────────────────────────────────────


def test_partial_analysis_before_field_starts():
    assert partial_analysis('{"anal') is None


def test_partial_analysis_unterminated():
    assert partial_analysis('{"analysis": "The player apol') == "The player apol"


def test_partial_analysis_complete_field():
    assert partial_analysis('{"analysis": "Calmer now.", "mood_change"') == "Calmer now."


def test_partial_analysis_drops_dangling_escape():
    assert partial_analysis('{"analysis": "She said \\') == "She said "


def test_partial_analysis_decodes_escapes():
    assert partial_analysis('{"analysis": "line\\nnext') == "line\nnext"
