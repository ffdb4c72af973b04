"""Tests for tolerant JSON extraction from model output."""

from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

from logic.json_extraction import extract_json_object


def test_strict_json_is_parsed_directly() -> None:
    assert extract_json_object('{"topId": "t1", "reasoning": "ok"}') == {"topId": "t1", "reasoning": "ok"}


def test_first_object_is_extracted_from_surrounding_prose() -> None:
    text = 'Sure! Here is the outfit:\n```json\n{"topId": "t1", "shoesId": "s1"}\n```\nEnjoy {not json}.'
    assert extract_json_object(text) == {"topId": "t1", "shoesId": "s1"}


def test_braces_inside_strings_do_not_end_the_span() -> None:
    text = 'answer: {"reasoning": "layer it {loosely} for \\"comfort\\"", "topId": "t1"} trailing }'
    parsed = extract_json_object(text)
    assert parsed == {"reasoning": 'layer it {loosely} for "comfort"', "topId": "t1"}


def test_invalid_leading_span_is_skipped_for_a_later_object() -> None:
    text = "{not valid} then {\"bottomId\": \"b2\"}"
    assert extract_json_object(text) == {"bottomId": "b2"}


def test_nested_objects_are_kept_whole() -> None:
    text = 'x {"outfit": {"topId": "t1"}, "occasion": "work"} y'
    assert extract_json_object(text) == {"outfit": {"topId": "t1"}, "occasion": "work"}


def test_missing_or_unbalanced_json_returns_none() -> None:
    assert extract_json_object("") is None
    assert extract_json_object(None) is None
    assert extract_json_object("no structure here") is None
    assert extract_json_object('{"topId": "t1"') is None
    assert extract_json_object("[1, 2, 3]") is None


def test_unclosed_leading_brace_does_not_stop_the_scan() -> None:
    text = 'I picked {the best pieces for you:\n{"topId": "t1", "reasoning": "ok", "occasion": "x"}'
    assert extract_json_object(text) == {"topId": "t1", "reasoning": "ok", "occasion": "x"}


def test_stray_quote_in_prose_does_not_hide_later_object() -> None:
    text = 'Outfit {5" heels} -> {"topId": "t1", "reasoning": "ok"}'
    assert extract_json_object(text) == {"topId": "t1", "reasoning": "ok"}
