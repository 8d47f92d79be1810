"""Tests for tolerant parsing of model output."""

from __future__ import annotations

import json

from scholarmux.core.llm.parsing import (
    extract_json_text,
    has_required_fields,
    parse_articles,
    parse_direct,
    parse_sanitized,
    parse_tolerant,
    sanitize_json,
)

COMPLETE_A = '{"title": "A", "authors": "X", "journal": "J", "year": "2020", "abstract": "Abs"}'
COMPLETE_C = '{"title": "C", "authors": "Y", "journal": "K", "year": "2021", "abstract": "Abs"}'


# ── Extraction ───────────────────────────────────────────────────────────────


class TestExtractJsonText:
    def test_json_fence(self) -> None:
        text = 'Here you go:\n```json\n[{"title": "A"}]\n```\nAnything else?'
        assert extract_json_text(text) == '[{"title": "A"}]'

    def test_plain_fence(self) -> None:
        text = '```\n[{"title": "A"}]\n```'
        assert extract_json_text(text) == '[{"title": "A"}]'

    def test_array_inside_prose(self) -> None:
        text = 'The results are [{"title": "A"}, {"title": "B"}] as requested.'
        assert extract_json_text(text) == '[{"title": "A"}, {"title": "B"}]'

    def test_object_inside_prose(self) -> None:
        text = 'Result: {"title": "A"} done'
        assert extract_json_text(text) == '{"title": "A"}'

    def test_plain_text_unchanged(self) -> None:
        assert extract_json_text("no json here") == "no json here"


# ── Sanitizing ───────────────────────────────────────────────────────────────


class TestSanitizeJson:
    def test_trailing_commas(self) -> None:
        assert json.loads(sanitize_json('[{"a": 1,},]')) == [{"a": 1}]

    def test_missing_separator_between_objects(self) -> None:
        assert json.loads(sanitize_json('[{"a": 1}{"a": 2}]')) == [{"a": 1}, {"a": 2}]

    def test_unquoted_and_single_quoted_keys(self) -> None:
        assert json.loads(sanitize_json("{title: \"A\", 'year': \"2020\"}")) == {"title": "A", "year": "2020"}

    def test_single_quoted_values(self) -> None:
        assert json.loads(sanitize_json("{\"title\": 'A'}")) == {"title": "A"}

    def test_urls_survive(self) -> None:
        text = '{"url": "https://example.org/a"}'
        assert json.loads(sanitize_json(text)) == {"url": "https://example.org/a"}

    def test_control_characters_removed(self) -> None:
        assert json.loads(sanitize_json('{"title": "line\none"}')) == {"title": "line one"}

    def test_truncated_output_closed(self) -> None:
        assert json.loads(sanitize_json('[{"title": "A", "authors": "B"')) == [{"title": "A", "authors": "B"}]


# ── Strategies ───────────────────────────────────────────────────────────────


class TestStrategies:
    def test_direct_parses_fenced_array(self) -> None:
        outcome = parse_direct(f"```json\n[{COMPLETE_A}]\n```")
        assert outcome.ok
        assert outcome.records[0]["title"] == "A"

    def test_direct_unwraps_object_holding_list(self) -> None:
        outcome = parse_direct('{"articles": [{"title": "A"}, {"title": "B"}]}')
        assert [r["title"] for r in outcome.records] == ["A", "B"]

    def test_direct_wraps_single_object(self) -> None:
        outcome = parse_direct('{"title": "A", "references": []}')
        assert outcome.records == [{"title": "A", "references": []}]

    def test_direct_rejects_scalar(self) -> None:
        assert not parse_direct("42").ok

    def test_sanitized_repairs_python_style_output(self) -> None:
        text = "[{'title': 'A', 'year': '2020',}]"
        assert not parse_direct(text).ok
        outcome = parse_sanitized(text)
        assert outcome.ok
        assert outcome.records == [{"title": "A", "year": "2020"}]

    def test_tolerant_keeps_complete_objects(self) -> None:
        text = f'Results: {COMPLETE_A} and also {{"title": "B" "authors": oops}} and {COMPLETE_C}'
        outcome = parse_tolerant(text)
        assert outcome.ok
        assert [r["title"] for r in outcome.records] == ["A", "C"]

    def test_tolerant_skips_incomplete_objects(self) -> None:
        outcome = parse_tolerant('{"title": "A", "authors": "X"}')
        assert not outcome.ok

    def test_has_required_fields(self) -> None:
        assert has_required_fields(json.loads(COMPLETE_A))
        assert not has_required_fields({"title": "A", "authors": "", "journal": "J", "year": "1", "abstract": "x"})


# ── Pipeline ─────────────────────────────────────────────────────────────────


class TestParseArticles:
    def test_first_success_wins(self) -> None:
        outcome = parse_articles(f"[{COMPLETE_A}]")
        assert outcome.strategy == "direct"

    def test_falls_through_to_sanitized(self) -> None:
        outcome = parse_articles("[{title: 'A'}]")
        assert outcome.strategy == "sanitized"
        assert outcome.records == [{"title": "A"}]

    def test_falls_through_to_tolerant(self) -> None:
        outcome = parse_articles(f"{COMPLETE_A} oops {{broken: }} {COMPLETE_C}")
        assert outcome.strategy == "tolerant"
        assert len(outcome.records) == 2

    def test_total_failure_returns_last_error(self) -> None:
        outcome = parse_articles("I cannot help with that.")
        assert not outcome.ok
        assert outcome.strategy == "tolerant"
        assert outcome.records == []

    def test_no_strategies(self) -> None:
        assert not parse_articles("[]", strategies=()).ok
