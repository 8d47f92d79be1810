"""Tolerant parsing of model output into article records.

Models asked for a JSON array do not always return one: the payload may be
wrapped in a markdown fence, surrounded by prose, or carry small syntax
errors. Parsing is an ordered list of strategies, each returning a
``ParseOutcome``; the first successful outcome wins.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "authors", "journal", "year", "abstract")

_FENCE_JSON = "```json"
_FENCE = "```"
_ARRAY_PATTERN = re.compile(r"\[\s*\{[\s\S]*\}\s*\]")
_OBJECT_PATTERN = re.compile(r"\{\s*\"[\s\S]*\"\s*:\s*[\s\S]*\}")
_FLAT_OBJECT_PATTERN = re.compile(r"\{[^{}]*\}")


@dataclass(frozen=True)
class ParseOutcome:
    """Result of one parsing strategy: either ``records`` or an ``error``."""

    strategy: str
    records: list[dict[str, Any]] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, strategy: str, records: list[dict[str, Any]]) -> ParseOutcome:
        return cls(strategy=strategy, records=records)

    @classmethod
    def failure(cls, strategy: str, error: str) -> ParseOutcome:
        return cls(strategy=strategy, error=error)


ParseStrategy = Callable[[str], ParseOutcome]


def extract_json_text(text: str) -> str:
    """Pull the JSON payload out of a model reply.

    Order: a ```json fence, any ``` fence, a bracketed array of objects,
    a single object; otherwise the text is returned unchanged.
    """
    if _FENCE_JSON in text:
        return text.split(_FENCE_JSON, 1)[1].split(_FENCE, 1)[0].strip()
    if _FENCE in text:
        return text.split(_FENCE, 2)[1].strip()
    match = _ARRAY_PATTERN.search(text)
    if match:
        return match.group(0)
    match = _OBJECT_PATTERN.search(text)
    if match:
        return match.group(0)
    return text


def sanitize_json(text: str) -> str:
    """Apply textual fixes for the syntax errors models commonly make."""
    cleaned = re.sub(r"[\x00-\x1f]+", " ", text)
    # Trailing commas.
    cleaned = re.sub(r",\s*([}\]])", r"\1", cleaned)
    # Adjacent objects with no separator.
    cleaned = re.sub(r"}\s*{", "},{", cleaned)
    # Unquoted or single-quoted keys.
    cleaned = re.sub(r"([{,]\s*)'?([A-Za-z_][A-Za-z0-9_]*)'?\s*:", r'\1"\2":', cleaned)
    # Single-quoted string values.
    cleaned = re.sub(r":\s*'([^']*)'", r': "\1"', cleaned)
    # Stray tokens between a string value and the next delimiter.
    cleaned = re.sub(r'("[^"]*")\s*[^\s,{}\[\]:"]+\s*([,}\]])', r"\1\2", cleaned)

    # Truncated output: close what was left open.
    open_braces = cleaned.count("{") - cleaned.count("}")
    open_brackets = cleaned.count("[") - cleaned.count("]")
    if open_braces > 0 or open_brackets > 0:
        cleaned = cleaned.rstrip().rstrip(",")
        cleaned += "}" * max(open_braces, 0)
        cleaned += "]" * max(open_brackets, 0)
    return cleaned


def _as_records(value: Any) -> list[dict[str, Any]]:
    if isinstance(value, dict):
        # A bare object, or an object wrapping the list, e.g. {"articles": [...]}.
        for item in value.values():
            if isinstance(item, list) and item and all(isinstance(i, dict) for i in item):
                return item
        return [value]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, dict)]
    raise ValueError(f"expected a JSON array or object, got {type(value).__name__}")


def parse_direct(text: str) -> ParseOutcome:
    try:
        return ParseOutcome.success("direct", _as_records(json.loads(extract_json_text(text))))
    except (json.JSONDecodeError, ValueError) as e:
        return ParseOutcome.failure("direct", str(e))


def parse_sanitized(text: str) -> ParseOutcome:
    try:
        return ParseOutcome.success("sanitized", _as_records(json.loads(sanitize_json(extract_json_text(text)))))
    except (json.JSONDecodeError, ValueError) as e:
        return ParseOutcome.failure("sanitized", str(e))


def has_required_fields(record: dict[str, Any]) -> bool:
    return all(record.get(name) for name in REQUIRED_FIELDS)


def parse_tolerant(text: str) -> ParseOutcome:
    """Scan for flat ``{...}`` objects and keep the complete ones."""
    records = []
    for match in _FLAT_OBJECT_PATTERN.finditer(text):
        try:
            candidate = json.loads(match.group(0))
        except json.JSONDecodeError:
            logger.debug("Skipping unparseable object: %s", match.group(0)[:50])
            continue
        if isinstance(candidate, dict) and has_required_fields(candidate):
            records.append(candidate)
    if not records:
        return ParseOutcome.failure("tolerant", "no complete JSON objects found in the response")
    return ParseOutcome.success("tolerant", records)


DEFAULT_STRATEGIES: tuple[ParseStrategy, ...] = (parse_direct, parse_sanitized, parse_tolerant)


def parse_articles(text: str, strategies: Sequence[ParseStrategy] = DEFAULT_STRATEGIES) -> ParseOutcome:
    """Run ``strategies`` in order and return the first successful outcome.

    When every strategy fails, the last failure is returned.
    """
    outcome = ParseOutcome.failure("none", "no parsing strategies configured")
    for strategy in strategies:
        outcome = strategy(text)
        if outcome.ok:
            if outcome.strategy != "direct":
                logger.info("Model output parsed with the %s strategy", outcome.strategy)
            return outcome
        logger.warning("Parsing strategy %s failed: %s", outcome.strategy, outcome.error)
    return outcome
