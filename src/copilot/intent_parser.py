"""
Intent parser -- turns the LLM's raw text reply into a validated Intent.

Two phases:
  1. structural: de-fence → json.loads → field-by-field extraction
     (any failure raises IntentParsingError naming the field)
  2. semantic: measure / grain / filter dimensions checked against the
     controlled vocabularies; all violations are collected and raised
     together as IntentValidationError

Nothing here retries, reads the clock, or touches the network.
"""
from __future__ import annotations

import json
import re
from datetime import date, datetime
from typing import Any

from src.copilot.errors import IntentParsingError, IntentValidationError
from src.copilot.intent import DEFAULT_OPERATOR, Filter, Intent, TimeRange
from src.core.config import get_settings
from src.core.logging import get_logger
from src.governance.validator import check_dimensions, validate_intent_fields
from src.governance.vocabulary import ControlledVocabularies, load_vocabularies

logger = get_logger(__name__)

_OPENING_FENCE_RE = re.compile(r"^```[A-Za-z0-9_+-]*")
_CLOSING_FENCE = "```"


# ── De-fencing ───────────────────────────────────────────

def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any, and trim whitespace."""
    value = (text or "").strip()
    if value.startswith(_CLOSING_FENCE):
        value = _OPENING_FENCE_RE.sub("", value, count=1)
    if value.endswith(_CLOSING_FENCE):
        value = value[: -len(_CLOSING_FENCE)]
    return value.strip()


# ── Field extraction helpers ─────────────────────────────

def _require_str(obj: dict[str, Any], key: str, path: str | None = None) -> str:
    name = path or key
    value = obj.get(key)
    if not isinstance(value, str):
        raise IntentParsingError(f"Missing or invalid required property: {name}", field=name)
    return value


def _require_object(obj: dict[str, Any], key: str) -> dict[str, Any]:
    value = obj.get(key)
    if not isinstance(value, dict):
        raise IntentParsingError(f"Missing or invalid required property: {key}", field=key)
    return value


def _parse_date(raw: str, path: str) -> date:
    text = raw.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise IntentParsingError(
            f"Property {path} is not a valid date: {raw!r} (expected YYYY-MM-DD)",
            field=path,
        ) from None


def _extract_time_range(data: dict[str, Any]) -> TimeRange:
    raw = _require_object(data, "timeRange")
    start = _require_str(raw, "startDate", "timeRange.startDate")
    end = _require_str(raw, "endDate", "timeRange.endDate")
    description = _require_str(raw, "description", "timeRange.description")
    return TimeRange(
        start_date=_parse_date(start, "timeRange.startDate"),
        end_date=_parse_date(end, "timeRange.endDate"),
        description=description,
    )


def _extract_values(raw: dict[str, Any], path: str) -> tuple[str, ...]:
    values = raw.get("values")
    if values is None:
        # single-value filter shape: {"dimension": ..., "value": ...}
        single = raw.get("value")
        if single is None:
            return ()
        values = [single]
    if not isinstance(values, list):
        raise IntentParsingError(f"Property {path}.values must be an array", field=f"{path}.values")
    for i, v in enumerate(values):
        if not isinstance(v, str):
            raise IntentParsingError(
                f"Property {path}.values[{i}] must be a string, got {type(v).__name__}",
                field=f"{path}.values",
            )
    return tuple(values)


def _extract_operator(raw: dict[str, Any], path: str) -> str:
    op = raw.get("operator")
    if op is None or op == "":
        return DEFAULT_OPERATOR
    if not isinstance(op, str):
        raise IntentParsingError(f"Property {path}.operator must be a string", field=f"{path}.operator")
    return op


def _extract_filters(data: dict[str, Any]) -> tuple[Filter, ...]:
    raw_filters = data.get("filters")
    if raw_filters is None:
        return ()
    if not isinstance(raw_filters, list):
        raise IntentParsingError("Property filters must be an array", field="filters")

    filters: list[Filter] = []
    for i, item in enumerate(raw_filters):
        path = f"filters[{i}]"
        if not isinstance(item, dict):
            raise IntentParsingError(f"Property {path} must be an object", field=path)
        dimension = _require_str(item, "dimension", f"{path}.dimension")
        if not dimension.strip():
            logger.debug("Dropping %s -- empty dimension", path)
            continue
        values = _extract_values(item, path)
        if not values:
            logger.debug("Dropping filter on '%s' -- no values", dimension)
            continue
        filters.append(Filter(dimension=dimension, values=values, operator=_extract_operator(item, path)))
    return tuple(filters)


# ── Public API ───────────────────────────────────────────

def load_reply_json(text: str) -> dict[str, Any]:
    """De-fence and decode the reply; the top-level value must be an object."""
    clean = strip_code_fences(text)
    if not clean:
        raise IntentParsingError("Empty response from language model")
    try:
        data = json.loads(clean)
    except json.JSONDecodeError as exc:
        raise IntentParsingError(f"Invalid JSON response from language model: {exc}") from exc
    if not isinstance(data, dict):
        raise IntentParsingError(
            f"Expected a JSON object at the top level, got {type(data).__name__}"
        )
    return data


def parse_intent_response(
    text: str,
    original_query: str,
    vocab: ControlledVocabularies | None = None,
    *,
    strict: bool | None = None,
) -> Intent:
    """Parse and validate an LLM reply into an Intent.

    Parameters
    ----------
    text : str
        Raw completion text, possibly wrapped in a markdown fence.
    original_query : str
        The user's question, stored verbatim on the Intent.
    vocab : ControlledVocabularies, optional
        If None, loads the default vocabularies from disk.
    strict : bool, optional
        Whether unknown filter dimensions are fatal.  Defaults to the
        ``strict_dimension_validation`` setting.  Unknown measures and
        grains are always fatal.

    Raises
    ------
    IntentParsingError
        Malformed JSON, missing / mistyped field, or unparseable date.
    IntentValidationError
        Well-formed reply that violates a controlled vocabulary.
    """
    if vocab is None:
        vocab = load_vocabularies()
    if strict is None:
        strict = get_settings().strict_dimension_validation

    data = load_reply_json(text)

    measure = _require_str(data, "measure")
    grain = _require_str(data, "grain")
    time_range = _extract_time_range(data)
    filters = _extract_filters(data)

    dimensions = [f.dimension for f in filters]
    if strict:
        errors = validate_intent_fields(measure, grain, dimensions, vocab)
    else:
        errors = validate_intent_fields(measure, grain, (), vocab)
        for msg in check_dimensions(dimensions, vocab):
            logger.warning("Non-strict mode, keeping filter: %s", msg)
    if errors:
        raise IntentValidationError(errors)

    return Intent(
        measure=measure,
        time_range=time_range,
        grain=grain,
        filters=filters,
        original_query=original_query,
    )
