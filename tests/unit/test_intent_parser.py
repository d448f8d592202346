"""
Unit tests -- intent parser: de-fencing, structural extraction, vocabulary checks.
"""
import json
import logging
from datetime import date

import pytest

from src.copilot.errors import IntentParsingError, IntentValidationError
from src.copilot.intent import Intent
from src.copilot.intent_parser import load_reply_json, parse_intent_response, strip_code_fences
from src.copilot.prompt_builder import FEW_SHOT_EXAMPLES
from src.governance.vocabulary import load_vocabularies


@pytest.fixture(scope="module")
def vocab():
    return load_vocabularies()


# ── Helper: build a valid reply ──────────────────────────

def _reply(**overrides) -> dict:
    base = {
        "measure": "Revenue",
        "timeRange": {"startDate": "2024-01-01", "endDate": "2024-12-31", "description": "2024"},
        "grain": "Month",
        "filters": [],
    }
    base.update(overrides)
    return base


def _parse(payload, vocab, query="Revenue by month in 2024", **kwargs) -> Intent:
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return parse_intent_response(text, query, vocab, **kwargs)


# ── De-fencing ───────────────────────────────────────────

def test_strip_fence_with_language_tag():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'


def test_strip_fence_without_language_tag():
    assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'


def test_strip_fence_absent_is_passthrough():
    assert strip_code_fences('  {"a": 1}  \n') == '{"a": 1}'


def test_strip_only_leading_fence():
    assert strip_code_fences('```json\n{"a": 1}') == '{"a": 1}'


def test_strip_only_trailing_fence():
    assert strip_code_fences('{"a": 1}\n```') == '{"a": 1}'


@pytest.mark.parametrize("payload", [
    _reply(),
    _reply(filters=[{"dimension": "Region", "values": ["North America"], "operator": "equals"}]),
    _reply(measure="profit", grain="quarter"),
])
def test_fenced_and_unfenced_parse_identically(payload, vocab):
    raw = json.dumps(payload)
    plain = _parse(raw, vocab)
    fenced = _parse(f"```json\n{raw}\n```", vocab)
    assert plain == fenced


# ── Happy path ───────────────────────────────────────────

def test_revenue_by_month_scenario(vocab):
    text = (
        '{"measure":"Revenue","timeRange":{"startDate":"2024-01-01","endDate":"2024-12-31",'
        '"description":"2024"},"grain":"Month","filters":[]}'
    )
    intent = parse_intent_response(text, "Revenue by month in 2024", vocab)
    assert intent.measure == "Revenue"
    assert intent.time_range.start_date == date(2024, 1, 1)
    assert intent.time_range.end_date == date(2024, 12, 31)
    assert intent.time_range.description == "2024"
    assert intent.grain == "Month"
    assert intent.filters == ()
    assert intent.original_query == "Revenue by month in 2024"


def test_single_filter_retained_unchanged(vocab):
    payload = _reply(filters=[{"dimension": "Region", "values": ["North America"], "operator": "equals"}])
    intent = _parse(payload, vocab)
    assert len(intent.filters) == 1
    f = intent.filters[0]
    assert f.dimension == "Region"
    assert f.values == ("North America",)
    assert f.operator == "equals"


def test_multi_value_filter_keeps_order(vocab):
    payload = _reply(filters=[{"dimension": "Country", "values": ["Mexico", "Canada"], "operator": "in"}])
    intent = _parse(payload, vocab)
    assert intent.filters[0].values == ("Mexico", "Canada")
    assert intent.filters[0].operator == "in"


def test_duplicate_filters_permitted(vocab):
    f = {"dimension": "Region", "values": ["EMEA"], "operator": "equals"}
    intent = _parse(_reply(filters=[f, f]), vocab)
    assert len(intent.filters) == 2


def test_vocabulary_match_is_case_insensitive_and_preserves_casing(vocab):
    payload = _reply(
        measure="rEVENUE",
        grain="MONTH",
        filters=[{"dimension": "region", "values": ["emea"]}],
    )
    intent = _parse(payload, vocab)
    assert intent.measure == "rEVENUE"
    assert intent.grain == "MONTH"
    assert intent.filters[0].dimension == "region"
    assert intent.filters[0].values == ("emea",)


def test_original_query_kept_verbatim(vocab):
    query = "  what's   REVENUE by month?? "
    intent = _parse(_reply(), vocab, query=query)
    assert intent.original_query == query


def test_start_after_end_is_not_rejected(vocab):
    payload = _reply(timeRange={"startDate": "2024-12-31", "endDate": "2024-01-01", "description": "backwards"})
    intent = _parse(payload, vocab)
    assert intent.time_range.start_date > intent.time_range.end_date


def test_datetime_strings_accepted_as_dates(vocab):
    payload = _reply(timeRange={
        "startDate": "2024-01-01T00:00:00",
        "endDate": "2024-03-31T23:59:59",
        "description": "Q1 2024",
    })
    intent = _parse(payload, vocab)
    assert intent.time_range.end_date == date(2024, 3, 31)


def test_extra_fields_are_ignored(vocab):
    intent = _parse(_reply(confidence=0.9, notes="x"), vocab)
    assert intent.measure == "Revenue"


def test_parse_is_idempotent(vocab):
    text = json.dumps(_reply(filters=[{"dimension": "Channel", "values": ["Online"]}]))
    assert parse_intent_response(text, "q", vocab) == parse_intent_response(text, "q", vocab)


@pytest.mark.parametrize("query,expected", FEW_SHOT_EXAMPLES)
def test_prompt_examples_are_valid_replies(query, expected, vocab):
    intent = parse_intent_response(json.dumps(expected), query, vocab)
    dumped = intent.model_dump(by_alias=True, mode="json")
    assert dumped["originalQuery"] == query
    del dumped["originalQuery"]
    assert dumped == expected


# ── Filters: permissive handling ─────────────────────────

def test_filter_with_empty_values_is_dropped(vocab):
    raw_filters = [
        {"dimension": "Region", "values": []},
        {"dimension": "Country", "values": ["Canada"], "operator": "equals"},
    ]
    intent = _parse(_reply(filters=raw_filters), vocab)
    assert len(intent.filters) == len(raw_filters) - 1
    assert intent.filters[0].dimension == "Country"


def test_filter_without_values_key_is_dropped(vocab):
    intent = _parse(_reply(filters=[{"dimension": "Region"}]), vocab)
    assert intent.filters == ()


@pytest.mark.parametrize("dimension", ["", "   "])
@pytest.mark.parametrize("strict", [True, False])
def test_filter_with_blank_dimension_is_dropped(dimension, strict, vocab):
    raw_filters = [
        {"dimension": dimension, "values": ["EMEA"]},
        {"dimension": "Country", "values": ["Canada"]},
    ]
    intent = _parse(_reply(filters=raw_filters), vocab, strict=strict)
    assert [f.dimension for f in intent.filters] == ["Country"]


def test_dropped_filters_are_logged(caplog, vocab):
    caplog.set_level(logging.DEBUG, logger="src.copilot.intent_parser")
    raw_filters = [{"dimension": "", "values": ["EMEA"]}, {"dimension": "Region", "values": []}]
    _parse(_reply(filters=raw_filters), vocab)
    messages = [r.getMessage() for r in caplog.records]
    assert "Dropping filters[0] -- empty dimension" in messages
    assert "Dropping filter on 'Region' -- no values" in messages


def test_single_value_key_accepted(vocab):
    intent = _parse(_reply(filters=[{"dimension": "Region", "value": "North America"}]), vocab)
    assert intent.filters[0].values == ("North America",)


@pytest.mark.parametrize("filt", [
    {"dimension": "Region", "values": ["APAC"]},
    {"dimension": "Region", "values": ["APAC"], "operator": ""},
    {"dimension": "Region", "values": ["APAC"], "operator": None},
])
def test_operator_defaults_to_equals(filt, vocab):
    intent = _parse(_reply(filters=[filt]), vocab)
    assert intent.filters[0].operator == "equals"


@pytest.mark.parametrize("payload", [_reply(filters=None), {k: v for k, v in _reply().items() if k != "filters"}])
def test_missing_or_null_filters_means_none(payload, vocab):
    assert _parse(payload, vocab).filters == ()


# ── Structural failures ──────────────────────────────────

@pytest.mark.parametrize("text", ["", "   \n ", "```json\n```", "```"])
def test_empty_reply_is_parsing_error(text, vocab):
    with pytest.raises(IntentParsingError, match="Empty"):
        parse_intent_response(text, "q", vocab)


def test_malformed_json_includes_parser_message(vocab):
    with pytest.raises(IntentParsingError, match="Invalid JSON") as excinfo:
        parse_intent_response("This is not JSON at all!", "q", vocab)
    assert "Expecting value" in str(excinfo.value)


def test_truncated_json_is_parsing_error(vocab):
    with pytest.raises(IntentParsingError):
        parse_intent_response('{"measure": "Revenue", "grain": ', "q", vocab)


def test_top_level_array_is_parsing_error(vocab):
    with pytest.raises(IntentParsingError, match="JSON object"):
        load_reply_json("[1, 2, 3]")


def test_missing_measure_names_measure(vocab):
    payload = _reply()
    del payload["measure"]
    # other fields broken too; measure is still the one reported
    payload["grain"] = 42
    payload["timeRange"] = "whenever"
    with pytest.raises(IntentParsingError, match="measure") as excinfo:
        _parse(payload, vocab)
    assert excinfo.value.field == "measure"


def test_non_string_measure_is_parsing_error(vocab):
    with pytest.raises(IntentParsingError) as excinfo:
        _parse(_reply(measure=["Revenue"]), vocab)
    assert excinfo.value.field == "measure"


def test_missing_grain_names_grain(vocab):
    payload = _reply()
    del payload["grain"]
    with pytest.raises(IntentParsingError) as excinfo:
        _parse(payload, vocab)
    assert excinfo.value.field == "grain"


def test_null_grain_is_parsing_error(vocab):
    with pytest.raises(IntentParsingError) as excinfo:
        _parse(_reply(grain=None), vocab)
    assert excinfo.value.field == "grain"


@pytest.mark.parametrize("time_range", [None, "2024", ["2024-01-01", "2024-12-31"]])
def test_time_range_must_be_object(time_range, vocab):
    with pytest.raises(IntentParsingError) as excinfo:
        _parse(_reply(timeRange=time_range), vocab)
    assert excinfo.value.field == "timeRange"


@pytest.mark.parametrize("missing", ["startDate", "endDate", "description"])
def test_time_range_subfields_required(missing, vocab):
    tr = {"startDate": "2024-01-01", "endDate": "2024-12-31", "description": "2024"}
    del tr[missing]
    with pytest.raises(IntentParsingError, match=missing) as excinfo:
        _parse(_reply(timeRange=tr), vocab)
    assert excinfo.value.field == f"timeRange.{missing}"


def test_unparseable_date_is_distinct_parsing_error(vocab):
    tr = {"startDate": "2024-01-01", "endDate": "end of year", "description": "2024"}
    with pytest.raises(IntentParsingError, match="not a valid date") as excinfo:
        _parse(_reply(timeRange=tr), vocab)
    assert excinfo.value.field == "timeRange.endDate"


def test_impossible_calendar_date_is_parsing_error(vocab):
    tr = {"startDate": "2024-02-30", "endDate": "2024-12-31", "description": "2024"}
    with pytest.raises(IntentParsingError, match="not a valid date"):
        _parse(_reply(timeRange=tr), vocab)


def test_filters_must_be_array(vocab):
    with pytest.raises(IntentParsingError) as excinfo:
        _parse(_reply(filters={"dimension": "Region", "values": ["EMEA"]}), vocab)
    assert excinfo.value.field == "filters"


def test_filter_item_must_be_object(vocab):
    with pytest.raises(IntentParsingError, match=r"filters\[0\]"):
        _parse(_reply(filters=["Region=EMEA"]), vocab)


def test_filter_dimension_required(vocab):
    with pytest.raises(IntentParsingError) as excinfo:
        _parse(_reply(filters=[{"values": ["EMEA"]}]), vocab)
    assert excinfo.value.field == "filters[0].dimension"


def test_filter_values_must_be_strings(vocab):
    with pytest.raises(IntentParsingError, match="must be a string"):
        _parse(_reply(filters=[{"dimension": "Region", "values": ["EMEA", 7]}]), vocab)


def test_filter_values_must_be_array(vocab):
    with pytest.raises(IntentParsingError, match="must be an array"):
        _parse(_reply(filters=[{"dimension": "Region", "values": "EMEA"}]), vocab)


# ── Vocabulary validation ────────────────────────────────

def test_invalid_grain_only_reports_grain(vocab):
    with pytest.raises(IntentValidationError) as excinfo:
        _parse(_reply(measure="Revenue", grain="Nonexistent", filters=[]), vocab)
    msg = str(excinfo.value)
    assert "grain" in msg
    for g in vocab.grains:
        assert g in msg
    assert "measure" not in msg.lower()
    assert len(excinfo.value.errors) == 1


def test_all_violations_reported_together(vocab):
    payload = _reply(
        measure="Vibes",
        grain="Fortnight",
        filters=[
            {"dimension": "Planet", "values": ["Mars"]},
            {"dimension": "Region", "values": ["EMEA"]},
            {"dimension": "Galaxy", "values": ["Andromeda"]},
        ],
    )
    with pytest.raises(IntentValidationError) as excinfo:
        _parse(payload, vocab)
    errors = excinfo.value.errors
    assert len(errors) == 4
    msg = str(excinfo.value)
    assert msg.startswith("Intent validation failed:")
    for bad in ("Vibes", "Fortnight", "Planet", "Galaxy"):
        assert bad in msg
    assert vocab.measures.joined() in msg
    assert vocab.dimensions.joined() in msg


def test_dropped_filter_dimension_not_validated(vocab):
    # the empty filter disappears before vocabulary checks run
    intent = _parse(_reply(filters=[{"dimension": "Planet", "values": []}]), vocab)
    assert intent.filters == ()


def test_structural_error_wins_over_vocabulary_error(vocab):
    tr = {"startDate": "nope", "endDate": "2024-12-31", "description": "2024"}
    with pytest.raises(IntentParsingError):
        _parse(_reply(measure="Vibes", timeRange=tr), vocab)


def test_non_strict_keeps_unknown_dimension(vocab):
    payload = _reply(filters=[{"dimension": "Store Manager", "values": ["Pat"]}])
    intent = _parse(payload, vocab, strict=False)
    assert intent.filters[0].dimension == "Store Manager"


def test_non_strict_still_rejects_bad_measure(vocab):
    payload = _reply(measure="Vibes", filters=[{"dimension": "Store Manager", "values": ["Pat"]}])
    with pytest.raises(IntentValidationError) as excinfo:
        _parse(payload, vocab, strict=False)
    assert len(excinfo.value.errors) == 1
    assert "Store Manager" not in str(excinfo.value)


def test_strict_rejects_unknown_dimension(vocab):
    payload = _reply(filters=[{"dimension": "Store Manager", "values": ["Pat"]}])
    with pytest.raises(IntentValidationError, match="Store Manager"):
        _parse(payload, vocab, strict=True)


def test_non_strict_warns_about_unknown_dimension(caplog, vocab):
    caplog.set_level(logging.WARNING, logger="src.copilot.intent_parser")
    payload = _reply(filters=[{"dimension": "Store Manager", "values": ["Pat"]}])
    _parse(payload, vocab, strict=False)
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert warnings[0].getMessage().startswith("Non-strict mode, keeping filter:")
    assert "Store Manager" in warnings[0].getMessage()


def test_parsed_filters_cannot_be_mutated(vocab):
    intent = _parse(_reply(filters=[{"dimension": "Region", "values": ["EMEA", "APAC"]}]), vocab)
    assert isinstance(intent.filters, tuple)
    assert isinstance(intent.filters[0].values, tuple)
    with pytest.raises(AttributeError):
        intent.filters[0].values.append("LATAM")
    with pytest.raises(AttributeError):
        intent.filters.clear()
    assert intent.filters[0].values == ("EMEA", "APAC")
