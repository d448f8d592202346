"""
Unit tests -- validator: measure / grain / dimension checks.
"""
import pytest

from src.governance.validator import check_dimensions, check_grain, check_measure, validate_intent_fields
from src.governance.vocabulary import load_vocabularies


@pytest.fixture(scope="module")
def vocab():
    return load_vocabularies()


def test_valid_fields_no_errors(vocab):
    assert validate_intent_fields("Revenue", "Month", ["Region", "Country"], vocab) == []


def test_valid_fields_any_case(vocab):
    assert validate_intent_fields("gross margin", "year", ["SALES REP"], vocab) == []


def test_default_vocab_loaded():
    assert validate_intent_fields("Revenue", "Month") == []


def test_unknown_measure(vocab):
    errors = check_measure("Happiness", vocab)
    assert len(errors) == 1
    assert "Invalid measure: Happiness" in errors[0]
    assert vocab.measures.joined() in errors[0]


def test_unknown_grain(vocab):
    errors = check_grain("Decade", vocab)
    assert errors == [f"Invalid grain: Decade. Valid grains are: {vocab.grains.joined()}"]


def test_each_unknown_dimension_reported(vocab):
    errors = check_dimensions(["Region", "Planet", "Mood"], vocab)
    assert len(errors) == 2
    assert "Planet" in errors[0]
    assert "Mood" in errors[1]


def test_no_short_circuit(vocab):
    errors = validate_intent_fields("Happiness", "Decade", ["Planet"], vocab)
    assert len(errors) == 3
    assert errors[0].startswith("Invalid measure")
    assert errors[1].startswith("Invalid grain")
    assert errors[2].startswith("Invalid filter dimension")
