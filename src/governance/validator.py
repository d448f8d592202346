"""
Validates extracted intent fields against the controlled vocabularies.

Checks performed:
  1. Measure is a valid measure
  2. Grain is a valid grain
  3. Every filter dimension is a valid dimension

All checks run; every violation is reported, each with the full legal set.
"""
from __future__ import annotations

from typing import Iterable

from src.governance.vocabulary import ControlledVocabularies, load_vocabularies


def check_measure(measure: str, vocab: ControlledVocabularies) -> list[str]:
    if measure in vocab.measures:
        return []
    return [f"Invalid measure: {measure}. Valid measures are: {vocab.measures.joined()}"]


def check_grain(grain: str, vocab: ControlledVocabularies) -> list[str]:
    if grain in vocab.grains:
        return []
    return [f"Invalid grain: {grain}. Valid grains are: {vocab.grains.joined()}"]


def check_dimensions(dimensions: Iterable[str], vocab: ControlledVocabularies) -> list[str]:
    errors: list[str] = []
    for dim in dimensions:
        if dim not in vocab.dimensions:
            errors.append(
                f"Invalid filter dimension: {dim}. "
                f"Valid dimensions are: {vocab.dimensions.joined()}"
            )
    return errors


def validate_intent_fields(
    measure: str,
    grain: str,
    dimensions: Iterable[str] = (),
    vocab: ControlledVocabularies | None = None,
) -> list[str]:
    """Return a list of validation error messages (empty list = fields are valid).

    Parameters
    ----------
    measure, grain : str
        Values as extracted from the LLM reply (original casing).
    dimensions : iterable of str
        The ``dimension`` of every retained filter, in order.
    vocab : ControlledVocabularies, optional
        If None, loads the default vocabularies from disk.
    """
    if vocab is None:
        vocab = load_vocabularies()

    errors: list[str] = []
    errors.extend(check_measure(measure, vocab))
    errors.extend(check_grain(grain, vocab))
    errors.extend(check_dimensions(dimensions, vocab))
    return errors
