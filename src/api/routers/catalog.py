"""
GET /vocabulary -- the controlled vocabularies intents are validated against.
"""
from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from src.governance.vocabulary import load_vocabularies

router = APIRouter()


class VocabularyResponse(BaseModel):
    measures: list[str]
    grains: list[str]
    dimensions: list[str]


@router.get("/vocabulary", response_model=VocabularyResponse)
def vocabulary() -> VocabularyResponse:
    """Return valid measures, grains and filter dimensions."""
    vocab = load_vocabularies()
    return VocabularyResponse(
        measures=list(vocab.measures),
        grains=list(vocab.grains),
        dimensions=list(vocab.dimensions),
    )
