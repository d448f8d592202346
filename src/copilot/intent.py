"""
Intent -- the structured representation of a natural-language analytics
question, as extracted from the LLM reply.

Field aliases mirror the JSON shape the model is asked to produce, so
``intent.model_dump(by_alias=True, mode="json")`` round-trips to that shape.
"""
from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_OPERATOR = "equals"


class TimeRange(BaseModel):
    """Calendar range of the question.  Start/end ordering is not checked."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")
    description: str = Field(..., description="Human label, e.g. 'Q1 2024'")


class Filter(BaseModel):
    """One dimensional constraint."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    dimension: str = Field(..., description="Dimension name, e.g. 'Region'")
    values: tuple[str, ...] = Field(..., min_length=1, description="Candidate values")
    operator: str = Field(DEFAULT_OPERATOR, description="equals | contains | in ...")


class Intent(BaseModel):
    """Parsed representation of one business question."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    measure: str = Field(..., description="Business metric, e.g. 'Revenue'")
    time_range: TimeRange = Field(..., alias="timeRange")
    grain: str = Field(..., description="Day | Week | Month | Quarter | Year")
    filters: tuple[Filter, ...] = Field(default_factory=tuple)
    original_query: str = Field(..., alias="originalQuery")
