"""
Prompt builder -- the instruction text that steers the LLM toward the intent
JSON shape.

Two variants:
  build_intent_prompt(query)  → one block with the query embedded at the end
  build_system_prompt()       → same instructions, query sent as user message

Both are pure: the same query and vocabularies always give the same text.
"""
from __future__ import annotations

import json
from typing import Any

from src.governance.vocabulary import ControlledVocabularies, load_vocabularies

_PREAMBLE = (
    "You are a business intelligence assistant that parses natural language "
    "queries into structured intent."
)

_SCHEMA = """\
Parse the query into a JSON object with this exact structure:
{
  "measure": "string",
  "timeRange": {
    "startDate": "YYYY-MM-DD",
    "endDate": "YYYY-MM-DD",
    "description": "string"
  },
  "grain": "string",
  "filters": [
    {
      "dimension": "string",
      "values": ["string"],
      "operator": "string"
    }
  ]
}"""

_RULES = """\
RULES:
1. Extract the main measure/metric from the query
2. If a measure is not in the valid list, map it to the closest valid measure
3. Determine the time range (if not specified, use the current year)
4. Determine the time grain (if not specified, use "Month")
5. Extract any filters (region, product, etc.)
6. If a dimension is not in the valid list, use the exact text from the query
7. Use "equals" as the default operator for filters
8. Return ONLY the JSON object, no markdown and no additional text"""

# (query, expected JSON) pairs shown to the model as few-shot anchors
FEW_SHOT_EXAMPLES: list[tuple[str, dict[str, Any]]] = [
    (
        "Revenue by month in 2024",
        {
            "measure": "Revenue",
            "timeRange": {"startDate": "2024-01-01", "endDate": "2024-12-31", "description": "2024"},
            "grain": "Month",
            "filters": [],
        },
    ),
    (
        "Sales in North America for Q1 2024",
        {
            "measure": "Sales",
            "timeRange": {"startDate": "2024-01-01", "endDate": "2024-03-31", "description": "Q1 2024"},
            "grain": "Quarter",
            "filters": [{"dimension": "Region", "values": ["North America"], "operator": "equals"}],
        },
    ),
    (
        "Units sold in Canada and Mexico by quarter in 2023",
        {
            "measure": "Units Sold",
            "timeRange": {"startDate": "2023-01-01", "endDate": "2023-12-31", "description": "2023"},
            "grain": "Quarter",
            "filters": [{"dimension": "Country", "values": ["Canada", "Mexico"], "operator": "in"}],
        },
    ),
]


def _render_example(query: str, payload: dict[str, Any]) -> str:
    return f'Query: "{query}"\nResponse: {json.dumps(payload, separators=(",", ":"))}'


def _instructions(vocab: ControlledVocabularies) -> str:
    vocab_block = "\n".join([
        f"VALID MEASURES: {vocab.measures.joined()}",
        f"VALID GRAINS: {vocab.grains.joined()}",
        f"VALID DIMENSIONS: {vocab.dimensions.joined()}",
    ])
    examples = "\n\n".join(_render_example(q, p) for q, p in FEW_SHOT_EXAMPLES)
    return "\n\n".join([_PREAMBLE, _SCHEMA, vocab_block, _RULES, f"EXAMPLES:\n{examples}"])


def build_system_prompt(vocab: ControlledVocabularies | None = None) -> str:
    """Instructions only; the caller sends the query as the user message."""
    if vocab is None:
        vocab = load_vocabularies()
    return _instructions(vocab)


def build_intent_prompt(query: str, vocab: ControlledVocabularies | None = None) -> str:
    """Instructions with *query* embedded, for a single system message."""
    if vocab is None:
        vocab = load_vocabularies()
    return f'{_instructions(vocab)}\n\nQuery to parse: "{query}"\n\nJSON Response:'
