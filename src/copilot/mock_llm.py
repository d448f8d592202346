"""
Mock language model -- deterministic keyword extraction that answers with
intent JSON, so the whole pipeline runs offline (no API key needed, great
for tests and local dev).

The reply is wrapped in a ```json fence the way chat models often do it.
"""
from __future__ import annotations

import json
import re
from datetime import date
from typing import Any

from src.core.logging import get_logger

logger = get_logger(__name__)

# ── Keyword maps ─────────────────────────────────────────

_MEASURE_KEYWORDS: dict[str, list[str]] = {
    "Average Order Value": ["average order value", "aov", "avg order"],
    "Units Sold":          ["units sold", "items sold", "units", "quantity"],
    "Order Count":         ["order count", "number of orders", "orders"],
    "Customer Count":      ["customer count", "number of customers", "customers"],
    "Gross Margin":        ["gross margin", "margin"],
    "Profit":              ["profit", "earnings"],
    "Sales":               ["sales"],
    "Revenue":             ["revenue", "income", "money", "earned"],
}

_GRAIN_KEYWORDS: dict[str, list[str]] = {
    "Day":     ["daily", "by day", "per day", "each day"],
    "Week":    ["weekly", "by week", "per week", "each week"],
    "Month":   ["monthly", "by month", "per month", "each month"],
    "Quarter": ["quarterly", "by quarter", "per quarter", "each quarter"],
    "Year":    ["yearly", "annually", "by year", "per year", "each year"],
}

# keyword → (dimension, value as it should appear in the filter)
_FILTER_KEYWORDS: dict[str, tuple[str, str]] = {
    "north america": ("Region", "North America"),
    "latin america": ("Region", "Latin America"),
    "europe":        ("Region", "Europe"),
    "emea":          ("Region", "EMEA"),
    "apac":          ("Region", "APAC"),
    "united states": ("Country", "United States"),
    "usa":           ("Country", "United States"),
    "canada":        ("Country", "Canada"),
    "mexico":        ("Country", "Mexico"),
    "germany":       ("Country", "Germany"),
    "france":        ("Country", "France"),
    "japan":         ("Country", "Japan"),
    "online":        ("Channel", "Online"),
    "retail":        ("Channel", "Retail"),
    "wholesale":     ("Channel", "Wholesale"),
    "enterprise":    ("Customer Segment", "Enterprise"),
    "smb":           ("Customer Segment", "SMB"),
}

_YEAR_RE = re.compile(r"\b(20\d{2})\b")
_QUARTER_RE = re.compile(r"\bq([1-4])\b")
_EMBEDDED_QUERY_RE = re.compile(r'Query to parse: "(.*)"\s*JSON Response:\s*$', re.DOTALL)

_QUARTER_BOUNDS = {
    1: ("01-01", "03-31"),
    2: ("04-01", "06-30"),
    3: ("07-01", "09-30"),
    4: ("10-01", "12-31"),
}


def _has_word(text: str, kw: str) -> bool:
    return re.search(rf"\b{re.escape(kw)}\b", text) is not None


def _detect_measure(q: str) -> str:
    # earliest mention wins
    measure = "Revenue"
    best_pos = len(q) + 1
    for name, keywords in _MEASURE_KEYWORDS.items():
        for kw in keywords:
            m = re.search(rf"\b{re.escape(kw)}\b", q)
            if m and m.start() < best_pos:
                measure = name
                best_pos = m.start()
    return measure


def _detect_grain(q: str) -> str:
    for grain, keywords in _GRAIN_KEYWORDS.items():
        if any(kw in q for kw in keywords):
            return grain
    return "Month"


def _detect_time_range(q: str, today: date) -> dict[str, str]:
    year_match = _YEAR_RE.search(q)
    year = int(year_match.group(1)) if year_match else today.year

    quarter_match = _QUARTER_RE.search(q)
    if quarter_match:
        n = int(quarter_match.group(1))
        start, end = _QUARTER_BOUNDS[n]
        return {"startDate": f"{year}-{start}", "endDate": f"{year}-{end}", "description": f"Q{n} {year}"}

    return {"startDate": f"{year}-01-01", "endDate": f"{year}-12-31", "description": str(year)}


def _detect_filters(q: str) -> list[dict[str, Any]]:
    grouped: dict[str, list[str]] = {}
    for kw, (dimension, value) in _FILTER_KEYWORDS.items():
        if _has_word(q, kw):
            values = grouped.setdefault(dimension, [])
            if value not in values:
                values.append(value)
    return [
        {"dimension": dim, "values": vals, "operator": "equals" if len(vals) == 1 else "in"}
        for dim, vals in grouped.items()
    ]


def extract_query(system_prompt: str, user_message: str | None) -> str:
    """Recover the user's question from the chat messages."""
    if user_message:
        return user_message
    m = _EMBEDDED_QUERY_RE.search(system_prompt)
    return m.group(1) if m else ""


def build_mock_intent(query: str, today: date | None = None) -> dict[str, Any]:
    q = query.lower().strip()
    return {
        "measure": _detect_measure(q),
        "timeRange": _detect_time_range(q, today or date.today()),
        "grain": _detect_grain(q),
        "filters": _detect_filters(q),
    }


def mock_reply(system_prompt: str, user_message: str | None = None) -> str:
    query = extract_query(system_prompt, user_message)
    logger.info("LLM mock mode -- keyword intent for %r", query[:80])
    payload = build_mock_intent(query)
    return f"```json\n{json.dumps(payload, indent=2)}\n```"
