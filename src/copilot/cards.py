"""
Insight card -- the static Adaptive Card returned alongside every parsed intent.

The numbers and summary are placeholder content until a reporting backend
is wired in; callers get a fresh deep copy so nothing can mutate the template.
"""
from __future__ import annotations

import copy
from typing import Any

ADAPTIVE_CARD_VERSION = "1.4"

# Small SVG sparkline, base64-encoded
_TREND_IMAGE = (
    "data:image/svg+xml;base64,PHN2ZyB3aWR0aD0iNDAwIiBoZWlnaHQ9IjEwMCIgeG1sbnM9Imh0dHA6Ly93d3cudzMub3JnLzIwMDAvc3ZnIj4K"
    "ICA8cG9seWxpbmUgZmlsbD0ibm9uZSIgc3Ryb2tlPSIjMDA3OGQ3IiBzdHJva2Utd2lkdGg9IjMiIHBvaW50cz0iMCw4MCAyMCw3MCA0MCw2MCA2MCw1"
    "MCA4MCw0MCAxMDAsMzAgMTIwLDIwIDE0MCwxMCAxNjAsMTUgMTgwLDIwIDIwMCwyNSAyMjAsMzAgMjQwLDM1IDI2MCw0MCAyODAsNDUgMzAwLDUwIDMy"
    "MCw1NSAzNDAsNjAgMzYwLDY1IDM4MCw3MCA0MDAsNzUiLz4KICA8Y2lyY2xlIGN4PSI0MDAiIGN5PSI3NSIgcj0iNCIgZmlsbD0iIzAwNzhkNyIvPgo8"
    "L3N2Zz4K"
)


def _text(text: str, **style: Any) -> dict[str, Any]:
    return {"type": "TextBlock", "text": text, **style}


def _kpi_column(label: str, value: str) -> dict[str, Any]:
    return {
        "type": "Column",
        "width": "stretch",
        "items": [
            _text(label, size="Medium", weight="Bolder"),
            _text(value, size="ExtraLarge", weight="Bolder", color="Good"),
        ],
    }


_SAMPLE_CARD: dict[str, Any] = {
    "type": "AdaptiveCard",
    "version": ADAPTIVE_CARD_VERSION,
    "body": [
        _text("📊 Revenue Insights", size="Large", weight="Bolder", color="Accent"),
        {
            "type": "ColumnSet",
            "columns": [
                _kpi_column("Total Revenue", "$2,847,392"),
                _kpi_column("Growth Rate", "+12.5%"),
            ],
        },
        _text("📈 Trend Analysis", size="Medium", weight="Bolder", margin={"top": "Medium"}),
        {"type": "Image", "url": _TREND_IMAGE, "size": "Medium", "margin": {"top": "Small"}},
        _text("💡 AI Summary", size="Medium", weight="Bolder", margin={"top": "Medium"}),
        _text(
            "Revenue has shown consistent growth throughout 2024, with the North American "
            "region leading performance. The 12.5% year-over-year increase reflects strong "
            "market demand and effective sales strategies. Key drivers include new product "
            "launches and expanded market penetration.",
            wrap=True,
            margin={"top": "Small"},
        ),
    ],
    "actions": [
        {
            "type": "Action.OpenUrl",
            "title": "Open in Power BI",
            "url": "https://app.powerbi.com/groups/me/reports/sample-report",
            "style": "positive",
        },
        {
            "type": "Action.Submit",
            "title": "Breakdown by Region",
            "data": {"action": "breakdown", "region": "all"},
        },
    ],
}


def build_insight_card() -> dict[str, Any]:
    return copy.deepcopy(_SAMPLE_CARD)
