"""POST /insights/query -- question -> parsed intent + insight card."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from src.copilot.cards import build_insight_card
from src.copilot.errors import IntentError
from src.copilot.service import parse_intent
from src.core.logging import get_logger
from src.core.utils import utc_now

logger = get_logger(__name__)
router = APIRouter()


class InsightQueryRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=500, description="Natural-language business question")


class InsightResponse(BaseModel):
    success: bool = True
    card: dict[str, Any]
    intent: dict[str, Any]
    timestamp: datetime
    query: str


class InsightErrorResponse(BaseModel):
    success: bool = False
    error: str
    errorType: str
    timestamp: datetime
    query: str


@router.post(
    "/query",
    response_model=InsightResponse,
    responses={400: {"model": InsightErrorResponse}},
)
async def query_endpoint(req: InsightQueryRequest):
    """Parse the question into an intent and return it with the insight card."""
    logger.info("Received insight query: %s", req.query)
    try:
        intent = await parse_intent(req.query)
    except IntentError as exc:
        logger.warning("Failed to process insight query %r: %s", req.query, exc)
        body = InsightErrorResponse(
            error=str(exc),
            errorType=exc.kind,
            timestamp=utc_now(),
            query=req.query,
        )
        return JSONResponse(status_code=400, content=body.model_dump(mode="json"))
    except Exception as exc:
        logger.exception("Insight query failed")
        raise HTTPException(status_code=500, detail=str(exc))

    return InsightResponse(
        card=build_insight_card(),
        intent=intent.model_dump(by_alias=True, mode="json"),
        timestamp=utc_now(),
        query=req.query,
    )
