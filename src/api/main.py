"""
FastAPI application entry-point.
"""
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routers import catalog, insights

app = FastAPI(
    title="Ask Insights",
    version="0.1.0",
    description="Natural-language business questions to structured intent and insight cards",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(insights.router, prefix="/insights", tags=["Insights"])
app.include_router(catalog.router, tags=["Catalog"])


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    from src.core.config import get_settings

    uvicorn.run("src.api.main:app", host="0.0.0.0", port=get_settings().api_port)
