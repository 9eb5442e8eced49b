from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from pydantic import BaseModel

from app.logging_utils import configure_logging

_ALLOWED_ADAPTERS = {"openai", "mock"}


class HealthResponse(BaseModel):
    status: str
    llm_adapter: str
    files: int
    rows: int


def _validate_env() -> None:
    """
    Validate all required environment variables at startup.

    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - LLM_ADAPTER must be 'openai' or 'mock'.
    - LLM API key check is skipped only when LLM_ADAPTER=mock.
    - Sample sizes, when set, must be positive integers.
    """

    from app.config import load_env_files

    load_env_files()

    errors: list[str] = []

    # --- LLM adapter ----------------------------------------------------
    adapter = os.getenv("LLM_ADAPTER", "openai").strip().lower()
    if adapter not in _ALLOWED_ADAPTERS:
        errors.append(
            f"LLM_ADAPTER='{adapter}' is not valid. Allowed values: {sorted(_ALLOWED_ADAPTERS)}."
        )
    elif adapter != "mock":
        llm_api_key = os.getenv("LLM_API_KEY", "").strip()
        openai_api_key = os.getenv("OPENAI_API_KEY", "").strip()
        if not llm_api_key and not openai_api_key:
            errors.append(
                "LLM API key is not set. Provide LLM_API_KEY or OPENAI_API_KEY, "
                "or set LLM_ADAPTER=mock. Empty strings are not permitted."
            )

    # --- Sample sizes ---------------------------------------------------
    for name in (
        "INSIGHT_AUDIT_SAMPLE_SIZE",
        "INSIGHT_SEARCH_SAMPLE_SIZE",
        "INSIGHT_PREDICT_SAMPLE_SIZE",
    ):
        raw = os.getenv(name)
        if raw is None:
            continue
        if not raw.strip().isdigit() or int(raw) < 1:
            errors.append(f"{name}='{raw}' must be a positive integer.")

    if errors:
        raise RuntimeError(
            "Startup validation failed: missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Build the shared services on boot so misconfiguration fails fast."""
    from app.services.dataset_ingestion_service import get_dataset_ingestion_service
    from app.services.insight_service import get_insight_service

    get_dataset_ingestion_service()
    get_insight_service()
    logging.getLogger(__name__).info("Ingestion and insight services initialised")
    try:
        yield
    finally:
        logging.getLogger(__name__).info("Shutting down; in-memory dataset discarded")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    configure_logging()

    application = FastAPI(
        title="Campaign Insight Lab API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import dataset_router, files_router, insights_router

    application.include_router(files_router)
    application.include_router(dataset_router)
    application.include_router(insights_router)

    @application.get("/health")
    def healthcheck() -> HealthResponse:
        from app.config import get_llm_settings
        from app.services.dataset_ingestion_service import get_dataset_ingestion_service

        ingestion_service = get_dataset_ingestion_service()
        return HealthResponse(
            status="ok",
            llm_adapter=get_llm_settings().adapter,
            files=len(ingestion_service.list_files()),
            rows=len(ingestion_service.rows()),
        )

    return application
