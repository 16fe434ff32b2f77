import logging
import os
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from medwriter.api.text import router as text_router
from medwriter.errors import InvalidInputError
from medwriter.logging_config import configure_logging
from medwriter.processing import get_text_processor

configure_logging()

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="Med Writer Text API")
app.include_router(text_router)


def _is_dev_environment() -> bool:
    return os.getenv("ENVIRONMENT", "development").strip().lower() not in {"prod", "production"}


@app.on_event("startup")
async def _log_configuration() -> None:
    """Log the effective processing configuration once at boot."""

    config = get_text_processor().config
    LOGGER.info(
        "Text processor ready: max_chunk_size=%s max_analysis_chars=%s abbreviations=%s",
        config.max_chunk_size,
        config.max_analysis_chars,
        config.respect_abbreviations,
    )


@app.exception_handler(InvalidInputError)
async def _invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    LOGGER.info("Rejected malformed input on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.get("/", response_class=PlainTextResponse)
def read_root() -> str:
    """Healthcheck endpoint for the service."""
    return "ok"


@app.get("/healthz", response_class=PlainTextResponse)
def healthcheck() -> str:
    """Liveness probe used by container orchestrators."""
    return "ok"


@app.get("/debug/config")
def debug_config() -> dict[str, Any]:
    """Expose the processing configuration in development environments only."""

    if not _is_dev_environment():
        raise HTTPException(status_code=404, detail="Not found")
    return asdict(get_text_processor().config)
