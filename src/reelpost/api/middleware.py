"""Error handling middleware."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from reelpost.models.errors import (
    ClipNotFound,
    ConfigError,
    ErrorResponse,
    InvalidTransition,
    JobNotFound,
    JobNotRetryable,
    JobNotRunnable,
    ProviderNotFound,
    QuotaExceeded,
    ReelpostError,
    SafetyHalt,
)

logger = logging.getLogger(__name__)


async def reelpost_error_handler(request: Request, exc: ReelpostError) -> JSONResponse:
    """Handle ReelpostError exceptions."""
    response = ErrorResponse.from_exception(
        exc, guidance=_get_guidance(exc), retry=_is_retryable(exc)
    )
    status_code = _get_status_code(exc)
    if status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content=response.model_dump())


def _get_status_code(exc: ReelpostError) -> int:
    """Map error type to HTTP status code."""
    if isinstance(exc, (JobNotFound, ClipNotFound)):
        return 404
    elif isinstance(exc, (InvalidTransition, JobNotRunnable, JobNotRetryable)):
        return 409
    elif isinstance(exc, QuotaExceeded):
        return 429
    elif isinstance(exc, SafetyHalt):
        return 503
    elif isinstance(exc, (ProviderNotFound, ConfigError)):
        return 400
    return 500


def _get_guidance(exc: ReelpostError) -> str:
    """Generate actionable guidance based on error type."""
    if isinstance(exc, SafetyHalt):
        return "Remove the kill switch file to resume the pipeline."
    if isinstance(exc, QuotaExceeded):
        return "Daily post limit reached; raise pipeline.max_posts_per_day or wait until tomorrow."
    if isinstance(exc, ProviderNotFound):
        return "Set provider.<kind> to one of the available providers."
    if isinstance(exc, JobNotRetryable):
        return "Only failed jobs can be retried; run pending jobs instead."
    return ""


def _is_retryable(exc: ReelpostError) -> bool:
    return isinstance(exc, (SafetyHalt, QuotaExceeded))
